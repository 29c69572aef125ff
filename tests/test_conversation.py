import pytest

from ultrachat.models.conversation import Conversation
from ultrachat.models.message import Message


@pytest.fixture
def conversation():
    return Conversation()


def test_append_keeps_order(conversation):
    first, second = Message.user("one"), Message.placeholder()
    conversation.append(first)
    conversation.append(second)

    assert [m.id for m in conversation.messages] == [first.id, second.id]
    assert conversation.get_message_count() == 2
    assert conversation.get_last_message() == second


def test_duplicate_id_rejected(conversation):
    msg = Message.user("one")
    conversation.append(msg)
    with pytest.raises(ValueError):
        conversation.append(msg)


def test_update_by_id_is_idempotent_and_stable(conversation):
    user, placeholder, tail = Message.user("q"), Message.placeholder(), Message.user("next")
    for msg in (user, placeholder, tail):
        conversation.append(msg)

    assert conversation.update_by_id(placeholder.id, text="answer")
    snapshot = conversation.messages
    assert conversation.update_by_id(placeholder.id, text="answer")

    assert conversation.messages == snapshot
    assert [m.id for m in conversation.messages] == [user.id, placeholder.id, tail.id]
    assert conversation.get(placeholder.id).text == "answer"


def test_update_unknown_id_is_noop(conversation):
    conversation.append(Message.user("q"))
    assert conversation.update_by_id("missing", text="x") is False
    assert conversation.get_message_count() == 1


def test_clear_discards_everything(conversation):
    conversation.append(Message.user("q"))
    conversation.append(Message.placeholder())
    conversation.clear()

    assert conversation.messages == []
    assert conversation.get_last_message() is None


def test_history_is_role_text_pairs(conversation):
    conversation.append(Message.user("hi"))
    conversation.append(Message.placeholder().with_changes(text="hello"))

    assert conversation.history() == [
        {"role": "user", "text": "hi"},
        {"role": "model", "text": "hello"},
    ]


def test_listeners_see_every_mutation(conversation):
    events = []
    listener = lambda event, message: events.append((event, message.text if message else None))
    conversation.subscribe(listener)

    placeholder = Message.placeholder()
    conversation.append(placeholder)
    conversation.update_by_id(placeholder.id, text="partial")
    conversation.clear()

    assert events == [("appended", ""), ("updated", "partial"), ("cleared", None)]

    conversation.unsubscribe(listener)
    conversation.append(Message.user("after"))
    assert len(events) == 3


def test_failing_listener_does_not_break_mutation(conversation):
    def broken(event, message):
        raise RuntimeError("boom")

    conversation.subscribe(broken)
    conversation.append(Message.user("still stored"))
    assert conversation.get_message_count() == 1
