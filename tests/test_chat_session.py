import threading
import time

import openai
import pytest

from ultrachat.ai.chat_session import (
    APOLOGY_TEXT,
    ChatSession,
    ConversationBusyError,
    TurnState,
)
from ultrachat.models.message import ImageAttachment, Role


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        assert time.monotonic() < deadline, "condition not reached"
        time.sleep(0.01)


@pytest.fixture
def session(gemini_client, settings):
    return ChatSession(gemini_client, settings=settings)


def test_each_turn_adds_user_and_model_message(session):
    for n in range(1, 4):
        session.run_turn(f"question {n}")
        assert session.conversation.get_message_count() == 2 * n

    roles = [m.role for m in session.conversation.messages]
    assert roles == [Role.USER, Role.MODEL] * 3
    assert session.state is TurnState.COMPLETED
    assert not session.is_busy


def test_final_text_is_concatenation_of_fragments(session, completions):
    completions.fragments = ["The ", "answer ", "is ", "42."]
    reply = session.run_turn("question")

    assert reply.text == "The answer is 42."
    assert session.conversation.get_last_message().text == "The answer is 42."
    assert not reply.is_error


def test_placeholder_grows_monotonically(session, completions):
    completions.fragments = ["a", "b", "c"]
    seen = []
    session.conversation.subscribe(
        lambda event, message: seen.append(message.text)
        if event == "updated" else None
    )

    session.run_turn("go")
    assert seen == ["a", "ab", "abc"]


def test_empty_send_is_noop(session, completions):
    assert session.run_turn("   ") is None
    assert session.send("", []) is None

    assert session.conversation.get_message_count() == 0
    assert completions.requests == []
    assert session.state is TurnState.IDLE


def test_transport_failure_marks_placeholder(session, completions):
    completions.error = openai.OpenAIError("network down")
    completions.error_after = 2

    reply = session.run_turn("question")

    assert reply.is_error
    assert reply.text == APOLOGY_TEXT
    assert session.conversation.get_message_count() == 2
    assert session.state is TurnState.FAILED
    assert not session.is_busy


def test_failure_before_any_fragment(session, completions):
    completions.create_error = openai.OpenAIError("invalid key")

    reply = session.run_turn("question")
    assert reply.is_error
    assert reply.text == APOLOGY_TEXT


def test_next_turn_works_after_failure(session, completions):
    completions.create_error = openai.OpenAIError("invalid key")
    session.run_turn("first")

    completions.create_error = None
    reply = session.run_turn("second")
    assert reply.text == "Hello, world"
    assert session.conversation.get_message_count() == 4


def test_history_excludes_current_turn(session, completions):
    session.run_turn("first")
    session.run_turn("second")

    first_request, second_request = completions.requests
    assert [m["content"] for m in first_request["messages"]] == ["Be brief.", "first"]
    assert [m["content"] for m in second_request["messages"]] == [
        "Be brief.", "first", "Hello, world", "second",
    ]


def test_image_turn_sends_no_history(session, completions):
    session.run_turn("first")
    session.run_turn("describe", [ImageAttachment(b"jpeg-bytes")])

    image_request = completions.requests[1]
    assert image_request["model"] == "vision-model"
    assert len(image_request["messages"]) == 2

    # The image turn still becomes part of the text history afterwards
    session.run_turn("and then?")
    contents = [m["content"] for m in completions.requests[2]["messages"]]
    assert contents[3] == "describe"


def test_second_send_rejected_while_streaming(session, completions):
    gate = threading.Event()
    completions.gate = gate

    worker = session.send("first")
    assert worker is not None
    assert session.is_busy
    wait_for(lambda: session.conversation.get_message_count() == 2)

    with pytest.raises(ConversationBusyError):
        session.send("second")
    with pytest.raises(ConversationBusyError):
        session.run_turn("third")
    assert session.conversation.get_message_count() == 2

    gate.set()
    assert session.wait(timeout=5)
    assert session.state is TurnState.COMPLETED
    assert session.conversation.get_message_count() == 2
    assert len(completions.requests) == 1


def test_settings_are_read_at_send_time(session, completions):
    session.run_turn("first")
    session.update_settings(temperature=1.5, system_instruction="Be verbose.")
    session.run_turn("second")

    assert completions.requests[0]["temperature"] == 0.5
    assert completions.requests[1]["temperature"] == 1.5
    assert completions.requests[1]["messages"][0]["content"] == "Be verbose."


def test_invalid_settings_change_keeps_previous(session):
    with pytest.raises(ValueError):
        session.update_settings(temperature=3)
    assert session.settings.temperature == 0.5


def test_clear_keeps_settings(session):
    session.run_turn("first")
    before = session.settings

    session.clear()

    assert session.conversation.get_message_count() == 0
    assert session.settings is before


def test_cancel_keeps_partial_text(session, completions):
    gate = threading.Event()
    completions.gate = gate
    completions.fragments = ["one ", "two ", "three"]

    updates = []

    def on_update(event, message):
        if event == "updated" and not updates:
            updates.append(message.text)
            session.cancel()

    session.conversation.subscribe(on_update)
    session.send("count")
    gate.set()
    assert session.wait(timeout=5)

    assert session.state is TurnState.CANCELLED
    reply = session.conversation.get_last_message()
    assert reply.text == "one "
    assert not reply.is_error
    assert completions.streams[0].closed


def test_state_transitions_are_published(session):
    states = []
    session.subscribe(states.append)

    session.run_turn("hello")
    assert states == [TurnState.SENDING, TurnState.STREAMING, TurnState.COMPLETED]


def test_cancel_without_turn_returns_false(session):
    assert session.cancel() is False


def test_image_only_turn_without_text(session, completions):
    reply = session.run_turn(None, [ImageAttachment(b"x")])

    assert reply.text == "Hello, world"
    assert session.conversation.messages[0].text == ""
    request = completions.requests[0]
    assert request["model"] == "vision-model"
    assert request["messages"][-1]["content"][-1] == {"type": "text", "text": ""}


def test_clear_during_stream_drops_late_fragments(session, completions):
    gate = threading.Event()
    completions.gate = gate
    before = session.settings

    session.send("first")
    wait_for(lambda: session.conversation.get_message_count() == 2)

    session.clear()
    gate.set()
    assert session.wait(timeout=5)

    assert session.conversation.get_message_count() == 0
    assert session.state is TurnState.CANCELLED
    assert session.settings is before


def test_final_state_is_published_while_still_busy(session, completions):
    observed = []

    def on_state(state):
        if state.is_active:
            return
        try:
            session.send("too early")
            rejected = False
        except ConversationBusyError:
            rejected = True
        observed.append((state, session.is_busy, rejected))

    session.subscribe(on_state)
    session.run_turn("hello")

    completions.create_error = openai.OpenAIError("invalid key")
    session.run_turn("again")

    assert observed == [(TurnState.COMPLETED, True, True), (TurnState.FAILED, True, True)]
    assert not session.is_busy
    assert session.conversation.get_message_count() == 4


def test_submit_reports_whether_turn_started(session, completions):
    gate = threading.Event()
    completions.gate = gate

    assert session.submit("   ") is False
    assert session.submit("first") is True
    wait_for(lambda: session.conversation.get_message_count() == 2)

    assert session.submit("second") is False
    assert session.conversation.get_message_count() == 2

    gate.set()
    assert session.wait(timeout=5)
    assert session.submit("third") is True
    assert session.wait(timeout=5)
    assert session.conversation.get_message_count() == 4
