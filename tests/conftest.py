import socket
import types

import pytest

from ultrachat.ai.gemini_client import GeminiClient
from ultrachat.models.settings import ChatSettings


@pytest.fixture(autouse=True)
def no_network(monkeypatch):
    """Prevent accidental network calls in unit tests by stubbing socket.create_connection."""

    def fake_create_connection(*a, **k):
        raise RuntimeError("Network calls disabled in tests")

    monkeypatch.setattr(socket, "create_connection", fake_create_connection)


def make_chunk(text):
    """Build a streamed completion chunk shaped like the OpenAI SDK's."""
    delta = types.SimpleNamespace(content=text)
    return types.SimpleNamespace(choices=[types.SimpleNamespace(delta=delta)])


class FakeStream:
    """Iterable stand-in for openai.Stream."""

    def __init__(self, fragments, error=None, error_after=None, gate=None):
        self.fragments = list(fragments)
        self.error = error
        self.error_after = len(self.fragments) if error_after is None else error_after
        self.gate = gate
        self.closed = False

    def __iter__(self):
        for index, text in enumerate(self.fragments):
            if self.error is not None and index == self.error_after:
                raise self.error
            if self.gate is not None:
                assert self.gate.wait(5), "gate was never released"
            yield make_chunk(text)
        if self.error is not None and self.error_after >= len(self.fragments):
            raise self.error

    def close(self):
        self.closed = True


class FakeCompletions:
    """Records every request and replays a scripted stream."""

    def __init__(self):
        self.requests = []
        self.streams = []
        self.fragments = ["Hello", ", ", "world"]
        self.error = None
        self.error_after = None
        self.create_error = None
        self.gate = None

    def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.create_error is not None:
            raise self.create_error
        stream = FakeStream(self.fragments, self.error, self.error_after, self.gate)
        self.streams.append(stream)
        return stream


@pytest.fixture
def completions():
    return FakeCompletions()


@pytest.fixture
def gemini_client(completions):
    fake_openai = types.SimpleNamespace(chat=types.SimpleNamespace(completions=completions))
    return GeminiClient(client=fake_openai, text_model="text-model", vision_model="vision-model")


@pytest.fixture
def settings():
    return ChatSettings(system_instruction="Be brief.", temperature=0.5)
