import pytest

from termchat.network_utils import WriteError
from termchat.session import ClientSession


class FakeConnection:
    """ Scripted stand-in for Connection: incoming items are Messages or exceptions."""

    def __init__(self, incoming=()):
        self.incoming = list(incoming)
        self.sent = []
        self.fail_send = False
        self.close_calls = 0

    def receive_message(self):
        if not self.incoming:
            return None
        item = self.incoming.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def send_message(self, message):
        if self.fail_send:
            raise WriteError("Failed to send message: broken pipe")
        self.sent.append(message)

    def close(self):
        self.close_calls += 1


class RecordingRenderer:
    def __init__(self):
        self.redraws = []
        self.started = False
        self.finished = False

    def redraw(self, input_text=None):
        self.redraws.append(input_text)

    def start(self):
        self.started = True

    def finish(self):
        self.finished = True


@pytest.fixture
def connection():
    return FakeConnection()


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def session(connection):
    return ClientSession(connection, "alice")
