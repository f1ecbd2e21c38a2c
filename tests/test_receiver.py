from datetime import datetime

from termchat.network_utils import ReadError
from termchat.protocol import FramingError, Message, MessageType
from termchat.receiver import (
    ReceiveLoop,
    format_chat_line,
    format_disconnect_line,
    format_system_line,
    format_timestamp,
    highlight_mentions,
)
from termchat.session import ClientSession
from termchat.terminal import BELL, GRAY, RED, RESET

T = 1700000000


def chat(body, sender="bob", timestamp=T):
    return Message(MessageType.MESSAGE_RECEIVE, timestamp=timestamp, username=sender, body=body)


def test_format_timestamp_uses_local_time():
    assert format_timestamp(T) == datetime.fromtimestamp(T).strftime("%Y-%m-%d %H:%M:%S")


def test_plain_chat_line():
    assert format_chat_line(chat("hello"), "alice") == f"[{format_timestamp(T)}] bob: hello"


def test_mention_is_highlighted_with_one_bell():
    line = format_chat_line(chat("hi @alice!"), "alice")
    assert f"{RED}@alice{RESET}" in line
    assert line.startswith(BELL)
    assert line.count(BELL) == 1
    assert line.endswith(f"bob: hi {RED}@alice{RESET}!")


def test_several_mentions_still_ring_once():
    line = format_chat_line(chat("@alice and @alice"), "alice")
    assert line.count(f"{RED}@alice{RESET}") == 2
    assert line.count(BELL) == 1


def test_quiet_mode_suppresses_highlight_and_bell():
    line = format_chat_line(chat("hi @alice!"), "alice", quiet=True)
    assert RED not in line
    assert BELL not in line
    assert line.endswith("bob: hi @alice!")


def test_mention_of_someone_else_is_left_alone():
    line = format_chat_line(chat("hi @bob"), "alice")
    assert line == f"[{format_timestamp(T)}] bob: hi @bob"


def test_mention_match_is_case_sensitive():
    assert highlight_mentions("hi @Alice", "alice") == ("hi @Alice", False)


def test_mention_is_a_literal_prefix_match():
    text, matched = highlight_mentions("@alicebob there", "alice")
    assert matched
    assert text == f"{RED}@alice{RESET}bob there"


def test_empty_username_never_matches():
    assert highlight_mentions("@ @x", "") == ("@ @x", False)


def test_system_and_disconnect_lines():
    assert format_system_line(Message(MessageType.SYSTEM, body="welcome")) == f"{GRAY}[SYSTEM] welcome{RESET}"
    assert (
        format_disconnect_line(Message(MessageType.DISCONNECT, body="bye"))
        == f"{RED}[DISCONNECT] bye{RESET}"
    )


def test_messages_are_appended_in_arrival_order(session, connection, renderer):
    connection.incoming = [Message(MessageType.SYSTEM, body="welcome"), chat("hello")]
    ReceiveLoop(session, renderer).run()

    assert session.scrollback.snapshot(10) == [
        f"{GRAY}[SYSTEM] welcome{RESET}",
        f"[{format_timestamp(T)}] bob: hello",
    ]
    assert len(renderer.redraws) == 2


def test_disconnect_is_terminal(session, connection, renderer):
    connection.incoming = [Message(MessageType.DISCONNECT, body="server shutting down"), chat("late")]
    ReceiveLoop(session, renderer).run()

    assert session.scrollback.snapshot(10) == [f"{RED}[DISCONNECT] server shutting down{RESET}"]
    assert renderer.redraws == [None]
    assert not session.running
    # Nothing after the disconnect was read
    assert connection.incoming == [chat("late")]


def test_unknown_types_are_ignored(session, connection, renderer):
    connection.incoming = [
        Message(99, body="mystery"),
        Message(MessageType.LOGIN, username="x"),
        Message(MessageType.SYSTEM, body="ok"),
    ]
    ReceiveLoop(session, renderer).run()

    assert session.scrollback.snapshot(10) == [f"{GRAY}[SYSTEM] ok{RESET}"]
    assert session.running


def test_eof_ends_loop_silently(session, connection, renderer):
    ReceiveLoop(session, renderer).run()
    assert len(session.scrollback) == 0
    assert renderer.redraws == []
    assert session.running


def test_read_errors_end_loop_silently(session, connection, renderer):
    connection.incoming = [ReadError("reset"), Message(MessageType.SYSTEM, body="unreached")]
    ReceiveLoop(session, renderer).run()
    assert len(session.scrollback) == 0
    assert session.running


def test_framing_error_is_treated_like_eof(session, connection, renderer):
    connection.incoming = [Message(MessageType.SYSTEM, body="first"), FramingError("short record")]
    ReceiveLoop(session, renderer).run()
    assert session.scrollback.snapshot(10) == [f"{GRAY}[SYSTEM] first{RESET}"]


def test_stopped_session_is_not_read(session, connection, renderer):
    connection.incoming = [Message(MessageType.SYSTEM, body="pending")]
    session.stop()
    ReceiveLoop(session, renderer).run()
    assert len(connection.incoming) == 1


def test_quiet_session_formats_without_highlight(connection, renderer):
    quiet = ClientSession(connection, "alice", quiet=True)
    connection.incoming = [chat("ping @alice")]
    ReceiveLoop(quiet, renderer).run()
    assert quiet.scrollback.snapshot(1) == [f"[{format_timestamp(T)}] bob: ping @alice"]
