# termchat/protocol.py

"""
Fixed-size binary record format shared with the chat server.

Every message travels as one 1064-byte record: two unsigned 32-bit
integers (type, timestamp) in network byte order followed by two
NUL-padded byte slots (username, message body). There is no length
prefix and no delimiter.
"""

import struct
from dataclasses import dataclass
from enum import IntEnum

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080

# Record format: type, timestamp, username[32], message[1024]
RECORD_FORMAT = "!II32s1024s"
RECORD_SIZE = struct.calcsize(RECORD_FORMAT)

USERNAME_SLOT = 32
BODY_SLOT = 1024
# One byte of each slot is reserved for the terminator
MAX_USERNAME = USERNAME_SLOT - 1
MAX_BODY = BODY_SLOT - 1

MAX_TIMESTAMP = 0xFFFFFFFF


class MessageType(IntEnum):
    LOGIN = 0
    LOGOUT = 1
    MESSAGE_SEND = 2
    MESSAGE_RECEIVE = 10
    DISCONNECT = 12
    SYSTEM = 13


class CapacityError(ValueError):
    """A field does not fit its fixed-width slot."""


class FramingError(ConnectionError):
    """A record of the wrong size was handed to the decoder."""


@dataclass
class Message:
    type: int
    timestamp: int = 0
    username: str = ""
    body: str = ""


def truncate_utf8(text: str, limit: int) -> str:
    """ Returns the longest prefix of text whose UTF-8 encoding fits in limit bytes."""
    encoded = text.encode("utf-8")
    if len(encoded) <= limit:
        return text
    # Dropping a partial trailing sequence keeps the result valid UTF-8
    return encoded[:limit].decode("utf-8", errors="ignore")


def _pack_field(value: str, limit: int, name: str) -> bytes:
    data = value.encode("utf-8")
    if len(data) > limit:
        raise CapacityError(f"{name} is {len(data)} bytes, limit is {limit}")
    return data


def _unpack_field(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def encode(message: Message) -> bytes:
    """ Packs a Message into one fixed-size record."""
    if not 0 <= message.timestamp <= MAX_TIMESTAMP:
        raise CapacityError(f"timestamp {message.timestamp} does not fit in 32 bits")
    if not 0 <= int(message.type) <= MAX_TIMESTAMP:
        raise CapacityError(f"message type {message.type} does not fit in 32 bits")

    username = _pack_field(message.username, MAX_USERNAME, "username")
    body = _pack_field(message.body, MAX_BODY, "message body")
    # struct pads the byte slots with NULs
    return struct.pack(RECORD_FORMAT, int(message.type), message.timestamp, username, body)


def decode(record: bytes) -> Message:
    """ Unpacks one record. Unknown type values are kept as plain ints."""
    if len(record) != RECORD_SIZE:
        raise FramingError(f"Expected a {RECORD_SIZE}-byte record, got {len(record)} bytes")

    msg_type, timestamp, username, body = struct.unpack(RECORD_FORMAT, record)
    try:
        msg_type = MessageType(msg_type)
    except ValueError:
        pass # Left as int; the receive loop discards it

    return Message(
        type=msg_type,
        timestamp=timestamp,
        username=_unpack_field(username),
        body=_unpack_field(body),
    )
