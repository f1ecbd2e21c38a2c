# termchat/network_utils.py

"""
Provides the client connection: whole-record sends and receives over
a TCP socket.
"""

import logging
import socket

from . import protocol
from .protocol import FramingError, Message

DEFAULT_CONNECT_TIMEOUT = 10.0


class ConnectError(ConnectionError):
    """Address resolution or TCP connect failed."""


class ReadError(ConnectionError):
    """The socket failed while reading a record."""


class WriteError(ConnectionError):
    """The socket failed while writing a record."""


def recvall(sock: socket.socket, n: int) -> bytes:
    """ Receives up to n bytes, looping over partial reads.

    Returns fewer than n bytes only when the peer closed the connection.
    """
    data = bytearray()
    while len(data) < n:
        try:
            packet = sock.recv(n - len(data))
        except OSError as e:
            raise ReadError(f"Connection lost during recvall: {e}") from e
        if not packet:
            break # Connection closed
        data.extend(packet)
    return bytes(data)


class Connection:
    """ Owns the TCP socket to the chat server.

    One thread sends and another receives; the socket itself is not locked.
    """

    def __init__(self, sock: socket.socket):
        self.sock = sock
        self.closed = False

    @classmethod
    def connect(cls, host: str, port: int, timeout: float = DEFAULT_CONNECT_TIMEOUT) -> "Connection":
        """ Resolves host and opens the connection, or raises ConnectError."""
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except socket.gaierror as e:
            raise ConnectError(f"Could not resolve '{host}': {e}") from e
        except ConnectionRefusedError as e:
            raise ConnectError(f"Connection to {host}:{port} refused. Is the server running?") from e
        except OSError as e:
            raise ConnectError(f"Failed to connect to {host}:{port}: {e}") from e
        # Reads block indefinitely; shutdown unblocks them by closing the socket
        sock.settimeout(None)
        logging.debug(f"Socket connected to {sock.getpeername()}")
        return cls(sock)

    def send_message(self, message: Message):
        """ Encodes and writes one full record."""
        record = protocol.encode(message)
        try:
            self.sock.sendall(record)
        except OSError as e:
            raise WriteError(f"Failed to send message: {e}") from e

    def receive_message(self) -> Message | None:
        """ Reads exactly one record. Returns None on a clean EOF."""
        record = recvall(self.sock, protocol.RECORD_SIZE)
        if not record:
            return None
        if len(record) != protocol.RECORD_SIZE:
            raise FramingError(
                f"Connection closed mid-record ({len(record)} of {protocol.RECORD_SIZE} bytes)"
            )
        return protocol.decode(record)

    def close(self):
        """ Shuts down and closes the socket. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass # Peer may already be gone
        try:
            self.sock.close()
        except OSError:
            pass
