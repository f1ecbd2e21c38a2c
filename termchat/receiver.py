# termchat/receiver.py

"""
The receive loop: turns inbound records into display lines.
"""

import logging
from datetime import datetime

from .protocol import Message, MessageType
from .terminal import BELL, GRAY, RED, RESET

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_timestamp(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp).strftime(TIMESTAMP_FORMAT)


def highlight_mentions(body: str, username: str) -> tuple[str, bool]:
    """ Wraps every '@username' in body with highlight markers.

    Matching is a literal prefix match right after '@': '@alice' also
    matches inside '@alicee'. Returns the new body and whether anything matched.
    """
    if not username:
        return body, False

    mention = "@" + username
    out = []
    matched = False
    i = 0
    while i < len(body):
        if body.startswith(mention, i):
            out.append(RED + mention + RESET)
            matched = True
            i += len(mention)
        else:
            out.append(body[i])
            i += 1
    return "".join(out), matched


def format_chat_line(message: Message, username: str, quiet: bool = False) -> str:
    """ Formats a MESSAGE_RECEIVE record, ringing the bell once on a mention."""
    body = message.body
    matched = False
    if not quiet:
        body, matched = highlight_mentions(body, username)
    line = f"[{format_timestamp(message.timestamp)}] {message.username}: {body}"
    return BELL + line if matched else line


def format_system_line(message: Message) -> str:
    return f"{GRAY}[SYSTEM] {message.body}{RESET}"


def format_disconnect_line(message: Message) -> str:
    return f"{RED}[DISCONNECT] {message.body}{RESET}"


class ReceiveLoop:
    """ Consumes records from the connection until EOF, error or a DISCONNECT."""

    def __init__(self, session, renderer):
        self.session = session
        self.renderer = renderer

    def _show(self, line: str):
        self.session.scrollback.append(line)
        self.renderer.redraw()

    def handle(self, message: Message) -> bool:
        """ Processes one record. Returns False when the loop must stop."""
        if message.type == MessageType.MESSAGE_RECEIVE:
            self._show(format_chat_line(message, self.session.username, self.session.quiet))
        elif message.type == MessageType.SYSTEM:
            self._show(format_system_line(message))
        elif message.type == MessageType.DISCONNECT:
            self._show(format_disconnect_line(message))
            logging.debug(f"Server disconnected us: {message.body}")
            self.session.stop()
            return False
        else:
            logging.debug(f"Ignoring message of type {int(message.type)}")
        return True

    def run(self):
        """ Target function for the receive thread."""
        connection = self.session.connection
        while self.session.running:
            try:
                message = connection.receive_message()
            except ConnectionError as e:
                # Also raised after shutdown closes the socket under us
                logging.debug(f"Receive loop stopped: {e}")
                break
            if message is None:
                logging.debug("Server closed the connection.")
                break
            if not self.handle(message):
                break
        logging.debug("Receive thread terminated.")
