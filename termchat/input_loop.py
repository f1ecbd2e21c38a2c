# termchat/input_loop.py

"""
The input loop: reads keystrokes, edits the prompt line and sends it on Enter.
"""

import codecs
import io
import logging
import os
import select

from .network_utils import WriteError
from .protocol import MAX_BODY, Message, MessageType

POLL_INTERVAL = 0.2

KEY_ENTER = ("\n", "\r")
KEY_BACKSPACE = ("\x7f", "\b")
KEY_ESCAPE = "\x1b"


class InputLoop:
    """ Line editor over a binary input stream.

    When the stream has a file descriptor, reads wait with select so that
    a cleared running flag is noticed without another keystroke.
    """

    def __init__(self, session, renderer, stream, poll_interval: float = POLL_INTERVAL):
        self.session = session
        self.renderer = renderer
        self.stream = stream
        self.poll_interval = poll_interval
        self.buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="ignore")
        try:
            self._fd = stream.fileno()
        except (AttributeError, io.UnsupportedOperation):
            self._fd = None

    def _read_byte(self) -> bytes | None:
        """ Returns one byte, b'' at EOF, or None once the session stops."""
        if self._fd is None:
            return self.stream.read(1)
        while self.session.running:
            ready, _, _ = select.select([self._fd], [], [], self.poll_interval)
            if ready:
                return os.read(self._fd, 1)
        return None

    def read_unit(self) -> str | None:
        """ Returns the next decoded character, '' at EOF, or None once stopped."""
        while True:
            byte = self._read_byte()
            if byte is None:
                return None
            if not byte:
                return ""
            char = self._decoder.decode(byte)
            if char:
                return char

    def submit(self):
        if not self.buffer:
            return
        message = Message(MessageType.MESSAGE_SEND, body=self.buffer)
        try:
            self.session.connection.send_message(message)
        except WriteError as e:
            logging.error(f"Cannot send message: {e}")
        self.buffer = ""

    def handle(self, unit: str):
        """ Applies one input unit to the line buffer or the view."""
        if unit in KEY_ENTER:
            self.submit()
        elif unit in KEY_BACKSPACE:
            self.buffer = self.buffer[:-1]
        elif unit == KEY_ESCAPE:
            self._handle_escape()
        elif unit.isprintable():
            if len((self.buffer + unit).encode("utf-8")) <= MAX_BODY:
                self.buffer += unit

    def _handle_escape(self):
        # Arrow keys arrive as ESC [ A / ESC [ B; only the final byte matters
        seq = [self.read_unit(), self.read_unit()]
        if seq[1] == "A":
            self.session.scroll_offset += 1
        elif seq[1] == "B" and self.session.scroll_offset > 0:
            self.session.scroll_offset -= 1

    def run(self):
        """ Runs until input ends or the session stops."""
        while self.session.running:
            unit = self.read_unit()
            if unit is None:
                break
            if unit == "":
                logging.debug("Input closed.")
                self.session.stop()
                break
            self.handle(unit)
            if self.session.tui:
                self.renderer.redraw(self.buffer)
