# termchat/terminal.py

"""
Terminal helpers: ANSI markers, cbreak mode and the two renderers.
"""

import os
import shutil
import sys
import termios
import threading
import tty

ESC = "\033"
BELL = "\a"
RED = ESC + "[31m"
GRAY = ESC + "[90m"
RESET = ESC + "[0m"
CLEAR_SCREEN = ESC + "[2J"
HIDE_CURSOR = ESC + "[?25l"
SHOW_CURSOR = ESC + "[?25h"

PROMPT = "> "


def move_cursor(row: int, col: int) -> str:
    return f"{ESC}[{row};{col}H"


class TerminalMode:
    """ Switches a TTY into cbreak mode (no line buffering, no echo) and back."""

    def __init__(self, fd: int):
        self.fd = fd
        self._saved = None

    def enable(self):
        if self._saved is not None or not os.isatty(self.fd):
            return
        self._saved = termios.tcgetattr(self.fd)
        tty.setcbreak(self.fd)

    def restore(self):
        if self._saved is None:
            return
        saved, self._saved = self._saved, None
        termios.tcsetattr(self.fd, termios.TCSAFLUSH, saved)


class ScreenRenderer:
    """ Full-screen view: scrollback window on top, input prompt on the last row."""

    def __init__(self, session, output=None):
        self.session = session
        self.output = output or sys.stdout
        self._input = ""
        self._lock = threading.Lock()

    def _rows(self) -> int:
        return shutil.get_terminal_size((80, 24)).lines

    def redraw(self, input_text: str | None = None):
        """ Repaints the screen. Without input_text the last prompt contents are kept."""
        with self._lock:
            if input_text is not None:
                self._input = input_text
            rows = self._rows()
            lines = self.session.scrollback.snapshot(rows - 2, self.session.scroll_offset)

            out = [CLEAR_SCREEN, move_cursor(1, 1)]
            out.extend(line + "\n" for line in lines)
            out.append(move_cursor(rows, 1))
            out.append(PROMPT + self._input)
            self.output.write("".join(out))
            self.output.flush()

    def start(self):
        with self._lock:
            self.output.write(HIDE_CURSOR)
            self.output.flush()

    def finish(self):
        with self._lock:
            self.output.write(SHOW_CURSOR + CLEAR_SCREEN + move_cursor(1, 1))
            self.output.flush()


class LineRenderer:
    """ Plain output: each redraw prints the lines added since the last one."""

    def __init__(self, session, output=None):
        self.session = session
        self.output = output or sys.stdout
        self._mark = 0
        self._lock = threading.Lock()

    def redraw(self, input_text: str | None = None):
        with self._lock:
            lines, self._mark = self.session.scrollback.lines_since(self._mark)
            for line in lines:
                self.output.write(line + "\n")
            self.output.flush()

    def start(self):
        pass

    def finish(self):
        pass
