# termchat/session.py

"""
State shared by the receive thread and the input loop.
"""

import threading
from dataclasses import dataclass, field

from .network_utils import Connection
from .scrollback import ScrollbackBuffer


@dataclass
class ClientSession:
    connection: Connection
    username: str
    quiet: bool = False
    tui: bool = False
    scrollback: ScrollbackBuffer = field(default_factory=ScrollbackBuffer)
    # View-only; changed by the input loop, read by the renderer
    scroll_offset: int = 0
    _running: threading.Event = field(default_factory=threading.Event, repr=False)

    def __post_init__(self):
        self._running.set()

    @property
    def running(self) -> bool:
        return self._running.is_set()

    def stop(self):
        """ Clears the running flag. Both loops observe it and wind down."""
        self._running.clear()
