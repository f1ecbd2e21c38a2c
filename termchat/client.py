# termchat/client.py

"""
The main TCP Chat Client logic: connects, runs the receive thread next to
the input loop, and tears everything down exactly once.
"""

import io
import logging
import signal
import sys
import threading

from .input_loop import InputLoop
from .network_utils import ConnectError, Connection, WriteError
from .protocol import MAX_USERNAME, Message, MessageType, truncate_utf8
from .receiver import ReceiveLoop
from .session import ClientSession
from .terminal import LineRenderer, ScreenRenderer, TerminalMode

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ChatClient:
    def __init__(self, host, port, username, quiet=False, tui=False, stdin=None, stdout=None):
        self.host = host
        self.port = port
        self.username = truncate_utf8(username, MAX_USERNAME)
        self.quiet = quiet
        self.tui = tui
        self.stdin = stdin if stdin is not None else sys.stdin.buffer
        self.stdout = stdout or sys.stdout
        self.session = None
        self.renderer = None
        self.terminal = None
        self.receive_thread = None
        self._previous_handlers = {}
        self._shutdown_lock = threading.Lock()
        self._shut_down = False

    def connect(self):
        """ Establishes connection to the server, logs in and starts the receive thread."""
        try:
            connection = Connection.connect(self.host, self.port)
        except ConnectError as e:
            logging.error(str(e))
            return False
        logging.info(f"Connected to server at {self.host}:{self.port}")

        self.session = ClientSession(connection, self.username, quiet=self.quiet, tui=self.tui)
        if self.tui:
            self.renderer = ScreenRenderer(self.session, self.stdout)
        else:
            self.renderer = LineRenderer(self.session, self.stdout)

        try:
            connection.send_message(Message(MessageType.LOGIN, username=self.username))
        except WriteError as e:
            logging.error(f"Failed to log in: {e}")
            connection.close()
            self.session = None
            return False

        receiver = ReceiveLoop(self.session, self.renderer)
        self.receive_thread = threading.Thread(target=receiver.run, name="receive", daemon=True)
        self.receive_thread.start()
        return True

    def _handle_signal(self, signum, frame):
        # Only flag intent; the input loop notices within one poll interval
        if self.session is not None:
            self.session.stop()

    def _install_signal_handlers(self):
        if threading.current_thread() is not threading.main_thread():
            return
        for sig in SHUTDOWN_SIGNALS:
            self._previous_handlers[sig] = signal.signal(sig, self._handle_signal)

    def _restore_signal_handlers(self):
        if threading.current_thread() is not threading.main_thread():
            return
        while self._previous_handlers:
            sig, handler = self._previous_handlers.popitem()
            signal.signal(sig, handler)

    def _stdin_fd(self):
        try:
            return self.stdin.fileno()
        except (AttributeError, io.UnsupportedOperation):
            return None

    def start_input_loop(self):
        """ Runs the input loop on the calling thread until it ends."""
        if self.tui:
            fd = self._stdin_fd()
            if fd is not None:
                self.terminal = TerminalMode(fd)
                self.terminal.enable()
            self.renderer.start()
            self.renderer.redraw("")
        InputLoop(self.session, self.renderer, self.stdin).run()

    def shutdown(self):
        """ Stops both loops, logs out and closes the socket. Runs once."""
        with self._shutdown_lock:
            if self._shut_down:
                return
            self._shut_down = True

        if self.session is None:
            self._restore_signal_handlers()
            return
        self.session.stop()

        if self.tui:
            self.renderer.finish()
            if self.terminal:
                self.terminal.restore()

        try:
            self.session.connection.send_message(Message(MessageType.LOGOUT))
        except WriteError as e:
            logging.debug(f"Logout not sent: {e}")

        # Closing the socket unblocks the receive thread
        self.session.connection.close()
        if self.receive_thread and self.receive_thread is not threading.current_thread():
            self.receive_thread.join()
        self._restore_signal_handlers()
        logging.info("Client closed.")

    def run(self) -> int:
        """ Connects and starts the input loop. Returns the process exit status."""
        if not self.connect():
            return 1
        self._install_signal_handlers()
        try:
            self.start_input_loop()
        finally:
            self.shutdown()
        return 0
