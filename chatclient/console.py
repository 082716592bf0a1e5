# chatclient/console.py
"""Interactive console: prompts, status lines and the reconnect spinner."""

import sys
import threading
from typing import Callable, Optional, TextIO, TypeVar

T = TypeVar("T")

SPINNER_CHARS = "|/-\\"


class Console:
    """
    Line-input source and line-output sink over a pair of text streams.
    Writes are serialized so the listen thread, the spinner and the
    foreground prompt never interleave inside a line.
    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self._lock = threading.Lock()

    def read_line(self, prompt: str = "") -> Optional[str]:
        """Return the next line without its newline, or None at end of input."""
        if prompt:
            self.write(prompt)
        line = self.stdin.readline()
        if not line:
            return None
        return line.rstrip("\r\n")

    def write(self, text: str) -> None:
        with self._lock:
            self.stdout.write(text)
            self.stdout.flush()

    def write_line(self, text: str = "") -> None:
        self.write(text + "\n")

    def with_spinner(self, message: str, action: Callable[[], T]) -> T:
        return with_spinner(self, message, action)


class Spinner:
    def __init__(self, console: Console, message: str, interval: float = 0.1):
        self.console = console
        self.message = message
        self.interval = interval
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._spin, name="spinner", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        self._thread.join()

    def _spin(self) -> None:
        index = 0
        while not self._stop.is_set():
            char = SPINNER_CHARS[index % len(SPINNER_CHARS)]
            self.console.write(f"\r{self.message} {char}")
            index += 1
            self._stop.wait(self.interval)


def with_spinner(console: Console, message: str, action: Callable[[], T]) -> T:
    """
    Run a blocking action while a spinner animates next to message.
    The spinner is stopped even if the action raises.
    """
    spinner = Spinner(console, message)
    spinner.start()
    try:
        return action()
    finally:
        spinner.stop()
        console.write(f"\r{message}\n")
