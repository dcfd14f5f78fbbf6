import sys
import logging
import threading
import pyperclip
from typing import Protocol, TextIO
from otp_tools.errors import ClipboardError


logger = logging.getLogger(__name__)


class Clipboard(Protocol):

    def read(self) -> str:
        ...

    def write(self, text: str) -> None:
        ...


class PyperclipClipboard:
    """
    System clipboard, through pyperclip
    """

    def read(self) -> str:
        try:
            return pyperclip.paste()
        except pyperclip.PyperclipException as e:
            raise ClipboardError(f"could not read clipboard: {e}") from e

    def write(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise ClipboardError(f"could not write clipboard: {e}") from e


class ClipboardGuard:
    """
    Saves the clipboard content on entry and puts it back on exit.
    Restoration is attempted exactly once, whichever of the normal exit or the cancellation path comes first,
    and no write goes through once it has started.
    """

    def __init__(self, backend: Clipboard | None = None, stream: TextIO | None = None):
        self.backend = PyperclipClipboard() if backend is None else backend
        self.stream = stream
        self.original = ""
        self._lock = threading.Lock()
        self._restoring = False

    def __enter__(self) -> "ClipboardGuard":
        try:
            self.original = self.backend.read()
        except ClipboardError as e:
            logger.warning("Could not read clipboard to preserve: %s", e)
            self.original = ""
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.restore()

    def write(self, text: str) -> bool:
        """
        Put the text in the clipboard. Returns False if the write was refused or failed.
        """
        with self._lock:
            if self._restoring:
                return False
            try:
                self.backend.write(text)
            except ClipboardError as e:
                logger.warning("Failed to copy to clipboard: %s", e)
                return False
        return True

    def restore(self) -> bool:
        """
        Put back the saved clipboard content. Only the first call does anything.
        Returns True if this call restored the clipboard successfully.
        """
        with self._lock:
            if self._restoring:
                return False
            self._restoring = True
            try:
                self.backend.write(self.original)
            except ClipboardError as e:
                logger.warning("Could not restore clipboard: %s", e)
                return False
        print("\nOriginal clipboard restored.", file=self.stream or sys.stdout, flush=True)
        return True
