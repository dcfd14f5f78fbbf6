import sys
import enum
import signal
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, UTC
from typing import Callable, Iterator, TextIO
from pydantic import BaseModel
from otp_tools.credential import Credential
from otp_tools.clipboard import ClipboardGuard, Clipboard
from otp_tools.settings import SessionSettings
from otp_tools.totp import totp_time_interval_index, seconds_remaining


logger = logging.getLogger(__name__)


class SessionOutcome(enum.Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SessionState(BaseModel):
    """
    Mutable state of one interactive run
    """
    last_code: str = ""
    last_interval: int = -1
    refresh_count: int = 0
    exit_at_interval: int | None = None


@contextmanager
def signal_cancellation(token: threading.Event, signals: tuple[int, ...] = (signal.SIGINT, signal.SIGTERM)) -> Iterator[threading.Event]:
    """
    Within the context, the given signals only set the token.
    Previous handlers are put back on exit.
    """

    def handler(signum, frame):
        token.set()

    previous = {}
    for signum in signals:
        previous[signum] = signal.signal(signum, handler)
    try:
        yield token
    finally:
        for signum, previous_handler in previous.items():
            signal.signal(signum, previous_handler)


class InteractiveSession:
    """
    Displays the current code with a countdown, refreshes it at each interval change and copies it to the clipboard.
    Stops one full interval after the last allowed refresh, or as soon as the cancellation token is set.
    """

    def __init__(
            self,
            credential: Credential,
            clipboard: Clipboard | None = None,
            settings: SessionSettings | None = None,
            clock: Callable[[], datetime] | None = None,
            cancel_token: threading.Event | None = None,
            stream: TextIO | None = None
        ):
        self.credential = credential
        self.clipboard = clipboard
        self.settings = SessionSettings() if settings is None else settings
        self.clock = (lambda: datetime.now(tz=UTC)) if clock is None else clock
        self.cancel_token = threading.Event() if cancel_token is None else cancel_token
        self.stream = sys.stdout if stream is None else stream

    def _print(self, text: str, end: str = "\n"):
        print(text, end=end, file=self.stream, flush=True)

    def _display(self, code: str, now: datetime):
        remaining = seconds_remaining(now, self.credential.period)
        self._print(f"\rCurrent TOTP code: {code} | Expires in: {remaining:2d} sec", end="")

    def _refresh(self, state: SessionState, guard: ClipboardGuard, interval: int, now: datetime) -> bool:
        """
        Generate the code of the new interval and copy it. Returns False if the session was cancelled meanwhile.
        """
        code = self.credential.code_at(now)
        if self.cancel_token.is_set():
            return False
        guard.write(code)
        state.last_code = code
        state.last_interval = interval
        state.refresh_count += 1
        logger.debug("Refresh %d at interval %d", state.refresh_count, interval)
        if state.refresh_count == self.settings.refresh_limit:
            state.exit_at_interval = interval + 1
        return True

    def _tick(self, state: SessionState, guard: ClipboardGuard) -> SessionOutcome | None:
        """
        Run one step of the loop, returns the outcome once the session should stop
        """
        if self.cancel_token.is_set():
            return SessionOutcome.CANCELLED
        now = self.clock()
        interval = totp_time_interval_index(now, self.credential.period)
        if state.exit_at_interval is not None and interval >= state.exit_at_interval:
            return SessionOutcome.COMPLETED
        if interval != state.last_interval:
            if not self._refresh(state, guard, interval, now):
                return SessionOutcome.CANCELLED
        self._display(state.last_code, now)
        return None

    def run(self) -> SessionOutcome:
        """
        Run the session until completion or cancellation, the clipboard is restored in both cases
        """
        self._print(f"Provider: {self.credential.provider}")
        state = SessionState()
        with ClipboardGuard(self.clipboard, stream=self.stream) as guard:
            while True:
                outcome = self._tick(state, guard)
                if outcome is None and self.cancel_token.wait(self.settings.tick_seconds):
                    outcome = SessionOutcome.CANCELLED
                if outcome is SessionOutcome.COMPLETED:
                    self._print("\r\x1b[KDone.")
                    break
                elif outcome is SessionOutcome.CANCELLED:
                    logger.debug("Session cancelled at refresh %d", state.refresh_count)
                    self._print("\nRestoring original clipboard and exiting.")
                    break
        return outcome
