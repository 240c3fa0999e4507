"""Session id validation and the shared, lock-protected session state."""

import threading
import time
from collections.abc import Callable

from ..config import INVALID_SID, SID_RE
from ..exceptions import FormatError


def parse_sid(text: "str | None") -> str:
    """
    Validate a session id as returned in the ``<SID>`` element.

    Raises FormatError unless *text* is exactly 16 lowercase hex digits.
    """
    sid = (text or "").strip()
    if len(sid) != 16:
        raise FormatError(f"Session id with wrong length: {sid!r}")
    if not SID_RE.fullmatch(sid):
        raise FormatError(f"Session id with wrong format: {sid!r}")
    return sid


def is_valid_session(sid: str) -> bool:
    """True for every well-formed session id except the all-zero one."""
    return sid != INVALID_SID


class SessionState:
    """
    Current session id plus the timestamp of the last gateway contact.

    Both values are read by the request path and the keep-alive thread,
    and written by the authenticator; one lock guards them so no reader
    ever sees a half-applied update.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._sid = INVALID_SID
        self._last_activity = clock()

    def current(self) -> str:
        with self._lock:
            return self._sid

    def set(self, sid: str) -> None:
        sid = parse_sid(sid)
        with self._lock:
            self._sid = sid

    def reset(self) -> None:
        with self._lock:
            self._sid = INVALID_SID

    def is_valid(self) -> bool:
        return is_valid_session(self.current())

    def touch(self) -> None:
        """Record that the gateway was just contacted."""
        now = self._clock()
        with self._lock:
            self._last_activity = now

    @property
    def last_activity(self) -> float:
        with self._lock:
            return self._last_activity

    def now(self) -> float:
        return self._clock()

    def __repr__(self) -> str:
        return f"SessionState(valid={self.is_valid()})"
