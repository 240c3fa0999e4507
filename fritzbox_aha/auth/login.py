"""Login handshake, logoff and single-flight session renewal."""

import threading
from dataclasses import dataclass, field
from typing import Protocol

from ..config import LOGIN_PATH, LOGIN_VERSION, USERNAME_MAX_LENGTH, USERNAME_RE
from ..exceptions import FormatError, ProtocolError
from ..logging_setup import log
from ..network.client import Transport, first_text, parse_xml
from .challenge import IteratedChallenge, parse_challenge, solve_challenge
from .sid import SessionState, is_valid_session, parse_sid


class KeepAlive(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...

    def stop(self) -> None: ...


@dataclass(frozen=True)
class Credential:
    """Username and password for the gateway; the password never shows in repr."""

    username: str = ""
    password: str = field(default="", repr=False)

    def __post_init__(self) -> None:
        if len(self.username) > USERNAME_MAX_LENGTH:
            raise FormatError(f"Username longer than {USERNAME_MAX_LENGTH} characters")
        if not USERNAME_RE.fullmatch(self.username):
            raise FormatError(f"Username contains illegal characters: {self.username!r}")


@dataclass
class SessionInfo:
    """Parsed ``<SessionInfo>`` answer of login_sid.lua."""

    sid: str
    challenge: str
    block_time: int = 0

    @classmethod
    def from_body(cls, body: bytes) -> "SessionInfo":
        root = parse_xml(body)
        sid = first_text(root, "SID")
        if sid is None:
            raise ProtocolError("Login answer without <SID> element")
        challenge = first_text(root, "Challenge")
        if challenge is None:
            raise ProtocolError("Login answer without <Challenge> element")
        block_time = first_text(root, "BlockTime") or "0"
        try:
            seconds = int(block_time)
        except ValueError:
            raise FormatError(f"BlockTime is not a number: {block_time!r}") from None
        return cls(parse_sid(sid), challenge.strip(), seconds)


class Authenticator:
    """
    Drives the ``login_sid.lua`` handshake against one gateway.

    Talks to the :class:`Transport` directly – never through the request
    executor – so a rejected login can not trigger another re-login.
    All handshakes run under one lock: SessionState is fully updated
    before any waiting caller proceeds.
    """

    def __init__(
        self,
        transport: Transport,
        state: SessionState,
        credential: Credential,
        keep_alive: "KeepAlive | None" = None,
    ) -> None:
        self.transport = transport
        self.state = state
        self.credential = credential
        self.keep_alive = keep_alive
        self.block_time = 0
        self._lock = threading.Lock()
        self._logged_off = False
        self._rejected = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def login(self) -> bool:
        """
        Run the full handshake.

        Returns True when the gateway confirmed a valid session id, False
        when it rejected the credentials (SessionState is then reset).
        Raises TransportError, ProtocolError or FormatError when the
        exchange itself fails.
        """
        with self._lock:
            self._logged_off = False
            self._rejected = False
            return self._login()

    def renew(self, stale_sid: str) -> bool:
        """
        Re-authenticate after *stale_sid* was rejected.

        When another caller already replaced *stale_sid* with a valid id
        while this one waited for the lock, its result is reused and no
        second handshake is made.  After an explicit logoff, or once the
        gateway rejected the credentials, no handshake is made until
        :meth:`login` is called again.
        """
        with self._lock:
            if self._logged_off:
                log.debug("Not renewing – session was logged off")
                return False
            if self._rejected:
                log.debug("Not renewing – credentials were rejected")
                return False
            current = self.state.current()
            if current != stale_sid and is_valid_session(current):
                log.debug("Session already renewed by a concurrent caller")
                return True
            return self._login()

    def logoff(self) -> bool:
        """
        End the session on the gateway.

        Returns True when the gateway answered with an invalid session id;
        the keep-alive is stopped and the local id reset.  Returns False
        (local state untouched) when the gateway still reports the
        session as live.
        """
        with self._lock:
            info = self._session_info(
                {"version": LOGIN_VERSION, "logout": "1", "sid": self.state.current()}
            )
            if is_valid_session(info.sid):
                log.warning("Logout refused – gateway still reports a live session")
                return False
            if self.keep_alive is not None:
                self.keep_alive.cancel()
            self.state.reset()
            self._logged_off = True
        # Joined outside the lock: an in-flight probe may be waiting for it
        if self.keep_alive is not None:
            self.keep_alive.stop()
        log.info("Successfully logged out.")
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _session_info(self, params: dict[str, str]) -> SessionInfo:
        resp = self.transport.get(LOGIN_PATH, params)
        self.state.touch()
        if resp.status != 200:
            raise ProtocolError(f"Login endpoint answered HTTP {resp.status_line}")
        return SessionInfo.from_body(resp.body)

    def _login(self) -> bool:
        # Step 1 – fetch the challenge (and a SID if the box needs no login)
        info = self._session_info({"version": LOGIN_VERSION})
        self.block_time = info.block_time
        self.state.set(info.sid)
        log.debug("Initial SID valid: %s, BlockTime: %d", self.state.is_valid(), info.block_time)

        # Step 2 – answer the challenge
        if not self.state.is_valid():
            challenge = parse_challenge(info.challenge)
            log.debug(
                "Solving %s challenge",
                "PBKDF2" if isinstance(challenge, IteratedChallenge) else "MD5",
            )
            response = solve_challenge(challenge, self.credential.password)
            info = self._session_info({
                "version": LOGIN_VERSION,
                "username": self.credential.username,
                "response": response,
            })
            self.block_time = info.block_time
            self.state.set(info.sid)
            log.debug("SID after response valid: %s, BlockTime: %d",
                      self.state.is_valid(), info.block_time)

        # Step 3 – confirm the session id
        info = self._session_info({"version": LOGIN_VERSION, "sid": self.state.current()})
        if not is_valid_session(info.sid):
            self.state.reset()
            self._rejected = True
            # Refused credentials are not re-sent until the next explicit login()
            if self.keep_alive is not None:
                self.keep_alive.cancel()
            log.error(
                "Login invalid – check username/password (BlockTime: %ds)",
                self.block_time,
            )
            return False
        self.state.set(info.sid)

        if self.keep_alive is not None:
            self.keep_alive.start()
        log.info("Login valid (user=%r)", self.credential.username)
        return True
