"""
AhaSession – one authenticated connection to one FRITZ!Box.

Wires the components together per instance, so several sessions
against different gateways never share state::

    Transport ─┬─ Authenticator ── KeepAliveLoop
               └─ RequestExecutor ─ HomeAutoSwitch
"""

import requests

from .auth.login import Authenticator, Credential
from .auth.sid import SessionState
from .commands import HomeAutoSwitch
from .config import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    HOMEAUTOSWITCH_PATH,
    KEEPALIVE_RETRY_DELAY,
    PROBE_COMMAND,
    REQUEST_TIMEOUT,
    SESSION_TIMEOUT,
)
from .exceptions import AhaError, CredentialError
from .executor import RequestExecutor
from .keepalive import KeepAliveLoop
from .network.client import Transport, build_session


class AhaSession(HomeAutoSwitch):
    """
    Client for the AHA HTTP interface of a FRITZ!Box.

    All ``HomeAutoSwitch`` commands are available directly on the
    session.  A request made before :meth:`login` is answered with 403
    by the box, which triggers a login automatically.
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        username: str = "",
        password: str = "",
        verify_ssl: "bool | str" = False,
        fingerprint: "str | None" = None,
        timeout: float = REQUEST_TIMEOUT,
        session_timeout: float = SESSION_TIMEOUT,
        keepalive_retry_delay: float = KEEPALIVE_RETRY_DELAY,
        http: "requests.Session | None" = None,
        transport: "Transport | None" = None,
    ) -> None:
        if transport is None:
            if http is None:
                http = build_session(verify_ssl=verify_ssl, fingerprint=fingerprint)
            transport = Transport(host, port, session=http, timeout=timeout)
        self.host = host
        self.port = port
        self.transport = transport
        self.state = SessionState()
        self.keep_alive = KeepAliveLoop(
            self.state,
            self._probe,
            interval=session_timeout,
            retry_delay=keepalive_retry_delay,
        )
        self.authenticator = Authenticator(
            transport,
            self.state,
            Credential(username, password),
            keep_alive=self.keep_alive,
        )
        super().__init__(RequestExecutor(transport, self.state, self.authenticator))

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    @property
    def sid(self) -> str:
        return self.state.current()

    def login(self) -> bool:
        return self.authenticator.login()

    def logoff(self) -> bool:
        return self.authenticator.logoff()

    def connect(self) -> "AhaSession":
        """Log in or raise CredentialError; the transport is closed on failure."""
        try:
            if not self.login():
                raise CredentialError(
                    "Login rejected – wrong credentials or login blocked",
                    block_time=self.authenticator.block_time,
                )
        except AhaError:
            self.close()
            raise
        return self

    def close(self) -> None:
        """Log off when a session is active, stop the keep-alive, close the transport."""
        try:
            if self.state.is_valid():
                self.logoff()
        finally:
            self.keep_alive.stop()
            self.transport.close()

    def __enter__(self) -> "AhaSession":
        return self.connect()

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _probe(self) -> None:
        self.executor.execute(HOMEAUTOSWITCH_PATH, {"switchcmd": PROBE_COMMAND})

    def __repr__(self) -> str:
        return f"AhaSession(host={self.host!r}, port={self.port}, {self.state!r})"

