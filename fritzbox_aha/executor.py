"""
Request execution with automatic re-login.

Every device command goes through :meth:`RequestExecutor.execute`:

* ``sid=<current>`` is appended to the query;
* HTTP 200 returns the body (text or parsed XML);
* HTTP 403 renews the session once and re-issues the request once;
* HTTP 400 raises UnsupportedOperation, never retried;
* anything else raises TransportError.

Any answer that reached the gateway – whatever its status – counts as
activity for the keep-alive.  Network failures without an answer do not.
"""

from lxml import etree

from .auth.login import Authenticator
from .auth.sid import SessionState
from .exceptions import AhaError, SessionLost, TransportError, UnsupportedOperation
from .logging_setup import log
from .network.client import Outcome, Transport, classify, parse_xml

MAX_ATTEMPTS = 2  # the original request plus one retry after re-login


class RequestExecutor:
    """Facade used by all device operations."""

    def __init__(
        self,
        transport: Transport,
        state: SessionState,
        authenticator: Authenticator,
    ) -> None:
        self.transport = transport
        self.state = state
        self.authenticator = authenticator

    def execute(
        self,
        path: str,
        params: "dict[str, str] | None" = None,
        want_xml: bool = False,
        with_sid: bool = True,
    ) -> "str | etree._Element":
        for attempt in range(1, MAX_ATTEMPTS + 1):
            query = dict(params or {})
            sid = self.state.current()
            if with_sid:
                query["sid"] = sid

            resp = self.transport.get(path, query)
            self.state.touch()
            outcome = classify(resp.status)

            if outcome is Outcome.SUCCESS:
                return parse_xml(resp.body) if want_xml else resp.text

            if outcome is Outcome.UNSUPPORTED:
                raise UnsupportedOperation(
                    f"{path} rejected with HTTP {resp.status_line} – "
                    "possibly a command from a newer API version"
                )

            if outcome is Outcome.TRANSPORT_ERROR:
                log.info("HTTP %s for %s", resp.status_line, path)
                raise TransportError(f"HTTP {resp.status_line} for {path}", status=resp.status)

            # Outcome.SESSION_INVALID
            if attempt == MAX_ATTEMPTS:
                break
            log.warning("Session rejected at %s – attempting re-login", path)
            try:
                renewed = self.authenticator.renew(sid)
            except AhaError as exc:
                raise SessionLost(f"Re-login after HTTP 403 failed: {exc}") from exc
            if not renewed:
                raise SessionLost("Connection lost and no re-login possible")

        raise SessionLost(f"{path} still rejected with HTTP 403 after re-login")
