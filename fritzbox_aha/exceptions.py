"""
Exception hierarchy for the FRITZ!Box AHA client.

Every error raised by the package derives from :class:`AhaError`, so
callers can handle the whole family with one ``except`` clause and
still tell transient conditions (:class:`TransportError`) apart from
terminal ones (:class:`CredentialError`, :class:`UnsupportedOperation`).
"""


class AhaError(Exception):
    """Base class of all errors raised by fritzbox_aha."""


class ProtocolError(AhaError):
    """
    The gateway answered with something the protocol does not allow.

    Raised for unparseable XML, documents carrying a DOCTYPE and login
    answers without a ``SID`` or ``Challenge`` element.
    """


class FormatError(ProtocolError, ValueError):
    """
    A challenge, session id, AIN or username is malformed.

    Usually means the gateway speaks a different protocol version.
    Never retried.
    """


class RangeError(AhaError, ValueError):
    """A numeric argument lies outside the range the gateway accepts."""


class CredentialError(AhaError):
    """
    The login handshake completed but the confirmed session id is invalid.

    Wrong username/password, or the gateway blocks logins for
    ``block_time`` seconds after repeated failures.
    """

    def __init__(self, message: str, block_time: int = 0) -> None:
        super().__init__(message)
        self.block_time = block_time


class SessionLost(AhaError):
    """A request was rejected with HTTP 403 and re-authentication failed."""


class UnsupportedOperation(AhaError):
    """
    HTTP 400: the firmware does not know the command.

    Typically a command from a newer AHA interface version.
    """


class TransportError(AhaError):
    """Network, TLS or timeout failure, or an unexpected HTTP status."""

    def __init__(self, message: str, status: "int | None" = None) -> None:
        super().__init__(message)
        self.status = status
