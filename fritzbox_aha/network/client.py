"""
HTTP transport for gateway communication.

Provides the requests.Session factory (TLS handling for device-local
certificates), the single-GET :class:`Transport`, secure XML parsing and
the status classification used by the request executor.
"""

import enum
import hashlib
import ssl
from dataclasses import dataclass, field

import requests
import urllib3
from lxml import etree
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import REQUEST_TIMEOUT
from ..exceptions import ProtocolError, TransportError
from ..logging_setup import log


class Outcome(enum.Enum):
    """Classification of one HTTP exchange with the gateway."""

    SUCCESS = "success"
    SESSION_INVALID = "session-invalid"
    UNSUPPORTED = "unsupported-operation"
    TRANSPORT_ERROR = "transport-error"


def classify(status: int) -> Outcome:
    if status == 200:
        return Outcome.SUCCESS
    if status == 403:
        return Outcome.SESSION_INVALID
    if status == 400:
        return Outcome.UNSUPPORTED
    return Outcome.TRANSPORT_ERROR


@dataclass
class HttpResponse:
    """Status line and raw body of one GET."""

    status: int
    reason: str = ""
    body: bytes = field(default=b"", repr=False)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    @property
    def status_line(self) -> str:
        return f"{self.status} {self.reason}".strip()


class FingerprintAdapter(HTTPAdapter):
    """
    HTTPAdapter that pins the server certificate by its SHA-256 fingerprint.

    FRITZ!Box devices present self-signed certificates, so chain
    validation is replaced by comparing against the fingerprint recorded
    on first use.
    """

    def __init__(self, fingerprint: str, **kwargs) -> None:
        self.fingerprint = fingerprint.replace(":", "").lower()
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        kwargs["assert_fingerprint"] = self.fingerprint
        return super().init_poolmanager(*args, **kwargs)


def build_session(
    verify_ssl: "bool | str" = False,
    fingerprint: "str | None" = None,
    max_retries: int = 0,
) -> requests.Session:
    """
    Return a requests.Session configured for a FRITZ!Box.

    Args:
        verify_ssl: False accepts the device-local certificate, True uses
            the system trust store, a string is a CA bundle path
        fingerprint: SHA-256 certificate fingerprint to pin; implies
            verify_ssl=False for the chain check
        max_retries: connection-level retries inside urllib3

    Returns:
        Configured requests.Session instance
    """
    session = requests.Session()
    retry = Retry(total=max_retries, connect=max_retries, read=0, redirect=0, status=0)
    if fingerprint:
        adapter: HTTPAdapter = FingerprintAdapter(fingerprint, max_retries=retry)
        verify_ssl = False
    else:
        adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.verify = verify_ssl
    if verify_ssl is False:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
    session.headers.update({
        "User-Agent": "fritzbox-aha/1.0",
        "Connection": "keep-alive",
    })
    return session


def base_url(host: str, port: int = 443) -> str:
    """
    Build the base URL for the gateway.

    Args:
        host: Gateway IP address or hostname
        port: HTTPS port

    Returns:
        Base URL string (e.g., 'https://fritz.box:443')
    """
    return f"https://{host}:{port}"


def server_fingerprint(host: str, port: int = 443, timeout: float = REQUEST_TIMEOUT) -> str:
    """
    Fetch the gateway certificate and return its SHA-256 fingerprint (hex).

    Used for trust-on-first-use: record the value once, then pass it as
    ``fingerprint`` to :func:`build_session`.
    """
    try:
        pem = ssl.get_server_certificate((host, port), timeout=timeout)
    except OSError as exc:
        raise TransportError(f"Could not fetch certificate from {host}:{port}: {exc}") from exc
    der = ssl.PEM_cert_to_DER_cert(pem)
    return hashlib.sha256(der).hexdigest()


# ---------------------------------------------------------------------------
# XML
# ---------------------------------------------------------------------------

def _secure_parser() -> etree.XMLParser:
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        dtd_validation=False,
        huge_tree=False,
    )


def parse_xml(body: bytes) -> etree._Element:
    """
    Parse a gateway answer into an lxml element.

    Entity expansion, network access and DTD loading are disabled, and
    any document declaring a DOCTYPE is rejected outright.
    """
    try:
        root = etree.fromstring(body, parser=_secure_parser())
    except etree.XMLSyntaxError as exc:
        raise ProtocolError(f"Malformed XML from gateway: {exc}") from exc
    if root is None:
        raise ProtocolError("Empty XML document from gateway")
    if root.getroottree().docinfo.doctype:
        raise ProtocolError("XML documents with a DOCTYPE are not accepted")
    return root


def first_text(root: etree._Element, tag: str) -> "str | None":
    """Text of the first element named *tag* (root included), or None."""
    element = next(root.iter(tag), None)
    if element is None:
        return None
    return element.text or ""


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class Transport:
    """Performs single GET requests against one gateway."""

    def __init__(
        self,
        host: str,
        port: int = 443,
        session: "requests.Session | None" = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.host = host
        self.port = port
        self.base = base_url(host, port)
        self.session = session if session is not None else build_session()
        self.timeout = timeout

    def get(self, path: str, params: "dict[str, str] | None" = None) -> HttpResponse:
        """
        GET *path* with *params* and return status and body.

        Raises TransportError for every network, TLS or timeout failure;
        HTTP status codes are returned, not raised.
        """
        url = self.base + path
        try:
            resp = self.session.get(
                url, params=params, timeout=self.timeout, allow_redirects=False
            )
        except requests.RequestException as exc:
            raise TransportError(f"GET {path} failed: {exc}") from exc
        log.debug("  ← HTTP %s  %s  %d bytes", resp.status_code, path, len(resp.content))
        return HttpResponse(resp.status_code, resp.reason or "", resp.content)

    def close(self) -> None:
        self.session.close()
