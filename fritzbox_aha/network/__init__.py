"""
Network operations module: HTTP session setup, transport and XML parsing.
"""

from fritzbox_aha.network.client import (
    HttpResponse,
    Outcome,
    Transport,
    base_url,
    build_session,
    classify,
    first_text,
    parse_xml,
    server_fingerprint,
)

__all__ = [
    "HttpResponse",
    "Outcome",
    "Transport",
    "base_url",
    "build_session",
    "classify",
    "first_text",
    "parse_xml",
    "server_fingerprint",
]
