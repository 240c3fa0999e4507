"""Authentication submodule – challenge solving, session state, login/logoff."""

from fritzbox_aha.auth.challenge import (
    IteratedChallenge,
    LegacyChallenge,
    iterated_hmac_sha256,
    parse_challenge,
    solve_challenge,
    solve_iterated,
    solve_legacy,
)
from fritzbox_aha.auth.login import Authenticator, Credential, SessionInfo
from fritzbox_aha.auth.sid import SessionState, is_valid_session, parse_sid

__all__ = [
    "Authenticator",
    "Credential",
    "IteratedChallenge",
    "LegacyChallenge",
    "SessionInfo",
    "SessionState",
    "is_valid_session",
    "iterated_hmac_sha256",
    "parse_challenge",
    "parse_sid",
    "solve_challenge",
    "solve_iterated",
    "solve_legacy",
]
