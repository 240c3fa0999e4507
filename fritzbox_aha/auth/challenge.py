"""
Challenge-response computation for the FRITZ!Box login (``login_sid.lua``).

The gateway hands out one of two challenge shapes:

* **Legacy (MD5)** – an arbitrary string.  The response is
  ``<challenge>-<md5>`` where the MD5 runs over the UTF-16LE bytes of
  ``<challenge>-<password>``.
* **PBKDF2** – ``2$<iter1>$<salt1>$<iter2>$<salt2>``.  The response is
  ``<salt2>$<hash2>`` with

      hash1 = iterated_hmac_sha256(password, salt1, iter1)
      hash2 = iterated_hmac_sha256(hash1,    salt2, iter2)

A challenge is parsed once into :class:`LegacyChallenge` or
:class:`IteratedChallenge`; :func:`solve_challenge` dispatches on the
variant.  Everything here is pure: no I/O, no state.
"""

import hashlib
import hmac
import re
from dataclasses import dataclass

from ..exceptions import FormatError, RangeError

PBKDF2_PREFIX = "2$"

_DIGEST_SIZE = hashlib.sha256().digest_size
_NUMBER_RE = re.compile(r"-?[0-9]+")
_HEX_RE = re.compile(r"(?:[0-9a-fA-F]{2})*")


@dataclass(frozen=True)
class LegacyChallenge:
    """Pre-FRITZ!OS 7.24 challenge, used as MD5 salt material."""

    text: str


@dataclass(frozen=True)
class IteratedChallenge:
    """Two-stage PBKDF2 challenge ``2$<iter1>$<salt1>$<iter2>$<salt2>``."""

    iter1: int
    salt1: bytes
    iter2: int
    salt2: bytes
    salt2_hex: str


Challenge = LegacyChallenge | IteratedChallenge


def _parse_iterations(field: str) -> int:
    if not _NUMBER_RE.fullmatch(field):
        raise FormatError(f"Iteration count is not a number: {field!r}")
    iterations = int(field)
    if iterations < 0:
        raise RangeError(f"Iteration count must not be negative: {iterations}")
    return iterations


def _parse_salt(field: str) -> bytes:
    if len(field) % 2:
        raise FormatError(f"Salt has odd length: {field!r}")
    if not _HEX_RE.fullmatch(field):
        raise FormatError(f"Salt is not hex: {field!r}")
    return bytes.fromhex(field)


def parse_challenge(text: str) -> Challenge:
    """
    Turn the raw ``<Challenge>`` text into its variant.

    Anything starting with ``2$`` must be a well-formed PBKDF2 challenge;
    every other string is a legacy challenge.
    """
    if not text.startswith(PBKDF2_PREFIX):
        return LegacyChallenge(text)

    parts = text.split("$")
    if len(parts) != 5:
        raise FormatError(
            f"PBKDF2 challenge needs 5 '$'-separated fields, got {len(parts)}"
        )
    return IteratedChallenge(
        iter1=_parse_iterations(parts[1]),
        salt1=_parse_salt(parts[2]),
        iter2=_parse_iterations(parts[3]),
        salt2=_parse_salt(parts[4]),
        salt2_hex=parts[4],
    )


def iterated_hmac_sha256(key: bytes, salt: bytes, iterations: int) -> bytes:
    """
    Apply HMAC-SHA256 *iterations* times, XOR-accumulating every round.

    The first round hashes ``salt || 00 00 00 01``, every later round
    hashes the previous round's output.  Zero iterations give 32 zero
    bytes.
    """
    if iterations < 0:
        raise RangeError(f"Iteration count must not be negative: {iterations}")
    mac = hmac.new(key, digestmod=hashlib.sha256)
    result = bytearray(_DIGEST_SIZE)
    block = salt + b"\x00\x00\x00\x01"
    for _ in range(iterations):
        round_mac = mac.copy()
        round_mac.update(block)
        block = round_mac.digest()
        for i, byte in enumerate(block):
            result[i] ^= byte
    return bytes(result)


def _latin1_safe(text: str) -> str:
    # The box hashes every code point above U+00FF as '.'
    return "".join(ch if ord(ch) <= 0xFF else "." for ch in text)


def solve_legacy(challenge: str, password: str) -> str:
    """MD5 response: ``<challenge>-md5(utf16le("<challenge>-<password>"))``."""
    material = _latin1_safe(f"{challenge}-{password}").encode("utf-16-le")
    return f"{challenge}-{hashlib.md5(material).hexdigest()}"


def solve_iterated(challenge: "str | IteratedChallenge", password: str) -> str:
    """PBKDF2 response: ``<salt2-hex>$<hash2-hex>``."""
    if isinstance(challenge, str):
        parsed = parse_challenge(challenge)
        if not isinstance(parsed, IteratedChallenge):
            raise FormatError(f"Not a PBKDF2 challenge: {challenge!r}")
        challenge = parsed
    hash1 = iterated_hmac_sha256(password.encode("utf-8"), challenge.salt1, challenge.iter1)
    hash2 = iterated_hmac_sha256(hash1, challenge.salt2, challenge.iter2)
    return f"{challenge.salt2_hex}${hash2.hex()}"


def solve_challenge(challenge: Challenge, password: str) -> str:
    """Compute the login response for a parsed challenge."""
    if isinstance(challenge, IteratedChallenge):
        return solve_iterated(challenge, password)
    return solve_legacy(challenge.text, password)
