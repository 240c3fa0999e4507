"""
fritzbox_aha
============
Python client for the AHA HTTP interface ("home automation") of AVM
FRITZ!Box gateways: challenge-response login, session keep-alive and
home-automation commands with automatic re-login.

Package structure
-----------------
fritzbox_aha/
├── __init__.py       – package init and public API
├── config.py         – configuration constants
├── exceptions.py     – AhaError hierarchy
├── logging_setup.py  – package logger and colorlog handler
├── auth/             – sub-package: authentication
│   ├── challenge.py  – MD5 / PBKDF2 challenge solving
│   ├── sid.py        – session id validation and shared SessionState
│   └── login.py      – Authenticator (login, logoff, renewal)
├── network/          – sub-package: requests.Session, Transport, XML parsing
├── executor.py       – RequestExecutor (403 → re-login → retry once)
├── keepalive.py      – KeepAliveLoop background thread
├── commands.py       – HomeAutoSwitch command set
├── session.py        – AhaSession client object
└── cli.py            – argparse CLI (``python -m fritzbox_aha``)

Quick start
-----------
    from fritzbox_aha import AhaSession

    with AhaSession(host="fritz.box", username="smarthome", password="secret") as box:
        for ain in box.get_switch_list():
            print(ain, box.get_switch_name(ain), box.get_switch_power(ain))
"""

from .auth import Authenticator, Credential, SessionState, is_valid_session
from .commands import BlindTarget, HomeAutoSwitch
from .exceptions import (
    AhaError,
    CredentialError,
    FormatError,
    ProtocolError,
    RangeError,
    SessionLost,
    TransportError,
    UnsupportedOperation,
)
from .executor import RequestExecutor
from .keepalive import KeepAliveLoop
from .session import AhaSession

__version__ = "1.0.0"

__all__ = [
    "AhaSession",
    "Authenticator",
    "BlindTarget",
    "Credential",
    "HomeAutoSwitch",
    "KeepAliveLoop",
    "RequestExecutor",
    "SessionState",
    "is_valid_session",
    "AhaError",
    "CredentialError",
    "FormatError",
    "ProtocolError",
    "RangeError",
    "SessionLost",
    "TransportError",
    "UnsupportedOperation",
]
