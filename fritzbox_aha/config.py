"""Configuration constants for the FRITZ!Box AHA client."""

import os
import re

DEFAULT_HOST = "fritz.box"
DEFAULT_PORT = 443
# Credentials can also be supplied via FRITZ_USER / FRITZ_PASSWORD env vars
DEFAULT_USER = os.environ.get("FRITZ_USER", "")
DEFAULT_PASSWORD = os.environ.get("FRITZ_PASSWORD", "")

LOGIN_PATH          = "/login_sid.lua"
HOMEAUTOSWITCH_PATH = "/webservices/homeautoswitch.lua"
LOGIN_VERSION       = "2"

REQUEST_TIMEOUT        = 15              # seconds per HTTP request
SESSION_TIMEOUT        = 10 * 60 - 15    # gateway drops idle sessions after 10 min
KEEPALIVE_RETRY_DELAY  = 30              # wait after a probe that never reached the box
PROBE_COMMAND          = "getswitchlist" # cheap read-only query used as keep-alive

INVALID_SID = "0000000000000000"
SID_RE      = re.compile(r"[0-9a-f]{16}")

# Username rules of the FRITZ!OS user management
USERNAME_MAX_LENGTH = 32
USERNAME_RE         = re.compile(r"[@./_0-9a-zA-Z-]*")

# AINs are 12 digits, commonly written as "12345 6789012"
AIN_RE = re.compile(r"[0-9]{12}")

# Answer of text commands when a device is unreachable
INVALID_ANSWER = "inval"
