"""
Home-automation commands of ``/webservices/homeautoswitch.lua``.

Text commands answer with a single token terminated by ``\\n``; list and
statistics commands answer with XML, which is handed back as an lxml
element for the caller to map.
"""

import enum
import time

from lxml import etree

from .config import AIN_RE, HOMEAUTOSWITCH_PATH, INVALID_ANSWER
from .exceptions import FormatError, RangeError
from .executor import RequestExecutor
from .logging_setup import log

HKR_OFF = 253
HKR_ON = 254
HKR_OFF_CELSIUS = 0.0
HKR_ON_CELSIUS = 30.0
HKR_MIN_CELSIUS = 8.0
HKR_MAX_CELSIUS = 28.0

MAX_END_TIMESTAMP_AHEAD = 24 * 60 * 60


class BlindTarget(enum.Enum):
    CLOSE = "close"
    OPEN = "open"
    STOP = "stop"


def normalise_ain(ain: str) -> str:
    """Strip blanks from an AIN ("08761 0000434" → "087610000434") and validate it."""
    compact = "".join(ain.split())
    if not AIN_RE.fullmatch(compact):
        raise FormatError(f"AIN with wrong format: {ain!r}")
    return compact


def _token(answer: str) -> str:
    return answer.rstrip("\n").strip()


def _flag(answer: str) -> "bool | None":
    token = _token(answer)
    if token == INVALID_ANSWER:
        return None
    return token[:1] == "1"


def _number(answer: str) -> "int | None":
    token = _token(answer)
    if token == INVALID_ANSWER or not token:
        return None
    try:
        return int(token)
    except ValueError:
        raise FormatError(f"Expected a number, got {token!r}") from None


def _check_range(name: str, value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise RangeError(f"{name} must be {low}-{high}, got {value}")


def hkr_to_celsius(raw: int) -> float:
    """Convert the HKR wire value (half degrees, 253 off, 254 on) to °C."""
    if raw == HKR_OFF:
        return HKR_OFF_CELSIUS
    if raw == HKR_ON:
        return HKR_ON_CELSIUS
    return raw / 2


def celsius_to_hkr(celsius: float) -> int:
    """
    Inverse of :func:`hkr_to_celsius`; 8–28 °C in half-degree steps.

    Values off the 0.5 °C grid raise RangeError instead of being rounded.
    """
    if celsius == HKR_OFF_CELSIUS:
        return HKR_OFF
    if celsius == HKR_ON_CELSIUS:
        return HKR_ON
    if not HKR_MIN_CELSIUS <= celsius <= HKR_MAX_CELSIUS:
        raise RangeError(f"Illegal temperature value: {celsius}")
    half_degrees = celsius * 2
    if half_degrees != int(half_degrees):
        raise RangeError(f"Temperature must be a multiple of 0.5 °C: {celsius}")
    return int(half_degrees)


class HomeAutoSwitch:
    """The AHA command set, executed through a :class:`RequestExecutor`."""

    def __init__(self, executor: RequestExecutor) -> None:
        self.executor = executor

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _text(self, cmd: str, ain: "str | None" = None, **params) -> str:
        query = {}
        if ain is not None:
            query["ain"] = ain
        query["switchcmd"] = cmd
        query.update({k: str(v) for k, v in params.items()})
        answer = self.executor.execute(HOMEAUTOSWITCH_PATH, query)
        log.debug("%s -> %r", cmd, answer)
        return answer

    def _xml(self, cmd: str, ain: "str | None" = None) -> etree._Element:
        query = {}
        if ain is not None:
            query["ain"] = ain
        query["switchcmd"] = cmd
        return self.executor.execute(HOMEAUTOSWITCH_PATH, query, want_xml=True)

    # ------------------------------------------------------------------
    # Switches
    # ------------------------------------------------------------------

    def get_switch_list(self) -> list[str]:
        token = _token(self._text("getswitchlist"))
        return [ain for ain in token.split(",") if ain]

    def set_switch_on(self, ain: str) -> bool:
        return bool(_flag(self._text("setswitchon", normalise_ain(ain))))

    def set_switch_off(self, ain: str) -> bool:
        """Returns True when the switch reports being off."""
        return _token(self._text("setswitchoff", normalise_ain(ain)))[:1] == "0"

    def set_switch_toggle(self, ain: str) -> bool:
        return bool(_flag(self._text("setswitchtoggle", normalise_ain(ain))))

    def get_switch_state(self, ain: str) -> "bool | None":
        """None when the state is unknown (device disconnected)."""
        return _flag(self._text("getswitchstate", normalise_ain(ain)))

    def is_switch_present(self, ain: str) -> bool:
        return bool(_flag(self._text("getswitchpresent", normalise_ain(ain))))

    def get_switch_power(self, ain: str) -> "int | None":
        """Current power in mW."""
        return _number(self._text("getswitchpower", normalise_ain(ain)))

    def get_switch_energy(self, ain: str) -> "int | None":
        """Energy in Wh since first use."""
        return _number(self._text("getswitchenergy", normalise_ain(ain)))

    def get_switch_name(self, ain: str) -> str:
        return self._text("getswitchname", normalise_ain(ain)).rstrip("\n")

    # ------------------------------------------------------------------
    # Device lists, statistics, templates
    # ------------------------------------------------------------------

    def get_device_list_infos(self) -> etree._Element:
        return self._xml("getdevicelistinfos")

    def get_basic_device_stats(self, ain: str) -> etree._Element:
        return self._xml("getbasicdevicestats", normalise_ain(ain))

    def get_template_list_infos(self) -> etree._Element:
        return self._xml("gettemplatelistinfos")

    def apply_template(self, template_id: str) -> None:
        # Template identifiers ("tmp653A18-38AE7FDE") are not AINs
        self._text("applytemplate", template_id)

    def get_color_defaults(self) -> etree._Element:
        return self._xml("getcolordefaults")

    # ------------------------------------------------------------------
    # Temperatures / HKR
    # ------------------------------------------------------------------

    def get_temperature(self, ain: str) -> "float | None":
        """Measured temperature in °C (transmitted in tenths)."""
        value = _number(self._text("gettemperature", normalise_ain(ain)))
        return None if value is None else value / 10

    def _hkr(self, cmd: str, ain: str) -> "float | None":
        value = _number(self._text(cmd, normalise_ain(ain)))
        return None if value is None else hkr_to_celsius(value)

    def get_hkr_tsoll(self, ain: str) -> "float | None":
        return self._hkr("gethkrtsoll", ain)

    def get_hkr_komfort(self, ain: str) -> "float | None":
        return self._hkr("gethkrkomfort", ain)

    def get_hkr_absenk(self, ain: str) -> "float | None":
        return self._hkr("gethkrabsenk", ain)

    def set_hkr_tsoll(self, ain: str, celsius: float) -> None:
        self._text("sethkrtsoll", normalise_ain(ain), param=celsius_to_hkr(celsius))

    def _hkr_until(self, cmd: str, ain: str, end_timestamp: int) -> "int | None":
        now = int(time.time())
        if end_timestamp != 0 and not now <= end_timestamp <= now + MAX_END_TIMESTAMP_AHEAD:
            raise RangeError("endtimestamp must be 0 or between now and in 24 hours")
        return _number(self._text(cmd, normalise_ain(ain), endtimestamp=end_timestamp))

    def set_hkr_boost(self, ain: str, end_timestamp: int) -> "int | None":
        """Boost until *end_timestamp* (0 disables); returns the active end time."""
        return self._hkr_until("sethkrboost", ain, end_timestamp)

    def set_hkr_window_open(self, ain: str, end_timestamp: int) -> "int | None":
        return self._hkr_until("sethkrwindowopen", ain, end_timestamp)

    # ------------------------------------------------------------------
    # Lights, dimmers, blinds
    # ------------------------------------------------------------------

    def set_simple_on_off(self, ain: str, onoff: int) -> None:
        """0 = off, 1 = on, 2 = toggle."""
        _check_range("onoff", onoff, 0, 2)
        self._text("setsimpleonoff", normalise_ain(ain), onoff=onoff)

    def set_level(self, ain: str, level: int) -> None:
        _check_range("level", level, 0, 255)
        self._text("setlevel", normalise_ain(ain), level=level)

    def set_level_percentage(self, ain: str, level: int) -> None:
        _check_range("level", level, 0, 100)
        self._text("setlevelpercentage", normalise_ain(ain), level=level)

    def set_color(self, ain: str, hue: int, saturation: int, duration: int) -> None:
        """Hue in degrees, duration in 100 ms steps."""
        _check_range("hue", hue, 0, 359)
        _check_range("saturation", saturation, 0, 255)
        if duration < 0:
            raise RangeError("duration must be >= 0")
        self._text(
            "setcolor", normalise_ain(ain),
            hue=hue, saturation=saturation, duration=duration,
        )

    def set_color_temperature(self, ain: str, kelvin: int, duration: int) -> None:
        _check_range("temperature", kelvin, 2700, 6500)
        if duration < 0:
            raise RangeError("duration must be >= 0")
        self._text(
            "setcolortemperature", normalise_ain(ain),
            temperature=kelvin, duration=duration,
        )

    def set_blind(self, ain: str, target: BlindTarget) -> None:
        self._text("setblind", normalise_ain(ain), target=BlindTarget(target).value)
