"""Parsers for the human readable command line arguments.

Every parser is a pure function: it returns the validated value or
raises one of the ``gled_errors`` usage errors.
"""
import re
from typing import NamedTuple

from gled_errors import InvalidFormatError, OutOfRangeError

DEFAULT_RATE = 10000  # milliseconds
DEFAULT_BRIGHTNESS = 100  # percentage

RATE_MIN = 100
RATE_MAX = 60000
BRIGHTNESS_MIN = 1
BRIGHTNESS_MAX = 100

TOGGLES = {"on": True, "off": False}

_HEX_COLOR = re.compile(r"#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})")


class Color(NamedTuple):
    red: int
    green: int
    blue: int

    def __str__(self):
        return f"#{self.red:02x}{self.green:02x}{self.blue:02x}"


def parse_color(color_arg: str) -> Color:
    """Parse ``RRGGBB`` or ``RGB`` hex, with or without a leading '#'.

    The short form duplicates each digit, so ``F0A`` is ``FF00AA``.
    """
    match = _HEX_COLOR.fullmatch(color_arg)
    if match is None:
        raise InvalidFormatError(
            f"Error parsing color argument {color_arg!r}: "
            "expected RRGGBB or RGB hex (e.g. FF0000)")
    digits = match.group(1)
    if len(digits) == 3:
        return Color(*(int(d, 16) * 17 for d in digits))
    return Color(*bytes.fromhex(digits))


def _parse_bounded(arg: str, name: str, default: int, low: int, high: int) -> int:
    if arg == "":
        return default
    # int() would also accept " 5" and "1_000"
    if not re.fullmatch(r"[+-]?[0-9]+", arg):
        raise InvalidFormatError(
            f"Error parsing {name} argument {arg!r}: expected an integer ({low}-{high})")
    value = int(arg)
    if value < low or value > high:
        raise OutOfRangeError(
            f"{name.capitalize()} argument {arg!r} is out of range ({low}-{high})")
    return value


def parse_rate(rate_arg: str) -> int:
    """Parse an effect period in milliseconds; empty means the default."""
    return _parse_bounded(rate_arg, "rate", DEFAULT_RATE, RATE_MIN, RATE_MAX)


def parse_brightness(brightness_arg: str) -> int:
    """Parse a brightness percentage; empty means the default."""
    return _parse_bounded(brightness_arg, "brightness", DEFAULT_BRIGHTNESS,
                          BRIGHTNESS_MIN, BRIGHTNESS_MAX)


def parse_toggle(toggle_arg: str) -> bool:
    try:
        return TOGGLES[toggle_arg.lower()]
    except KeyError:
        raise InvalidFormatError(
            f"Error parsing toggle argument {toggle_arg!r}. Use 'on' or 'off'.") from None
