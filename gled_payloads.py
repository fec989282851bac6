"""Payload encoding for the G102/G203 lighting protocol.

Every packet is a 20 byte HID report:

    [0x11, 0xFF, 0x0E, command, ...]

0x11 is the report ID, 0xFF the device index and 0x0E the lighting
feature. Command 0x10 sets the lighting mode, 0x50 hands lighting over
to software control and 0x5B switches the startup effect. Bytes that a
command doesn't use stay 0x00.
"""
import enum

from gled_args import Color

PACKET_SIZE = 20

REPORT_ID = 0x11
DEVICE_INDEX = 0xFF
FEATURE_LIGHTING = 0x0E


class Command(enum.IntEnum):
    SET_MODE = 0x10
    SOFTWARE_CONTROL = 0x50
    # Not part of the documented mode set; only known to toggle the
    # power-on animation.
    INTRO = 0x5B


class Mode(enum.IntEnum):
    STATIC = 0x01
    CYCLE = 0x02
    BREATHE = 0x03


class Toggle(enum.IntEnum):
    ON = 0x01
    OFF = 0x02


STATIC_MARKER = 0x02
END_MARKER = 0x01

OFFSET_MODE = 5
OFFSET_COLOR = 6
OFFSET_STATIC_MARKER = 9
OFFSET_BREATHE_SPEED = 9
OFFSET_CYCLE_SPEED = 11
OFFSET_BREATHE_BRIGHTNESS = 12
OFFSET_CYCLE_BRIGHTNESS = 13
OFFSET_TOGGLE = 6
OFFSET_END = 16


def _init_payload(command: int) -> bytearray:
    payload = bytearray(PACKET_SIZE)
    payload[0] = REPORT_ID
    payload[1] = DEVICE_INDEX
    payload[2] = FEATURE_LIGHTING
    payload[3] = command
    return payload


def _init_mode_payload(mode: Mode) -> bytearray:
    payload = _init_payload(Command.SET_MODE)
    payload[4] = 0x00
    payload[OFFSET_MODE] = mode
    return payload


def encode_rate(rate: int) -> bytes:
    """Encode a period in milliseconds as a big-endian 16 bit speed."""
    return bytes([(rate >> 8) & 0xFF, rate & 0xFF])


def encode_brightness(percent: int) -> int:
    """Scale a percentage to the device byte.

    The device expects ``percent * 5`` truncated to one byte, so 100%
    is sent as 244 and 51% as 255.
    """
    return (percent * 5) & 0xFF


def _build_enable_packet() -> bytes:
    payload = _init_payload(Command.SOFTWARE_CONTROL)
    payload[4] = 0x01
    payload[5] = 0x03
    payload[6] = 0x07
    return bytes(payload)


ENABLE_PACKET = _build_enable_packet()


def build_static(color: Color) -> bytes:
    payload = _init_mode_payload(Mode.STATIC)
    payload[OFFSET_COLOR:OFFSET_COLOR + 3] = bytes(color)
    payload[OFFSET_STATIC_MARKER] = STATIC_MARKER
    payload[OFFSET_END] = END_MARKER
    return bytes(payload)


def build_cycle(rate: int, brightness: int) -> bytes:
    """Build the color cycle payload; the color field is left at zero."""
    payload = _init_mode_payload(Mode.CYCLE)
    payload[OFFSET_CYCLE_SPEED:OFFSET_CYCLE_SPEED + 2] = encode_rate(rate)
    payload[OFFSET_CYCLE_BRIGHTNESS] = encode_brightness(brightness)
    payload[OFFSET_END] = END_MARKER
    return bytes(payload)


def build_breathe(color: Color, rate: int, brightness: int) -> bytes:
    payload = _init_mode_payload(Mode.BREATHE)
    payload[OFFSET_COLOR:OFFSET_COLOR + 3] = bytes(color)
    payload[OFFSET_BREATHE_SPEED:OFFSET_BREATHE_SPEED + 2] = encode_rate(rate)
    payload[OFFSET_BREATHE_BRIGHTNESS] = encode_brightness(brightness)
    payload[OFFSET_END] = END_MARKER
    return bytes(payload)


def build_intro(enabled: bool) -> bytes:
    payload = _init_payload(Command.INTRO)
    payload[4] = 0x00
    payload[5] = 0x01
    payload[OFFSET_TOGGLE] = Toggle.ON if enabled else Toggle.OFF
    return bytes(payload)
