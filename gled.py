"""Logitech G102/G203 mouse LED control."""
import argparse
import configparser
import logging
import sys
from typing import NamedTuple

from gled_args import parse_brightness, parse_color, parse_rate, parse_toggle
from gled_backend import Driver
from gled_errors import GledError, InvalidFormatError, MissingArgumentError, UsageError
from gled_payloads import build_breathe, build_cycle, build_intro, build_static

_LOGGER = logging.getLogger(__name__)

DEFAULT_CONF = "gled.conf"

DESCRIPTION = "Logitech G102/G203 mouse LED control"

EPILOG = """\
commands:
  %(prog)s solid <color>                         Solid color mode
  %(prog)s cycle <rate> <brightness>             Cycle through all colors
  %(prog)s breathe <color> <rate> <brightness>   Single color breathing
  %(prog)s intro <toggle>                        Enable/disable startup effect
  %(prog)s preset [--conf PATH]                  Apply settings from gled.conf

arguments:
  color        RRGGBB or RGB (hex value, e.g. FF0000 for red)
  rate         100-60000 (number of milliseconds. Default: 10000ms)
  brightness   1-100 (percentage. Default: 100%%)
  toggle       on|off

flags:
  %(prog)s -debug <0..3> ...                     Debug level for pyusb. Default: 0
"""


class Setting(NamedTuple):
    summary: str
    payload: bytes


def _require(args, *names):
    missing = [name for name in names if not getattr(args, name)]
    if missing:
        raise MissingArgumentError(
            f"Missing {' or '.join(missing)} argument for {args.command} mode")


def solid(color_arg):
    color = parse_color(color_arg)
    return Setting(f"Lighting set to solid {color}.", build_static(color))


def cycle(rate_arg, brightness_arg):
    rate = parse_rate(rate_arg)
    brightness = parse_brightness(brightness_arg)
    return Setting(f"Lighting set to cycle every {rate}ms at {brightness}% brightness.",
                   build_cycle(rate, brightness))


def breathe(color_arg, rate_arg, brightness_arg):
    color = parse_color(color_arg)
    rate = parse_rate(rate_arg)
    brightness = parse_brightness(brightness_arg)
    return Setting(
        f"Lighting set to breathe {color} every {rate}ms at {brightness}% brightness.",
        build_breathe(color, rate, brightness))


def intro(toggle_arg):
    enabled = parse_toggle(toggle_arg)
    _LOGGER.info("Setting intro effect (command 0x5B is not part of the documented mode set)")
    return Setting(f"Startup effect turned {'on' if enabled else 'off'}.", build_intro(enabled))


def cmd_solid(args):
    _require(args, "color")
    return [solid(args.color)]


def cmd_cycle(args):
    _require(args, "rate", "brightness")
    return [cycle(args.rate, args.brightness)]


def cmd_breathe(args):
    _require(args, "color", "rate", "brightness")
    return [breathe(args.color, args.rate, args.brightness)]


def cmd_intro(args):
    _require(args, "toggle")
    return [intro(args.toggle)]


def load_preset(conf_path):
    """Read a gled.conf file into the settings it describes.

    [Lighting] picks the mode; rate and brightness fall back to their
    defaults when left out. An optional [Intro] section switches the
    startup effect.
    """
    config = configparser.ConfigParser()
    try:
        found = config.read(conf_path)
    except configparser.Error as exception:
        raise UsageError(f"Error reading config file '{conf_path}': {exception}") from exception
    if not found:
        raise UsageError(f"Config file '{conf_path}' not found!")

    if not config.has_section("Lighting"):
        raise MissingArgumentError(f"Missing [Lighting] section in '{conf_path}'")
    lighting = config["Lighting"]
    mode = lighting.get("mode", "").strip().lower()
    if not mode:
        raise MissingArgumentError(f"Missing mode in [Lighting] section of '{conf_path}'")

    rate = lighting.get("rate", "").strip()
    brightness = lighting.get("brightness", "").strip()
    if mode == "cycle":
        settings = [cycle(rate, brightness)]
    elif mode in ("solid", "breathe"):
        color = lighting.get("color", "").strip()
        if not color:
            raise MissingArgumentError(
                f"Missing color in [Lighting] section of '{conf_path}' for {mode} mode")
        settings = [solid(color) if mode == "solid" else breathe(color, rate, brightness)]
    else:
        raise InvalidFormatError(
            f"Unknown mode {mode!r} in '{conf_path}'. Use solid, cycle or breathe.")

    if config.has_section("Intro"):
        effect = config["Intro"].get("effect", "").strip()
        if not effect:
            raise MissingArgumentError(f"Missing effect in [Intro] section of '{conf_path}'")
        settings.append(intro(effect))
    return settings


def cmd_preset(args):
    return load_preset(args.conf)


COMMANDS = {
    "solid": cmd_solid,
    "cycle": cmd_cycle,
    "breathe": cmd_breathe,
    "intro": cmd_intro,
    "preset": cmd_preset,
}


def build_parser():
    parser = argparse.ArgumentParser(
        prog="gled",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )
    parser.add_argument("-debug", "--debug", type=int, choices=range(4), default=0,
                        metavar="0..3", help="Debug level for pyusb (default: 0)")

    subparsers = parser.add_subparsers(dest="command")

    solid_parser = subparsers.add_parser("solid", help="Solid color mode")
    solid_parser.add_argument("color", nargs="?", help="RRGGBB or RGB")

    cycle_parser = subparsers.add_parser("cycle", help="Cycle through all colors")
    cycle_parser.add_argument("rate", nargs="?", help="Milliseconds (100-60000)")
    cycle_parser.add_argument("brightness", nargs="?", help="Percentage (1-100)")

    breathe_parser = subparsers.add_parser("breathe", help="Single color breathing")
    breathe_parser.add_argument("color", nargs="?", help="RRGGBB or RGB")
    breathe_parser.add_argument("rate", nargs="?", help="Milliseconds (100-60000)")
    breathe_parser.add_argument("brightness", nargs="?", help="Percentage (1-100)")

    intro_parser = subparsers.add_parser("intro", help="Enable/disable startup effect")
    intro_parser.add_argument("toggle", nargs="?", help="on|off")

    preset_parser = subparsers.add_parser("preset", help="Apply settings from a config file")
    preset_parser.add_argument("--conf", type=str, default=DEFAULT_CONF,
                               help=f"Path to config file (default: {DEFAULT_CONF})")

    return parser


def main(argv=None, driver_factory=Driver):
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help(sys.stderr)
        return 2

    try:
        settings = COMMANDS[args.command](args)
    except UsageError as e:
        print(f"Error: {e}", file=sys.stderr)
        parser.print_help(sys.stderr)
        return 2

    try:
        with driver_factory(debug=args.debug) as driver:
            for setting in settings:
                driver.apply(setting.payload)
                print(setting.summary)
    except GledError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
