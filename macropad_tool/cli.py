"""Command line interface: show keys, validate and upload mappings, pick LED mode."""

from __future__ import annotations

import argparse
import logging
import os
import re
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Sequence, TextIO

import yaml

from .config import Config, ConfigError, FlatLayer
from .model import (
    ButtonKey,
    KnobAction,
    KnobKey,
    MediaCode,
    Modifier,
    MouseButton,
    Wheel,
    WellKnownCode,
)
from .parse import ParseError, parse_address
from .protocol import VENDOR_ID, Keyboard, KeyboardError, keyboard_class_for
from .usbdev import (
    SYSFS_USB_DEVICES,
    DeviceError,
    HidrawTransport,
    UsbDevice,
    find_device,
    find_interface,
    list_devices,
)

log = logging.getLogger(__name__)

_HEX = re.compile(r"[0-9A-Fa-f]+")
_DEC = re.compile(r"[0-9]+")


def hex_or_decimal(s: str) -> int:
    """Parse a 16-bit number written in decimal or with a ``0x`` prefix."""
    if s.lower().startswith("0x"):
        digits, base, pattern = s[2:], 16, _HEX
    else:
        digits, base, pattern = s, 10, _DEC
    if not pattern.fullmatch(digits):
        raise ValueError(f"invalid number: {s!r}")
    value = int(digits, base)
    if value > 0xFFFF:
        raise ValueError(f"number too large: {s!r}")
    return value


def _u8(s: str) -> int:
    if not _DEC.fullmatch(s) or int(s) > 0xFF:
        raise argparse.ArgumentTypeError(f"expected a number from 0 to 255, got {s!r}")
    return int(s)


def _u16(s: str) -> int:
    try:
        return hex_or_decimal(s)
    except ValueError as error:
        raise argparse.ArgumentTypeError(str(error)) from None


def _address(s: str) -> tuple[int, int]:
    try:
        return parse_address(s)
    except ParseError:
        raise argparse.ArgumentTypeError(f"expected BUS:ADDRESS, got {s!r}") from None


def build_parser() -> argparse.ArgumentParser:
    """The argument parser for the command line tool."""
    parser = argparse.ArgumentParser(
        prog="macropad-tool",
        description="Command-line tool for programming ch57x keyboards.",
    )
    internal = parser.add_argument_group("Internal options (use with caution)")
    internal.add_argument("--vendor-id", type=_u16, default=VENDOR_ID)
    internal.add_argument("--product-id", type=_u16)
    internal.add_argument("--address", type=_address)
    internal.add_argument("--endpoint-address", type=_u8)
    internal.add_argument("--interface-number", type=_u8)
    internal.add_argument("--sysfs-root", default=SYSFS_USB_DEVICES, help=argparse.SUPPRESS)
    internal.add_argument("--dev-root", default="/dev", help=argparse.SUPPRESS)

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("show-keys", help="Show supported keys and modifiers")
    for name, text in (
        ("validate", "Validate key mappings config on stdin"),
        ("upload", "Upload key mappings from stdin to device"),
    ):
        sub = commands.add_parser(name, help=text)
        sub.add_argument(
            "config_path",
            nargs="?",
            help="Path to config file. If not given, read from stdin.",
        )
    led = commands.add_parser("led", help="Select LED backlight mode")
    led.add_argument("index", type=_u8, help="Index of LED mode (zero-based)")
    return parser


def load_config(path: str | os.PathLike[str] | None = None) -> Config:
    """Load a mapping config from ``path``, or from standard input."""
    try:
        if path is None:
            data = yaml.safe_load(sys.stdin)
        else:
            with open(path, encoding="utf-8") as stream:
                data = yaml.safe_load(stream)
    except yaml.YAMLError as error:
        raise ConfigError(f"invalid YAML: {error}") from None
    return Config.from_mapping(data)


def show_keys(out: TextIO | None = None) -> None:
    """Print every modifier, key, media key and mouse action name."""
    out = sys.stdout if out is None else out

    def line(text: str = "") -> None:
        print(text, file=out)

    line("Modifiers: ")
    for modifier in Modifier:
        line(f" - {' / '.join(modifier.serializations())}")

    line()
    line("Keys:")
    for code in WellKnownCode:
        line(f" - {code}")

    line()
    line("Custom key syntax (use decimal code): <110>")

    line()
    line("Media keys:")
    for media in MediaCode:
        line(f" - {' / '.join(media.serializations())}")

    line()
    line("Mouse actions:")
    line(f" - {Wheel.DOWN}")
    line(f" - {Wheel.UP}")
    for button in MouseButton:
        line(f" - {button}")


def apply_layers(keyboard: Keyboard, layers: Sequence[FlatLayer]) -> None:
    """Bind every macro of every layer to the keyboard."""
    for layer_index, layer in enumerate(layers):
        for button_index, macro in enumerate(layer.buttons):
            if macro is not None:
                keyboard.bind_key(layer_index, ButtonKey(button_index), macro)
        for knob_index, knob in enumerate(layer.knobs):
            for action, macro in (
                (KnobAction.CCW, knob.ccw),
                (KnobAction.PRESS, knob.press),
                (KnobAction.CW, knob.cw),
            ):
                if macro is not None:
                    keyboard.bind_key(layer_index, KnobKey(knob_index, action), macro)


def _interface_with_endpoint(
    device: UsbDevice, interface_number: int | None, endpoint: int
) -> UsbDevice.Interface:
    numbers = (
        [interface_number] if interface_number is not None
        else [i.number for i in device.interfaces]
    )
    for number in numbers:
        log.debug("Probing interface %d", number)
        interface = find_interface(device, number)
        if any(ep.is_interrupt and ep.address == endpoint for ep in interface.endpoints):
            log.debug("Found endpoint %#04x", endpoint)
            if interface.is_plain_hid:
                return interface
            log.debug("unexpected interface parameters: %r", interface)
    raise DeviceError("No valid interface/endpoint combination found!")


def open_keyboard(args: argparse.Namespace) -> Keyboard:
    """Find the keypad described by the command line options and open it."""
    device = find_device(
        list_devices(args.sysfs_root), args.vendor_id, args.product_id, args.address
    )
    if device.num_configurations != 1:
        raise DeviceError("only one device configuration is expected")

    keyboard_class = keyboard_class_for(device.product_id)
    endpoint = (
        keyboard_class.preferred_endpoint
        if args.endpoint_address is None
        else args.endpoint_address
    )
    interface = _interface_with_endpoint(device, args.interface_number, endpoint)
    if interface.hidraw is None:
        raise DeviceError(f"interface #{interface.number} has no hidraw node")

    transport = HidrawTransport(
        Path(args.dev_root) / interface.hidraw,
        [ep.address for ep in interface.endpoints],
    )
    try:
        return keyboard_class(transport, endpoint)
    except BaseException:
        transport.close()
        raise


class _CommandError(Exception):
    pass


_EXPECTED_ERRORS = (ConfigError, ParseError, DeviceError, KeyboardError, OSError)


@contextmanager
def _step(context: str) -> Iterator[None]:
    try:
        yield
    except _EXPECTED_ERRORS as error:
        raise _CommandError(f"{context}: {error}") from error


def _close(keyboard: Keyboard) -> None:
    close = getattr(keyboard.transport, "close", None)
    if close is not None:
        close()


def _run(args: argparse.Namespace) -> None:
    if args.command == "show-keys":
        show_keys(sys.stdout)
    elif args.command == "validate":
        with _step("load mapping config"):
            config = load_config(args.config_path)
        with _step("render mappings config"):
            config.render()
        print("config is valid 👌")
    elif args.command == "upload":
        with _step("load mapping config"):
            config = load_config(args.config_path)
        with _step("render mapping config"):
            layers = config.render()
        with _step("open keyboard"):
            keyboard = open_keyboard(args)
        try:
            with _step("bind key"):
                apply_layers(keyboard, layers)
        finally:
            _close(keyboard)
    elif args.command == "led":
        with _step("open keyboard"):
            keyboard = open_keyboard(args)
        try:
            with _step("set LED mode"):
                keyboard.set_led(args.index)
        finally:
            _close(keyboard)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line tool and return the exit status."""
    logging.basicConfig(
        level=logging.DEBUG if os.environ.get("MACROPAD_DEBUG") else logging.WARNING
    )
    args = build_parser().parse_args(argv)
    try:
        _run(args)
    except _CommandError as error:
        print(f"Error: {error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())