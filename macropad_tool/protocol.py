"""Wire protocol for programming the supported keypad models."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import ClassVar, Protocol

from .model import (
    Key,
    KeyboardMacro,
    Macro,
    MediaMacro,
    MouseClick,
    MouseMacro,
    Wheel,
    code_value,
)

log = logging.getLogger(__name__)

VENDOR_ID = 0x1189
PRODUCT_IDS = (0x8840, 0x8842, 0x8890)

PACKET_SIZE = 64
DEFAULT_TIMEOUT = 0.1


class KeyboardError(Exception):
    """Raised when a binding cannot be encoded or sent to the device."""


class Transport(Protocol):
    def write_interrupt(self, endpoint: int, data: bytes, timeout: float) -> int: ...


def _key_id(key: Key, base: int) -> int:
    try:
        return key.key_id(base)
    except ValueError as error:
        raise KeyboardError(str(error)) from None


def _check_layer(layer: int) -> None:
    if not 0 <= layer <= 15:
        raise KeyboardError("invalid layer index")


def _modifier_byte(event_modifier) -> int:
    return 0 if event_modifier is None else int(event_modifier)


class Keyboard(ABC):
    """A keypad reached through an interrupt endpoint."""

    preferred_endpoint: ClassVar[int]

    def __init__(self, transport: Transport, endpoint: int) -> None:
        self.transport = transport
        self.endpoint = endpoint
        self.send(b"")

    def send(self, msg) -> None:
        """Send one message padded with zeros to a full packet."""
        data = bytes(msg)
        if len(data) > PACKET_SIZE:
            raise KeyboardError("message is longer than a packet")
        packet = data.ljust(PACKET_SIZE, b"\0")
        log.debug("send: %s", packet.hex(" "))
        written = self.transport.write_interrupt(self.endpoint, packet, DEFAULT_TIMEOUT)
        if written != len(packet):
            raise KeyboardError("not all data written")

    @abstractmethod
    def bind_key(self, layer: int, key: Key, expansion: Macro) -> None:
        """Bind a macro to a key on a layer (numbered from zero)."""

    @abstractmethod
    def set_led(self, n: int) -> None:
        """Select the backlight mode."""


class Keyboard884x(Keyboard):
    """Models 0x8840, 0x8842 and 0x8850."""

    preferred_endpoint = 0x04

    def bind_key(self, layer: int, key: Key, expansion: Macro) -> None:
        _check_layer(layer)
        log.debug("bind %s on layer %d to %s", key, layer, expansion)

        msg = [0x03, 0xFE, _key_id(key, 15), layer + 1, expansion.kind, 0, 0, 0, 0, 0]

        if isinstance(expansion, KeyboardMacro):
            presses = expansion.accords
            if len(presses) > 18:
                raise KeyboardError("macro sequence is too long")
            # A lone modifier is sent with a zero count so it combines with other keys.
            if len(presses) == 1 and presses[0].code is None:
                msg.append(0)
            else:
                msg.append(len(presses))
            for accord in presses:
                code = 0 if accord.code is None else code_value(accord.code)
                msg.extend((accord.modifier_bits, code))
        elif isinstance(expansion, MediaMacro):
            low, high = int(expansion.code).to_bytes(2, "little")
            msg.extend((0, low, high, 0, 0, 0, 0))
        elif isinstance(expansion, MouseMacro):
            event = expansion.event
            if isinstance(event.action, MouseClick):
                if not event.action.buttons:
                    raise KeyboardError("buttons must be given for click macro")
                msg.extend((0x01, 0, event.action.button_bits))
            else:
                step = 0x01 if event.action is Wheel.UP else 0xFF
                msg.extend((0x03, _modifier_byte(event.modifier), 0, 0, 0, step))
        else:
            raise KeyboardError(f"unsupported macro: {expansion!r}")

        self.send(msg)
        self.send((0x03, 0xFD, 0xFE, 0xFF))

    def set_led(self, n: int) -> None:
        raise KeyboardError(
            "Backlight LEDs are not supported for this keyboard model yet. "
            "If your device has them, please report it so support can be added."
        )


class Keyboard8890(Keyboard):
    """Model 0x8890."""

    preferred_endpoint = 0x02

    def bind_key(self, layer: int, key: Key, expansion: Macro) -> None:
        _check_layer(layer)
        log.debug("bind %s on layer %d to %s", key, layer, expansion)

        self.send((0x03, 0xFE, layer + 1, 0x01, 0x01, 0, 0, 0, 0))
        layer_byte = ((layer + 1) << 4) & 0xFF

        if isinstance(expansion, KeyboardMacro):
            presses = expansion.accords
            if len(presses) > 5:
                raise KeyboardError("macro sequence is too long")
            # The device expects an empty key ahead of the real ones.
            items = [(0, 0)] + [
                (a.modifier_bits, 0 if a.code is None else code_value(a.code)) for a in presses
            ]
            for i, (modifiers, code) in enumerate(items):
                self.send((
                    0x03,
                    _key_id(key, 12),
                    layer_byte | expansion.kind,
                    len(presses),
                    i,
                    modifiers,
                    code,
                    0,
                    0,
                ))
        elif isinstance(expansion, MediaMacro):
            low, high = int(expansion.code).to_bytes(2, "little")
            self.send((0x03, _key_id(key, 12), layer_byte | 0x02, low, high, 0, 0, 0, 0))
        elif isinstance(expansion, MouseMacro):
            event = expansion.event
            modifier = _modifier_byte(event.modifier)
            if isinstance(event.action, MouseClick):
                if not event.action.buttons:
                    raise KeyboardError("buttons must be given for click macro")
                self.send((
                    0x03, _key_id(key, 12), layer_byte | 0x03,
                    event.action.button_bits, 0, 0, 0, modifier, 0,
                ))
            else:
                step = 0x01 if event.action is Wheel.UP else 0xFF
                self.send((0x03, _key_id(key, 12), layer_byte | 0x03, 0, 0, 0, step, modifier, 0))
        else:
            raise KeyboardError(f"unsupported macro: {expansion!r}")

        self.send((0x03, 0xAA, 0xAA, 0, 0, 0, 0, 0, 0))

    def set_led(self, n: int) -> None:
        if not 0 <= n <= 0xFF:
            raise KeyboardError("invalid LED mode index")
        self.send((0x03, 0xA1, 0x01, 0, 0, 0, 0, 0, 0))
        self.send((0x03, 0xB0, 0x18, n, 0, 0, 0, 0, 0))
        self.send((0x03, 0xAA, 0xA1, 0, 0, 0, 0, 0, 0))


def keyboard_class_for(product_id: int) -> type[Keyboard]:
    """The keyboard implementation that speaks to the given product."""
    if product_id in (0x8840, 0x8842, 0x8850):
        return Keyboard884x
    if product_id == 0x8890:
        return Keyboard8890
    raise KeyboardError(f"unsupported device: {product_id:#06x}")