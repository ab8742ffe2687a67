"""Keys, modifiers, key codes and macros that can be bound to a keypad."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import ClassVar, Union


def _preferred_name(names: tuple[str, ...]) -> str:
    """Pick the display name: the longest one, the later one on a tie."""
    best = names[0]
    for name in names[1:]:
        if len(name) >= len(best):
            best = name
    return best


class KnobAction(Enum):
    """What can be done with a knob."""

    CCW = 0
    PRESS = 1
    CW = 2

    def __str__(self) -> str:
        return ("ccw", "press", "cw")[self.value]


@dataclass(frozen=True)
class ButtonKey:
    """A plain button, numbered from zero."""

    index: int

    def key_id(self, base: int) -> int:
        """Return the device key id; ``base`` is the number of buttons supported."""
        if self.index >= base:
            raise ValueError("invalid key index")
        return self.index + 1

    def __str__(self) -> str:
        return f"button {self.index}"


@dataclass(frozen=True)
class KnobKey:
    """One action of a knob, knobs numbered from zero."""

    index: int
    action: KnobAction

    def key_id(self, base: int) -> int:
        """Return the device key id; knob ids follow the ``base`` button ids."""
        if self.index >= 3:
            raise ValueError("invalid knob index")
        return base + 1 + 3 * self.index + self.action.value

    def __str__(self) -> str:
        return f"knob {self.index} {self.action}"


Key = Union[ButtonKey, KnobKey]


class Modifier(Enum):
    """Keyboard modifier; the value is its bit in the modifier byte."""

    def __new__(cls, bit: int, *names: str) -> "Modifier":
        member = object.__new__(cls)
        member._value_ = bit
        member._names = names
        return member

    CTRL = 0x01, "ctrl"
    SHIFT = 0x02, "shift"
    ALT = 0x04, "alt", "opt"
    WIN = 0x08, "win", "cmd"
    RIGHT_CTRL = 0x10, "rctrl"
    RIGHT_SHIFT = 0x20, "rshift"
    RIGHT_ALT = 0x40, "ralt", "ropt"
    RIGHT_WIN = 0x80, "rwin", "rcmd"

    def serializations(self) -> tuple[str, ...]:
        """All names the modifier is known by."""
        return self._names

    def __str__(self) -> str:
        return _preferred_name(self._names)


class MediaCode(IntEnum):
    """Consumer-control (media) key codes."""

    def __new__(cls, code: int, *names: str) -> "MediaCode":
        member = int.__new__(cls, code)
        member._value_ = code
        member._names = names
        return member

    NEXT = 0xB5, "next"
    PREVIOUS = 0xB6, "previous", "prev"
    STOP = 0xB7, "stop"
    PLAY = 0xCD, "play"
    MUTE = 0xE2, "mute"
    VOLUME_UP = 0xE9, "volumeup"
    VOLUME_DOWN = 0xEA, "volumedown"
    FAVORITES = 0x182, "favorites"
    CALCULATOR = 0x192, "calculator"
    SCREEN_LOCK = 0x19E, "screenlock"

    def serializations(self) -> tuple[str, ...]:
        """All names the media key is known by."""
        return self._names

    def __str__(self) -> str:
        return _preferred_name(self._names)


_DIGIT_NAME = re.compile(r"N(\d)")


class WellKnownCode(IntEnum):
    """HID keyboard usage codes that have a name."""

    A = 0x04
    B = auto()
    C = auto()
    D = auto()
    E = auto()
    F = auto()
    G = auto()
    H = auto()
    I = auto()  # noqa: E741
    J = auto()
    K = auto()
    L = auto()
    M = auto()
    N = auto()
    O = auto()  # noqa: E741
    P = auto()
    Q = auto()
    R = auto()
    S = auto()
    T = auto()
    U = auto()
    V = auto()
    W = auto()
    X = auto()
    Y = auto()
    Z = auto()
    N1 = auto()
    N2 = auto()
    N3 = auto()
    N4 = auto()
    N5 = auto()
    N6 = auto()
    N7 = auto()
    N8 = auto()
    N9 = auto()
    N0 = auto()
    ENTER = auto()
    ESCAPE = auto()
    BACKSPACE = auto()
    TAB = auto()
    SPACE = auto()
    MINUS = auto()
    EQUAL = auto()
    LEFT_BRACKET = auto()
    RIGHT_BRACKET = auto()
    BACKSLASH = auto()
    NON_US_HASH = auto()
    SEMICOLON = auto()
    QUOTE = auto()
    GRAVE = auto()
    COMMA = auto()
    DOT = auto()
    SLASH = auto()
    CAPS_LOCK = auto()
    F1 = auto()
    F2 = auto()
    F3 = auto()
    F4 = auto()
    F5 = auto()
    F6 = auto()
    F7 = auto()
    F8 = auto()
    F9 = auto()
    F10 = auto()
    F11 = auto()
    F12 = auto()
    PRINT_SCREEN = auto()
    SCROLL_LOCK = auto()
    PAUSE = auto()
    INSERT = auto()
    HOME = auto()
    PAGE_UP = auto()
    DELETE = auto()
    END = auto()
    PAGE_DOWN = auto()
    RIGHT = auto()
    LEFT = auto()
    DOWN = auto()
    UP = auto()
    NUM_LOCK = auto()
    NUMPAD_SLASH = auto()
    NUMPAD_ASTERISK = auto()
    NUMPAD_MINUS = auto()
    NUMPAD_PLUS = auto()
    NUMPAD_ENTER = auto()
    NUMPAD_1 = auto()
    NUMPAD_2 = auto()
    NUMPAD_3 = auto()
    NUMPAD_4 = auto()
    NUMPAD_5 = auto()
    NUMPAD_6 = auto()
    NUMPAD_7 = auto()
    NUMPAD_8 = auto()
    NUMPAD_9 = auto()
    NUMPAD_0 = auto()
    NUMPAD_DOT = auto()
    NON_US_BACKSLASH = auto()
    APPLICATION = auto()
    POWER = auto()
    NUMPAD_EQUAL = auto()
    F13 = auto()
    F14 = auto()
    F15 = auto()
    F16 = auto()
    F17 = auto()
    F18 = auto()
    F19 = auto()
    F20 = auto()
    F21 = auto()
    F22 = auto()
    F23 = auto()
    F24 = auto()

    def __str__(self) -> str:
        digit = _DIGIT_NAME.fullmatch(self.name)
        if digit:
            return digit.group(1)
        return self.name.replace("_", "").lower()


@dataclass(frozen=True)
class CustomCode:
    """A key given by its raw usage code."""

    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 0xFF:
            raise ValueError(f"custom key code out of range: {self.value}")

    def __str__(self) -> str:
        return f"<{self.value}>"


Code = Union[WellKnownCode, CustomCode]


def code_value(code: Code) -> int:
    """The byte sent to the device for a key code."""
    if isinstance(code, CustomCode):
        return code.value
    return int(code)


@dataclass(frozen=True)
class Accord:
    """Modifiers held together with at most one key."""

    modifiers: frozenset[Modifier] = frozenset()
    code: Code | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "modifiers", frozenset(self.modifiers))

    @property
    def modifier_bits(self) -> int:
        """The modifiers as the device's modifier byte."""
        bits = 0
        for modifier in self.modifiers:
            bits |= modifier.value
        return bits

    def __str__(self) -> str:
        text = "-".join(str(m) for m in sorted(self.modifiers, key=lambda m: m.value))
        if self.code is not None:
            if self.modifiers:
                text += "-"
            text += str(self.code)
        return text


class MouseModifier(IntEnum):
    """Modifier that can accompany a mouse action."""

    CTRL = 0x01
    SHIFT = 0x02
    ALT = 0x04

    def __str__(self) -> str:
        return self.name.capitalize()


class MouseButton(Enum):
    """Mouse button; the value is its bit in the button byte."""

    LEFT = 0x01
    RIGHT = 0x02
    MIDDLE = 0x04

    def __str__(self) -> str:
        return {0x01: "click", 0x02: "rclick", 0x04: "mclick"}[self.value]


@dataclass(frozen=True)
class MouseClick:
    """A click of one or more mouse buttons at once."""

    buttons: frozenset[MouseButton]

    def __post_init__(self) -> None:
        object.__setattr__(self, "buttons", frozenset(self.buttons))

    @property
    def button_bits(self) -> int:
        """The buttons as the device's button byte."""
        bits = 0
        for button in self.buttons:
            bits |= button.value
        return bits

    def __str__(self) -> str:
        return "+".join(str(b) for b in sorted(self.buttons, key=lambda b: b.value))


class Wheel(Enum):
    """A single step of the mouse wheel."""

    UP = "wheelup"
    DOWN = "wheeldown"

    def __str__(self) -> str:
        return self.value


MouseAction = Union[MouseClick, Wheel]


@dataclass(frozen=True)
class MouseEvent:
    """A mouse action with an optional modifier."""

    action: MouseAction
    modifier: MouseModifier | None = None

    def __str__(self) -> str:
        prefix = f"{self.modifier}-" if self.modifier is not None else ""
        return f"{prefix}{self.action}"


@dataclass(frozen=True)
class KeyboardMacro:
    """A sequence of key accords."""

    accords: tuple[Accord, ...]
    kind: ClassVar[int] = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "accords", tuple(self.accords))

    def __str__(self) -> str:
        return ",".join(str(a) for a in self.accords)


@dataclass(frozen=True)
class MediaMacro:
    """A single media key."""

    code: MediaCode
    kind: ClassVar[int] = 2

    def __str__(self) -> str:
        return str(self.code)


@dataclass(frozen=True)
class MouseMacro:
    """A single mouse event."""

    event: MouseEvent
    kind: ClassVar[int] = 3

    def __str__(self) -> str:
        return str(self.event)


Macro = Union[KeyboardMacro, MediaMacro, MouseMacro]