"""Parsers for the textual macro, key and address syntax."""

from __future__ import annotations

import re
from typing import Callable, TypeVar

from .model import (
    Accord,
    Code,
    CustomCode,
    KeyboardMacro,
    Macro,
    MediaCode,
    MediaMacro,
    Modifier,
    MouseButton,
    MouseClick,
    MouseEvent,
    MouseMacro,
    MouseModifier,
    Wheel,
    WellKnownCode,
)

T = TypeVar("T")


class ParseError(ValueError):
    """Raised when text does not match the expected syntax as a whole."""

    def __init__(self, text: str, remaining: str) -> None:
        self.text = text
        self.remaining = remaining
        super().__init__(f"cannot parse {text!r}: unexpected input at {remaining!r}")


class _NoMatch(Exception):
    def __init__(self, remaining: str) -> None:
        super().__init__(remaining)
        self.remaining = remaining


_ALPHA = re.compile(r"[A-Za-z]+")
_ALNUM = re.compile(r"[A-Za-z0-9]+")
_DIGITS = re.compile(r"[0-9]+")

_MODIFIERS = {name: m for m in Modifier for name in m.serializations()}
_WELL_KNOWN = {str(c): c for c in WellKnownCode}
_MEDIA = {name: c for c in MediaCode for name in c.serializations()}
_MOUSE_MODIFIERS = {str(m).lower(): m for m in MouseModifier}
_BUTTON_TAGS = (
    ("click", MouseButton.LEFT),
    ("lclick", MouseButton.LEFT),
    ("rclick", MouseButton.RIGHT),
    ("mclick", MouseButton.MIDDLE),
)

_Parser = Callable[[str], "tuple[T, str]"]


def _take(pattern: re.Pattern[str], s: str) -> tuple[str, str]:
    match = pattern.match(s)
    if not match:
        raise _NoMatch(s)
    return match.group(), s[match.end():]


def _char(c: str, s: str) -> str:
    if not s.startswith(c):
        raise _NoMatch(s)
    return s[len(c):]


def _lookup(table: dict[str, T], pattern: re.Pattern[str], s: str) -> tuple[T, str]:
    word, rest = _take(pattern, s)
    try:
        return table[word.lower()], rest
    except KeyError:
        raise _NoMatch(s) from None


def _byte(s: str) -> tuple[int, str]:
    digits, rest = _take(_DIGITS, s)
    value = int(digits)
    if value > 0xFF:
        raise _NoMatch(s)
    return value, rest


def _separated_list1(element: _Parser, sep: str, s: str) -> tuple[list, str]:
    first, rest = element(s)
    items = [first]
    while True:
        try:
            item, after = element(_char(sep, rest))
        except _NoMatch:
            return items, rest
        items.append(item)
        rest = after


def _code(s: str) -> tuple[Code, str]:
    try:
        value, rest = _byte(_char("<", s))
        return CustomCode(value), _char(">", rest)
    except _NoMatch:
        pass
    return _lookup(_WELL_KNOWN, _ALNUM, s)


def _modifier(s: str) -> tuple[Modifier, str]:
    return _lookup(_MODIFIERS, _ALPHA, s)


def _accord(s: str) -> tuple[Accord, str]:
    try:
        code, rest = _code(s)
        return Accord(frozenset(), code), rest
    except _NoMatch:
        pass

    modifiers: set[Modifier] = set()
    rest = s
    while True:
        try:
            modifier, after = _modifier(rest)
            after = _char("-", after)
        except _NoMatch:
            break
        modifiers.add(modifier)
        rest = after

    try:
        code, after = _code(rest)
        return Accord(frozenset(modifiers), code), after
    except _NoMatch:
        pass
    modifier, after = _modifier(rest)
    modifiers.add(modifier)
    return Accord(frozenset(modifiers), None), after


def _button(s: str) -> tuple[MouseButton, str]:
    for tag, button in _BUTTON_TAGS:
        if s.startswith(tag):
            return button, s[len(tag):]
    raise _NoMatch(s)


def _mouse_event(s: str) -> tuple[MouseEvent, str]:
    modifier = None
    rest = s
    try:
        found, after = _lookup(_MOUSE_MODIFIERS, _ALPHA, s)
        modifier, rest = found, _char("-", after)
    except _NoMatch:
        pass

    try:
        buttons, after = _separated_list1(_button, "+", rest)
        return MouseEvent(MouseClick(frozenset(buttons)), modifier), after
    except _NoMatch:
        pass
    for wheel in Wheel:
        if rest.startswith(wheel.value):
            return MouseEvent(wheel, modifier), rest[len(wheel.value):]
    raise _NoMatch(rest)


def _macro(s: str) -> tuple[Macro, str]:
    try:
        event, rest = _mouse_event(s)
        return MouseMacro(event), rest
    except _NoMatch:
        pass
    try:
        media, rest = _lookup(_MEDIA, _ALPHA, s)
        return MediaMacro(media), rest
    except _NoMatch:
        pass
    accords, rest = _separated_list1(_accord, ",", s)
    return KeyboardMacro(tuple(accords)), rest


def _address(s: str) -> tuple[tuple[int, int], str]:
    bus, rest = _byte(s)
    address, rest = _byte(_char(":", rest))
    return (bus, address), rest


def _parse_all(parser: _Parser, text: str):
    try:
        value, rest = parser(text)
    except _NoMatch as error:
        raise ParseError(text, error.remaining) from None
    if rest:
        raise ParseError(text, rest)
    return value


def parse_code(s: str) -> Code:
    """Parse a key name or a custom ``<decimal>`` code."""
    return _parse_all(_code, s)


def parse_modifier(s: str) -> Modifier:
    """Parse a modifier name."""
    return _parse_all(_modifier, s)


def parse_accord(s: str) -> Accord:
    """Parse ``mod-mod-key`` style accord, where the key may be omitted."""
    return _parse_all(_accord, s)


def parse_macro(s: str) -> Macro:
    """Parse a mouse event, a media key or a comma-separated accord sequence."""
    return _parse_all(_macro, s)


def parse_address(s: str) -> tuple[int, int]:
    """Parse a ``bus:address`` USB location."""
    return _parse_all(_address, s)