"""Key mapping configuration: loading, validation and flattening."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Sequence, TypeVar

from .model import KeyboardMacro, Macro
from .parse import ParseError, parse_macro

T = TypeVar("T")


class ConfigError(ValueError):
    """Raised when a mapping config is malformed or inconsistent."""


class Orientation(Enum):
    """How the keypad is physically turned relative to its normal position."""

    NORMAL = "normal"
    UPSIDE_DOWN = "upsidedown"
    CLOCKWISE = "clockwise"
    COUNTER_CLOCKWISE = "counterclockwise"

    def is_horizontal(self) -> bool:
        """True when rows and columns keep their physical meaning."""
        return self in (Orientation.NORMAL, Orientation.UPSIDE_DOWN)


@dataclass(frozen=True)
class Knob:
    """Macros bound to the three actions of a knob."""

    ccw: Macro | None = None
    press: Macro | None = None
    cw: Macro | None = None


@dataclass
class Layer:
    """One layer as written in the config: a grid of buttons and a row of knobs."""

    buttons: list[list[Macro | None]] = field(default_factory=list)
    knobs: list[Knob] = field(default_factory=list)


@dataclass
class FlatLayer:
    """One layer with buttons in device order."""

    buttons: list[Macro | None]
    knobs: list[Knob]


def _field(data: Mapping[str, Any], key: str, where: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ConfigError(f"missing field {key!r} in {where}") from None


def _mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"{where} must be a mapping")
    return value


def _sequence(value: Any, where: str) -> list:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise ConfigError(f"{where} must be a list")
    return list(value)


def _count(value: Any, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0xFF:
        raise ConfigError(f"{where} must be an integer from 0 to 255")
    return value


def _macro(value: Any, where: str) -> Macro | None:
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        raise ConfigError(f"{where} must be a macro string")
    try:
        return parse_macro(value)
    except ParseError as error:
        raise ConfigError(f"{where}: {error}") from None


def _knob(value: Any, where: str) -> Knob:
    data = _mapping(value, where)
    return Knob(
        ccw=_macro(data.get("ccw"), f"{where} ccw"),
        press=_macro(data.get("press"), f"{where} press"),
        cw=_macro(data.get("cw"), f"{where} cw"),
    )


def _layer(value: Any, where: str) -> Layer:
    data = _mapping(value, where)
    rows = _sequence(_field(data, "buttons", where), f"{where} buttons")
    buttons = [
        [
            _macro(cell, f"{where} button {r}:{c}")
            for c, cell in enumerate(_sequence(row, f"{where} button row {r}"))
        ]
        for r, row in enumerate(rows)
    ]
    knobs = [
        _knob(knob, f"{where} knob {k}")
        for k, knob in enumerate(_sequence(_field(data, "knobs", where), f"{where} knobs"))
    ]
    return Layer(buttons=buttons, knobs=knobs)


def _has_late_modifiers(macro: Macro | None) -> bool:
    return isinstance(macro, KeyboardMacro) and any(
        accord.modifiers for accord in macro.accords[1:]
    )


@dataclass
class Config:
    """A whole keypad mapping."""

    orientation: Orientation
    rows: int
    columns: int
    knobs: int
    layers: list[Layer] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Any) -> "Config":
        """Build a config from a loaded YAML document."""
        root = _mapping(data, "config")
        raw_orientation = _field(root, "orientation", "config")
        try:
            orientation = Orientation(raw_orientation)
        except ValueError:
            raise ConfigError(f"unknown orientation: {raw_orientation!r}") from None
        layers = [
            _layer(layer, f"layer {i}")
            for i, layer in enumerate(_sequence(_field(root, "layers", "config"), "layers"))
        ]
        return cls(
            orientation=orientation,
            rows=_count(_field(root, "rows", "config"), "rows"),
            columns=_count(_field(root, "columns", "config"), "columns"),
            knobs=_count(_field(root, "knobs", "config"), "knobs"),
            layers=layers,
        )

    def render(self) -> list[FlatLayer]:
        """Validate the config and flatten each layer into device order."""
        is_limited = (self.rows == 1 or self.columns == 1) and self.knobs == 1
        if self.orientation.is_horizontal():
            orows, ocols = self.rows, self.columns
        else:
            orows, ocols = self.columns, self.rows

        flat = []
        for i, layer in enumerate(self.layers):
            if len(layer.buttons) != orows:
                raise ConfigError(f"Invalid number of button rows in layer {i}")
            if any(len(row) != ocols for row in layer.buttons):
                raise ConfigError(f"Invalid number of button columns in layer {i}")
            if len(layer.knobs) != self.knobs:
                raise ConfigError(f"Invalid number of knobs in layer {i}")

            buttons = reorient_grid(self.orientation, self.rows, self.columns, layer.buttons)
            knobs = reorient_row(self.orientation, layer.knobs)

            if is_limited:
                offending = next((m for m in buttons if _has_late_modifiers(m)), None)
                if offending is not None:
                    raise ConfigError(
                        "1-row keyboard with 1 knob can handle modifiers for first key "
                        f"in sequence only: {offending}"
                    )

            flat.append(FlatLayer(buttons=buttons, knobs=knobs))
        return flat


def reorient_grid(
    orientation: Orientation, rows: int, cols: int, data: Sequence[Sequence[T]]
) -> list[T]:
    """Flatten a grid as seen by the user into the device's row-major order.

    ``rows`` and ``cols`` describe the device in its normal position.
    """

    def physical(r: int, c: int) -> tuple[int, int]:
        if orientation is Orientation.NORMAL:
            return r, c
        if orientation is Orientation.UPSIDE_DOWN:
            return rows - r - 1, cols - c - 1
        if orientation is Orientation.CLOCKWISE:
            return c, rows - r - 1
        return cols - c - 1, r

    result = []
    for r in range(rows):
        for c in range(cols):
            pr, pc = physical(r, c)
            result.append(data[pr][pc])
    return result


def reorient_row(orientation: Orientation, data: Sequence[T]) -> list[T]:
    """Order a row of knobs as the device numbers them."""
    if orientation in (Orientation.UPSIDE_DOWN, Orientation.CLOCKWISE):
        return list(reversed(data))
    return list(data)