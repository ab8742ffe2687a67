import pytest

from macropad_tool.model import (
    Accord,
    ButtonKey,
    CustomCode,
    KeyboardMacro,
    KnobAction,
    KnobKey,
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
    code_value,
)


def test_well_known_codes_start_at_a_and_are_consecutive():
    values = [code_value(c) for c in WellKnownCode]
    assert code_value(WellKnownCode.A) == 0x04
    assert values == list(range(0x04, 0x04 + len(values)))


def test_digit_codes_display_as_digits():
    assert str(Accord(frozenset(), WellKnownCode.N1)) == "1"
    assert str(Accord(frozenset(), WellKnownCode.N0)) == "0"
    assert code_value(WellKnownCode.N0) == code_value(WellKnownCode.N9) + 1


def test_well_known_code_names_are_unique():
    names = [str(Accord(frozenset(), c)) for c in WellKnownCode]
    assert len(set(names)) == len(names)
    assert all(name == name.lower() for name in names)


def test_code_value():
    assert code_value(WellKnownCode.A) == 0x04
    assert code_value(CustomCode(110)) == 110


def test_custom_code_display_and_range():
    assert str(CustomCode(100)) == "<100>"
    with pytest.raises(ValueError):
        CustomCode(256)


def test_media_codes():
    assert MediaCode.NEXT == 0xB5
    assert MediaCode.SCREEN_LOCK == 0x19E
    assert MediaCode.PREVIOUS.serializations() == ("previous", "prev")
    assert str(MediaCode.PREVIOUS) == "previous"
    assert str(MediaCode.PLAY) == "play"


def test_modifier_serializations():
    assert Modifier.ALT.serializations() == ("alt", "opt")
    assert Modifier.WIN.serializations() == ("win", "cmd")
    assert Modifier.CTRL.serializations() == ("ctrl",)


def test_modifier_bits_are_distinct_single_bits():
    values = [Accord({m}, None).modifier_bits for m in Modifier]
    assert values == [m.value for m in Modifier]
    assert len(set(values)) == len(values)
    assert all(v > 0 and v & (v - 1) == 0 for v in values)
    assert Accord(set(Modifier), None).modifier_bits == sum(values)


def test_accord_display():
    assert str(Accord({Modifier.CTRL}, WellKnownCode.A)) == "ctrl-a"
    assert str(Accord(frozenset(), CustomCode(100))) == "<100>"


def test_accord_display_is_order_independent():
    first = Accord([Modifier.SHIFT, Modifier.CTRL], None)
    second = Accord([Modifier.CTRL, Modifier.SHIFT], None)
    assert first == second
    assert str(first) == str(second)
    assert str(first).split("-") == [str(Modifier.CTRL), str(Modifier.SHIFT)]


def test_accord_modifier_bits():
    accord = Accord({Modifier.CTRL, Modifier.SHIFT}, WellKnownCode.B)
    assert accord.modifier_bits == Modifier.CTRL.value | Modifier.SHIFT.value
    assert Accord(frozenset(), WellKnownCode.B).modifier_bits == 0


def test_key_id_limits():
    with pytest.raises(ValueError, match="invalid key index"):
        ButtonKey(15).key_id(15)
    with pytest.raises(ValueError, match="invalid knob index"):
        KnobKey(3, KnobAction.CCW).key_id(15)
    assert ButtonKey(0).key_id(12) == 1


def test_key_ids_are_distinct():
    base = 12
    ids = [ButtonKey(i).key_id(base) for i in range(base)]
    knob_ids = [KnobKey(k, a).key_id(base) for k in range(3) for a in KnobAction]
    assert len(set(ids + knob_ids)) == len(ids) + len(knob_ids)
    assert min(knob_ids) > max(ids)


def test_knob_action_names():
    keys = [KnobKey(0, a) for a in KnobAction]
    assert [str(k).split()[-1] for k in keys] == ["ccw", "press", "cw"]
    assert [k.key_id(12) for k in keys] == [13, 14, 15]


def test_key_display():
    assert str(KnobKey(1, KnobAction.CW)).startswith("knob 1")
    assert str(KnobKey(1, KnobAction.CW)).endswith("cw")


def test_mouse_modifiers():
    assert [int(m) for m in MouseModifier] == [0x01, 0x02, 0x04]
    assert [str(MouseEvent(Wheel.UP, m)) for m in MouseModifier] == [
        "Ctrl-wheelup",
        "Shift-wheelup",
        "Alt-wheelup",
    ]


def test_mouse_click():
    click = MouseClick({MouseButton.RIGHT, MouseButton.LEFT})
    assert str(click) == "click+rclick"
    assert click.button_bits == MouseButton.LEFT.value | MouseButton.RIGHT.value


def test_mouse_event_display():
    assert str(MouseEvent(Wheel.UP)) == "wheelup"
    assert str(MouseEvent(Wheel.DOWN, MouseModifier.CTRL)) == "Ctrl-wheeldown"


def test_macro_kinds():
    keyboard = KeyboardMacro([Accord(frozenset(), WellKnownCode.A)])
    media = MediaMacro(MediaCode.PLAY)
    mouse = MouseMacro(MouseEvent(Wheel.UP))
    assert (keyboard.kind, media.kind, mouse.kind) == (1, 2, 3)


def test_keyboard_macro_display_joins_accords():
    a = Accord(frozenset(), WellKnownCode.A)
    b = Accord({Modifier.CTRL}, WellKnownCode.B)
    macro = KeyboardMacro([a, b])
    assert macro.accords == (a, b)
    assert str(macro) == f"{a},{b}"
    assert str(MediaMacro(MediaCode.MUTE)) == str(MediaCode.MUTE)