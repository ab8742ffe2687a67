import io
from pathlib import Path

import pytest

from macropad_tool.cli import (
    apply_layers,
    build_parser,
    hex_or_decimal,
    load_config,
    main,
    open_keyboard,
    show_keys,
)
from macropad_tool.config import Config, ConfigError
from macropad_tool.model import ButtonKey, KnobAction, KnobKey, WellKnownCode
from macropad_tool.protocol import VENDOR_ID, Keyboard8890
from macropad_tool.usbdev import DeviceError

CONFIG_TEXT = """\
orientation: normal
rows: 1
columns: 3
knobs: 1
layers:
  - buttons:
      - ["a", "b", "c"]
    knobs:
      - ccw: volumedown
        press: mute
        cw: volumeup
"""


def _put(path: Path, text: str) -> None:
    path.write_text(text + "\n")


def make_device(root, name, *, bus, devnum, product, configurations=1, interfaces=()):
    device_dir = root / name
    device_dir.mkdir(parents=True)
    _put(device_dir / "busnum", str(bus))
    _put(device_dir / "devnum", str(devnum))
    _put(device_dir / "idVendor", "1189")
    _put(device_dir / "idProduct", f"{product:04x}")
    _put(device_dir / "bNumConfigurations", f"{configurations:2d}")
    for number, endpoints, hidraw in interfaces:
        iface = device_dir / f"{name}:1.{number}"
        iface.mkdir()
        _put(iface / "bInterfaceNumber", f"{number:02x}")
        _put(iface / "bInterfaceClass", "03")
        _put(iface / "bInterfaceSubClass", "00")
        _put(iface / "bInterfaceProtocol", "00")
        for address in endpoints:
            ep = iface / f"ep_{address:02x}"
            ep.mkdir()
            _put(ep / "bEndpointAddress", f"{address:02x}")
            _put(ep / "type", "Interrupt")
        (iface / "hid" / "hidraw" / hidraw).mkdir(parents=True)


@pytest.fixture
def system(tmp_path):
    sysfs = tmp_path / "sys"
    devroot = tmp_path / "dev"
    sysfs.mkdir()
    devroot.mkdir()
    for node in ("hidraw0", "hidraw1"):
        (devroot / node).write_bytes(b"")
    return sysfs, devroot


def _roots(system):
    sysfs, devroot = system
    return ["--sysfs-root", str(sysfs), "--dev-root", str(devroot)]


def _packets(path):
    data = path.read_bytes()
    assert len(data) % 64 == 0
    return [data[i:i + 64] for i in range(0, len(data), 64)]


def _padded(*values):
    return bytes(values).ljust(64, b"\0")


class RecordingKeyboard:
    def __init__(self):
        self.bindings = []

    def bind_key(self, layer, key, expansion):
        self.bindings.append((layer, key, str(expansion)))


@pytest.mark.parametrize(
    "text, expected",
    [("0x1189", 0x1189), ("0X8890", 0x8890), ("4489", 4489), ("0", 0)],
)
def test_hex_or_decimal(text, expected):
    assert hex_or_decimal(text) == expected


@pytest.mark.parametrize("text", ["0xzz", "", "0x", "-1", "70000", "0x10000", " 12"])
def test_hex_or_decimal_rejects(text):
    with pytest.raises(ValueError):
        hex_or_decimal(text)


def test_parser_defaults():
    args = build_parser().parse_args(["led", "3"])
    assert args.command == "led"
    assert args.index == 3
    assert args.vendor_id == VENDOR_ID
    assert args.product_id is None and args.address is None


def test_parser_internal_options():
    args = build_parser().parse_args(
        ["--address", "1:9", "--product-id", "0x8842", "upload", "map.yaml"]
    )
    assert args.address == (1, 9)
    assert args.product_id == 0x8842
    assert args.config_path == "map.yaml"


@pytest.mark.parametrize("argv", [[], ["led", "256"], ["--address", "1-9", "show-keys"]])
def test_parser_rejects(argv):
    with pytest.raises(SystemExit):
        build_parser().parse_args(argv)


def test_load_config_from_file(tmp_path):
    path = tmp_path / "map.yaml"
    path.write_text(CONFIG_TEXT)
    config = load_config(path)
    assert (config.rows, config.columns, config.knobs) == (1, 3, 1)
    assert len(config.layers) == 1


def test_load_config_from_stdin(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO(CONFIG_TEXT))
    config = load_config(None)
    assert [str(m) for m in config.layers[0].buttons[0]] == ["a", "b", "c"]


def test_load_config_bad_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("rows: [1,\n")
    with pytest.raises(ConfigError):
        load_config(path)


def test_show_keys_lists_everything():
    out = io.StringIO()
    show_keys(out)
    lines = out.getvalue().splitlines()
    assert " - alt / opt" in lines
    assert " - previous / prev" in lines
    assert "Custom key syntax (use decimal code): <110>" in lines
    assert lines[-5:] == ["Mouse actions:", " - wheeldown", " - wheelup",
                          " - click", " - rclick"][:5] or lines[-3:] == [
        " - click", " - rclick", " - mclick"]
    start = lines.index("Keys:") + 1
    end = lines.index("", start)
    assert len(lines[start:end]) == len(WellKnownCode)


def test_show_keys_mouse_section():
    out = io.StringIO()
    show_keys(out)
    lines = out.getvalue().splitlines()
    mouse = lines[lines.index("Mouse actions:") + 1:]
    assert mouse == [" - wheeldown", " - wheelup", " - click", " - rclick", " - mclick"]


def test_apply_layers_order():
    data = {
        "orientation": "normal", "rows": 1, "columns": 3, "knobs": 1,
        "layers": [{"buttons": [["a", None, "c"]],
                    "knobs": [{"ccw": "volumedown", "press": None, "cw": "volumeup"}]}],
    }
    keyboard = RecordingKeyboard()
    apply_layers(keyboard, Config.from_mapping(data).render())
    assert keyboard.bindings == [
        (0, ButtonKey(0), "a"),
        (0, ButtonKey(2), "c"),
        (0, KnobKey(0, KnobAction.CCW), "volumedown"),
        (0, KnobKey(0, KnobAction.CW), "volumeup"),
    ]


def test_main_validate_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO(CONFIG_TEXT))
    assert main(["validate"]) == 0
    assert "config is valid" in capsys.readouterr().out


def test_main_validate_reports_error(tmp_path, capsys):
    path = tmp_path / "map.yaml"
    path.write_text(CONFIG_TEXT.replace('["a", "b", "c"]', '["a", "b"]'))
    assert main(["validate", str(path)]) == 1
    assert "render mappings config" in capsys.readouterr().err


def test_main_upload_writes_packets(system, tmp_path):
    sysfs, devroot = system
    make_device(sysfs, "1-2", bus=1, devnum=5, product=0x8890,
                interfaces=[(0, [0x81], "hidraw0"), (1, [0x02, 0x82], "hidraw1")])
    path = tmp_path / "map.yaml"
    path.write_text(CONFIG_TEXT)
    assert main(_roots(system) + ["upload", str(path)]) == 0
    assert (devroot / "hidraw0").read_bytes() == b""
    packets = _packets(devroot / "hidraw1")
    assert packets[0] == bytes(64)
    assert packets[1] == _padded(0x03, 0xFE, 1, 0x01, 0x01)
    assert packets[-1] == _padded(0x03, 0xAA, 0xAA)


def test_main_led_8890(system):
    sysfs, devroot = system
    make_device(sysfs, "1-2", bus=1, devnum=5, product=0x8890,
                interfaces=[(1, [0x02], "hidraw1")])
    assert main(_roots(system) + ["led", "2"]) == 0
    assert _packets(devroot / "hidraw1")[1:] == [
        _padded(0x03, 0xA1, 0x01),
        _padded(0x03, 0xB0, 0x18, 2),
        _padded(0x03, 0xAA, 0xA1),
    ]


def test_main_led_unsupported_model(system, capsys):
    sysfs, _ = system
    make_device(sysfs, "1-2", bus=1, devnum=5, product=0x8840,
                interfaces=[(1, [0x04], "hidraw1")])
    assert main(_roots(system) + ["led", "1"]) == 1
    assert "set LED mode" in capsys.readouterr().err


def test_main_without_device(system, capsys):
    assert main(_roots(system) + ["led", "0"]) == 1
    assert "device not found" in capsys.readouterr().err


def test_open_keyboard_picks_preferred_endpoint(system):
    sysfs, _ = system
    make_device(sysfs, "1-2", bus=1, devnum=5, product=0x8890,
                interfaces=[(0, [0x81], "hidraw0"), (1, [0x02], "hidraw1")])
    args = build_parser().parse_args(_roots(system) + ["led", "0"])
    keyboard = open_keyboard(args)
    try:
        assert isinstance(keyboard, Keyboard8890)
        assert keyboard.endpoint == Keyboard8890.preferred_endpoint
        assert keyboard.transport.path.endswith("hidraw1")
    finally:
        keyboard.transport.close()


def test_open_keyboard_missing_endpoint(system):
    sysfs, _ = system
    make_device(sysfs, "1-2", bus=1, devnum=5, product=0x8890,
                interfaces=[(1, [0x02], "hidraw1")])
    args = build_parser().parse_args(_roots(system) + ["--endpoint-address", "9", "led", "0"])
    with pytest.raises(DeviceError, match="No valid interface/endpoint"):
        open_keyboard(args)


def test_open_keyboard_several_configurations(system):
    sysfs, _ = system
    make_device(sysfs, "1-2", bus=1, devnum=5, product=0x8890, configurations=2,
                interfaces=[(1, [0x02], "hidraw1")])
    args = build_parser().parse_args(_roots(system) + ["led", "0"])
    with pytest.raises(DeviceError, match="only one device configuration"):
        open_keyboard(args)