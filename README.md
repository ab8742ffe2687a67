# macropad-tool

A command-line tool that programs key mappings into small USB macro keypads
built around the CH57x chip. These keypads have a few buttons and up to three
rotary knobs. The tool reads a YAML mapping file, checks it, and writes each
binding to the device.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Usage

```
macropad-tool show-keys              # list modifiers, key names, media keys and mouse actions
macropad-tool validate mapping.yaml  # check a mapping file without touching the device
macropad-tool upload mapping.yaml    # write the mapping to the keypad
macropad-tool led 1                  # select LED backlight mode (zero-based index)
```

`validate` and `upload` read the mapping from standard input when no path is
given:

```
macropad-tool upload < mapping.yaml
```

`validate` prints `config is valid 👌` when the file is correct. On any
error the tool prints `Error: ...` to standard error and exits with status 1.
Set the environment variable `MACROPAD_DEBUG` to any non-empty value to see
debug logging, including every packet sent to the device.

### How the device is reached

The tool finds keypads by reading `/sys/bus/usb/devices` and writes to the
matching `/dev/hidraw*` node. It picks the USB interface that is a plain HID
interface (class 3, no subclass, no protocol) and has an interrupt endpoint
with the expected address. Your user needs write access to that hidraw node,
for example through a udev rule, or you can run the tool as root.

### Device selection

Vendor ID `0x1189` and product IDs `0x8840`, `0x8842` and `0x8890` are
recognised by default. Product `0x8850` is also understood, but only when
given with `--product-id`. Some internal options change how the device is
found. Use them with care:

| Option | Meaning |
| --- | --- |
| `--vendor-id ID` | USB vendor ID, decimal or `0x`-prefixed hex |
| `--product-id ID` | USB product ID, decimal or `0x`-prefixed hex |
| `--address BUS:ADDR` | pick one device when several are connected |
| `--endpoint-address N` | interrupt endpoint to use (default `4` for 884x models, `2` for 8890) |
| `--interface-number N` | USB interface to use instead of probing all of them |

These keypads have no serial number. When several are plugged in, the tool
lists their `bus:address` pairs so you can pick one with `--address`.

### LED modes

`led` only works on the 8890 model. The 884x models report that backlight
LEDs are not supported.

## Mapping file

```yaml
orientation: normal   # normal, upsidedown, clockwise or counterclockwise
rows: 3
columns: 4
knobs: 2

layers:
  - buttons:
      - ["a", "b", "c", "d"]
      - ["ctrl-c", "ctrl-v", "win-ctrl", "<100>"]
      - ["play", "next", "click", "ctrl-wheelup"]
    knobs:
      - ccw: "volumedown"
        press: "mute"
        cw: "volumeup"
      - ccw: "wheeldown"
        press: "mclick"
        cw: "wheelup"
```

`rows` and `columns` describe the keypad as it sits in its default position.
With `clockwise` or `counterclockwise` orientation, the `buttons` grid in each
layer is written as the keypad looks once rotated, so rows and columns swap.
With `upsidedown` or `clockwise` orientation the knob list is reversed as
well. Every layer needs exactly that many rows, columns and knobs. To leave a
button unbound, use an empty value (`~`); a knob action may be empty or left
out.

Layers are numbered from zero; the devices accept at most 16.

### Macro syntax

- **Key chords**: optional modifiers joined by `-`, then a key name:
  `a`, `f5`, `ctrl-a`, `win-ctrl-a`, `shift-<100>`. A chord may also be only
  modifiers, such as `win-ctrl`.
- **Key sequences**: chords joined by commas: `ctrl-a,alt-backspace`.
  The 884x models accept up to 18 chords and the 8890 model up to 5.
  A keypad with a single row or column and a single knob only honours
  modifiers on the first chord of a sequence, and such mappings are rejected.
- **Custom key codes**: a decimal HID usage code from 0 to 255 in angle
  brackets: `<110>`.
- **Media keys**: `play`, `next`, `prev`, `mute`, `volumeup` and so on.
- **Mouse**: `click` (or `lclick`), `rclick`, `mclick`, combinations such as
  `click+rclick`, and `wheelup` / `wheeldown`. Each may take one modifier
  (`ctrl`, `shift` or `alt`), as in `ctrl-click` or `ctrl-wheelup`.

Key, modifier and media key names are case-insensitive; mouse action names
must be written in lower case. Run `macropad-tool show-keys` for the full
list.

## Using it from Python

The pieces behind the command can be used on their own:

- `macropad_tool.parse.parse_macro("ctrl-a,alt-b")` turns macro text into a
  `KeyboardMacro`, `MediaMacro` or `MouseMacro`; `parse_accord`, `parse_code`,
  `parse_modifier` and `parse_address` parse the smaller parts. They raise
  `ParseError` when the whole text does not match.
- `macropad_tool.config.Config.from_mapping(data)` builds a config from a
  loaded YAML document, and `Config.render()` checks it and returns one
  `FlatLayer` per layer with buttons in device order. Problems raise
  `ConfigError`.
- `macropad_tool.protocol.Keyboard884x` and `Keyboard8890` encode bindings
  into packets. They take any object with a
  `write_interrupt(endpoint, data, timeout)` method that returns the number of
  bytes written; `usbdev.HidrawTransport` is the one the command uses.
  `keyboard_class_for(product_id)` picks the right class.

## Limitations

- Linux only: devices are found through sysfs and written through hidraw.
- The tool only writes to the keypad. It cannot read back the mapping or LED
  mode currently stored on the device.