"""Finding keypads on the USB bus through sysfs and writing to them via hidraw."""

from __future__ import annotations

import logging
import os
import select
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

log = logging.getLogger(__name__)

SYSFS_USB_DEVICES = "/sys/bus/usb/devices"
_HID_CLASS = (0x03, 0x00, 0x00)


class DeviceError(Exception):
    """Raised when a USB device cannot be found, inspected or written to."""


@dataclass(frozen=True)
class UsbDevice:
    """A USB device as described by sysfs."""

    @dataclass(frozen=True)
    class Endpoint:
        """One endpoint of an interface."""

        address: int
        transfer_type: str

        @property
        def is_interrupt(self) -> bool:
            return self.transfer_type.lower() == "interrupt"

    @dataclass(frozen=True)
    class Interface:
        """One interface of the active configuration."""

        number: int
        class_code: int
        subclass_code: int
        protocol_code: int
        endpoints: tuple["UsbDevice.Endpoint", ...] = ()
        hidraw: str | None = None

        @property
        def is_plain_hid(self) -> bool:
            """HID class with no subclass and no boot protocol."""
            return (self.class_code, self.subclass_code, self.protocol_code) == _HID_CLASS

    bus: int
    address: int
    vendor_id: int
    product_id: int
    num_configurations: int = 1
    interfaces: tuple["UsbDevice.Interface", ...] = ()

    @property
    def location(self) -> tuple[int, int]:
        """The ``(bus, address)`` pair identifying the device on this host."""
        return self.bus, self.address

    def __str__(self) -> str:
        return (
            f"Bus {self.bus:03} Device {self.address:03} "
            f"ID {self.vendor_id:04x}:{self.product_id:04x}"
        )


def _read(directory: Path, name: str) -> str:
    path = directory / name
    try:
        return path.read_text().strip()
    except OSError as error:
        raise DeviceError(f"read {path}: {error.strerror or error}") from None


def _number(directory: Path, name: str, base: int) -> int:
    text = _read(directory, name)
    try:
        return int(text, base)
    except ValueError:
        raise DeviceError(f"unexpected value {text!r} in {directory / name}") from None


def _endpoints(interface_dir: Path) -> tuple[UsbDevice.Endpoint, ...]:
    return tuple(
        UsbDevice.Endpoint(
            address=_number(entry, "bEndpointAddress", 16),
            transfer_type=_read(entry, "type"),
        )
        for entry in sorted(interface_dir.glob("ep_*"))
        if entry.is_dir()
    )


def _hidraw(interface_dir: Path) -> str | None:
    nodes = sorted(interface_dir.glob("*/hidraw/hidraw*"))
    return nodes[0].name if nodes else None


def _interface(interface_dir: Path) -> UsbDevice.Interface:
    return UsbDevice.Interface(
        number=_number(interface_dir, "bInterfaceNumber", 16),
        class_code=_number(interface_dir, "bInterfaceClass", 16),
        subclass_code=_number(interface_dir, "bInterfaceSubClass", 16),
        protocol_code=_number(interface_dir, "bInterfaceProtocol", 16),
        endpoints=_endpoints(interface_dir),
        hidraw=_hidraw(interface_dir),
    )


def _device(device_dir: Path) -> UsbDevice:
    prefix = device_dir.name + ":"
    interfaces = tuple(
        _interface(entry)
        for entry in sorted(device_dir.iterdir())
        if entry.name.startswith(prefix) and entry.is_dir()
    )
    return UsbDevice(
        bus=_number(device_dir, "busnum", 10),
        address=_number(device_dir, "devnum", 10),
        vendor_id=_number(device_dir, "idVendor", 16),
        product_id=_number(device_dir, "idProduct", 16),
        num_configurations=_number(device_dir, "bNumConfigurations", 10),
        interfaces=interfaces,
    )


def list_devices(sysfs_root: str | os.PathLike[str] = SYSFS_USB_DEVICES) -> list[UsbDevice]:
    """All USB devices listed under ``sysfs_root``."""
    root = Path(sysfs_root)
    try:
        entries = sorted(root.iterdir())
    except OSError as error:
        raise DeviceError(f"get USB device list: {error.strerror or error}") from None

    devices = []
    for entry in entries:
        if ":" in entry.name or not (entry / "idVendor").is_file():
            continue
        device = _device(entry)
        log.debug("%s", device)
        devices.append(device)
    return devices


def find_device(
    devices: Iterable[UsbDevice],
    vendor_id: int,
    product_id: int | None = None,
    address: tuple[int, int] | None = None,
) -> UsbDevice:
    """Pick the one keypad among ``devices``.

    Without ``product_id`` any supported product matches. When several
    devices match, ``address`` (bus, device address) selects one.
    """
    from .protocol import PRODUCT_IDS

    found = [
        device
        for device in devices
        if device.vendor_id == vendor_id
        and (device.product_id == product_id if product_id is not None
             else device.product_id in PRODUCT_IDS)
    ]

    if not found:
        raise DeviceError(
            "CH57x keyboard device not found. "
            "Use --vendor-id and --product-id to override settings."
        )
    if len(found) == 1:
        return found[0]

    for device in found:
        if address is not None and device.location == tuple(address):
            return device
    listing = "\n".join(f"{bus}:{addr}" for bus, addr in (d.location for d in found))
    raise DeviceError(
        "Several compatible devices are found.\n"
        "Unfortunately, this model of keyboard doesn't have serial number.\n"
        "So specify USB address using --address option.\n"
        "\n"
        "Addresses:\n"
        f"{listing}\n"
    )


def find_interface(device: UsbDevice, interface_number: int) -> UsbDevice.Interface:
    """The interface of ``device`` with the given number."""
    for interface in device.interfaces:
        if interface.number == interface_number:
            return interface
    numbers = ", ".join(str(i.number) for i in device.interfaces)
    raise DeviceError(
        f"interface #{interface_number} not found, interface numbers:\n{numbers}"
    )


class HidrawTransport:
    """Writes reports to a hidraw node; usable as a context manager."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        endpoints: Iterable[int] | None = None,
    ) -> None:
        self.path = os.fspath(path)
        self.endpoints = frozenset(endpoints) if endpoints is not None else None
        try:
            self._fd: int | None = os.open(self.path, os.O_WRONLY)
        except OSError as error:
            raise DeviceError(f"open {self.path}: {error.strerror or error}") from None

    def write_interrupt(self, endpoint: int, data: bytes, timeout: float) -> int:
        """Write one report and return the number of bytes written."""
        if self._fd is None:
            raise DeviceError(f"{self.path} is closed")
        if self.endpoints is not None and endpoint not in self.endpoints:
            raise DeviceError(f"endpoint {endpoint:#04x} does not belong to {self.path}")
        _, ready, _ = select.select([], [self._fd], [], timeout)
        if not ready:
            raise DeviceError(f"write to {self.path} timed out")
        try:
            return os.write(self._fd, bytes(data))
        except OSError as error:
            raise DeviceError(f"write to {self.path}: {error.strerror or error}") from None

    def close(self) -> None:
        """Close the node; further writes fail."""
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None

    def __enter__(self) -> "HidrawTransport":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()