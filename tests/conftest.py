"""Shared fixtures: synthetic dump images and an in-memory serial port."""

import pytest
import serial

from uart_cl.bios_dump import (
    CONSOLE_SERIAL_OFFSET,
    EDITION_TAG_A_OFFSET,
    EDITION_TAG_B_OFFSET,
    LAN_MAC_OFFSET,
    MODEL_LEN,
    MODEL_OFFSET,
    MOTHERBOARD_SERIAL_OFFSET,
    RECOMMENDED_IMAGE_SIZE,
    WIFI_MAC_OFFSET,
)

SLIM_TAG = bytes.fromhex("22010101")
DISC_TAG = bytes.fromhex("22020101")
DIGITAL_TAG = bytes.fromhex("22030101")

CONSOLE_SERIAL = b"AJ01234567890ABCD"
BOARD_SERIAL = b"MB0123456789ABCD"
WIFI_MAC = bytes([0x00, 0x1A, 0x2B, 0x3C, 0x4D, 0x5E])
LAN_MAC = bytes([0xAA, 0xBB, 0xCC, 0xDD, 0xEE, 0x01])


def build_dump(
    tag_a: bytes = DISC_TAG,
    tag_b: bytes = b"",
    model: bytes = b"CFI-1015A",
    console_serial: bytes = CONSOLE_SERIAL,
    board_serial: bytes = BOARD_SERIAL,
    size: int = RECOMMENDED_IMAGE_SIZE,
) -> bytes:
    """Zero-filled image with identity fields written at their offsets."""
    image = bytearray(size)

    def put(offset: int, data: bytes) -> None:
        end = min(offset + len(data), size)
        if offset < size:
            image[offset:end] = data[:end - offset]

    put(EDITION_TAG_A_OFFSET, tag_a)
    put(EDITION_TAG_B_OFFSET, tag_b)
    put(MODEL_OFFSET, model.ljust(MODEL_LEN, b"\xFF"))
    put(CONSOLE_SERIAL_OFFSET, console_serial)
    put(MOTHERBOARD_SERIAL_OFFSET, board_serial)
    put(WIFI_MAC_OFFSET, WIFI_MAC)
    put(LAN_MAC_OFFSET, LAN_MAC)
    return bytes(image)


@pytest.fixture
def make_dump():
    return build_dump


@pytest.fixture
def dump_file(tmp_path):
    """Write a dump to disk and return its path."""
    def _write(data: bytes = None, name: str = "dump.bin"):
        path = tmp_path / name
        path.write_bytes(build_dump() if data is None else data)
        return path
    return _write


class FakeSerial:
    """
    Minimal stand-in for serial.Serial.

    Every write is passed (as text, without the newline) to a responder that
    returns the raw lines the device "sends back".
    """

    def __init__(self, responder=None, **kwargs):
        self.kwargs = kwargs
        self.port = kwargs.get("port")
        self.baudrate = kwargs.get("baudrate")
        self.timeout = kwargs.get("timeout")
        self.is_open = True
        self.rts = False
        self.written = []
        self.close_calls = 0
        self._rx = []
        self._responder = responder

    def write(self, data: bytes) -> int:
        self.written.append(data)
        if self._responder is not None:
            self._rx.extend(self._responder(data.decode("utf-8").rstrip("\n")))
        return len(data)

    def readline(self) -> bytes:
        if not self._rx:
            return b""
        return self._rx.pop(0)

    @property
    def in_waiting(self) -> int:
        return sum(len(line) for line in self._rx)

    def close(self) -> None:
        self.close_calls += 1
        self.is_open = False


@pytest.fixture
def fake_port(monkeypatch):
    """
    Replace serial.Serial with FakeSerial.

    Usage: devices = fake_port(responder); devices[0] is the opened port.
    """
    def install(responder=None):
        created = []

        def factory(**kwargs):
            device = FakeSerial(responder, **kwargs)
            created.append(device)
            return device

        monkeypatch.setattr(serial, "Serial", factory)
        return created

    return install
