"""
Console UART session.

Line-oriented command/response protocol over the mainboard UART:
- Outbound: "<command>:<checksum>\\n" (see uart_frame)
- Inbound: free-form text lines, e.g. "OK 00000000 80810001 ..." or "NG ..."

The device may echo the outbound frame back before (or instead of) an
answer; fetch_error_log() drops those echo lines.

Reads block until a newline arrives unless PortConfig.timeout is set. A
device that never terminates its line will hang send_command() forever in
the default configuration.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

try:
    import serial
except ImportError:
    raise ImportError("PySerial required: pip install pyserial")

from ..config import DEFAULT_BAUDRATE, DEFAULT_READ_TIMEOUT, ERROR_LOG_SLOTS
from .uart_frame import frame

logger = logging.getLogger(__name__)

NO_FAULT_PREFIX = "FFFFFF"


class UartSessionError(Exception):
    """Base exception for UART session errors"""
    pass


class PortUnavailable(UartSessionError):
    """Serial port could not be opened"""
    pass


class TransportTimeout(UartSessionError):
    """No complete line arrived before the read timeout"""
    pass


class SessionState(Enum):
    CLOSED = "closed"
    OPEN = "open"


class ResponseKind(Enum):
    """Classification of a response line."""
    NO_RESULT = "no_result"
    RESULT = "result"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class Classification:
    """
    A classified response line.

    Attributes:
        kind: NO_RESULT for "NG", RESULT for "OK", otherwise UNRECOGNIZED
        line: The raw line
        code: Fault code (third token) for RESULT lines
    """
    kind: ResponseKind
    line: str
    code: Optional[str] = None

    @property
    def no_fault_displayed(self) -> bool:
        """True when the slot is empty (code starts with FFFFFF)."""
        if self.kind is not ResponseKind.RESULT or not self.code:
            return False
        return self.code.startswith(NO_FAULT_PREFIX)


@dataclass(frozen=True)
class PortConfig:
    """
    Serial parameters for a session.

    Attributes:
        port: Serial port (e.g., "/dev/ttyUSB0", "COM3")
        baudrate: Baud rate (default 115200)
        timeout: Read timeout in seconds; None blocks until a line arrives
    """
    port: str
    baudrate: int = DEFAULT_BAUDRATE
    timeout: Optional[float] = DEFAULT_READ_TIMEOUT


def classify(line: str) -> Classification:
    """
    Classify a response line by its first space-separated token.

    "NG ..." -> NO_RESULT, "OK <x> <code> ..." -> RESULT with code,
    anything else (including an "OK" line without a code) -> UNRECOGNIZED.
    """
    tokens = line.split(" ")
    head = tokens[0] if tokens else ""
    if head == "NG":
        return Classification(ResponseKind.NO_RESULT, line)
    if head == "OK" and len(tokens) > 2:
        return Classification(ResponseKind.RESULT, line, code=tokens[2])
    return Classification(ResponseKind.UNRECOGNIZED, line)


class UartSession:
    """
    One open/close cycle on the console UART.

    Example:
        with UartSession(PortConfig("/dev/ttyUSB0")) as session:
            for line in session.fetch_error_log():
                print(classify(line))
    """

    def __init__(self, config: PortConfig):
        self.config = config
        self.state = SessionState.CLOSED
        self.ser: Optional["serial.Serial"] = None
        self._used = False

    def open(self) -> None:
        """
        Open the serial port with RTS asserted.

        Raises:
            PortUnavailable: If the port cannot be opened
            UartSessionError: If this session was already opened once
        """
        if self._used:
            raise UartSessionError("Session already used; create a new UartSession")
        self._used = True

        try:
            self.ser = serial.Serial(
                port=self.config.port,
                baudrate=self.config.baudrate,
                bytesize=8,
                parity='N',
                stopbits=1,
                timeout=self.config.timeout,
                write_timeout=self.config.timeout,
            )
            self.ser.rts = True
        except (serial.SerialException, OSError, ValueError) as e:
            self.ser = None
            raise PortUnavailable(f"Cannot open port {self.config.port}: {e}")

        self.state = SessionState.OPEN
        logger.debug(
            f"Opened {self.config.port} at {self.config.baudrate} bps "
            f"(timeout={self.config.timeout})"
        )

    def close(self) -> None:
        """Close serial port. Safe to call more than once."""
        if self.ser is not None and self.ser.is_open:
            self.ser.close()
            logger.debug(f"Closed {self.config.port}")
        self.ser = None
        self.state = SessionState.CLOSED

    def __enter__(self) -> "UartSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_open(self) -> "serial.Serial":
        if self.state is not SessionState.OPEN or self.ser is None:
            raise UartSessionError("Serial port not open")
        return self.ser

    def _write_line(self, text: str) -> None:
        ser = self._require_open()
        data = (text + "\n").encode("utf-8")
        try:
            written = ser.write(data)
        except serial.SerialException as e:
            raise UartSessionError(f"Write error: {e}")
        if written is not None and written != len(data):
            raise UartSessionError(f"Incomplete write: sent {written}/{len(data)} bytes")
        logger.debug(f">>> {text}")

    def _read_line(self) -> str:
        ser = self._require_open()
        try:
            raw = ser.readline()
        except serial.SerialException as e:
            raise UartSessionError(f"Read error: {e}")
        if not raw.endswith(b"\n"):
            raise TransportTimeout(
                f"No complete line within {self.config.timeout}s "
                f"(got {len(raw)} bytes)"
            )
        line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
        logger.debug(f"<<< {line}")
        return line

    def _pending(self) -> int:
        ser = self._require_open()
        try:
            return ser.in_waiting
        except serial.SerialException as e:
            raise UartSessionError(f"Read error: {e}")

    def send_command(self, command: str) -> str:
        """
        Send a framed command and return one response line.

        Raises:
            UartSessionError: On transport failure
            TransportTimeout: If a timeout is configured and no line arrives
        """
        self._write_line(frame(command))
        return self._read_line()

    def fetch_error_log(self) -> List[str]:
        """
        Read the stored error log slots (errlog 0 .. errlog 10).

        Echoed frames and lines mentioning "errlog" are dropped; the rest are
        kept once each, in arrival order.
        """
        lines: List[str] = []
        for slot in range(ERROR_LOG_SLOTS):
            command = f"errlog {slot}"
            line = self.send_command(command)
            if line == frame(command):
                continue
            if "errlog" in line:
                continue
            if line not in lines:
                lines.append(line)
        logger.info(f"Error log: {len(lines)} distinct line(s)")
        return lines

    def send_raw_command(self, command: str) -> List[str]:
        """
        Send a framed command and collect lines until nothing is pending.

        At least one line is always read.
        """
        self._write_line(frame(command))
        lines = [self._read_line()]
        while self._pending() != 0:
            lines.append(self._read_line())
        return lines

    def clear_error_log(self) -> List[str]:
        """Clear the stored error log; returns the raw response lines."""
        logger.warning("Clearing console error log")
        return self.send_raw_command("errlog clear")
