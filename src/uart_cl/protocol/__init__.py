"""Console UART protocol layer - framing and line sessions."""

from .uart_frame import checksum, frame
from .uart_session import (
    UartSession,
    PortConfig,
    SessionState,
    Classification,
    ResponseKind,
    classify,
    UartSessionError,
    PortUnavailable,
    TransportTimeout,
)

__all__ = [
    # Framing
    "checksum",
    "frame",
    # Session
    "UartSession",
    "PortConfig",
    "SessionState",
    "Classification",
    "ResponseKind",
    "classify",
    # Errors
    "UartSessionError",
    "PortUnavailable",
    "TransportTimeout",
]
