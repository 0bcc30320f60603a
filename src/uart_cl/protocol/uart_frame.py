"""
UART command framing.

Outbound commands carry an 8-bit additive checksum:

    <command>:<XX>

where XX is the sum of the UTF-8 bytes of <command>, masked to 8 bits and
written as two uppercase hex digits. Example: "errlog clear:B2".
"""


def checksum(command: str) -> str:
    """Two-digit uppercase hex checksum of command."""
    return f"{sum(command.encode('utf-8')) & 0xFF:02X}"


def frame(command: str) -> str:
    """Wire form of command (without line terminator)."""
    return f"{command}:{checksum(command)}"
