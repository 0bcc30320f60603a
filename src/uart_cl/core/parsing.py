"""
Centralized parsing and validation of user input.

The CLI wraps these and converts ValueError to typer.BadParameter.
"""

from typing import Optional

from uart_cl.bios_dump import (
    Edition,
    MODEL_LEN,
    MOTHERBOARD_SERIAL_LEN,
)

MODEL_PREFIX = "CFI-"
MODEL_MIN_LEN = 9

EDITION_ALIASES = {
    "digital": Edition.DIGITAL,
    "disc": Edition.DISC,
    "disk": Edition.DISC,
    "slim": Edition.SLIM,
}


def parse_edition(value: str) -> Edition:
    """
    Parse a target edition name ("digital", "disc", "slim").

    Raises:
        ValueError: If the name is not a convertible edition
    """
    key = (value or "").strip().lower()
    if key not in EDITION_ALIASES:
        valid = ", ".join(sorted(set(EDITION_ALIASES) - {"disk"}))
        raise ValueError(f"Invalid edition '{value}'. Use one of: {valid}.")
    return EDITION_ALIASES[key]


def validate_console_serial(value: str, current: Optional[str] = None) -> str:
    """
    Validate a new console serial number.

    Longer values are truncated to the field width when written.
    """
    serial = (value or "").strip()
    if not serial:
        raise ValueError("Invalid serial number entered. The new serial should be characters and letters.")
    if current is not None and serial == current:
        raise ValueError("The new serial number matches the old serial number.")
    return serial


def validate_motherboard_serial(value: str) -> str:
    """Validate a new motherboard serial (exactly 16 characters)."""
    serial = value or ""
    if not serial:
        raise ValueError("Please enter a valid motherboard serial number.")
    if len(serial) != MOTHERBOARD_SERIAL_LEN:
        raise ValueError(
            f"The motherboard serial should be exactly {MOTHERBOARD_SERIAL_LEN} "
            f"characters in length (got {len(serial)})."
        )
    return serial


def validate_model_number(value: str) -> str:
    """Validate a new model number such as "CFI-1015A"."""
    model = value or ""
    if len(model) < MODEL_MIN_LEN or len(model) > MODEL_LEN or not model.startswith(MODEL_PREFIX):
        raise ValueError(
            f"The model should be {MODEL_MIN_LEN} to {MODEL_LEN} characters long starting "
            f"with '{MODEL_PREFIX}', followed by 4 numbers and a letter."
        )
    return model
