"""
Core module for uart-cl.

This module provides the single source of truth for:
- Input parsing and validation (parsing.py)
- Result objects (results.py)
- Dump editing and UART workflows (actions.py)

Front ends should call into this module rather than driving the codec,
patcher and session layers themselves.
"""

from .parsing import (
    parse_edition,
    validate_console_serial,
    validate_motherboard_serial,
    validate_model_number,
)
from .results import OperationResult
from .actions import (
    inspect_dump,
    convert_edition,
    change_console_serial,
    change_motherboard_serial,
    change_model,
    read_error_codes,
    clear_error_codes,
    run_custom_command,
)

__all__ = [
    # Parsing
    "parse_edition",
    "validate_console_serial",
    "validate_motherboard_serial",
    "validate_model_number",
    # Results
    "OperationResult",
    # Actions
    "inspect_dump",
    "convert_edition",
    "change_console_serial",
    "change_motherboard_serial",
    "change_model",
    "read_error_codes",
    "clear_error_codes",
    "run_custom_command",
]
