"""
Core workflow actions for uart-cl.

Each action opens what it needs (dump file or serial port), does the work
through the codec/patcher/session layers and returns an OperationResult.
Failures are reported in the result rather than raised, so a front end
can print one message per operation.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, List, Optional, Union

from uart_cl.bios_dump import (
    BiosDump,
    BiosDumpError,
    Edition,
    EditionAlreadySet,
    FieldPatch,
    console_serial_patch,
    edition_patches,
    model_patch,
    motherboard_serial_patch,
    parse_bios_dump,
)
from uart_cl.fault_codes import FaultCodeLookup, FaultDatabaseError, describe_fault
from uart_cl.field_patcher import FieldPatcher, PatchError
from uart_cl.hex_codec import MalformedHex
from uart_cl.protocol import (
    PortConfig,
    ResponseKind,
    UartSession,
    UartSessionError,
    classify,
)
from .parsing import (
    validate_console_serial,
    validate_model_number,
    validate_motherboard_serial,
)
from .results import OperationResult

logger = logging.getLogger(__name__)

NO_ERROR_DISPLAYED = "No error displayed"
DEVICE_ERROR = "An error occurred while connecting to your selected device"


class _ListLogHandler(logging.Handler):
    """Capture log records into a list of formatted strings."""

    def __init__(self, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.records = []
        self.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(self.format(record))


@contextmanager
def _capture_logs(logger_name: str = "uart_cl"):
    """Capture logs for core operations into a list."""
    target_logger = logging.getLogger(logger_name)
    handler = _ListLogHandler()
    previous_level = target_logger.level
    if previous_level in (logging.NOTSET, logging.WARNING, logging.ERROR, logging.CRITICAL):
        target_logger.setLevel(logging.INFO)
    target_logger.addHandler(handler)
    try:
        yield handler.records
    finally:
        target_logger.removeHandler(handler)
        target_logger.setLevel(previous_level)


def inspect_dump(dump_path: Union[str, Path]) -> OperationResult:
    """
    Parse a dump file and report its identity fields.

    Returns:
        OperationResult with metadata["dump"] (display values) and
        metadata["bios_dump"] (the BiosDump record)
    """
    with _capture_logs() as logs:
        path = Path(dump_path)
        try:
            data = path.read_bytes()
            dump = parse_bios_dump(data)
        except (OSError, BiosDumpError) as e:
            logger.error(f"inspect_dump failed: {e}")
            result = OperationResult.failure("inspect_dump", error=str(e), target=str(path))
            result.logs = logs
            return result

        result = OperationResult.success("inspect_dump", target=str(path), bytes_len=len(data))
        result.metadata["dump"] = dump.to_dict()
        result.metadata["bios_dump"] = dump
        if dump.edition is Edition.UNKNOWN:
            result.add_warning("Edition tags not recognised; is this a valid dump?")
        result.logs = logs
        return result


def _edit_dump(
    operation: str,
    dump_path: Union[str, Path],
    build_patches: Callable[[BiosDump], List[FieldPatch]],
    backup: bool,
    patcher: Optional[FieldPatcher],
) -> OperationResult:
    """Read, patch in memory, back up and write the dump once."""
    path = Path(dump_path)
    with _capture_logs() as logs:
        try:
            data = path.read_bytes()
            dump = parse_bios_dump(data)
            patches = build_patches(dump)
        except EditionAlreadySet as e:
            result = OperationResult.success(operation, target=str(path), bytes_len=0)
            result.add_warning(f"{e}. No changes are needed.")
            result.metadata["changed"] = False
            result.logs = logs
            return result
        except (OSError, BiosDumpError, MalformedHex, ValueError) as e:
            logger.error(f"{operation} failed: {e}")
            result = OperationResult.failure(operation, error=str(e), target=str(path))
            result.logs = logs
            return result

        patcher = patcher or FieldPatcher()
        try:
            report = patcher.apply(data, patches)
            backup_path = patcher.backup_image(path) if backup else None
            write_info = patcher.write_image(path, report.data)
            updated = parse_bios_dump(report.data)
        except (OSError, PatchError, BiosDumpError, ValueError) as e:
            logger.error(f"{operation} failed: {e}")
            result = OperationResult.failure(operation, error=str(e), target=str(path))
            result.logs = logs
            return result

        result = OperationResult.success(operation, target=str(path), bytes_len=len(report.data))
        result.hashes["before"] = write_info["before_hash"]
        result.hashes["after"] = write_info["after_hash"]
        result.metadata["changed"] = True
        result.metadata["offsets"] = report.offsets
        result.metadata["backup_path"] = str(backup_path) if backup_path else ""
        result.metadata["dump"] = updated.to_dict()
        if not backup:
            result.add_warning("No backup was taken before writing")
        result.logs = logs
        return result


def convert_edition(
    dump_path: Union[str, Path],
    target: Edition,
    backup: bool = True,
    patcher: Optional[FieldPatcher] = None,
) -> OperationResult:
    """Rewrite the edition tags so the dump reports the target edition."""
    return _edit_dump(
        "convert_edition",
        dump_path,
        lambda dump: edition_patches(dump, target),
        backup,
        patcher,
    )


def change_console_serial(
    dump_path: Union[str, Path],
    new_serial: str,
    backup: bool = True,
    patcher: Optional[FieldPatcher] = None,
) -> OperationResult:
    """Write a new console serial number (17-byte field)."""
    def build(dump: BiosDump) -> List[FieldPatch]:
        serial = validate_console_serial(new_serial, current=dump.console_serial_number)
        return [console_serial_patch(dump, serial)]

    return _edit_dump("change_console_serial", dump_path, build, backup, patcher)


def change_motherboard_serial(
    dump_path: Union[str, Path],
    new_serial: str,
    backup: bool = True,
    patcher: Optional[FieldPatcher] = None,
) -> OperationResult:
    """Write a new motherboard serial number (exactly 16 characters)."""
    def build(dump: BiosDump) -> List[FieldPatch]:
        return [motherboard_serial_patch(dump, validate_motherboard_serial(new_serial))]

    return _edit_dump("change_motherboard_serial", dump_path, build, backup, patcher)


def change_model(
    dump_path: Union[str, Path],
    new_model: str,
    backup: bool = True,
    patcher: Optional[FieldPatcher] = None,
) -> OperationResult:
    """Write a new console model number (e.g. "CFI-1016A")."""
    def build(dump: BiosDump) -> List[FieldPatch]:
        return [model_patch(dump, validate_model_number(new_model))]

    return _edit_dump("change_model", dump_path, build, backup, patcher)


def read_error_codes(config: PortConfig, lookup: FaultCodeLookup) -> OperationResult:
    """
    Fetch the console error log and describe each fault code.

    Returns:
        OperationResult with:
            - lines: one description per distinct log line
            - metadata["raw_lines"]: lines as received
            - metadata["codes"]: fault codes found (empty slots excluded)
    """
    with _capture_logs() as logs:
        try:
            with UartSession(config) as session:
                raw_lines = session.fetch_error_log()
        except UartSessionError as e:
            logger.error(f"read_error_codes failed: {e}")
            result = OperationResult.failure(
                "read_error_codes", error=f"{DEVICE_ERROR}: {e}", target=config.port
            )
            result.logs = logs
            return result

        result = OperationResult.success("read_error_codes", target=config.port)
        codes = []
        for line in raw_lines:
            entry = classify(line)
            if entry.kind is not ResponseKind.RESULT:
                continue
            if entry.no_fault_displayed:
                result.lines.append(NO_ERROR_DISPLAYED)
                continue
            codes.append(entry.code)
            try:
                result.lines.append(describe_fault(entry.code, lookup))
            except FaultDatabaseError as e:
                result.lines.append(f"Error code: {entry.code}")
                result.add_warning(str(e))

        result.metadata["raw_lines"] = raw_lines
        result.metadata["codes"] = codes
        result.logs = logs
        return result


def _run_session_lines(
    operation: str,
    config: PortConfig,
    run: Callable[[UartSession], List[str]],
) -> OperationResult:
    with _capture_logs() as logs:
        try:
            with UartSession(config) as session:
                lines = run(session)
        except UartSessionError as e:
            logger.error(f"{operation} failed: {e}")
            result = OperationResult.failure(
                operation, error=f"{DEVICE_ERROR}: {e}", target=config.port
            )
            result.logs = logs
            return result

        result = OperationResult.success(operation, target=config.port)
        result.lines = lines
        result.logs = logs
        return result


def clear_error_codes(config: PortConfig) -> OperationResult:
    """Clear the console error log and return the device's response lines."""
    return _run_session_lines("clear_error_codes", config, lambda s: s.clear_error_log())


def run_custom_command(config: PortConfig, command: str) -> OperationResult:
    """Send an arbitrary command (framed with its checksum) and collect the reply."""
    command = (command or "").strip()
    if not command:
        return OperationResult.failure(
            "run_custom_command", error="Please enter a valid command.", target=config.port
        )
    return _run_session_lines(
        "run_custom_command", config, lambda s: s.send_raw_command(command)
    )
