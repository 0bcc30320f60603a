"""
uart-cl CLI

Command-line interface for BIOS dump editing and console UART error codes.
"""

import sys
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.logging import RichHandler

from uart_cl import config
from uart_cl.bios_dump import Edition
from uart_cl.core.parsing import parse_edition as _parse_edition_core
from uart_cl.core.results import OperationResult
from uart_cl.core.actions import (
    inspect_dump,
    convert_edition,
    change_console_serial,
    change_motherboard_serial,
    change_model,
    read_error_codes,
    clear_error_codes,
    run_custom_command,
)
from uart_cl.fault_codes import FaultDatabaseError, download_database, ensure_database
from uart_cl.field_patcher import FieldPatcher
from uart_cl.protocol import PortConfig

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(rich_tracebacks=True)],
)
logger = logging.getLogger("uart_cl")

# Setup Rich console
console = Console()

app = typer.Typer(help="UART-CL - BIOS dump tools and UART error codes for console repair")


def print_header(text: str) -> None:
    """Print fancy header."""
    console.print(Panel(text, expand=False, style="bold blue"))


def print_success(text: str) -> None:
    """Print success message."""
    console.print(f"✓ {text}", style="green")


def print_warning(text: str) -> None:
    """Print warning message."""
    console.print(f"⚠️  {text}", style="yellow")


def print_error(text: str) -> None:
    """Print error message."""
    console.print(f"❌ {text}", style="red")


def print_result(result: OperationResult) -> None:
    """Print warnings and errors of a result; exit non-zero on failure."""
    logger.debug(result.to_summary())
    for warn in result.warnings:
        print_warning(warn)
    for err in result.errors:
        print_error(err)
    if not result.ok:
        raise typer.Exit(code=1)


def parse_edition(value: str) -> Edition:
    """
    CLI wrapper around core.parsing.parse_edition that converts
    ValueError to typer.BadParameter for proper CLI error handling.
    """
    try:
        return _parse_edition_core(value)
    except ValueError as e:
        raise typer.BadParameter(str(e))


def confirm_write(force: bool, prompt: str) -> None:
    """Ask for yes/no confirmation unless --yes was given."""
    if force:
        return
    if not typer.confirm(prompt):
        raise typer.Abort()


def make_patcher(backup_dir: Optional[Path]) -> FieldPatcher:
    if backup_dir is None:
        return FieldPatcher()
    return FieldPatcher(backup_dir=backup_dir)


def show_dump_table(values: dict, title: str) -> None:
    table = Table(title=title)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("File size", f"{values['size']:,} bytes")
    table.add_row("Edition", values["edition"])
    table.add_row("Model", values["model_info"])
    table.add_row("Console serial", values["console_serial"])
    table.add_row("Motherboard serial", values["motherboard_serial"])
    table.add_row("Wi-Fi MAC", values["wifi_mac"])
    table.add_row("LAN MAC", values["lan_mac"])
    console.print(table)


def show_edit_result(result: OperationResult, message: str) -> None:
    print_result(result)
    if not result.metadata.get("changed"):
        return
    if result.metadata.get("backup_path"):
        console.print(f"[dim]Backup: {result.metadata['backup_path']}[/dim]")
    show_dump_table(result.metadata["dump"], "Updated dump")
    print_success(message)


# Shared options
DumpArg = typer.Argument(..., help="Path to BIOS dump (.bin)")
YesOpt = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt")
NoBackupOpt = typer.Option(False, "--no-backup", help="Do not copy the dump before writing")
BackupDirOpt = typer.Option(None, "--backup-dir", help="Backup directory (default backups/<timestamp>)")
PortOpt = typer.Option(..., "--port", "-p", envvar=config.ENV_PORT, help="Serial port (e.g. /dev/ttyUSB0, COM3)")
TimeoutOpt = typer.Option(
    None, "--timeout", "-t", envvar=config.ENV_TIMEOUT,
    help="Read timeout in seconds (default: wait indefinitely)",
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output (wire traffic)"),
) -> None:
    """UART-CL - BIOS dump tools and UART error codes for console repair."""
    if verbose:
        logger.setLevel(logging.DEBUG)


@app.command()
def ports() -> None:
    """List available serial ports."""
    print_header("Available Serial Ports")

    import serial.tools.list_ports

    ports_list = list(serial.tools.list_ports.comports())

    if not ports_list:
        print_warning("No communication devices were found on this system.")
        console.print("Please insert a UART compatible device and try again.")
        return

    table = Table(title="Serial Ports")
    table.add_column("Port", style="cyan")
    table.add_column("Device", style="magenta")
    table.add_column("Description", style="green")

    for port in ports_list:
        table.add_row(port.device, port.name or "-", port.description or "-")

    console.print(table)


@app.command()
def info(
    dump: Path = DumpArg,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON for scripting"),
) -> None:
    """View BIOS information (edition, model, serials, MACs)."""
    result = inspect_dump(dump)
    if output_json:
        payload = {"ok": result.ok, "errors": result.errors, **result.metadata.get("dump", {})}
        console.print_json(json.dumps(payload))
        if not result.ok:
            raise typer.Exit(code=1)
        return

    print_header(f"BIOS information: {dump.name}")
    print_result(result)
    show_dump_table(result.metadata["dump"], "Dump fields")


@app.command()
def convert(
    dump: Path = DumpArg,
    to: str = typer.Option(..., "--to", help="Target edition: digital, disc or slim"),
    yes: bool = YesOpt,
    no_backup: bool = NoBackupOpt,
    backup_dir: Optional[Path] = BackupDirOpt,
) -> None:
    """Convert the dump to Digital, Disc or Slim edition."""
    target = parse_edition(to)
    print_header(f"Convert to {target.value} edition")
    confirm_write(yes, f"Are you sure you want to set the console as \"{target.value}\" edition?")

    result = convert_edition(dump, target, backup=not no_backup, patcher=make_patcher(backup_dir))
    show_edit_result(
        result,
        f"The dump will now report to the console as a '{target.value.lower()} edition' console.",
    )


@app.command("set-serial")
def set_serial(
    dump: Path = DumpArg,
    new_serial: str = typer.Argument(..., help="New console serial number"),
    yes: bool = YesOpt,
    no_backup: bool = NoBackupOpt,
    backup_dir: Optional[Path] = BackupDirOpt,
) -> None:
    """Change the console serial number."""
    print_header("Change serial number")
    confirm_write(yes, f"Write console serial '{new_serial}' to {dump}?")
    result = change_console_serial(
        dump, new_serial, backup=not no_backup, patcher=make_patcher(backup_dir)
    )
    show_edit_result(result, "The new serial number has been updated successfully.")


@app.command("set-board-serial")
def set_board_serial(
    dump: Path = DumpArg,
    new_serial: str = typer.Argument(..., help="New motherboard serial (16 characters)"),
    yes: bool = YesOpt,
    no_backup: bool = NoBackupOpt,
    backup_dir: Optional[Path] = BackupDirOpt,
) -> None:
    """Change the motherboard serial number."""
    print_header("Change motherboard serial number")
    confirm_write(yes, f"Write motherboard serial '{new_serial}' to {dump}?")
    result = change_motherboard_serial(
        dump, new_serial, backup=not no_backup, patcher=make_patcher(backup_dir)
    )
    show_edit_result(result, "The new motherboard serial number has been saved successfully.")


@app.command("set-model")
def set_model(
    dump: Path = DumpArg,
    new_model: str = typer.Argument(..., help="New model number, e.g. CFI-1016A"),
    yes: bool = YesOpt,
    no_backup: bool = NoBackupOpt,
    backup_dir: Optional[Path] = BackupDirOpt,
) -> None:
    """Change the console model number."""
    print_header("Change console model number")
    confirm_write(yes, f"Write model '{new_model}' to {dump}?")
    result = change_model(dump, new_model, backup=not no_backup, patcher=make_patcher(backup_dir))
    show_edit_result(result, "The new console model has been saved successfully.")


@app.command()
def errors(
    port: str = PortOpt,
    timeout: Optional[float] = TimeoutOpt,
    db_path: Path = typer.Option(config.DATABASE_PATH, "--db", envvar=config.ENV_DB_PATH, help="Fault code database"),
    db_url: str = typer.Option(config.DATABASE_URL, "--db-url", envvar=config.ENV_DB_URL, help="Database download URL"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON for scripting"),
) -> None:
    """Get error codes from the console."""
    if not output_json:
        print_header("Console error codes")
    try:
        database = ensure_database(db_path, db_url)
    except FaultDatabaseError as e:
        print_error(str(e))
        console.print("Please ensure you're connected to the internet!")
        raise typer.Exit(code=1)

    result = read_error_codes(PortConfig(port=port, timeout=timeout), database)
    if output_json:
        console.print_json(json.dumps(result.to_dict()))
        if not result.ok:
            raise typer.Exit(code=1)
        return

    console.print(f"Selected port: [blue]{port}[/blue]")
    print_result(result)

    if not result.lines:
        print_warning("The console returned no error log entries")
    for line in result.lines:
        style = "blue" if line == "No error displayed" else "green"
        console.print(line, style=style)


@app.command("clear-errors")
def clear_errors(
    port: str = PortOpt,
    timeout: Optional[float] = TimeoutOpt,
    yes: bool = YesOpt,
) -> None:
    """Clear error codes on the console."""
    print_header("Clear console error codes")
    confirm_write(yes, "Clear the stored error log on the console?")
    console.print(f"Selected port: [blue]{port}[/blue]")
    result = clear_error_codes(PortConfig(port=port, timeout=timeout))
    print_result(result)
    for line in result.lines:
        console.print(line)


@app.command()
def send(
    command: str = typer.Argument(..., help="UART command (checksum is added)"),
    port: str = PortOpt,
    timeout: Optional[float] = TimeoutOpt,
) -> None:
    """Send a custom UART command and print the reply."""
    console.print(f"Selected port: [blue]{port}[/blue]")
    result = run_custom_command(PortConfig(port=port, timeout=timeout), command)
    print_result(result)
    for line in result.lines:
        console.print(line)


@app.command("update-db")
def update_db(
    db_path: Path = typer.Option(config.DATABASE_PATH, "--db", envvar=config.ENV_DB_PATH, help="Fault code database"),
    db_url: str = typer.Option(config.DATABASE_URL, "--db-url", envvar=config.ENV_DB_URL, help="Database download URL"),
) -> None:
    """Download the latest fault code database."""
    console.print("Downloading latest database file. Please wait...")
    try:
        saved = download_database(db_url, db_path)
    except FaultDatabaseError as e:
        print_error(str(e))
        console.print("Please ensure you're connected to the internet!")
        raise typer.Exit(code=1)
    print_success(f"Database downloaded successfully to {saved}")


def main() -> None:
    """Main entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(0)
    except Exception as e:
        console.print(f"\n[red bold]Fatal error:[/red bold] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
