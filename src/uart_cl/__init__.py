"""
uart-cl - BIOS dump and UART helper for console mainboard repair

Reads and edits identity fields in NOR dumps, and reads/clears stored
fault codes over the console UART.
"""

__version__ = "0.1.0"

from uart_cl.bios_dump import BiosDump, Edition, parse_bios_dump, load_bios_dump
from uart_cl.field_patcher import FieldPatcher
from uart_cl.protocol import UartSession, PortConfig

__all__ = [
    "BiosDump",
    "Edition",
    "parse_bios_dump",
    "load_bios_dump",
    "FieldPatcher",
    "UartSession",
    "PortConfig",
    "__version__",
]
