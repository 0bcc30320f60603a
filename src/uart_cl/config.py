"""
Default settings for uart-cl.

CLI options override these per run; most options also read an environment
variable (see cli.py).
"""

from pathlib import Path

# Console UART runs at a fixed 115200 8N1 with RTS asserted.
DEFAULT_BAUDRATE = 115200

# None means block on reads until a line arrives.
DEFAULT_READ_TIMEOUT = None

# errlog 0 .. errlog 10
ERROR_LOG_SLOTS = 11

DATABASE_URL = "http://uartcodes.com/xml.php"
DATABASE_PATH = Path("errorDB.xml")
DATABASE_DOWNLOAD_TIMEOUT = 30.0

BACKUP_ROOT = Path("backups")

ENV_PORT = "UART_CL_PORT"
ENV_TIMEOUT = "UART_CL_TIMEOUT"
ENV_DB_URL = "UART_CL_DB_URL"
ENV_DB_PATH = "UART_CL_DB_PATH"
