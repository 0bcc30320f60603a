"""
Fault code descriptions.

Codes read from the console are resolved to text through a FaultCodeLookup.
The bundled implementation reads the community XML database:

    <errorCodes>
      <errorCode>
        <ErrorCode>80810001</ErrorCode>
        <Description>...</Description>
      </errorCode>
      ...
    </errorCodes>

The document is downloaded once from DATABASE_URL and cached on disk.
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

import requests

from .config import DATABASE_DOWNLOAD_TIMEOUT, DATABASE_PATH, DATABASE_URL

logger = logging.getLogger(__name__)

ROOT_TAG = "errorCodes"
ENTRY_TAG = "errorCode"


class FaultDatabaseError(Exception):
    """Fault code database missing, unreadable or malformed."""


class FaultCodeLookup(Protocol):
    """Anything that can describe a fault code."""

    def lookup(self, code: str) -> Optional[str]:
        ...


class XmlFaultCodeDatabase:
    """Fault code lookup backed by the cached XML document."""

    def __init__(self, path: Union[str, Path] = DATABASE_PATH):
        self.path = Path(path)
        self._entries: Optional[Dict[str, str]] = None

    def is_available(self) -> bool:
        return self.path.exists()

    def load(self) -> Dict[str, str]:
        """
        Parse the XML file into a code -> description map.

        Raises:
            FaultDatabaseError: If the file is missing or not a fault database
        """
        if not self.path.exists():
            raise FaultDatabaseError(f"Local XML file not found: {self.path}")
        try:
            root = ET.parse(self.path).getroot()
        except (ET.ParseError, OSError) as e:
            raise FaultDatabaseError(f"Cannot parse {self.path}: {e}")

        if root.tag != ROOT_TAG:
            raise FaultDatabaseError(
                f"Invalid XML database file {self.path} (root <{root.tag}>). "
                "Download the database again."
            )

        entries: Dict[str, str] = {}
        for node in root.findall(ENTRY_TAG):
            code = (node.findtext("ErrorCode") or "").strip()
            if code and code not in entries:
                entries[code] = (node.findtext("Description") or "").strip()

        logger.debug(f"Loaded {len(entries)} fault codes from {self.path}")
        self._entries = entries
        return entries

    def lookup(self, code: str) -> Optional[str]:
        if self._entries is None:
            self.load()
        return self._entries.get(code)


def describe_fault(code: str, lookup: FaultCodeLookup) -> str:
    """User-facing description of a fault code."""
    description = lookup.lookup(code)
    if description is None:
        return f"No result found for error code {code}"
    return f"Error code: {code}\nDescription: {description}"


def download_database(
    url: str = DATABASE_URL,
    save_path: Union[str, Path] = DATABASE_PATH,
    timeout: float = DATABASE_DOWNLOAD_TIMEOUT,
) -> Path:
    """
    Download the fault code database and save it locally.

    Raises:
        FaultDatabaseError: If the download fails
    """
    target = Path(save_path)
    logger.info(f"Downloading fault code database from {url}")
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise FaultDatabaseError(f"Could not download {url}: {e}")

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(response.text, encoding="utf-8")
    logger.info(f"Saved {len(response.text):,} characters to {target}")
    return target


def ensure_database(
    path: Union[str, Path] = DATABASE_PATH,
    url: str = DATABASE_URL,
) -> XmlFaultCodeDatabase:
    """Return the local database, downloading it first if it is missing."""
    database = XmlFaultCodeDatabase(path)
    if not database.is_available():
        download_database(url, path)
    return database
