"""
BIOS dump parsing and write-back patch builders.

A dump is a raw NOR image read off the console mainboard. Identity fields
live at fixed offsets:

    0x1C4020  LAN MAC (6 bytes, binary)
    0x1C7010  edition tag A (12 bytes)
    0x1C7030  edition tag B (12 bytes)
    0x1C7200  motherboard serial (16 bytes, ASCII)
    0x1C7210  console serial (17 bytes, ASCII)
    0x1C7226  model variant (19 bytes, ASCII padded with 0xFF)
    0x1C73C0  Wi-Fi MAC (6 bytes, binary)

Parsing never mutates the image. Edits are expressed as FieldPatch
find/replace pairs and applied by field_patcher.FieldPatcher.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from .hex_codec import MalformedHex, bytes_to_hex, hex_to_ascii, hex_to_bytes
from .regions import UNKNOWN_REGION, region_for_model

logger = logging.getLogger(__name__)


EDITION_TAG_A_OFFSET = 0x1C7010
EDITION_TAG_B_OFFSET = 0x1C7030
EDITION_TAG_LEN = 12
CONSOLE_SERIAL_OFFSET = 0x1C7210
CONSOLE_SERIAL_LEN = 17
MOTHERBOARD_SERIAL_OFFSET = 0x1C7200
MOTHERBOARD_SERIAL_LEN = 16
MODEL_OFFSET = 0x1C7226
MODEL_LEN = 19
WIFI_MAC_OFFSET = 0x1C73C0
LAN_MAC_OFFSET = 0x1C4020
MAC_LEN = 6

# Smallest image that holds every field.
RECOMMENDED_IMAGE_SIZE = 0x1C7400

UNKNOWN_SERIAL = "Unknown S/N"
UNKNOWN_MAC = "Unknown Mac Address"
UNKNOWN_MODEL = "Unknown Model"


class Edition(Enum):
    """Hardware edition encoded by the tag fields."""
    UNKNOWN = "Unknown"
    SLIM = "Slim"
    DISC = "Disc"
    DIGITAL = "Digital"


EDITION_TAGS = {
    Edition.SLIM: "22010101",
    Edition.DISC: "22020101",
    Edition.DIGITAL: "22030101",
}


class BiosDumpError(Exception):
    """Base exception for dump parsing and patch building."""


class TruncatedImage(BiosDumpError):
    """Buffer is too short to hold the required fields."""


class EditionAlreadySet(BiosDumpError):
    """Dump already carries the requested edition tag."""


@dataclass(frozen=True)
class Decoded:
    """Field decoded successfully."""
    text: str


@dataclass(frozen=True)
class Placeholder:
    """Field could not be read or decoded."""
    reason: str = ""


FieldValue = Union[Decoded, Placeholder]


def display_text(value: FieldValue, placeholder: str) -> str:
    """Text to show for a field, substituting the placeholder when needed."""
    if isinstance(value, Decoded):
        return value.text
    return placeholder


@dataclass(frozen=True)
class FieldPatch:
    """A find/replace pair for one dump field."""
    field: str
    find: bytes
    replace: bytes


@dataclass(frozen=True)
class BiosDump:
    """
    Parsed identity fields of a dump image.

    Attributes:
        raw: The full image, unmodified
        edition: Edition resolved from the tag fields
        model: Decoded model string (e.g. "CFI-1015A")
        region: Region name for the model suffix
        console_serial: Decoded console serial number
        motherboard_serial: Decoded motherboard serial number
        wifi_mac: Wi-Fi MAC as dash-separated hex
        lan_mac: LAN MAC as dash-separated hex
    """
    raw: bytes
    edition: Edition
    model: FieldValue
    region: str
    console_serial: FieldValue
    motherboard_serial: FieldValue
    wifi_mac: FieldValue
    lan_mac: FieldValue

    @property
    def model_name(self) -> str:
        return display_text(self.model, UNKNOWN_MODEL)

    @property
    def model_info(self) -> str:
        return f"{self.model_name} - {self.region}"

    @property
    def console_serial_number(self) -> str:
        return display_text(self.console_serial, UNKNOWN_SERIAL)

    @property
    def motherboard_serial_number(self) -> str:
        return display_text(self.motherboard_serial, UNKNOWN_SERIAL)

    @property
    def wifi_mac_address(self) -> str:
        return display_text(self.wifi_mac, UNKNOWN_MAC)

    @property
    def lan_mac_address(self) -> str:
        return display_text(self.lan_mac, UNKNOWN_MAC)

    def to_dict(self) -> dict:
        """Display values for JSON output."""
        return {
            "size": len(self.raw),
            "edition": self.edition.value,
            "model": self.model_name,
            "region": self.region,
            "model_info": self.model_info,
            "console_serial": self.console_serial_number,
            "motherboard_serial": self.motherboard_serial_number,
            "wifi_mac": self.wifi_mac_address,
            "lan_mac": self.lan_mac_address,
        }


def _read_field(data: bytes, offset: int, length: int) -> bytes:
    end = offset + length
    if end > len(data):
        raise TruncatedImage(
            f"Field at 0x{offset:06X} (+{length}) exceeds image size 0x{len(data):X}"
        )
    return data[offset:end]


def resolve_edition(tag_a_hex: str, tag_b_hex: str) -> Edition:
    """
    Resolve the edition from the two tag fields (hex text).

    Disc and Digital are checked before Slim since tags can coexist.
    """
    tag_a = tag_a_hex.upper()
    tag_b = tag_b_hex.upper()
    if EDITION_TAGS[Edition.DISC] in tag_a:
        return Edition.DISC
    if EDITION_TAGS[Edition.DIGITAL] in tag_b:
        return Edition.DIGITAL
    slim = EDITION_TAGS[Edition.SLIM]
    if slim in tag_a or slim in tag_b:
        return Edition.SLIM
    return Edition.UNKNOWN


def _decode_text_field(data: bytes, offset: int, length: int) -> FieldValue:
    try:
        raw_hex = bytes_to_hex(_read_field(data, offset, length))
        return Decoded(hex_to_ascii(raw_hex, strip_padding=False))
    except (TruncatedImage, MalformedHex) as e:
        logger.debug(f"Field at 0x{offset:06X} not decoded: {e}")
        return Placeholder(str(e))


def _read_mac(data: bytes, offset: int) -> FieldValue:
    try:
        return Decoded(bytes_to_hex(_read_field(data, offset, MAC_LEN), sep="-"))
    except TruncatedImage as e:
        logger.debug(f"MAC at 0x{offset:06X} not read: {e}")
        return Placeholder(str(e))


def parse_bios_dump(buffer: bytes) -> BiosDump:
    """
    Parse identity fields out of a raw dump image.

    Edition tags and the model field are required; serials and MACs fall back
    to Placeholder values when out of range or undecodable.

    Raises:
        TruncatedImage: If the image does not cover the required fields
    """
    data = bytes(buffer)

    tag_a = bytes_to_hex(_read_field(data, EDITION_TAG_A_OFFSET, EDITION_TAG_LEN))
    tag_b = bytes_to_hex(_read_field(data, EDITION_TAG_B_OFFSET, EDITION_TAG_LEN))
    edition = resolve_edition(tag_a, tag_b)

    model_hex = bytes_to_hex(_read_field(data, MODEL_OFFSET, MODEL_LEN))
    try:
        model: FieldValue = Decoded(hex_to_ascii(model_hex))
    except MalformedHex as e:
        logger.debug(f"Model field not decoded: {e}")
        model = Placeholder(str(e))
    region = region_for_model(model.text) if isinstance(model, Decoded) else UNKNOWN_REGION

    dump = BiosDump(
        raw=data,
        edition=edition,
        model=model,
        region=region,
        console_serial=_decode_text_field(data, CONSOLE_SERIAL_OFFSET, CONSOLE_SERIAL_LEN),
        motherboard_serial=_decode_text_field(
            data, MOTHERBOARD_SERIAL_OFFSET, MOTHERBOARD_SERIAL_LEN
        ),
        wifi_mac=_read_mac(data, WIFI_MAC_OFFSET),
        lan_mac=_read_mac(data, LAN_MAC_OFFSET),
    )

    if len(data) < RECOMMENDED_IMAGE_SIZE:
        logger.warning(
            f"Image is {len(data):,} bytes, smaller than expected 0x{RECOMMENDED_IMAGE_SIZE:X}"
        )
    logger.debug(f"Parsed dump: edition={edition.value}, model={dump.model_info}")
    return dump


def load_bios_dump(path: Union[str, Path]) -> BiosDump:
    """Read a dump file fully and parse it."""
    dump_path = Path(path)
    if not dump_path.exists():
        raise FileNotFoundError(f"{dump_path} not found")
    data = dump_path.read_bytes()
    logger.info(f"Loaded {len(data):,} bytes from {dump_path}")
    return parse_bios_dump(data)


def edition_patches(dump: BiosDump, target: Edition) -> List[FieldPatch]:
    """
    Build the tag rewrites that convert a dump to the target edition.

    Every other known tag is replaced by the target tag (4 bytes each).

    Raises:
        ValueError: If target is Edition.UNKNOWN
        EditionAlreadySet: If either tag field already starts with the target tag
    """
    if target not in EDITION_TAGS:
        raise ValueError(f"Cannot convert to edition {target.value}")

    target_tag = EDITION_TAGS[target]
    for offset in (EDITION_TAG_A_OFFSET, EDITION_TAG_B_OFFSET):
        if target_tag in bytes_to_hex(_read_field(dump.raw, offset, 4)):
            raise EditionAlreadySet(
                f"Dump already carries the {target.value} edition tag"
            )

    replace = hex_to_bytes(target_tag)
    return [
        FieldPatch(
            field=f"edition:{edition.value}->{target.value}",
            find=hex_to_bytes(tag),
            replace=replace,
        )
        for edition, tag in EDITION_TAGS.items()
        if edition is not target
    ]


def _fit(data: bytes, width: int, fill: int) -> bytes:
    return data[:width].ljust(width, bytes([fill]))


def _serial_pattern(value: FieldValue, name: str) -> bytes:
    """
    Search pattern for a serial field: its decoded text.

    A blank field (erased to one fill byte) would match every run of that
    byte in the image, so it is refused.
    """
    if not isinstance(value, Decoded) or not value.text:
        raise BiosDumpError(f"Current {name} could not be read from the dump")
    if len(set(value.text)) == 1:
        raise BiosDumpError(
            f"Current {name} is blank (all 0x{ord(value.text[0]):02X}); cannot locate it safely"
        )
    return value.text.encode("utf-8")


def console_serial_patch(dump: BiosDump, new_serial: str) -> FieldPatch:
    """Replace the 17-byte console serial, zero padded or truncated."""
    find = _serial_pattern(dump.console_serial, "console serial")
    replace = _fit(new_serial.encode("utf-8"), CONSOLE_SERIAL_LEN, 0x00)
    return FieldPatch(field="console_serial", find=find, replace=replace)


def motherboard_serial_patch(dump: BiosDump, new_serial: str) -> FieldPatch:
    """Replace the 16-byte motherboard serial (caller validates the length)."""
    replace = new_serial.encode("utf-8")
    if len(replace) != MOTHERBOARD_SERIAL_LEN:
        raise ValueError(
            f"Motherboard serial must be exactly {MOTHERBOARD_SERIAL_LEN} bytes, "
            f"got {len(replace)}"
        )
    find = _serial_pattern(dump.motherboard_serial, "motherboard serial")
    return FieldPatch(field="motherboard_serial", find=find, replace=replace)


def model_patch(dump: BiosDump, new_model: str) -> FieldPatch:
    """
    Replace the model string.

    The search pattern is the current decoded model. The replacement is padded
    with 0xFF to the old model length so a shorter model leaves no stale tail,
    and truncated to the 19-byte field.
    """
    if not isinstance(dump.model, Decoded) or not dump.model.text:
        raise BiosDumpError("Current model could not be decoded from the dump")
    find = dump.model.text.encode("latin-1")
    replace = new_model.encode("utf-8")[:MODEL_LEN]
    if len(replace) < len(find):
        replace = _fit(replace, len(find), 0xFF)
    return FieldPatch(field="model", find=find, replace=replace)
