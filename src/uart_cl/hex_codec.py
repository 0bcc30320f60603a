"""
Hex text helpers for BIOS dump fields.

Dump fields are handled as uppercase hex text, then decoded to ASCII for
display.
"""

import re

_HEX_RE = re.compile(r"^[0-9A-Fa-f]*$")


class MalformedHex(ValueError):
    """Hex text with an odd number of digits or non-hex characters."""


def bytes_to_hex(data: bytes, sep: str = "") -> str:
    """Render bytes as uppercase hex, optionally separated (e.g. "AA-BB")."""
    if sep:
        return bytes(data).hex(sep).upper()
    return bytes(data).hex().upper()


def hex_to_bytes(text: str) -> bytes:
    """
    Parse hex text into bytes.

    Raises:
        MalformedHex: If the text has odd length or contains non-hex characters
    """
    if len(text) % 2 != 0:
        raise MalformedHex(f"Hex text has an odd number of digits: {text!r}")
    if not _HEX_RE.match(text):
        raise MalformedHex(f"Hex text contains non-hex characters: {text!r}")
    return bytes.fromhex(text)


def strip_ff_padding(text: str) -> str:
    """
    Remove every "FF" substring from hex text.

    This is textual, not byte-aligned: "0FF0" loses its middle "FF" and
    becomes "00".
    """
    return text.replace("FF", "")


def hex_to_ascii(text: str, strip_padding: bool = True) -> str:
    """
    Decode hex text to a string, one character per byte.

    Args:
        text: Hex text as produced by bytes_to_hex()
        strip_padding: Drop "FF" substrings before pairing digits

    Raises:
        MalformedHex: If the (stripped) text is not valid hex
    """
    if strip_padding:
        text = strip_ff_padding(text)
    return hex_to_bytes(text).decode("latin-1")
