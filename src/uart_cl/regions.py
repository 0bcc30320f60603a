"""Region names keyed by the three-character suffix of the console model."""

from typing import Dict, Optional

UNKNOWN_REGION = "Unknown Region"

_JAPAN = "Japan"
_NORTH_AMERICA = "US, Canada, (North America)"
_OCEANIA = "Australia / New Zealand, (Oceania)"
_UK_IRELAND = "United Kingdom / Ireland"
_EMEA = "Europe / Middle East / Africa"
_SOUTH_KOREA = "South Korea"
_SE_ASIA = "Southeast Asia / Hong Kong"
_TAIWAN = "Taiwan"
_RUSSIA_INDIA = "Russia, Ukraine, India, Central Asia"
_CHINA = "Mainland China"
_LATIN_AMERICA = "Mexico, Central America, South America"
_SINGAPORE_ASIA = "Singapore, Korea, Asia"

REGION_MAP: Dict[str, str] = {
    "00A": _JAPAN,
    "00B": _JAPAN,
    "01A": _NORTH_AMERICA,
    "01B": _NORTH_AMERICA,
    "15A": _NORTH_AMERICA,
    "15B": _NORTH_AMERICA,
    "02A": _OCEANIA,
    "02B": _OCEANIA,
    "03A": _UK_IRELAND,
    "03B": _UK_IRELAND,
    "04A": _EMEA,
    "04B": _EMEA,
    "16A": _EMEA,
    "16B": _EMEA,
    "05A": _SOUTH_KOREA,
    "05B": _SOUTH_KOREA,
    "06A": _SE_ASIA,
    "06B": _SE_ASIA,
    "07A": _TAIWAN,
    "07B": _TAIWAN,
    "08A": _RUSSIA_INDIA,
    "08B": _RUSSIA_INDIA,
    "09A": _CHINA,
    "09B": _CHINA,
    "11A": _LATIN_AMERICA,
    "11B": _LATIN_AMERICA,
    "14A": _LATIN_AMERICA,
    "14B": _LATIN_AMERICA,
    "18A": _SINGAPORE_ASIA,
    "18B": _SINGAPORE_ASIA,
}


def region_for_model(model: Optional[str]) -> str:
    """Look up the region for a model string such as "CFI-1015A01"."""
    if not model or len(model) < 3:
        return UNKNOWN_REGION
    return REGION_MAP.get(model[-3:], UNKNOWN_REGION)
