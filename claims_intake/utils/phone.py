"""Phone number normalization for registration."""

import re

COUNTRY_PREFIX = "+254"


def format_phone_number(phone_number: str) -> str:
    """Normalize a Kenyan phone number to ``+254XXXXXXXXX``.

    - Local numbers starting with ``0`` get the country prefix
    - Numbers already starting with ``+254`` are kept
    - Whitespace is removed in both cases

    Raises:
        ValueError: For any other format
    """
    if phone_number.startswith("0"):
        return re.sub(r"\s", "", COUNTRY_PREFIX + phone_number[1:])
    if phone_number.startswith(COUNTRY_PREFIX):
        return re.sub(r"\s", "", phone_number)
    raise ValueError(f"Unsupported phone number format: must start with 0 or {COUNTRY_PREFIX}")
