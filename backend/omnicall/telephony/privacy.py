"""
OmniCall - Telephony Privacy Utilities

Phone number masking for logs.

IMPORTANT:
    Patient phone numbers must not appear in logs in cleartext.
    Log lines that mention a number go through mask_phone_number().
"""

import re
from typing import Optional

_NON_DIGITS = re.compile(r"\D")

CLIENT_PREFIX = "client:"  # softphone identities, e.g. "client:agent001"


def mask_phone_number(number: Optional[str], show_last_digits: int = 2) -> str:
    """
    Mask a phone number for logging.

    Examples:
        +27672966361    → ***61
        067 296 6361    → ***61
        5               → ***
        client:agent001 → client:agent001
        None            → unknown
    """
    if not number:
        return "unknown"

    text = str(number)
    if text.startswith(CLIENT_PREFIX):
        # Agent identities are not personal data
        return text

    digits = _NON_DIGITS.sub("", text)
    if show_last_digits <= 0 or len(digits) < show_last_digits:
        return "***"
    return "***" + digits[-show_last_digits:]


def is_phone_number_masked(value: str) -> bool:
    """True for output of mask_phone_number() other than client identities."""
    if not value:
        return False
    return value == "unknown" or value.startswith("***")
