"""
OmniCall - Phone Number Matching

Resolves a dialed or received phone string to a directory entry even when
the stored number and the query are formatted differently.

Matching order:
    1. Exact string match on the stored phone (legacy records)
    2. Separator-insensitive match ("067-296 6361" == "0672966361")
    3. Dialable-form match, only when a country code is configured
       ("+27 67 296 6361" == "0672966361")

Each pass walks the directory in the order supplied by the caller and
returns the first hit, so callers control tie-breaking.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Protocol, Sequence, TypeVar

from omnicall.core.exceptions import InvalidPhoneNumberError

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"[^0-9]")
_FIRST_SIGNIFICANT = re.compile(r"[0-9+]")
_DIAL_STRING = re.compile(r"^\+?[0-9 ().\-]+$")

MAX_DIGITS = 15  # E.164


class PhoneEntry(Protocol):
    """Anything with a stored phone string (e.g. Customer)."""
    phone: Optional[str]


EntryT = TypeVar("EntryT", bound=PhoneEntry)


# =============================================================================
# Normalization helpers
# =============================================================================

def normalize_phone_number(raw: Optional[str]) -> str:
    """
    Strip everything except ASCII digits and a single leading ``+``.
    
    The plus sign survives only if it comes before the first digit, so
    ``"+27 (67) 296-6361"`` becomes ``"+27672966361"`` and
    ``"067.296.6361"`` becomes ``"0672966361"``. Input without any digits
    normalizes to ``""``. Idempotent.
    """
    if not raw:
        return ""
    
    digits = _NON_DIGITS.sub("", raw)
    if not digits:
        return ""
    
    first = _FIRST_SIGNIFICANT.search(raw)
    if first is not None and first.group() == "+":
        return "+" + digits
    return digits


def to_dialable_number(raw: Optional[str], country_code: str) -> str:
    """
    Convert a national number to international form.
    
    Examples (country_code="27"):
        0672966361       → +27672966361
        +27 67 296 6361  → +27672966361
        27672966361      → +27672966361
        +15551234567     → +15551234567
    """
    normalized = normalize_phone_number(raw)
    if not normalized or not country_code:
        return normalized
    
    if normalized.startswith("0"):
        return f"+{country_code}{normalized[1:]}"
    if normalized.startswith(country_code):
        return "+" + normalized
    return normalized


def format_phone_display(raw: str, country_code: str = "27") -> str:
    """
    Format a number for the dial display.
    
    National numbers of the configured country are grouped as
    ``+CC NN NNN NNNN`` (0672966361 → +27 67 296 6361). Anything else is
    returned unchanged.
    """
    if not raw:
        return raw
    
    digits = _NON_DIGITS.sub("", raw)
    if digits.startswith("0"):
        digits = country_code + digits[1:]
    
    cc_len = len(country_code)
    if country_code and digits.startswith(country_code) and len(digits) == cc_len + 9:
        national = digits[cc_len:]
        return f"+{country_code} {national[:2]} {national[2:5]} {national[5:]}"
    
    return raw


def validate_dial_string(raw: Optional[str]) -> str:
    """
    Check a number typed or passed in for dialing.
    
    Accepts digits, spaces, hyphens, dots, parentheses and one leading
    plus sign, with 1-15 digits in total.
    
    Returns:
        The stripped input
    
    Raises:
        InvalidPhoneNumberError: If empty or malformed
    """
    value = (raw or "").strip()
    if not value:
        raise InvalidPhoneNumberError("Phone number is required")
    
    if not _DIAL_STRING.match(value):
        raise InvalidPhoneNumberError("Phone number contains invalid characters")
    
    digit_count = len(_NON_DIGITS.sub("", value))
    if digit_count == 0:
        raise InvalidPhoneNumberError("Phone number contains no digits")
    if digit_count > MAX_DIGITS:
        raise InvalidPhoneNumberError(
            f"Phone number has {digit_count} digits (max {MAX_DIGITS})"
        )
    
    return value


# =============================================================================
# Phone Matcher
# =============================================================================

class PhoneMatcher:
    """
    Stateless resolver from a phone query to a directory entry.
    
    Consumes a directory snapshot per call; never mutates entries.
    Cost is linear in the directory size, which is fine at clinic scale.
    
    Usage:
        matcher = PhoneMatcher(country_code="27")
        customer = matcher.resolve("+27 67 296 6361", customers)
        if customer is None:
            ...  # display the raw number
    """
    
    normalize = staticmethod(normalize_phone_number)
    
    def __init__(self, country_code: Optional[str] = None):
        """
        Args:
            country_code: Enables the dialable-form pass (e.g. "27").
                Without it only exact and separator-insensitive
                matching is performed.
        """
        self._country_code = country_code or None
    
    @property
    def country_code(self) -> Optional[str]:
        return self._country_code
    
    def resolve(self, query: str, directory: Sequence[EntryT]) -> Optional[EntryT]:
        """
        Resolve a query number against a directory snapshot.
        
        Args:
            query: Raw phone string as dialed or received
            directory: Entries in caller-defined priority order
        
        Returns:
            First matching entry, or None when nothing matches
        """
        if not query:
            return None
        
        # Exact match preserves legacy records stored verbatim
        for entry in directory:
            if entry.phone is not None and entry.phone == query:
                return entry
        
        normalized = normalize_phone_number(query)
        if not normalized:
            return None
        
        match = self._first_match(normalized, directory, normalize_phone_number)
        if match is not None:
            return match
        
        if self._country_code:
            dialable = to_dialable_number(normalized, self._country_code)
            return self._first_match(dialable, directory, self._dialable)
        
        return None
    
    def _dialable(self, raw: Optional[str]) -> str:
        return to_dialable_number(raw, self._country_code or "")
    
    @staticmethod
    def _first_match(key: str, directory: Iterable[EntryT], canonical) -> Optional[EntryT]:
        for entry in directory:
            if not entry.phone:
                continue
            if canonical(entry.phone) == key:
                return entry
        return None
