"""
OmniCall - Customer Directory

Company and customer records searchable by phone number:
- matcher: Formatting-insensitive phone matching and dial-string checks
- store: In-memory stores and the JSON seed loader
- client: HTTP client used by the softphone to reach the directory API
"""

from .matcher import (
    PhoneMatcher,
    normalize_phone_number,
    to_dialable_number,
    format_phone_display,
    validate_dial_string,
)
from .store import (
    DirectoryProvider,
    InMemoryCompanyStore,
    InMemoryCustomerDirectory,
    load_directory_seed,
    create_customer_directory,
)

__all__ = [
    "PhoneMatcher",
    "normalize_phone_number",
    "to_dialable_number",
    "format_phone_display",
    "validate_dial_string",
    "DirectoryProvider",
    "InMemoryCompanyStore",
    "InMemoryCustomerDirectory",
    "load_directory_seed",
    "create_customer_directory",
]
