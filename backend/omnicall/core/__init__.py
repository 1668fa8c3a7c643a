"""
OmniCall - Core Package

Domain types, the exception hierarchy and logging setup shared by every
other package.
"""

from .types import Company, Customer
from .exceptions import (
    OmniCallError,
    DirectoryError,
    CompanyNotFoundError,
    CustomerNotFoundError,
    DuplicateCompanyError,
    LookupFailure,
    TelephonyError,
    TransportError,
    WebhookValidationError,
    UnsupportedProviderError,
    SessionError,
    LineBusyError,
    ValidationError,
    InvalidPhoneNumberError,
    InvalidDigitError,
    ConfigurationError,
)

__all__ = [
    # Types
    "Company",
    "Customer",
    # Errors
    "OmniCallError",
    "DirectoryError",
    "CompanyNotFoundError",
    "CustomerNotFoundError",
    "DuplicateCompanyError",
    "LookupFailure",
    "TelephonyError",
    "TransportError",
    "WebhookValidationError",
    "UnsupportedProviderError",
    "SessionError",
    "LineBusyError",
    "ValidationError",
    "InvalidPhoneNumberError",
    "InvalidDigitError",
    "ConfigurationError",
]
