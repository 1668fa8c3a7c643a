"""
OmniCall - Exception Hierarchy

Structured exceptions for consistent error handling across the system.
All exceptions include error codes for API responses.
"""

from typing import Optional


class OmniCallError(Exception):
    """Base exception for all OmniCall errors."""
    
    code: str = "UNKNOWN_ERROR"
    status_code: int = 500
    
    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
    
    def to_dict(self) -> dict:
        payload = {"detail": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


# =============================================================================
# Directory Errors
# =============================================================================

class DirectoryError(OmniCallError):
    """Error in the customer/company directory."""
    code = "DIRECTORY_ERROR"
    status_code = 500


class CompanyNotFoundError(DirectoryError):
    """Company does not exist."""
    code = "COMPANY_NOT_FOUND"
    status_code = 404


class CustomerNotFoundError(DirectoryError):
    """Customer does not exist."""
    code = "CUSTOMER_NOT_FOUND"
    status_code = 404


class DuplicateCompanyError(DirectoryError):
    """A company with the same name already exists."""
    code = "COMPANY_EXISTS"
    status_code = 400


class LookupFailure(DirectoryError):
    """
    Directory provider unreachable or returned an unusable answer.
    
    Never surfaced to the operator: the directory client recovers
    from it and the call continues with the raw number.
    """
    code = "LOOKUP_FAILURE"
    status_code = 502


# =============================================================================
# Telephony Errors
# =============================================================================

class TelephonyError(OmniCallError):
    """Error in telephony subsystem."""
    code = "TELEPHONY_ERROR"
    status_code = 502


class TransportError(TelephonyError):
    """Voice transport failed (connection, negotiation, media)."""
    code = "TRANSPORT_ERROR"


class WebhookValidationError(TelephonyError):
    """Webhook request signature did not verify."""
    code = "WEBHOOK_SIGNATURE_INVALID"
    status_code = 403


class UnsupportedProviderError(TelephonyError):
    """No provider implementation for the configured name."""
    code = "UNSUPPORTED_PROVIDER"
    status_code = 500


# =============================================================================
# Call Session Errors
# =============================================================================

class SessionError(OmniCallError):
    """Error related to the call session."""
    code = "SESSION_ERROR"
    status_code = 409


class LineBusyError(SessionError):
    """A call is already live on this line."""
    code = "LINE_BUSY"


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(OmniCallError):
    """Input validation error."""
    code = "VALIDATION_ERROR"
    status_code = 400


class InvalidPhoneNumberError(ValidationError):
    """Empty or malformed phone number."""
    code = "INVALID_PHONE_NUMBER"


class InvalidDigitError(ValidationError):
    """Not a DTMF digit."""
    code = "INVALID_DIGIT"


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(OmniCallError):
    """Configuration error."""
    code = "CONFIGURATION_ERROR"
    status_code = 500
