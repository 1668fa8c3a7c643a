"""
OmniCall - Telephony Providers

Provider-specific implementations for voice webhooks.

Supported Providers:
- twilio: Twilio Voice (TwiML)
"""

from omnicall.config import Settings
from omnicall.core.exceptions import UnsupportedProviderError

from .base import TelephonyProvider
from .twilio import TwilioProvider


def get_provider(settings: Settings) -> TelephonyProvider:
    """Build the provider named by TELEPHONY_PROVIDER."""
    name = settings.telephony_provider.lower()
    if name == "twilio":
        return TwilioProvider(auth_token=settings.twilio_auth_token)
    raise UnsupportedProviderError(f"Unsupported telephony provider: {settings.telephony_provider}")


__all__ = ["TelephonyProvider", "TwilioProvider", "get_provider"]
