"""
OmniCall - Telephony Integration Module

Voice webhooks that return call-routing markup to the provider.

Components:
- router: HTTP webhooks for inbound and outbound call legs
- providers: Provider-specific markup and signature validation
- privacy: Phone number masking for logs
"""

from .models import VoiceWebhookRequest
from .privacy import mask_phone_number

__all__ = [
    "VoiceWebhookRequest",
    "mask_phone_number",
]
