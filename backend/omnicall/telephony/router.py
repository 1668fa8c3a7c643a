"""
OmniCall - Voice Webhook Endpoints

Public webhooks the voice provider calls to learn how to route a call.
Responses are static call-routing markup; no call state is kept here.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from omnicall.config import Settings
from omnicall.core.exceptions import WebhookValidationError
from omnicall.core.logging import LogContext
from .models import VoiceWebhookRequest
from .privacy import mask_phone_number
from .providers import TelephonyProvider, get_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/twilio", tags=["telephony"])

MISSING_DESTINATION_MESSAGE = "We could not place your call because no number was dialed."


# =============================================================================
# Dependencies
# =============================================================================

def get_app_settings(request: Request) -> Settings:
    """Dependency to get settings from app state."""
    return request.app.state.settings


def get_telephony_provider(settings: Settings = Depends(get_app_settings)) -> TelephonyProvider:
    return get_provider(settings)


async def read_webhook(
    request: Request,
    provider: TelephonyProvider = Depends(get_telephony_provider),
) -> VoiceWebhookRequest:
    """
    Parse and authenticate a webhook request.
    
    Supports:
    - Form-encoded POST body (provider default)
    - Query parameters (GET)
    
    Raises:
        WebhookValidationError: If the signature does not verify
    """
    if request.method == "POST":
        form = await request.form()
        params = {key: str(value) for key, value in form.items()}
    else:
        params = {}
    
    signature = request.headers.get("X-Twilio-Signature")
    if not provider.validate_webhook(str(request.url), params, signature):
        raise WebhookValidationError("Webhook signature validation failed")
    
    fields = dict(request.query_params)
    fields.update(params)
    return VoiceWebhookRequest.model_validate(fields)


# =============================================================================
# Webhook Endpoints
# =============================================================================

@router.api_route(
    "/outbound-voice",
    methods=["GET", "POST"],
    summary="Route an agent's outbound call",
    description="Called when an agent's softphone dials out; bridges to the dialed number.",
)
async def handle_outbound_voice(
    webhook: VoiceWebhookRequest = Depends(read_webhook),
    settings: Settings = Depends(get_app_settings),
    provider: TelephonyProvider = Depends(get_telephony_provider),
) -> Response:
    """Return markup that dials the number the agent entered."""
    with LogContext(call_id=webhook.call_id):
        if not webhook.to_number:
            logger.warning("Outbound call without destination number")
            return Response(
                content=provider.format_failure(MISSING_DESTINATION_MESSAGE),
                media_type=provider.media_type,
            )
        
        logger.info(
            "Outbound call: to=%s, caller_id=%s",
            mask_phone_number(webhook.to_number),
            mask_phone_number(settings.twilio_phone_number),
        )
        
        markup = provider.format_dial_number(
            to_number=webhook.to_number,
            caller_id=settings.twilio_phone_number,
        )
        return Response(content=markup, media_type=provider.media_type)


@router.api_route(
    "/incoming-call",
    methods=["GET", "POST"],
    summary="Route an inbound call",
    description="Called when a customer dials the practice number; rings the agent softphone.",
)
async def handle_incoming_call(
    webhook: VoiceWebhookRequest = Depends(read_webhook),
    settings: Settings = Depends(get_app_settings),
    provider: TelephonyProvider = Depends(get_telephony_provider),
) -> Response:
    """Greet the caller and ring the configured agent."""
    with LogContext(call_id=webhook.call_id):
        logger.info(
            "Incoming call: from=%s, to=%s, agent=%s",
            mask_phone_number(webhook.from_number),
            mask_phone_number(webhook.to_number),
            settings.default_agent_id,
        )
        
        markup = provider.format_dial_agent(
            agent_id=settings.default_agent_id,
            greeting=settings.incoming_greeting,
            unavailable_message=settings.agent_unavailable_message,
        )
        return Response(content=markup, media_type=provider.media_type)
