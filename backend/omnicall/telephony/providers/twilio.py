"""
OmniCall - Twilio Provider

TwiML rendering and webhook signature validation for Twilio Voice.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional
from xml.sax.saxutils import escape, quoteattr

from twilio.request_validator import RequestValidator

from .base import TelephonyProvider

logger = logging.getLogger(__name__)

TWIML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>'


class TwilioProvider(TelephonyProvider):
    """
    Twilio Voice provider.
    
    Signature validation is only performed when an auth token is given;
    without one every webhook is accepted (local development).
    """
    
    def __init__(self, auth_token: str = ""):
        self._validator = RequestValidator(auth_token) if auth_token else None
    
    @property
    def name(self) -> str:
        return "twilio"
    
    @property
    def media_type(self) -> str:
        return "application/xml"
    
    def validate_webhook(
        self,
        url: str,
        params: Mapping[str, str],
        signature: Optional[str] = None,
    ) -> bool:
        if self._validator is None:
            return True
        if not signature:
            logger.warning("Twilio webhook without X-Twilio-Signature rejected")
            return False
        return self._validator.validate(url, dict(params), signature)
    
    def format_dial_number(self, to_number: str, caller_id: str) -> str:
        caller_attr = f" callerId={quoteattr(caller_id)}" if caller_id else ""
        return f"""{TWIML_HEADER}
<Response>
    <Dial{caller_attr}>
        <Number>{escape(to_number)}</Number>
    </Dial>
</Response>"""
    
    def format_dial_agent(self, agent_id: str, greeting: str, unavailable_message: str) -> str:
        return f"""{TWIML_HEADER}
<Response>
    <Say>{escape(greeting)}</Say>
    <Dial>
        <Client>{escape(agent_id)}</Client>
    </Dial>
    <Say>{escape(unavailable_message)}</Say>
</Response>"""
    
    def format_failure(self, message: str) -> str:
        return f"""{TWIML_HEADER}
<Response>
    <Say>{escape(message)}</Say>
    <Hangup/>
</Response>"""
