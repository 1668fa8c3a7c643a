"""
OmniCall - Telephony Data Models

Pydantic models for voice webhook requests.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class VoiceWebhookRequest(BaseModel):
    """
    Parameters the voice provider sends to the call-routing webhooks.
    
    Supports both Twilio-style (CamelCase aliases) and snake_case names.
    Every field is optional: providers omit fields depending on call leg.
    """
    
    model_config = ConfigDict(populate_by_name=True, extra="ignore")
    
    call_id: Optional[str] = Field(None, alias="CallSid", description="Provider's call ID")
    from_number: Optional[str] = Field(None, alias="From", description="Caller (number or client:identity)")
    to_number: Optional[str] = Field(None, alias="To", description="Callee number")
    direction: Optional[str] = Field(None, alias="Direction")
