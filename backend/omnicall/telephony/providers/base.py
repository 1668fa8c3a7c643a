"""
OmniCall - Telephony Provider Base

Abstract base class for voice provider implementations.
"""

from abc import ABC, abstractmethod
from typing import Mapping, Optional


class TelephonyProvider(ABC):
    """
    Abstract base class for telephony providers.
    
    Implementations handle provider-specific:
    - Webhook validation
    - Call-routing markup
    """
    
    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        ...
    
    @property
    @abstractmethod
    def media_type(self) -> str:
        """Content type of the routing markup."""
        ...
    
    @abstractmethod
    def validate_webhook(
        self,
        url: str,
        params: Mapping[str, str],
        signature: Optional[str] = None,
    ) -> bool:
        """
        Validate webhook request authenticity.
        
        Args:
            url: Full request URL as the provider called it
            params: Form parameters (empty for GET)
            signature: Request signature header (if applicable)
        
        Returns:
            True if request is valid
        """
        ...
    
    @abstractmethod
    def format_dial_number(self, to_number: str, caller_id: str) -> str:
        """
        Markup that bridges an agent's outbound call to a phone number.
        
        Args:
            to_number: Destination number
            caller_id: Number presented to the callee ("" for provider default)
        """
        ...
    
    @abstractmethod
    def format_dial_agent(self, agent_id: str, greeting: str, unavailable_message: str) -> str:
        """
        Markup that greets an inbound caller and rings an agent's softphone.
        
        Args:
            agent_id: Softphone client identity
            greeting: Spoken before ringing
            unavailable_message: Spoken if the agent does not answer
        """
        ...
    
    @abstractmethod
    def format_failure(self, message: str) -> str:
        """Markup that speaks an error and hangs up."""
        ...
