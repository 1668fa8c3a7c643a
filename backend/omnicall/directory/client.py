"""
OmniCall - Directory HTTP Client

DirectoryProvider that resolves caller identities through the backend's
``GET /api/customers/by-phone`` endpoint. Used by the softphone, which
runs out-of-process from the directory.

Failure policy:
    Every failure (network error, timeout, non-2xx, malformed body,
    ``success: false``) is a LookupFailure that is logged and turned into
    None here. Nothing propagates past this client.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import ValidationError as SchemaValidationError

from omnicall.api.schemas import CustomerResponse
from omnicall.config import Settings
from omnicall.core.exceptions import LookupFailure
from omnicall.core.types import Customer
from omnicall.telephony.privacy import mask_phone_number

logger = logging.getLogger(__name__)

LOOKUP_PATH = "/api/customers/by-phone"


class HttpDirectoryClient:
    """
    Async HTTP client for the customer directory.
    
    Usage:
        client = HttpDirectoryClient("http://localhost:3000")
        customer = await client.lookup_by_phone("+27672966361")
        await client.aclose()
    """
    
    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            base_url: Backend base URL
            timeout: Per-request timeout in seconds
            client: Pre-built httpx client (tests pass one with a custom transport)
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
    
    async def lookup_by_phone(self, query: str) -> Optional[Customer]:
        """Resolve a phone number, returning None on any failure."""
        try:
            return await self._fetch(query)
        except LookupFailure as e:
            logger.warning(
                "Directory lookup failed for phone=%s: %s",
                mask_phone_number(query), e.message,
            )
            return None
    
    async def _fetch(self, query: str) -> Optional[Customer]:
        try:
            response = await self._client.get(LOOKUP_PATH, params={"phone": query})
        except httpx.HTTPError as e:
            raise LookupFailure(f"{type(e).__name__}: {e}")
        
        if response.status_code >= 400:
            raise LookupFailure(f"HTTP {response.status_code}")
        
        try:
            body = CustomerResponse.model_validate(response.json())
        except (ValueError, SchemaValidationError) as e:
            raise LookupFailure(f"Malformed directory response: {e}")
        
        if not body.success or body.customer is None:
            logger.debug("No directory match for phone=%s", mask_phone_number(query))
            return None
        
        return body.customer.to_domain()
    
    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def create_directory_client(settings: Settings) -> HttpDirectoryClient:
    """Factory using configured backend URL and timeout."""
    return HttpDirectoryClient(
        base_url=settings.directory_api_url,
        timeout=settings.directory_timeout_seconds,
    )
