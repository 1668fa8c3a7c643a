"""
OmniCall - Directory Client Tests

Tests for HttpDirectoryClient against the real API (in-process) and
against failing transports.

Run with: pytest tests/test_directory_client.py -v
"""

import httpx
import pytest

from omnicall.directory.client import HttpDirectoryClient, create_directory_client
from omnicall.directory.store import DirectoryProvider


def client_for(transport: httpx.AsyncBaseTransport) -> HttpDirectoryClient:
    return HttpDirectoryClient(
        "http://directory.test",
        client=httpx.AsyncClient(transport=transport, base_url="http://directory.test"),
    )


def mock_client(handler) -> HttpDirectoryClient:
    return client_for(httpx.MockTransport(handler))


@pytest.mark.integration
class TestAgainstApi:
    """End-to-end lookups through the FastAPI app."""

    @pytest.mark.asyncio
    async def test_lookup_match(self, app):
        await app.state.customers.add_customer(
            company_id=1,
            first_name="Thandi",
            last_name="Mokoena",
            phone="0672966361",
            medical_aid_provider="Discovery Health",
            medical_plan="Comprehensive",
        )
        client = client_for(httpx.ASGITransport(app=app))

        customer = await client.lookup_by_phone("+27 67 296 6361")

        assert customer is not None
        assert customer.display_name == "Thandi Mokoena"
        assert customer.medical_aid_provider == "Discovery Health"
        assert customer.phone == "0672966361"

    @pytest.mark.asyncio
    async def test_lookup_miss(self, app):
        client = client_for(httpx.ASGITransport(app=app))

        assert await client.lookup_by_phone("+15551234567") is None

    @pytest.mark.asyncio
    async def test_blank_query_is_recovered(self, app):
        """The API answers 400 for a blank phone; the client returns None."""
        client = client_for(httpx.ASGITransport(app=app))

        assert await client.lookup_by_phone("  ") is None


class TestFailureRecovery:
    """Every failure becomes None, never an exception."""

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        assert await mock_client(handler).lookup_by_phone("0672966361") is None

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        assert await mock_client(handler).lookup_by_phone("0672966361") is None

    @pytest.mark.asyncio
    async def test_server_error(self):
        client = mock_client(lambda request: httpx.Response(500, json={"detail": "boom"}))

        assert await client.lookup_by_phone("0672966361") is None

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        client = mock_client(lambda request: httpx.Response(200, text="<html>"))

        assert await client.lookup_by_phone("0672966361") is None

    @pytest.mark.asyncio
    async def test_wrong_shape(self):
        client = mock_client(lambda request: httpx.Response(200, json={"customer": {"id": "x"}}))

        assert await client.lookup_by_phone("0672966361") is None

    @pytest.mark.asyncio
    async def test_success_false(self):
        client = mock_client(lambda request: httpx.Response(200, json={"success": False, "customer": None}))

        assert await client.lookup_by_phone("0672966361") is None

    @pytest.mark.asyncio
    async def test_query_sent_as_parameter(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"success": False})

        await mock_client(handler).lookup_by_phone("+27 67 296 6361")

        assert seen[0].url.path == "/api/customers/by-phone"
        assert seen[0].url.params["phone"] == "+27 67 296 6361"


class TestFactory:
    """Tests for create_directory_client."""

    @pytest.mark.asyncio
    async def test_uses_settings(self, test_settings):
        client = create_directory_client(test_settings)

        assert isinstance(client, DirectoryProvider)
        assert str(client._client.base_url).startswith(test_settings.directory_api_url)
        assert client._client.timeout.read == test_settings.directory_timeout_seconds
        await client.aclose()
