"""
OmniCall - Voice Webhook Tests

Tests for the Twilio voice webhooks:
- Outbound dial markup and caller id
- Inbound routing to the configured agent
- Markup escaping
- Webhook signature validation

Run with: pytest tests/test_telephony_webhooks.py -v
"""

import xml.etree.ElementTree as ET

import pytest
from fastapi.testclient import TestClient
from twilio.request_validator import RequestValidator

from omnicall.core.exceptions import UnsupportedProviderError
from omnicall.telephony.models import VoiceWebhookRequest
from omnicall.telephony.privacy import is_phone_number_masked, mask_phone_number
from omnicall.telephony.providers import TwilioProvider, get_provider
from omnicall.telephony.router import MISSING_DESTINATION_MESSAGE


def parse_twiml(response) -> ET.Element:
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    return ET.fromstring(response.text)


class TestOutboundVoice:
    """Tests for /twilio/outbound-voice."""

    def test_dials_destination_with_caller_id(self, client: TestClient):
        response = client.post(
            "/twilio/outbound-voice",
            data={"CallSid": "CA123", "To": "+27672966361", "From": "client:agent001"},
        )
        root = parse_twiml(response)

        dial = root.find("Dial")
        assert dial is not None
        assert dial.get("callerId") == "+27110000000"
        assert dial.find("Number").text == "+27672966361"

    def test_accepts_get_with_query_params(self, client: TestClient):
        response = client.get("/twilio/outbound-voice", params={"To": "+15551234567"})
        root = parse_twiml(response)

        assert root.find("Dial/Number").text == "+15551234567"

    def test_missing_destination(self, client: TestClient):
        response = client.post("/twilio/outbound-voice", data={"CallSid": "CA123"})
        root = parse_twiml(response)

        assert root.find("Dial") is None
        assert root.find("Say").text == MISSING_DESTINATION_MESSAGE
        assert root.find("Hangup") is not None

    def test_destination_is_escaped(self, client: TestClient):
        response = client.post("/twilio/outbound-voice", data={"To": "<Hangup/>&1"})
        root = parse_twiml(response)

        assert root.find("Dial/Number").text == "<Hangup/>&1"
        assert root.find("Hangup") is None


class TestIncomingCall:
    """Tests for /twilio/incoming-call."""

    def test_routes_to_default_agent(self, client: TestClient, test_settings):
        response = client.post(
            "/twilio/incoming-call",
            data={"CallSid": "CA456", "From": "+15551234567", "To": "+27110000000"},
        )
        root = parse_twiml(response)

        says = [s.text for s in root.findall("Say")]
        assert says == [test_settings.incoming_greeting, test_settings.agent_unavailable_message]
        assert root.find("Dial/Client").text == "agent001"

    def test_agent_id_from_settings(self, test_settings):
        from main import create_app

        settings = test_settings.model_copy(update={"default_agent_id": "agent042"})
        with TestClient(create_app(settings)) as client:
            root = parse_twiml(client.post("/twilio/incoming-call", data={}))

        assert root.find("Dial/Client").text == "agent042"


class TestSignatureValidation:
    """Tests for X-Twilio-Signature checks."""

    @pytest.fixture
    def signed_client(self, signed_settings):
        from main import create_app

        with TestClient(create_app(signed_settings)) as c:
            yield c

    def test_valid_signature_accepted(self, signed_client: TestClient, signed_settings):
        url = "http://testserver/twilio/incoming-call"
        params = {"CallSid": "CA789", "From": "+15551234567"}
        signature = RequestValidator(signed_settings.twilio_auth_token).compute_signature(url, params)

        response = signed_client.post(
            "/twilio/incoming-call",
            data=params,
            headers={"X-Twilio-Signature": signature},
        )

        assert response.status_code == 200

    def test_missing_signature_rejected(self, signed_client: TestClient):
        response = signed_client.post("/twilio/incoming-call", data={"CallSid": "CA789"})

        assert response.status_code == 403
        assert response.json()["code"] == "WEBHOOK_SIGNATURE_INVALID"

    def test_wrong_signature_rejected(self, signed_client: TestClient):
        response = signed_client.post(
            "/twilio/outbound-voice",
            data={"To": "+27672966361"},
            headers={"X-Twilio-Signature": "bm90LWEtc2lnbmF0dXJl"},
        )

        assert response.status_code == 403

    def test_tampered_params_rejected(self, signed_client: TestClient, signed_settings):
        url = "http://testserver/twilio/outbound-voice"
        signature = RequestValidator(signed_settings.twilio_auth_token).compute_signature(
            url, {"To": "+27672966361"},
        )

        response = signed_client.post(
            "/twilio/outbound-voice",
            data={"To": "+19005550000"},
            headers={"X-Twilio-Signature": signature},
        )

        assert response.status_code == 403


class TestTwilioProvider:
    """Tests for TwilioProvider markup and provider selection."""

    def test_dial_without_caller_id(self):
        markup = TwilioProvider().format_dial_number("+27672966361", caller_id="")
        root = ET.fromstring(markup)

        assert "callerId" not in root.find("Dial").attrib

    def test_caller_id_attribute_escaped(self):
        markup = TwilioProvider().format_dial_number("+1", caller_id='"><Hangup/>')
        root = ET.fromstring(markup)

        assert root.find("Dial").get("callerId") == '"><Hangup/>'
        assert root.find("Hangup") is None

    def test_no_token_accepts_everything(self):
        assert TwilioProvider().validate_webhook("http://x/y", {}, None) is True

    def test_get_provider_unknown(self, test_settings):
        settings = test_settings.model_copy(update={"telephony_provider": "carrier-pigeon"})

        with pytest.raises(UnsupportedProviderError):
            get_provider(settings)


class TestWebhookModel:
    """Tests for VoiceWebhookRequest parsing."""

    def test_provider_field_names(self):
        request = VoiceWebhookRequest.model_validate(
            {"CallSid": "CA1", "From": "+1555", "To": "+2767", "Direction": "inbound", "Extra": "x"}
        )

        assert request.call_id == "CA1"
        assert request.from_number == "+1555"
        assert request.to_number == "+2767"
        assert request.direction == "inbound"


class TestPrivacy:
    """Tests for phone masking in logs."""

    @pytest.mark.parametrize("number,expected", [
        ("+27672966361", "***61"),
        ("067 296 6361", "***61"),
        ("5", "***"),
        (None, "unknown"),
        ("", "unknown"),
        ("client:agent001", "client:agent001"),
    ])
    def test_mask_phone_number(self, number, expected):
        assert mask_phone_number(number) == expected

    def test_is_masked(self):
        assert is_phone_number_masked(mask_phone_number("+27672966361"))
        assert not is_phone_number_masked("+27672966361")
