# tests/conftest.py
"""Pytest configuration and fixtures"""
import sys
from pathlib import Path

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from relaybot.core.connector import RequestContext  # noqa: E402
from relaybot.infra.metrics import get_metrics_collector  # noqa: E402


@pytest.fixture(autouse=True)
def reset_metrics():
    get_metrics_collector().reset()
    yield


@pytest.fixture
def make_request_context():
    """Build a RequestContext for a webhook POST with the given raw body."""
    def _make(raw_body: str = "", body=None, headers=None, method: str = "POST", **kwargs):
        return RequestContext(
            method=method,
            path=kwargs.pop("path", "/webhooks/test"),
            headers=headers or {},
            raw_body=raw_body,
            body=body,
            url=kwargs.pop("url", "https://www.example.com/webhooks/test"),
            **kwargs,
        )
    return _make


@pytest.fixture
def messenger_body():
    """Page webhook with one messaging item and one standby item"""
    return {
        "object": "page",
        "entry": [
            {
                "id": "PAGE_ID",
                "time": 1458692752478,
                "messaging": [
                    {
                        "sender": {"id": "USER_ID"},
                        "recipient": {"id": "PAGE_ID"},
                        "timestamp": 1458692752478,
                        "message": {"mid": "mid.1457764197618:41d102a3e1ae206a38", "text": "hello"},
                    }
                ],
            },
            {
                "id": "PAGE_ID",
                "time": 1458692752478,
                "standby": [
                    {
                        "sender": {"id": "OTHER_USER_ID"},
                        "recipient": {"id": "PAGE_ID"},
                        "timestamp": 1458692752478,
                        "message": {"mid": "mid.1457764197618:41d102a3e1ae206a39", "text": "standby"},
                    }
                ],
            },
        ],
    }


@pytest.fixture
def viber_message_body():
    return {
        "event": "message",
        "timestamp": 1457764197627,
        "message_token": 4912661846655238145,
        "sender": {
            "id": "01234567890A=",
            "name": "John McClane",
            "avatar": "http://avatar.example.com",
            "country": "UK",
            "language": "en",
            "api_version": 1,
        },
        "message": {"type": "text", "text": "a message to the service", "tracking_data": "tracking data"},
    }


@pytest.fixture
def sample_twilio_form_data():
    """Sample Twilio WhatsApp webhook form data"""
    return {
        "From": "whatsapp:+12345678900",
        "To": "whatsapp:+10987654321",
        "Body": "Test message",
        "MessageSid": "SM1234567890abcdef",
        "SmsStatus": "received",
        "NumMedia": "0",
        "ProfileName": "Ann",
        "AccountSid": "AC1234567890abcdef",
    }


@pytest.fixture
def sample_twilio_mms_form_data():
    """Sample Twilio WhatsApp media webhook form data"""
    return {
        "From": "whatsapp:+12345678900",
        "To": "whatsapp:+10987654321",
        "Body": "Check this out",
        "MessageSid": "MM1234567890abcdef",
        "SmsStatus": "received",
        "NumMedia": "1",
        "MediaUrl0": "https://api.twilio.com/2010-04-01/Accounts/.../Media/ME123",
        "MediaContentType0": "image/jpeg",
        "AccountSid": "AC1234567890abcdef",
    }
