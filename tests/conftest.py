"""Pytest configuration and fixtures."""

import hashlib
import hmac
import sys
from pathlib import Path

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import WhatsAppCredentials  # noqa: E402


APP_SECRET = "test_secret"
VERIFY_TOKEN = "test_verify_token"
BUSINESS_PHONE_NUMBER_ID = "15557654321"


@pytest.fixture
def credentials():
    return WhatsAppCredentials(
        phone_number_id=BUSINESS_PHONE_NUMBER_ID,
        access_token="test_access_token",
        app_secret=APP_SECRET,
        verify_token=VERIFY_TOKEN,
        api_base_url="https://graph.test/v22.0",
    )


@pytest.fixture
def sign():
    """Build an X-Hub-Signature-256 header value for a body."""
    def _sign(body: bytes, secret: str = APP_SECRET) -> str:
        return "sha256=" + hmac.new(
            key=secret.encode(),
            msg=body,
            digestmod=hashlib.sha256,
        ).hexdigest()
    return _sign


def make_webhook_payload(
    sender: str = "15551234567",
    body: str = "hi",
    message_type: str = "text",
    phone_number_id: str = BUSINESS_PHONE_NUMBER_ID,
    field: str = "messages",
) -> dict:
    """Minimal WhatsApp Cloud API webhook payload with one message."""
    message = {
        "from": sender,
        "id": "wamid.msg_123",
        "timestamp": "1707500000",
        "type": message_type,
    }
    if message_type == "text":
        message["text"] = {"body": body}
    else:
        message[message_type] = {"id": "media_id", "mime_type": "application/octet-stream"}

    return {
        "object": "whatsapp_business_account",
        "entry": [{
            "id": "WABA_ID",
            "changes": [{
                "field": field,
                "value": {
                    "messaging_product": "whatsapp",
                    "metadata": {
                        "display_phone_number": "15557654321",
                        "phone_number_id": phone_number_id,
                    },
                    "messages": [message],
                },
            }],
        }],
    }


@pytest.fixture
def webhook_payload():
    return make_webhook_payload
