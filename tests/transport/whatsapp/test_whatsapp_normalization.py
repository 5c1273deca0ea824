"""
WhatsApp Input Normalization Tests

Test parsing of the webhook envelope and selection of the message to echo.
"""

import json

import pytest

from transport.whatsapp.normalize import (
    MalformedPayloadError,
    UnsupportedMessageTypeError,
    extract_message,
    parse_envelope,
)
from transport.whatsapp.schemas import NothingToReply, SelfSent, UserText, WebhookEnvelope


def envelope_of(payload: dict) -> WebhookEnvelope:
    return parse_envelope(json.dumps(payload).encode())


class TestParseEnvelope:
    """Test raw body parsing."""

    def test_parse_full_payload(self, webhook_payload):
        envelope = envelope_of(webhook_payload())

        assert envelope.object == "whatsapp_business_account"
        assert envelope.entry[0]["changes"][0]["field"] == "messages"

    def test_unknown_fields_allowed(self):
        envelope = envelope_of({"object": "x", "entry": [], "something_new": 1})
        assert envelope.entry == []

    def test_invalid_json(self):
        with pytest.raises(MalformedPayloadError):
            parse_envelope(b"{not json")

    def test_invalid_utf8(self):
        with pytest.raises(MalformedPayloadError):
            parse_envelope(b'{"a": "\x80"}')

    def test_non_object_payload_is_empty(self):
        """Valid JSON that is not an object carries nothing to reply to."""
        envelope = parse_envelope(b"[1, 2]")

        assert envelope.entry is None
        assert isinstance(extract_message(envelope), NothingToReply)

    def test_entry_not_a_list_is_empty(self):
        envelope = parse_envelope(b'{"entry": "not a list"}')

        assert envelope.entry is None
        assert isinstance(extract_message(envelope), NothingToReply)


class TestExtractText:
    """Test text message extraction."""

    def test_user_text_message(self, webhook_payload):
        result = extract_message(envelope_of(webhook_payload(sender="15551234567", body="hi")))

        assert isinstance(result, UserText)
        assert result.sender_id == "15551234567"
        assert result.body == "hi"
        assert result.message_id == "wamid.msg_123"

    def test_body_not_trimmed(self, webhook_payload):
        """Echo is exact: no trimming or enrichment."""
        result = extract_message(envelope_of(webhook_payload(body="  hai im late \n")))
        assert result.body == "  hai im late \n"

    def test_first_message_only(self, webhook_payload):
        payload = webhook_payload(body="first")
        second = dict(payload["entry"][0]["changes"][0]["value"]["messages"][0])
        second["text"] = {"body": "second"}
        payload["entry"][0]["changes"][0]["value"]["messages"].append(second)

        result = extract_message(envelope_of(payload))

        assert result.body == "first"

    def test_text_without_body(self, webhook_payload):
        payload = webhook_payload()
        del payload["entry"][0]["changes"][0]["value"]["messages"][0]["text"]

        with pytest.raises(MalformedPayloadError):
            extract_message(envelope_of(payload))


class TestExtractNothingToReply:
    """Events that are acknowledged without a reply."""

    def test_empty_entry(self):
        assert isinstance(extract_message(envelope_of({"entry": []})), NothingToReply)

    def test_empty_changes(self):
        assert isinstance(extract_message(envelope_of({"entry": [{"changes": []}]})), NothingToReply)

    def test_other_field(self, webhook_payload):
        result = extract_message(envelope_of(webhook_payload(field="account_update")))
        assert isinstance(result, NothingToReply)

    def test_status_update(self):
        payload = {
            "entry": [{
                "changes": [{
                    "field": "messages",
                    "value": {
                        "metadata": {"phone_number_id": "15557654321"},
                        "statuses": [{"id": "wamid.1", "status": "delivered"}],
                    },
                }],
            }],
        }

        assert isinstance(extract_message(envelope_of(payload)), NothingToReply)

    def test_missing_value(self):
        payload = {"entry": [{"changes": [{"field": "messages"}]}]}
        assert isinstance(extract_message(envelope_of(payload)), NothingToReply)

    @pytest.mark.parametrize(
        "payload",
        [
            {"entry": None},
            {"entry": [None]},
            {"entry": [5]},
            {"entry": [{"changes": None}]},
            {"entry": [{"changes": [None]}]},
            {"entry": [{"changes": "n/a"}]},
            {"entry": [{"changes": [{"field": "account_update", "value": {"messages": "n/a"}}]}]},
            {"entry": [{"changes": [{"field": "messages", "value": {"messages": "n/a"}}]}]},
            {"entry": [{"changes": [{"field": "messages", "value": "n/a"}]}]},
        ],
    )
    def test_odd_shapes_have_nothing_to_reply(self, payload):
        assert isinstance(extract_message(envelope_of(payload)), NothingToReply)

    def test_status_update_with_unread_fields_of_any_type(self):
        """Fields that are never read are not validated."""
        payload = {
            "entry": [{
                "id": 123,
                "changes": [{
                    "field": "messages",
                    "value": {
                        "metadata": {"display_phone_number": 15557654321, "phone_number_id": "1"},
                        "statuses": "delivered",
                    },
                }],
            }],
        }

        assert isinstance(extract_message(envelope_of(payload)), NothingToReply)

    def test_later_entries_not_read(self, webhook_payload):
        payload = webhook_payload(body="hi")
        payload["entry"].append("garbage")
        payload["entry"][0]["changes"].append(None)

        result = extract_message(envelope_of(payload))

        assert isinstance(result, UserText)
        assert result.body == "hi"

    def test_unreadable_first_message(self):
        payload = {"entry": [{"changes": [{"field": "messages", "value": {"messages": ["n/a"]}}]}]}

        with pytest.raises(MalformedPayloadError):
            extract_message(envelope_of(payload))


class TestExtractSelfAndUnsupported:
    """Self-sent and non-text messages."""

    def test_self_sent(self, webhook_payload):
        payload = webhook_payload(sender="15557654321", phone_number_id="15557654321")

        result = extract_message(envelope_of(payload))

        assert isinstance(result, SelfSent)
        assert result.sender_id == "15557654321"

    def test_self_check_before_type_check(self, webhook_payload):
        payload = webhook_payload(
            sender="15557654321",
            phone_number_id="15557654321",
            message_type="image",
        )
        assert isinstance(extract_message(envelope_of(payload)), SelfSent)

    @pytest.mark.parametrize("message_type", ["image", "audio", "interactive"])
    def test_unsupported_type(self, webhook_payload, message_type):
        with pytest.raises(UnsupportedMessageTypeError) as exc_info:
            extract_message(envelope_of(webhook_payload(message_type=message_type)))

        assert exc_info.value.message_type == message_type

    def test_missing_sender(self, webhook_payload):
        payload = webhook_payload()
        del payload["entry"][0]["changes"][0]["value"]["messages"][0]["from"]

        with pytest.raises(MalformedPayloadError):
            extract_message(envelope_of(payload))
