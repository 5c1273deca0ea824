"""
WhatsApp Input Normalization

PURE CONVERSION - NO I/O

Turns a signature-verified raw body into a typed WebhookEnvelope
and picks out the one message worth replying to:
- Only entry[0].changes[0] with field == "messages" is considered
- Only the first message of the batch is used
- Messages from the business number itself are not replied to
- Only text messages are supported
"""

import json
from typing import Any, Optional, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from .schemas import (
    Change,
    ChangeValue,
    Entry,
    Extraction,
    InboundMessage,
    NothingToReply,
    SelfSent,
    UserText,
    WebhookEnvelope,
)

T = TypeVar("T", bound=BaseModel)


class NormalizationError(Exception):
    """Input normalization failed."""
    pass


class MalformedPayloadError(NormalizationError):
    """Body is not JSON, or the message to reply to cannot be read."""
    pass


class UnsupportedMessageTypeError(NormalizationError):
    """Message type other than text."""

    def __init__(self, message_type):
        self.message_type = message_type
        super().__init__(f"Unsupported message type: {message_type}")


def parse_envelope(raw_body: bytes) -> WebhookEnvelope:
    """
    Parse a verified raw body.

    Valid JSON that is not a webhook object yields an empty envelope,
    which is acknowledged like any event with nothing to reply to.

    Raises:
        MalformedPayloadError: body is not JSON
    """
    try:
        payload = json.loads(raw_body)
    except ValueError as e:
        raise MalformedPayloadError(f"Invalid JSON payload: {e}") from e

    if not isinstance(payload, dict):
        return WebhookEnvelope()

    try:
        return WebhookEnvelope.model_validate(payload)
    except SchemaValidationError:
        return WebhookEnvelope()


def _first(items: Optional[list[Any]], model: type[T]) -> Optional[T]:
    """Validate the first item of a raw list, or None if absent or unreadable."""
    if not items:
        return None
    try:
        return model.model_validate(items[0])
    except SchemaValidationError:
        return None


def extract_message(envelope: WebhookEnvelope) -> Extraction:
    """
    Select the message to reply to.

    Only entry[0].changes[0] is read, and its value only when
    field == "messages" and a messages list is present.

    Returns:
        NothingToReply, SelfSent or UserText

    Raises:
        UnsupportedMessageTypeError: first message is not text
        MalformedPayloadError: message present but unreadable,
            or text message without a sender or body
    """
    entry = _first(envelope.entry, Entry)
    change = _first(entry.changes, Change) if entry else None
    if change is None:
        return NothingToReply("no changes in payload")

    if change.field != "messages":
        return NothingToReply(f"field is {change.field!r}")

    raw_value = change.value
    if not isinstance(raw_value, dict) or not isinstance(raw_value.get("messages"), list):
        return NothingToReply("no messages in change")
    if not raw_value["messages"]:
        return NothingToReply("no messages in change")

    try:
        value = ChangeValue.model_validate(raw_value)
        # First message only
        message = InboundMessage.model_validate(value.messages[0])
    except SchemaValidationError as e:
        raise MalformedPayloadError(f"Invalid message structure: {e}") from e

    sender_id = message.from_
    if not sender_id:
        raise MalformedPayloadError("Message missing 'from'")

    business_id = value.metadata.phone_number_id if value.metadata else None
    if sender_id == business_id:
        return SelfSent(sender_id)

    if message.type != "text":
        raise UnsupportedMessageTypeError(message.type)

    if message.text is None or message.text.body is None:
        raise MalformedPayloadError("Text message missing 'text.body'")

    return UserText(sender_id=sender_id, body=message.text.body, message_id=message.id)
