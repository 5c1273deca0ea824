"""
WhatsApp Transport Layer - Pydantic Schemas

PURE DATA MODELS - NO LOGIC
Defines the inbound webhook envelope, the outbound send payloads
and the result of webhook verification.
"""

from dataclasses import dataclass
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field
from fastapi import Response


# ============================================================================
# WHATSAPP WEBHOOK PAYLOAD SCHEMAS (INPUT)
# ============================================================================
# Every nested field is optional: Meta omits keys freely depending on
# the event kind (messages, statuses, errors). Lists are kept raw and
# only their first item is validated, when it is actually read.

class TextBody(BaseModel):
    """Body of a text message: {"body": "..."}"""
    body: Optional[str] = None


class InboundMessage(BaseModel):
    """A single message sent by a WhatsApp user."""
    from_: Optional[str] = Field(None, alias="from")
    id: Optional[str] = None
    timestamp: Optional[str] = None
    type: Optional[str] = None

    text: Optional[TextBody] = None

    class Config:
        populate_by_name = True
        extra = "allow"  # audio, image, interactive, ...


class Metadata(BaseModel):
    """Business phone number the event was delivered to."""
    phone_number_id: Optional[str] = None

    class Config:
        extra = "allow"


class ChangeValue(BaseModel):
    """Value of a "messages" change that carries inbound messages."""
    metadata: Optional[Metadata] = None
    messages: Optional[list[Any]] = None

    class Config:
        extra = "allow"  # statuses, contacts, errors


class Change(BaseModel):
    field: Optional[Any] = None
    value: Optional[Any] = None  # read as ChangeValue only for field == "messages"


class Entry(BaseModel):
    changes: Optional[list[Any]] = None

    class Config:
        extra = "allow"


class WebhookEnvelope(BaseModel):
    """
    Full WhatsApp webhook payload.

    ref: https://developers.facebook.com/docs/whatsapp/cloud-api/webhooks/payload-examples
    """

    object: Optional[Any] = Field(None, description="Always 'whatsapp_business_account'")
    entry: Optional[list[Any]] = Field(None, description="Webhook entries")

    class Config:
        extra = "allow"  # WhatsApp may add fields


# ============================================================================
# WHATSAPP SEND API PAYLOADS (OUTPUT)
# ============================================================================

class TemplateLanguage(BaseModel):
    code: str


class Template(BaseModel):
    name: str
    language: TemplateLanguage
    components: list[Any] = Field(default_factory=list)


class TextPayload(BaseModel):
    """Free-form text message."""
    messaging_product: Literal["whatsapp"] = "whatsapp"
    to: str
    type: Literal["text"] = "text"
    text: TextBody


class TemplatePayload(BaseModel):
    """Pre-approved template message."""
    messaging_product: Literal["whatsapp"] = "whatsapp"
    to: str
    type: Literal["template"] = "template"
    template: Template


OutboundPayload = Union[TextPayload, TemplatePayload]


# ============================================================================
# VERIFICATION RESULT
# ============================================================================

@dataclass(frozen=True)
class Responded:
    """Verification finished the request: return this response as-is."""
    response: Response


@dataclass(frozen=True)
class Verified:
    """Signature matched: the raw body may be parsed."""
    raw_body: bytes


VerificationResult = Union[Responded, Verified]


# ============================================================================
# EXTRACTION RESULT
# ============================================================================

@dataclass(frozen=True)
class NothingToReply:
    """Event carries no user message (status update, other field)."""
    reason: str


@dataclass(frozen=True)
class SelfSent:
    """Message was sent by the business account itself."""
    sender_id: str


@dataclass(frozen=True)
class UserText:
    """Text message from a user."""
    sender_id: str
    body: str
    message_id: Optional[str] = None


Extraction = Union[NothingToReply, SelfSent, UserText]
