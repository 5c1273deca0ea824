"""WhatsApp Transport Layer - Module Exports"""

from .normalize import (
    MalformedPayloadError,
    NormalizationError,
    UnsupportedMessageTypeError,
    extract_message,
    parse_envelope,
)
from .schemas import (
    Extraction,
    InboundMessage,
    NothingToReply,
    OutboundPayload,
    Responded,
    SelfSent,
    TemplatePayload,
    TextPayload,
    UserText,
    VerificationResult,
    Verified,
    WebhookEnvelope,
)
from .security import (
    CryptoOperationError,
    SignatureMismatchError,
    SignatureVerificationError,
    SignatureVerifiedWebhook,
)
from .sender import (
    RemoteApiError,
    TransportError,
    ValidationError,
    WhatsAppClient,
    WhatsAppClientError,
)
from .webhook import handle_webhook_request, router

__all__ = [
    # Schemas
    "WebhookEnvelope",
    "InboundMessage",
    "TextPayload",
    "TemplatePayload",
    "OutboundPayload",
    "Responded",
    "Verified",
    "VerificationResult",
    "NothingToReply",
    "SelfSent",
    "UserText",
    "Extraction",
    # Normalization
    "parse_envelope",
    "extract_message",
    "NormalizationError",
    "MalformedPayloadError",
    "UnsupportedMessageTypeError",
    # Security
    "SignatureVerifiedWebhook",
    "SignatureVerificationError",
    "SignatureMismatchError",
    "CryptoOperationError",
    # Sender
    "WhatsAppClient",
    "WhatsAppClientError",
    "ValidationError",
    "RemoteApiError",
    "TransportError",
    # Router
    "handle_webhook_request",
    "router",
]
