"""
WhatsApp Webhook Receiver

FastAPI router for the WhatsApp Cloud API webhook.

Flow:
  verify (handshake / signature) → parse → extract → echo reply

Meta expects every verified event to be acknowledged with 200,
including events with nothing to reply to.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse

from config import WhatsAppCredentials

from .normalize import (
    MalformedPayloadError,
    UnsupportedMessageTypeError,
    extract_message,
    parse_envelope,
)
from .schemas import NothingToReply, Responded, SelfSent, UserText
from .security import SignatureVerifiedWebhook
from .sender import WhatsAppClient, WhatsAppClientError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["WhatsApp Transport"])

ACK_TEXT = "Webhook received successfully"


# ============================================================================
# DEPENDENCIES
# ============================================================================

def get_credentials() -> WhatsAppCredentials:
    """Credentials are read from the environment on every request."""
    return WhatsAppCredentials.from_env()


def get_logger() -> logging.Logger:
    return logger


def get_webhook(
    credentials: WhatsAppCredentials = Depends(get_credentials),
    log: logging.Logger = Depends(get_logger),
) -> SignatureVerifiedWebhook:
    return SignatureVerifiedWebhook(credentials, logger=log)


def get_client(
    credentials: WhatsAppCredentials = Depends(get_credentials),
    log: logging.Logger = Depends(get_logger),
) -> WhatsAppClient:
    return WhatsAppClient(credentials, logger=log)


# ============================================================================
# ORCHESTRATION
# ============================================================================

def _acknowledge() -> Response:
    return PlainTextResponse(ACK_TEXT, status_code=status.HTTP_200_OK)


async def handle_webhook_request(
    request: Request,
    webhook: SignatureVerifiedWebhook,
    client: WhatsAppClient,
    log: Optional[logging.Logger] = None,
) -> Response:
    """
    Handle one webhook request end to end.

    Returns:
        Handshake/rejection response from the verifier, 400 for a
        malformed body, 200 ack when there is nothing to reply to,
        200 {"success": true, "data": ...} after an echo reply,
        500 {"success": false, "error": ...} if the reply failed.
    """
    log = log or logger

    result = await webhook.verify(request)
    if isinstance(result, Responded):
        return result.response

    try:
        envelope = parse_envelope(result.raw_body)
        extraction = extract_message(envelope)
    except MalformedPayloadError as e:
        log.warning(f"Malformed webhook payload: {e}")
        return PlainTextResponse("Invalid payload", status_code=status.HTTP_400_BAD_REQUEST)
    except UnsupportedMessageTypeError as e:
        log.info(f"Skipping reply: {e}", extra={"message_type": e.message_type})
        return _acknowledge()

    if isinstance(extraction, NothingToReply):
        log.debug(f"Nothing to reply to: {extraction.reason}")
        return _acknowledge()

    if isinstance(extraction, SelfSent):
        log.info(
            "Message was sent by the business account (self).",
            extra={"sender_id": extraction.sender_id},
        )
        return _acknowledge()

    return await _echo(extraction, client, log)


async def _echo(message: UserText, client: WhatsAppClient, log: logging.Logger) -> Response:
    log.info(
        f"User sent a message: {message.body[:80]}",
        extra={"sender_id": message.sender_id, "message_id": message.message_id},
    )

    try:
        data: Any = await client.send_text_message(message.sender_id, message.body)
    except WhatsAppClientError as e:
        log.error(
            f"Echo reply failed: {e}",
            extra={"sender_id": message.sender_id, "error_type": type(e).__name__},
        )
        return JSONResponse(
            {"success": False, "error": str(e)},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return JSONResponse({"success": True, "data": data}, status_code=status.HTTP_200_OK)


# ============================================================================
# ROUTE
# ============================================================================

@router.api_route(
    "/whatsapp",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"],
)
async def whatsapp_webhook(
    request: Request,
    webhook: SignatureVerifiedWebhook = Depends(get_webhook),
    client: WhatsAppClient = Depends(get_client),
    log: logging.Logger = Depends(get_logger),
) -> Response:
    """
    WhatsApp webhook endpoint.

    GET: subscription handshake (hub.mode, hub.verify_token, hub.challenge)
    POST: event notification signed with X-Hub-Signature-256
    Any other method is rejected with 400.
    """
    return await handle_webhook_request(request, webhook, client, log)
