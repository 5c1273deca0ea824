"""
WhatsApp Message Sender

Minimal client for the WhatsApp Cloud API send-message endpoint.
Text and template messages only. No retries: retry policy belongs to the caller.

ref: https://developers.facebook.com/docs/whatsapp/cloud-api/reference/messages
"""

import logging
from typing import Any, Optional

import httpx

from config import WhatsAppCredentials

from .schemas import (
    OutboundPayload,
    Template,
    TemplateLanguage,
    TemplatePayload,
    TextBody,
    TextPayload,
)


# Response body that could not be decoded; JSON null decodes to None
_NOT_JSON = object()


class WhatsAppClientError(Exception):
    """Failed to send a message to WhatsApp."""
    pass


class ValidationError(WhatsAppClientError):
    """Required caller-supplied field missing or empty."""
    pass


class RemoteApiError(WhatsAppClientError):
    """WhatsApp API answered with a non-success status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Error: {status_code} - {message}")


class TransportError(WhatsAppClientError):
    """Network-level failure reaching the WhatsApp API (DNS, TLS, timeout)."""
    pass


class WhatsAppClient:
    """
    WhatsApp Cloud API client bound to one set of credentials.

    An httpx.AsyncClient may be injected; otherwise one is opened per request.
    """

    def __init__(
        self,
        credentials: WhatsAppCredentials,
        http_client: Optional[httpx.AsyncClient] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.credentials = credentials
        self.http_client = http_client
        self.logger = logger or logging.getLogger(__name__)

    async def send_text_message(self, to: str, text: str) -> Any:
        """
        Send a free-form text message.

        ref: https://developers.facebook.com/docs/whatsapp/on-premises/reference/messages#formatting

        Raises:
            ValidationError: recipient or text missing
            RemoteApiError: non-2xx response
            TransportError: request never got a response
        """
        if not to or not text:
            raise ValidationError("Recipient phone number and message text are required")

        payload = TextPayload(to=to, text=TextBody(body=text))
        return await self.send("/messages", "POST", payload)

    async def send_template_message(
        self,
        to: str,
        template_name: str,
        language_code: str,
        components: Optional[list[Any]] = None,
    ) -> Any:
        """Send a template message. Components are passed through unmodified."""
        if not to or not template_name or not language_code:
            raise ValidationError(
                "Recipient phone number, template name, and language code are required"
            )

        payload = TemplatePayload(
            to=to,
            template=Template(
                name=template_name,
                language=TemplateLanguage(code=language_code),
                components=list(components or []),
            ),
        )
        return await self.send("/messages", "POST", payload)

    async def send(
        self,
        endpoint: str,
        method: str,
        payload: OutboundPayload,
    ) -> Any:
        """
        Issue a request to {api_base_url}/{phone_number_id}{endpoint}.

        The JSON body is parsed regardless of status. On success
        it is returned as-is, without checking its shape.
        """
        url = f"{self.credentials.api_base_url}/{self.credentials.phone_number_id}{endpoint}"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.credentials.access_token}",
        }
        body = payload.model_dump(by_alias=True)

        try:
            if self.http_client is not None:
                response = await self.http_client.request(method, url, json=body, headers=headers)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.request(method, url, json=body, headers=headers)
        except httpx.RequestError as e:
            self.logger.error(
                f"WhatsApp API request failed: {e}",
                exc_info=True,
                extra={"recipient": payload.to, "error": str(e)},
            )
            raise TransportError(f"HTTP request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = _NOT_JSON

        if not response.is_success:
            message = "Unknown error"
            if isinstance(data, dict) and isinstance(data.get("error"), dict):
                message = data["error"].get("message") or message
            self.logger.error(
                f"WhatsApp API error: {response.status_code} - {message}",
                extra={"status_code": response.status_code, "recipient": payload.to},
            )
            raise RemoteApiError(response.status_code, message)

        if data is _NOT_JSON:
            self.logger.error(
                "WhatsApp API returned a non-JSON body",
                extra={"status_code": response.status_code},
            )
            raise RemoteApiError(response.status_code, "Invalid JSON response")

        self.logger.info(
            f"Message sent to {payload.to}",
            extra={"recipient": payload.to, "message_type": payload.type},
        )
        return data
