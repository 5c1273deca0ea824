"""
WhatsApp Webhook Verification

SECURITY BOUNDARY - every inbound request passes through here first.
- GET: subscription handshake against the verify token
- POST: Meta HMAC-SHA256 signature over the raw body against the app secret
No parsing of the body. No retries.
"""

import hashlib
import hmac
import logging
from typing import Mapping, Optional

from fastapi import Request, status
from fastapi.responses import PlainTextResponse

from config import WhatsAppCredentials

from .schemas import Responded, Verified, VerificationResult

SIGNATURE_HEADER = "x-hub-signature-256"
SIGNATURE_PREFIX = "sha256="


class SignatureVerificationError(Exception):
    """Signature verification failed."""
    pass


class SignatureMismatchError(SignatureVerificationError):
    """Signature header does not match the body."""
    pass


class CryptoOperationError(SignatureVerificationError):
    """HMAC could not be computed (missing or unusable app secret)."""
    pass


def compute_signature(body: bytes, app_secret: str) -> str:
    """
    Compute the lowercase hex HMAC-SHA256 of the raw body.

    Raises:
        CryptoOperationError: app secret missing or not encodable
    """
    if not app_secret:
        raise CryptoOperationError("WA_APP_SECRET not configured")

    try:
        return hmac.new(
            key=app_secret.encode("utf-8"),
            msg=body,
            digestmod=hashlib.sha256,
        ).hexdigest()
    except (TypeError, ValueError) as e:
        raise CryptoOperationError(f"HMAC computation failed: {e}") from e


def check_signature(body: bytes, signature: str, app_secret: str) -> None:
    """
    Compare the hex signature (without the sha256= prefix) in constant time.

    Raises:
        SignatureMismatchError: signature does not match
        CryptoOperationError: HMAC could not be computed
    """
    expected = compute_signature(body, app_secret)
    if not hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8")):
        raise SignatureMismatchError("x-hub-signature-256 does not match body")


class SignatureVerifiedWebhook:
    """
    Gate for the WhatsApp webhook endpoint.

    Yields either a finished response (handshake, rejection)
    or the trusted raw body. Holds no per-request state.
    """

    def __init__(
        self,
        credentials: WhatsAppCredentials,
        logger: Optional[logging.Logger] = None,
    ):
        self.credentials = credentials
        self.logger = logger or logging.getLogger(__name__)

    async def verify(self, request: Request) -> VerificationResult:
        """Dispatch on HTTP method. POST bodies are read only here."""
        if request.method == "GET":
            return self.verify_challenge(request.query_params, request.url.path)

        if request.method == "POST" and SIGNATURE_HEADER in request.headers:
            body = await request.body()
            return self.verify_signature(request.headers[SIGNATURE_HEADER], body)

        self.logger.warning(
            f"Rejected {request.method} webhook request",
            extra={"method": request.method, "path": request.url.path},
        )
        return Responded(
            PlainTextResponse("Invalid request", status_code=status.HTTP_400_BAD_REQUEST)
        )

    def verify_challenge(self, query: Mapping[str, str], path: str = "") -> Responded:
        """
        Verify webhook subscription challenge from WhatsApp.

        WhatsApp calls GET with:
        - hub.mode=subscribe
        - hub.challenge=random_string
        - hub.verify_token=configured_token

        The challenge is echoed back unmodified.
        """
        mode = query.get("hub.mode")
        token = query.get("hub.verify_token")

        if (
            mode == "subscribe"
            and token is not None
            and self.credentials.verify_token
            and hmac.compare_digest(token.encode("utf-8"), self.credentials.verify_token.encode("utf-8"))
        ):
            self.logger.info(
                f"webhook subscription request to {path} successfully verified",
                extra={"path": path},
            )
            return Responded(
                PlainTextResponse(query.get("hub.challenge") or "", status_code=status.HTTP_200_OK)
            )

        error_message = (
            f"webhook subscription request to {path} has either missing "
            f"or non-matching verify token"
        )
        self.logger.error(error_message, extra={"path": path, "hub_mode": mode})
        return Responded(
            PlainTextResponse(error_message, status_code=status.HTTP_401_UNAUTHORIZED)
        )

    def verify_signature(self, header_value: str, body: bytes) -> VerificationResult:
        """
        Verify Meta HMAC-SHA256 signature on a webhook body.

        Returns:
            Verified(body) if the signature matches, otherwise Responded
            with 400 (empty header), 401 (mismatch) or 500 (crypto failure).
        """
        signature = header_value
        if signature.startswith(SIGNATURE_PREFIX):
            signature = signature[len(SIGNATURE_PREFIX):]

        if not signature:
            return Responded(
                PlainTextResponse(
                    "Missing x-hub-signature-256 header",
                    status_code=status.HTTP_400_BAD_REQUEST,
                )
            )

        try:
            check_signature(body, signature, self.credentials.app_secret)
        except SignatureMismatchError:
            self.logger.error("Error: x-hub signature doesn't match")
            return Responded(
                PlainTextResponse("Invalid signature", status_code=status.HTTP_401_UNAUTHORIZED)
            )
        except CryptoOperationError as e:
            self.logger.error(f"Error processing webhook request: {e}")
            return Responded(
                PlainTextResponse(
                    "Internal Server Error",
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                )
            )

        self.logger.info("x-hub-signature-256 header matches generated signature")
        return Verified(body)
