import base64
import hashlib
import hmac
from typing import Optional

import httpx

from relay.logging_config import get_logger
from relay.services.result import DELIVERY_ERROR, DELIVERY_HTTP_ERROR, Result

logger = get_logger("line_service")

MAX_TEXT_LENGTH = 4900


def compute_signature(channel_secret: str, body: bytes) -> str:
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(channel_secret: str, body: bytes, signature: Optional[str]) -> bool:
    """Check x-line-signature: base64(HMAC-SHA256(channel secret, raw body))."""
    if not channel_secret or not signature:
        return False
    expected = compute_signature(channel_secret, body)
    return hmac.compare_digest(expected, signature)


class LineService:
    """Service for replying to LINE users."""

    REPLY_URL = "https://api.line.me/v2/bot/message/reply"

    def __init__(self, access_token: str, timeout_seconds: float = 10.0):
        self.access_token = access_token
        self.timeout_seconds = timeout_seconds

    def reply(self, reply_token: str, text: str) -> Result[None]:
        """Send one text message with a reply token. Never raises."""
        payload = {
            "replyToken": reply_token,
            "messages": [{"type": "text", "text": text[:MAX_TEXT_LENGTH]}],
        }
        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.post(
                    self.REPLY_URL,
                    headers={
                        "Authorization": f"Bearer {self.access_token}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
        except httpx.HTTPError as e:
            logger.error(f"LINE reply error: {e}")
            return Result.failure(str(e), DELIVERY_ERROR)

        if response.status_code != 200:
            logger.error(
                "LINE reply failed",
                extra={"context": {"status": response.status_code, "body": response.text[:200]}},
            )
            return Result.failure(f"LINE reply failed: {response.status_code} {response.text}", DELIVERY_HTTP_ERROR)

        return Result.success()
