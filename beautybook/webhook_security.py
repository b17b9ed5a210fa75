"""
Webhook Security Module

Signature verification for payment processor webhooks (Standard Webhooks scheme):
- Constant-time signature comparison
- Timestamp validation against replays
- Verification over the raw request body
"""

import base64
import binascii
import hashlib
import hmac
import logging
import time
from typing import Optional

from fastapi import Request

from .shared.errors import UnauthorizedError

logger = logging.getLogger(__name__)

# Maximum age of webhook in seconds (5 minutes)
MAX_WEBHOOK_AGE_SECONDS = 300


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Uses hmac.compare_digest which is designed for this purpose.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def extract_svix_signing_key(secret: str) -> bytes:
    """
    Extract Standard Webhooks signing key bytes from a whsec_ style secret.

    - Incoming secret typically looks like: "whsec_BASE64KEY"
    - The HMAC key is the base64-decoded part after "whsec_"
    - Secrets that are not valid base64 are used as raw UTF-8 bytes
    """
    try:
        if secret.startswith("whsec_"):
            return base64.b64decode(secret[6:])
        return base64.b64decode(secret, validate=True)
    except (binascii.Error, ValueError):
        return secret.encode("utf-8")


def verify_timestamp(timestamp: Optional[str], max_age: int = MAX_WEBHOOK_AGE_SECONDS) -> bool:
    """
    Verify webhook timestamp is within acceptable range.

    Args:
        timestamp: Unix timestamp as string
        max_age: Maximum age in seconds

    Returns:
        True if timestamp is valid, False otherwise
    """
    try:
        age = abs(int(time.time()) - int(timestamp))
    except (ValueError, TypeError):
        logger.warning(f"🚫 Invalid webhook timestamp format: {timestamp}")
        return False

    if age > max_age:
        logger.warning(f"🚫 Webhook timestamp too old: {age}s (max: {max_age}s)")
        return False
    return True


def create_webhook_signature(secret: str, webhook_id: str, timestamp: str, payload: bytes) -> str:
    """Signature header value ("v1,<base64>") for id.timestamp.payload"""
    signed_message = b".".join([webhook_id.encode("utf-8"), timestamp.encode("utf-8"), payload])
    digest = hmac.new(extract_svix_signing_key(secret), signed_message, hashlib.sha256).digest()
    return f"v1,{base64.b64encode(digest).decode('utf-8')}"


async def verify_payment_webhook(request: Request, secret: str) -> bytes:
    """
    Verify a payment webhook signature.

    The signed message is webhook-id.webhook-timestamp.payload and the
    webhook-signature header holds one or more space-separated "v1,<sig>" entries.

    Returns:
        The raw request body

    Raises:
        UnauthorizedError: On missing headers, stale timestamp or bad signature
    """
    raw_body = await request.body()

    signature_header = request.headers.get("webhook-signature", "")
    timestamp = request.headers.get("webhook-timestamp", "")
    webhook_id = request.headers.get("webhook-id", "")

    logger.info(f"📥 Payment webhook received: id={webhook_id or 'unknown'}")

    if not signature_header or not timestamp or not webhook_id:
        logger.error("❌ Missing webhook signature headers")
        raise UnauthorizedError("Missing webhook signature")

    if not verify_timestamp(timestamp):
        raise UnauthorizedError("Webhook timestamp expired")

    expected = create_webhook_signature(secret, webhook_id, timestamp, raw_body)
    for candidate in signature_header.split():
        if constant_time_compare(expected, candidate):
            logger.info(f"✅ Payment webhook signature verified: {webhook_id}")
            return raw_body

    logger.error(f"❌ Payment webhook signature mismatch for {webhook_id}")
    raise UnauthorizedError("Invalid webhook signature")
