"""
Svix / Standard Webhooks signature verification for identity-provider events.

Signed payload format:
    f"{webhook_id}.{webhook_timestamp}.{raw_body}"

The HMAC-SHA256 digest (keyed with the base64-decoded "whsec_" secret) is sent
base64-encoded in the signature header as one or more space separated
"v1,<signature>" entries (several while a secret is being rotated).
"""
import base64
import binascii
import hashlib
import hmac
import time
from typing import Mapping, Optional


class WebhookVerificationError(Exception):
    pass


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    # Svix sends "svix-*" headers; the Standard Webhooks spelling is "webhook-*"
    return headers.get(f"svix-{name}") or headers.get(f"webhook-{name}")


def _secret_bytes(secret: str) -> bytes:
    try:
        if secret.startswith("whsec_"):
            return base64.b64decode(secret.split("_", 1)[1])
        return secret.encode()
    except (binascii.Error, ValueError) as e:
        raise WebhookVerificationError(f"Malformed webhook secret: {e}")


def sign(secret: str, webhook_id: str, webhook_timestamp: str, payload: bytes) -> str:
    """Return the "v1,<base64>" signature for a payload."""
    signed_payload = f"{webhook_id}.{webhook_timestamp}.".encode() + payload
    digest = hmac.new(_secret_bytes(secret), signed_payload, hashlib.sha256).digest()
    return "v1," + base64.b64encode(digest).decode()


def verify_webhook(
    secret: str,
    payload: bytes,
    headers: Mapping[str, str],
    tolerance_seconds: int = 300,
    now: Optional[float] = None,
) -> None:
    """Raise WebhookVerificationError unless the payload carries a valid, fresh signature."""
    webhook_id = _header(headers, "id")
    webhook_timestamp = _header(headers, "timestamp")
    signature_header = _header(headers, "signature")
    if not webhook_id or not webhook_timestamp or not signature_header:
        raise WebhookVerificationError("Missing webhook signature headers")

    try:
        sent_at = int(webhook_timestamp)
    except ValueError:
        raise WebhookVerificationError("Invalid webhook timestamp")
    current = time.time() if now is None else now
    if abs(current - sent_at) > tolerance_seconds:
        raise WebhookVerificationError("Webhook timestamp outside the tolerance window")

    expected = sign(secret, webhook_id, webhook_timestamp, payload).split(",", 1)[1]
    for entry in signature_header.split():
        version, _, signature = entry.partition(",")
        if version == "v1" and hmac.compare_digest(signature, expected):
            return
    raise WebhookVerificationError("No matching webhook signature")
