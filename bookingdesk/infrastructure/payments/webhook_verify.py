from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
import time
from typing import Mapping


logger = logging.getLogger(__name__)

# Standard Webhooks headers, with the Svix names some gateways still send.
_HEADER_SETS = (
    ("webhook-id", "webhook-timestamp", "webhook-signature"),
    ("svix-id", "svix-timestamp", "svix-signature"),
)


def _signature_headers(headers: Mapping[str, str]) -> tuple[str, str, str] | None:
    lowered = {key.lower(): value for key, value in headers.items()}
    for id_key, ts_key, sig_key in _HEADER_SETS:
        msg_id = lowered.get(id_key)
        timestamp = lowered.get(ts_key)
        signature = lowered.get(sig_key)
        if msg_id and timestamp and signature:
            return msg_id, timestamp, signature
    return None


def _secret_bytes(secret: str) -> bytes:
    if secret.startswith("whsec_"):
        try:
            return base64.b64decode(secret[len("whsec_"):])
        except (binascii.Error, ValueError):
            logger.warning("Webhook secret is not valid base64; using it as raw text")
    return secret.encode("utf-8")


def sign(body: bytes, msg_id: str, timestamp: str, secret: str) -> str:
    signed = f"{msg_id}.{timestamp}.".encode("utf-8") + body
    digest = hmac.new(_secret_bytes(secret), signed, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(
    body: bytes,
    headers: Mapping[str, str],
    secret: str,
    tolerance_seconds: int = 300,
    now: float | None = None,
) -> bool:
    """Check a signed webhook delivery against the exact bytes received."""
    found = _signature_headers(headers)
    if found is None:
        logger.warning("Webhook signature headers missing")
        return False
    msg_id, timestamp, signature_header = found

    try:
        sent_at = int(timestamp)
    except ValueError:
        return False
    current = time.time() if now is None else now
    if abs(current - sent_at) > tolerance_seconds:
        logger.warning("Webhook timestamp outside tolerance", extra={"event_id": msg_id})
        return False

    expected = sign(body, msg_id, timestamp, secret)
    for entry in signature_header.split():
        version, _, candidate = entry.partition(",")
        if version != "v1" or not candidate:
            continue
        if hmac.compare_digest(expected.encode("ascii"), candidate.encode("ascii", "ignore")):
            return True
    return False
