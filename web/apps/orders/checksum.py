"""Request signing and webhook signature verification.

PhonePe authenticates API requests with an ``X-VERIFY`` header computed as::

    sha256_hex(base64(body) + route_path + salt_key) + "###" + salt_index

Status queries have no body, so the signed string is just the route path
followed by the key. Inbound webhooks are verified by recomputing
``sha256_hex(raw_body + secret)`` and comparing it in constant time with
the value supplied in the request header.

The payload must be serialized once with ``encode_payload`` and those exact
bytes both signed and sent; re-serializing between the two is the usual
cause of checksum mismatches.
"""

import base64
import hashlib
import hmac
import json

SEPARATOR = "###"


def encode_payload(payload: dict) -> bytes:
    """Serialize a payload to canonical JSON bytes.

    Keys are sorted and separators are compact so the same dict always
    yields the same bytes.

    Args:
        payload: JSON-serializable request payload.

    Returns:
        bytes: UTF-8 encoded canonical JSON.
    """
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


def b64(body: bytes) -> str:
    """Base64-encode ``body``; an empty body encodes to the empty string."""
    return base64.b64encode(body).decode("ascii") if body else ""


def sign(body: bytes, route_path: str, secret: str, key_index: int) -> str:
    """Compute the vendor checksum for a request.

    Args:
        body: Canonical request bytes (``b""`` for body-less requests).
        route_path: Vendor API route being called, e.g. ``/pg/v1/pay``.
        secret: Salt key issued by the vendor.
        key_index: Index of the salt key, appended after ``###``.

    Returns:
        str: ``<sha256 hex>###<key_index>``.
    """
    digest = hashlib.sha256((b64(body) + route_path + secret).encode("utf-8")).hexdigest()
    return f"{digest}{SEPARATOR}{key_index}"


def webhook_digest(raw_body: bytes, secret: str) -> str:
    """Return the expected hex signature for a webhook body."""
    return hashlib.sha256(raw_body + secret.encode("utf-8")).hexdigest()


def verify_webhook_signature(raw_body: bytes, signature: str | None, secret: str) -> bool:
    """Check a webhook signature header against the raw request body.

    Args:
        raw_body: Request body exactly as received.
        signature: Value of the vendor's signature header.
        secret: Configured webhook secret.

    Returns:
        bool: True only when the signature matches.
    """
    if not signature or not secret:
        return False
    expected = webhook_digest(raw_body, secret)
    return hmac.compare_digest(expected.encode("ascii"), signature.strip().lower().encode("utf-8"))
