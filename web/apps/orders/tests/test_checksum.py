"""Unit tests for request signing and webhook signature verification."""

import base64
import hashlib

from apps.orders.checksum import encode_payload, sign, verify_webhook_signature, webhook_digest


def test_sign_known_vector():
    """Empty body: the signed string is route + key, here "ab" + "c" == "abc"."""
    assert sign(b"", "ab", "c", 1) == (
        "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad###1"
    )


def test_sign_uses_base64_body_route_and_key():
    body = encode_payload({"merchantId": "M1", "amount": 10000})
    expected = hashlib.sha256(
        (base64.b64encode(body).decode() + "/pg/v1/pay" + "salt").encode()
    ).hexdigest()
    assert sign(body, "/pg/v1/pay", "salt", 3) == f"{expected}###3"


def test_sign_is_deterministic():
    body = encode_payload({"b": 2, "a": 1})
    assert sign(body, "/pg/v1/pay", "salt", 1) == sign(body, "/pg/v1/pay", "salt", 1)


def test_encode_payload_is_canonical():
    """Key order in the source dict does not change the signed bytes."""
    assert encode_payload({"b": 2, "a": 1}) == encode_payload({"a": 1, "b": 2}) == b'{"a":1,"b":2}'


def test_sign_changes_with_route_and_key():
    body = encode_payload({"amount": 100})
    base = sign(body, "/pg/v1/pay", "salt", 1)
    assert sign(body, "/pg/v1/status", "salt", 1) != base
    assert sign(body, "/pg/v1/pay", "other", 1) != base


def test_webhook_signature_roundtrip():
    raw = b'{"data":{"order":{"order_id":"abc"}}}'
    sig = webhook_digest(raw, "whsec")
    assert sig == hashlib.sha256(raw + b"whsec").hexdigest()
    assert verify_webhook_signature(raw, sig, "whsec") is True
    assert verify_webhook_signature(raw, sig.upper(), "whsec") is True


def test_webhook_signature_rejects_forgeries():
    raw = b'{"data":{"order":{"order_id":"abc"}}}'
    sig = webhook_digest(raw, "whsec")
    assert verify_webhook_signature(raw + b" ", sig, "whsec") is False
    assert verify_webhook_signature(raw, sig, "other") is False
    assert verify_webhook_signature(raw, "deadbeef", "whsec") is False
    assert verify_webhook_signature(raw, None, "whsec") is False
    assert verify_webhook_signature(raw, "", "whsec") is False
    assert verify_webhook_signature(raw, "sïgnature", "whsec") is False
