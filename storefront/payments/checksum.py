"""X-VERIFY checksum helpers for the PhonePe PG v1 API.

The gateway expects ``sha256(base64_body + path_suffix + salt_key)`` in hex,
followed by ``###`` and the salt index. Pay and status requests sign over
different path suffixes.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import json
from typing import Any, Mapping

from storefront.payments.base import SignedPayload

PAY_PATH = "/pg/v1/pay"
STATUS_PATH = "/pg/v1/status"
SEPARATOR = "###"


def sign(base64_body: str, path_suffix: str, secret: str) -> str:
    string_to_hash = f"{base64_body}{path_suffix}{secret}"
    return hashlib.sha256(string_to_hash.encode("utf-8")).hexdigest()


def build_signature_header(digest: str, key_index: str | int) -> str:
    return f"{digest}{SEPARATOR}{key_index}"


def encode_payload(payload: Mapping[str, Any]) -> str:
    raw = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_payload(base64_body: str) -> dict[str, Any]:
    return json.loads(base64.b64decode(base64_body.encode("ascii")).decode("utf-8"))


def signed_payload(
    payload: Mapping[str, Any],
    path_suffix: str,
    secret: str,
    key_index: str | int,
) -> SignedPayload:
    base64_body = encode_payload(payload)
    header = build_signature_header(sign(base64_body, path_suffix, secret), key_index)
    return SignedPayload(base64_body=base64_body, signature_header=header)


def verify_signature_header(base64_body: str, path_suffix: str, secret: str, header: str) -> bool:
    if not header or header.count(SEPARATOR) != 1:
        return False
    digest, _key_index = header.split(SEPARATOR, 1)
    expected = sign(base64_body, path_suffix, secret)
    return hmac.compare_digest(expected, digest.lower())
