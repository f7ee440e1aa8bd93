# codesync/webhook/signature.py
"""GitHub-style HMAC-SHA256 webhook signatures."""

from __future__ import annotations

import hashlib
import hmac
from typing import Optional

from codesync.core.exceptions import InvalidSignatureError

SIGNATURE_HEADER = "X-Hub-Signature-256"
SIGNATURE_PREFIX = "sha256="


def compute_signature(body: bytes, secret: str) -> str:
    """Header value for `body`: "sha256=<hex hmac>"."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(body: bytes, signature: Optional[str], secret: Optional[str]) -> None:
    """
    Check the signature of a raw request body in constant time.

    Raises:
        InvalidSignatureError: No secret configured, header missing or malformed,
            or the digest does not match
    """
    if not secret:
        raise InvalidSignatureError("No webhook secret configured")
    if not signature:
        raise InvalidSignatureError(f"Missing {SIGNATURE_HEADER} header")
    if not signature.startswith(SIGNATURE_PREFIX):
        raise InvalidSignatureError(f"Malformed {SIGNATURE_HEADER} header")

    expected = compute_signature(body, secret)
    if not hmac.compare_digest(expected.encode("ascii"), signature.strip().encode("ascii", "replace")):
        raise InvalidSignatureError("Signature does not match")


__all__ = ["SIGNATURE_HEADER", "compute_signature", "verify_signature"]
