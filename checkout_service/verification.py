"""
verification.py — Razorpay Payment Signature Verification

After checkout Razorpay hands the client three values: the order id, the
payment id and a signature. The signature is the lowercase hex
HMAC-SHA256 of "<order_id>|<payment_id>" keyed with the merchant's API
secret, so only the gateway (and this server) can produce it.
"""

import hashlib
import hmac
from enum import Enum
from typing import Optional


class VerificationResult(str, Enum):
    VERIFIED = "verified"
    MISSING_FIELDS = "missing_fields"
    SIGNATURE_MISMATCH = "signature_mismatch"

    @property
    def ok(self) -> bool:
        return self is VerificationResult.VERIFIED


def compute_signature(order_id: str, payment_id: str, secret: str) -> str:
    """Returns hex(HMAC-SHA256(secret, order_id + '|' + payment_id))."""
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_payment_signature(
        order_id: Optional[str],
        payment_id: Optional[str],
        signature: Optional[str],
        secret: str
) -> VerificationResult:
    """
    Checks a payment confirmation against the expected gateway signature.

    The comparison is exact (no case folding or trimming) and runs in
    constant time. Missing or empty inputs fail closed.

    Args:
        order_id (Optional[str]): razorpay_order_id from the client.
        payment_id (Optional[str]): razorpay_payment_id from the client.
        signature (Optional[str]): razorpay_signature from the client.
        secret (str): Razorpay key secret from server configuration.

    Returns:
        VerificationResult: VERIFIED, MISSING_FIELDS or SIGNATURE_MISMATCH.

    Raises:
        ValueError: If no secret is configured.
    """
    if not secret:
        raise ValueError("signature secret must not be empty")
    if not order_id or not payment_id or not signature:
        return VerificationResult.MISSING_FIELDS

    expected = compute_signature(order_id, payment_id, secret)
    if hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
        return VerificationResult.VERIFIED
    return VerificationResult.SIGNATURE_MISMATCH
