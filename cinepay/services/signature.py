import hashlib
import hmac
from typing import Union


def compute_signature(secret: str, message: Union[str, bytes]) -> str:
    """Hex HMAC-SHA256 of `message` keyed by `secret`."""
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(secret: str, message: Union[str, bytes], signature: str) -> bool:
    if not secret or not signature:
        return False
    expected = compute_signature(secret, message)
    try:
        return hmac.compare_digest(expected, signature)
    except TypeError:
        # non-ASCII candidate
        return False


def checkout_message(order_id: str, payment_id: str) -> str:
    # Razorpay signs "<order_id>|<payment_id>" for the checkout callback
    return f"{order_id}|{payment_id}"


def verify_checkout_signature(key_secret: str, order_id: str, payment_id: str, signature: str) -> bool:
    return verify_signature(key_secret, checkout_message(order_id, payment_id), signature)


def verify_webhook_signature(webhook_secret: str, raw_body: bytes, signature: str) -> bool:
    return verify_signature(webhook_secret, raw_body, signature)
