# cinepay/services/gateway.py
"""
Razorpay client wrapper.

Only the two calls the payment flow needs are exposed: order creation and
payment refund. Every request carries a bounded timeout; failures are logged
and re-raised as UpstreamFailure so the caller never sees SDK details.
There is no retry: an ambiguous failure is left for the webhook to reconcile.
"""
import logging
from typing import Any, Callable, Dict, Optional

import razorpay
import requests
from pydantic import BaseModel
from razorpay.errors import BadRequestError, GatewayError, ServerError

from cinepay.core.config import settings
from cinepay.core.exceptions import GatewayUnavailable, UpstreamFailure

logger = logging.getLogger(__name__)


class GatewayOrder(BaseModel):
    id: str
    amount: int
    currency: str
    receipt: Optional[str] = None
    status: Optional[str] = None


class GatewayRefund(BaseModel):
    id: str
    amount: int
    status: Optional[str] = None


class PaymentGateway:
    """Interface used by the payment service; see RazorpayGateway."""

    key_id: Optional[str] = None

    @property
    def configured(self) -> bool:
        return False

    def create_order(self, amount: int, currency: str, receipt: str, notes: Dict[str, Any]) -> GatewayOrder:
        raise NotImplementedError

    def refund(self, payment_id: str, amount: int, notes: Dict[str, Any]) -> GatewayRefund:
        raise NotImplementedError

    def close(self) -> None:
        pass


class RazorpayGateway(PaymentGateway):
    def __init__(self, key_id: Optional[str], key_secret: Optional[str], timeout: float = 10.0):
        self.key_id = key_id or None
        self.timeout = timeout
        self._client: Optional[razorpay.Client] = None
        if key_id and key_secret:
            self._client = razorpay.Client(auth=(key_id, key_secret))
        else:
            logger.warning("RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET not set. Payment endpoints will return errors.")

    @property
    def configured(self) -> bool:
        return self._client is not None

    def _sdk(self) -> razorpay.Client:
        if self._client is None:
            raise GatewayUnavailable()
        return self._client

    def _call(self, action: str, func: Callable[..., Dict[str, Any]], *args: Any) -> Dict[str, Any]:
        try:
            return func(*args, timeout=self.timeout)
        except requests.exceptions.Timeout:
            # The remote side may still have acted; the webhook reconciles it
            logger.error("Razorpay %s timed out", action)
            raise UpstreamFailure(f"Server error while {action}")
        except (BadRequestError, GatewayError, ServerError) as e:
            logger.error("Razorpay %s rejected: %s", action, e)
            raise UpstreamFailure(f"Server error while {action}")
        except requests.exceptions.RequestException:
            logger.exception("Razorpay %s failed", action)
            raise UpstreamFailure(f"Server error while {action}")

    def create_order(self, amount: int, currency: str, receipt: str, notes: Dict[str, Any]) -> GatewayOrder:
        created = self._call(
            "creating payment order",
            self._sdk().order.create,
            {"amount": amount, "currency": currency, "receipt": receipt, "notes": notes},
        )
        return GatewayOrder(
            id=created["id"],
            amount=created.get("amount", amount),
            currency=created.get("currency", currency),
            receipt=created.get("receipt"),
            status=created.get("status"),
        )

    def refund(self, payment_id: str, amount: int, notes: Dict[str, Any]) -> GatewayRefund:
        refunded = self._call(
            "processing refund",
            self._sdk().payment.refund,
            payment_id,
            {"amount": amount, "notes": notes},
        )
        return GatewayRefund(
            id=refunded["id"],
            amount=refunded.get("amount", amount),
            status=refunded.get("status"),
        )


def build_gateway() -> RazorpayGateway:
    return RazorpayGateway(
        settings.RAZORPAY_KEY_ID,
        settings.RAZORPAY_KEY_SECRET,
        timeout=settings.RAZORPAY_TIMEOUT_SECONDS,
    )
