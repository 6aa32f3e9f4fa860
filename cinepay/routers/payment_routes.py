# cinepay/routers/payment_routes.py
"""
Payment routes (Razorpay)
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Header, Request

from cinepay.auth import get_current_user, require_role
from cinepay.core.config import settings
from cinepay.core.dispatcher import NotificationDispatcher
from cinepay.core.exceptions import PaymentError, UpstreamFailure
from cinepay.database.schemas import (
    AuthenticatedUser,
    CreateOrderRequest,
    CreateOrderResponse,
    ErrorResponse,
    GatewayConfigResponse,
    PaymentMethod,
    PaymentStatusResponse,
    RefundRequest,
    RefundResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
    WebhookAck,
)
from cinepay.deps.payments import get_booking_store, get_dispatcher, get_gateway
from cinepay.services import payment_service
from cinepay.services.booking_store import BookingRepository
from cinepay.services.gateway import PaymentGateway

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/payments",
    tags=["Payments"],
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)

PAYMENT_METHODS: List[Dict[str, str]] = [
    {"id": "upi", "name": "UPI", "description": "Google Pay, PhonePe, Paytm", "icon": "qr-code"},
    {"id": "card", "name": "Credit/Debit Card", "description": "Visa, Mastercard, RuPay", "icon": "credit-card"},
    {"id": "netbanking", "name": "Net Banking", "description": "All major banks", "icon": "bank"},
    {"id": "wallet", "name": "Wallets", "description": "Paytm, PhonePe, Amazon Pay", "icon": "smartphone"},
]


@router.post("/create-order", response_model=CreateOrderResponse)
def create_order(
    request_data: CreateOrderRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: BookingRepository = Depends(get_booking_store),
    gateway: PaymentGateway = Depends(get_gateway),
) -> CreateOrderResponse:
    try:
        return payment_service.create_order(
            store,
            gateway,
            current_user,
            request_data.bookingId,
            currency=settings.PAYMENT_CURRENCY,
        )
    except PaymentError:
        raise
    except Exception:
        logger.exception("Create Razorpay order error for booking %s", request_data.bookingId)
        raise UpstreamFailure("Server error while creating payment order")


@router.post("/verify-payment", response_model=VerifyPaymentResponse)
async def verify_payment(
    request_data: VerifyPaymentRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: BookingRepository = Depends(get_booking_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> VerifyPaymentResponse:
    try:
        booking = payment_service.confirm_payment(
            store,
            dispatcher,
            settings.RAZORPAY_KEY_SECRET,
            current_user,
            order_id=request_data.razorpay_order_id,
            payment_id=request_data.razorpay_payment_id,
            signature=request_data.razorpay_signature,
            booking_id=request_data.bookingId,
        )
    except PaymentError:
        raise
    except Exception:
        logger.exception("Verify payment error for booking %s", request_data.bookingId)
        raise UpstreamFailure("Server error while verifying payment")

    return VerifyPaymentResponse(message="Payment verified and booking confirmed", booking=booking)


@router.post("/webhook", response_model=WebhookAck)
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None),
    store: BookingRepository = Depends(get_booking_store),
) -> WebhookAck:
    body_bytes = await request.body()
    # InvalidSignature propagates as 400; everything else is acknowledged
    outcome = payment_service.handle_webhook(
        store,
        settings.RAZORPAY_WEBHOOK_SECRET,
        body_bytes,
        x_razorpay_signature,
    )
    logger.debug("Webhook outcome: %s", outcome)
    return WebhookAck(received=True)


@router.post("/refund", response_model=RefundResponse)
def process_refund(
    request_data: RefundRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: BookingRepository = Depends(get_booking_store),
    gateway: PaymentGateway = Depends(get_gateway),
) -> RefundResponse:
    try:
        refund = payment_service.process_refund(
            store,
            gateway,
            current_user,
            request_data.bookingId,
            amount=request_data.amount,
        )
    except PaymentError:
        raise
    except Exception:
        logger.exception("Process refund error for booking %s", request_data.bookingId)
        raise UpstreamFailure("Server error while processing refund")

    return RefundResponse(message="Refund processed successfully", refund=refund)


@router.get("/booking/{booking_id}/status", response_model=PaymentStatusResponse)
def get_payment_status(
    booking_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    store: BookingRepository = Depends(get_booking_store),
) -> PaymentStatusResponse:
    try:
        return payment_service.get_payment_status(store, current_user, booking_id)
    except PaymentError:
        raise
    except Exception:
        logger.exception("Get payment status error for booking %s", booking_id)
        raise UpstreamFailure("Server error while fetching payment status")


@router.get("/config", response_model=GatewayConfigResponse)
def get_gateway_config(gateway: PaymentGateway = Depends(get_gateway)) -> GatewayConfigResponse:
    # Public key only; the secret never leaves the server
    return GatewayConfigResponse(keyId=gateway.key_id, configured=gateway.configured)


@router.get("/payment-methods", response_model=Dict[str, List[PaymentMethod]])
def get_payment_methods() -> Dict[str, Any]:
    return {"paymentMethods": PAYMENT_METHODS}


@router.get("/health")
def payment_health(
    _admin: AuthenticatedUser = Depends(require_role("admin")),
    gateway: PaymentGateway = Depends(get_gateway),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> Dict[str, Any]:
    return {
        "gateway": "razorpay",
        "razorpay_configured": gateway.configured,
        "webhook_secret_configured": bool(settings.RAZORPAY_WEBHOOK_SECRET),
        "booking_store": settings.BOOKING_STORE,
        "notifications": {
            "pending": dispatcher.pending,
            "recent_failures": dispatcher.failures[-10:],
        },
    }
