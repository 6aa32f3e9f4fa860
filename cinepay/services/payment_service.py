# cinepay/services/payment_service.py
"""
Payment lifecycle for a booking:

  create_order -> hosted checkout -> confirm_payment
                                  -> handle_webhook (provider backstop)
  after cancellation              -> process_refund

Every precondition is checked before any gateway or store call and raises a
specific PaymentError. Gateway and store failures propagate to the router,
which logs them and answers with a generic error.
"""
import json
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterator, List, Optional

from cinepay.core.dispatcher import NotificationDispatcher
from cinepay.core.exceptions import (
    AlreadyProcessed,
    Forbidden,
    GatewayUnavailable,
    InvalidAmount,
    InvalidSignature,
    InvalidState,
    MissingPaymentReference,
    NotFound,
    ValidationFailed,
)
from cinepay.database.schemas import (
    AuthenticatedUser,
    BookingRecord,
    BookingStatus,
    CreateOrderResponse,
    NotificationMarker,
    PaymentStatus,
    PaymentStatusResponse,
    Prefill,
    RefundStatus,
    RefundSummary,
)
from cinepay.services.booking_store import BookingRepository
from cinepay.services.gateway import PaymentGateway
from cinepay.services.notification_service import send_booking_confirmation
from cinepay.services.signature import verify_checkout_signature, verify_webhook_signature
from cinepay.services.ticket_generator import build_ticket_payload, generate_qr_code

logger = logging.getLogger(__name__)

CAPTURED_EVENT = "payment.captured"
REFUND_REASON = "booking_cancellation"


def to_minor_units(amount: Any) -> int:
    """Rupees -> paise, rounding half up (19.995 -> 2000)."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _load_owned(store: BookingRepository, booking_id: str, user: AuthenticatedUser, allow_admin: bool = False) -> BookingRecord:
    booking = store.find(booking_id)
    if booking is None:
        raise NotFound()
    if booking.user_id != str(user.id) and not (allow_admin and user.is_admin):
        logger.warning("User %s denied access to booking %s", user.id, booking_id)
        raise Forbidden()
    return booking


# ---------------------------------------------------------------------
# ORDER CREATION
# ---------------------------------------------------------------------
def create_order(
    store: BookingRepository,
    gateway: PaymentGateway,
    user: AuthenticatedUser,
    booking_id: str,
    currency: str = "INR",
) -> CreateOrderResponse:
    if not gateway.configured:
        raise GatewayUnavailable()

    booking = _load_owned(store, booking_id, user)

    if booking.status != BookingStatus.pending:
        raise InvalidState("Booking is not in pending status")
    # An order id is bound to the booking once; a second checkout reuses nothing
    if booking.payment.razorpay_order_id:
        raise InvalidState("Payment order already created for this booking")

    amount_paise = to_minor_units(booking.total_amount)
    notes = {
        "bookingId": booking.id,
        "userId": str(user.id),
        "movieId": str(booking.movie.id) if booking.movie.id is not None else "",
        "movieTitle": booking.movie.title,
        "theaterId": str(booking.theater.id) if booking.theater.id is not None else "",
        "theaterName": booking.theater.name,
    }

    order = gateway.create_order(amount_paise, currency, booking.booking_number, notes)

    booking.payment.razorpay_order_id = order.id
    store.save(booking)

    logger.info(
        "Created order %s for booking %s (amount_paise=%s)",
        order.id,
        booking.booking_number,
        order.amount,
    )

    return CreateOrderResponse(
        orderId=order.id,
        amount=order.amount,
        currency=order.currency,
        keyId=gateway.key_id,
        bookingNumber=booking.booking_number,
        prefill=Prefill(name=booking.customer.name, email=booking.customer.email),
    )


# ---------------------------------------------------------------------
# CHECKOUT CONFIRMATION
# ---------------------------------------------------------------------
def confirm_payment(
    store: BookingRepository,
    dispatcher: NotificationDispatcher,
    key_secret: str,
    user: AuthenticatedUser,
    order_id: str,
    payment_id: str,
    signature: str,
    booking_id: str,
) -> BookingRecord:
    if not verify_checkout_signature(key_secret, order_id, payment_id, signature):
        logger.warning("Signature mismatch for order %s", order_id)
        raise InvalidSignature()

    booking = _load_owned(store, booking_id, user)

    now = _utcnow()
    booking.status = BookingStatus.confirmed
    booking.payment.status = PaymentStatus.completed
    booking.payment.transaction_id = payment_id
    booking.payment.razorpay_payment_id = payment_id
    booking.payment.razorpay_signature = signature
    booking.payment.paid_at = now

    try:
        booking.qr_code = generate_qr_code(build_ticket_payload(booking))
    except Exception as e:
        logger.warning("Ticket QR generation failed for %s (non-fatal): %s", booking.booking_number, e)

    store.save(booking)

    dispatcher.submit(
        f"booking-confirmation:{booking.booking_number}",
        send_booking_confirmation,
        booking.model_copy(deep=True),
    )
    # Marked on hand-off, not on delivery
    booking.notifications.booking_confirmation = NotificationMarker(sent=True, sent_at=_utcnow())
    store.save(booking)

    logger.info("Payment verified and booking confirmed: %s", booking.booking_number)
    return booking


# ---------------------------------------------------------------------
# WEBHOOK
# ---------------------------------------------------------------------
def handle_webhook(
    store: BookingRepository,
    webhook_secret: Optional[str],
    raw_body: bytes,
    signature: Optional[str],
) -> str:
    """
    Apply a Razorpay webhook. Returns a short outcome tag for logging.

    Raises InvalidSignature only when a webhook secret is configured and the
    signature does not match. Without a secret the event is processed
    unauthenticated. Any other failure is logged and reported as "error".
    """
    if not webhook_secret:
        logger.warning("RAZORPAY_WEBHOOK_SECRET not set; accepting webhook without signature verification")
    elif not verify_webhook_signature(webhook_secret, raw_body, signature or ""):
        logger.error("Webhook signature verification failed")
        raise InvalidSignature("Invalid signature")

    try:
        event: Dict[str, Any] = json.loads(raw_body)
        event_type = event.get("event")
        if event_type != CAPTURED_EVENT:
            logger.info("Webhook: ignoring event %s", event_type)
            return "ignored"

        entity = event["payload"]["payment"]["entity"]
        order_id = entity.get("order_id")
        booking = store.find_by_order_id(order_id) if order_id else None
        if booking is None:
            logger.warning("Webhook: no booking for order %s", order_id)
            return "not_found"

        if booking.status != BookingStatus.pending:
            logger.info("Webhook: booking %s already %s", booking.booking_number, booking.status.value)
            return "unchanged"

        booking.status = BookingStatus.confirmed
        booking.payment.status = PaymentStatus.completed
        booking.payment.transaction_id = entity.get("id")
        booking.payment.paid_at = _utcnow()
        store.save(booking)

        logger.info("Webhook: Payment captured %s for booking %s", entity.get("id"), booking.booking_number)
        return "confirmed"
    except Exception:
        logger.exception("Error updating booking from webhook")
        return "error"


# ---------------------------------------------------------------------
# REFUND
# ---------------------------------------------------------------------
# booking id -> [lock, holders]; entries go away with their last holder
_refund_locks: Dict[str, List[Any]] = {}
_refund_locks_guard = threading.Lock()


@contextmanager
def _refund_lock(booking_id: str) -> Iterator[None]:
    with _refund_locks_guard:
        entry = _refund_locks.setdefault(booking_id, [threading.Lock(), 0])
        entry[1] += 1
    try:
        with entry[0]:
            yield
    finally:
        with _refund_locks_guard:
            entry[1] -= 1
            if entry[1] == 0:
                del _refund_locks[booking_id]


def process_refund(
    store: BookingRepository,
    gateway: PaymentGateway,
    user: AuthenticatedUser,
    booking_id: str,
    amount: Optional[float] = None,
) -> RefundSummary:
    if not gateway.configured:
        raise GatewayUnavailable()
    if not store.is_valid_id(booking_id):
        raise ValidationFailed(
            errors=[{"field": "bookingId", "message": "Valid booking ID is required"}],
        )

    # One refund attempt per booking at a time in this process; the store's
    # conditional write covers other processes.
    with _refund_lock(booking_id):
        booking = _load_owned(store, booking_id, user, allow_admin=True)

        if not booking.cancellation.is_cancelled:
            raise InvalidState("Booking is not cancelled")
        if booking.cancellation.refund_status == RefundStatus.processed:
            raise AlreadyProcessed()

        refund_amount = amount or booking.cancellation.refund_amount
        if not refund_amount or refund_amount <= 0:
            raise InvalidAmount()

        payment_id = booking.payment.razorpay_payment_id or booking.payment.transaction_id
        if not payment_id:
            raise MissingPaymentReference()

        refund = gateway.refund(
            payment_id,
            to_minor_units(refund_amount),
            {"bookingId": booking.id, "reason": REFUND_REASON},
        )

        try:
            recorded = store.mark_refunded(booking.id, refund.id)
        except Exception:
            logger.exception(
                "Refund %s issued for booking %s but could not be recorded; needs manual reconciliation",
                refund.id,
                booking.booking_number,
            )
            raise
        if not recorded:
            logger.error(
                "Refund %s issued for booking %s but a refund was already recorded; needs manual reconciliation",
                refund.id,
                booking.booking_number,
            )
            raise AlreadyProcessed()

    logger.info("Refund %s processed for booking %s (amount=%s)", refund.id, booking.booking_number, refund_amount)
    return RefundSummary(id=refund.id, amount=refund_amount, status=refund.status)


# ---------------------------------------------------------------------
# STATUS
# ---------------------------------------------------------------------
def get_payment_status(store: BookingRepository, user: AuthenticatedUser, booking_id: str) -> PaymentStatusResponse:
    if not store.is_valid_id(booking_id):
        raise ValidationFailed(message="Invalid booking ID")
    booking = _load_owned(store, booking_id, user)
    return PaymentStatusResponse(
        bookingNumber=booking.booking_number,
        status=booking.status,
        paymentStatus=booking.payment.status,
        paidAt=booking.payment.paid_at,
    )
