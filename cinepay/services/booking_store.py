# cinepay/services/booking_store.py
"""
Booking store: one repository interface, two backends.

`InMemoryBookingRepository` keeps demo bookings in a keyed map (lost on
restart). `SqlBookingRepository` maps the flat `bookings` table onto
`BookingRecord`. Which one serves requests is decided by BOOKING_STORE.
"""
import logging
import re
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from cinepay.database import models
from cinepay.database.schemas import (
    BookingRecord,
    CancellationInfo,
    Customer,
    MovieRef,
    NotificationMarker,
    Notifications,
    PaymentInfo,
    RefundStatus,
    TheatreRef,
)

logger = logging.getLogger(__name__)

_SQL_ID_RE = re.compile(r"^[0-9a-f]{32}$")


class BookingRepository(ABC):
    """Storage capability the payment services depend on."""

    @abstractmethod
    def is_valid_id(self, booking_id: str) -> bool:
        ...

    @abstractmethod
    def find(self, booking_id: str) -> Optional[BookingRecord]:
        ...

    @abstractmethod
    def find_by_order_id(self, order_id: str) -> Optional[BookingRecord]:
        ...

    @abstractmethod
    def save(self, booking: BookingRecord) -> BookingRecord:
        ...

    @abstractmethod
    def mark_refunded(self, booking_id: str, refund_transaction_id: str) -> bool:
        """
        Record a processed refund unless one is already recorded.
        Returns False when another writer got there first.
        """


class InMemoryBookingRepository(BookingRepository):
    def __init__(self):
        self._bookings: Dict[str, BookingRecord] = {}
        self._lock = threading.Lock()

    def is_valid_id(self, booking_id: str) -> bool:
        return bool(booking_id)

    def find(self, booking_id: str) -> Optional[BookingRecord]:
        with self._lock:
            booking = self._bookings.get(booking_id)
            return booking.model_copy(deep=True) if booking else None

    def find_by_order_id(self, order_id: str) -> Optional[BookingRecord]:
        with self._lock:
            for booking in self._bookings.values():
                if booking.payment.razorpay_order_id == order_id:
                    return booking.model_copy(deep=True)
        return None

    def save(self, booking: BookingRecord) -> BookingRecord:
        with self._lock:
            self._bookings[booking.id] = booking.model_copy(deep=True)
        return booking

    def mark_refunded(self, booking_id: str, refund_transaction_id: str) -> bool:
        with self._lock:
            booking = self._bookings.get(booking_id)
            if booking is None or booking.cancellation.refund_status == RefundStatus.processed:
                return False
            booking.cancellation.refund_status = RefundStatus.processed
            booking.cancellation.refund_transaction_id = refund_transaction_id
            return True

    def clear(self) -> None:
        with self._lock:
            self._bookings.clear()


def _to_record(row: models.Booking) -> BookingRecord:
    return BookingRecord(
        id=row.id,
        booking_number=row.booking_number,
        user_id=str(row.user_id),
        status=row.status,
        total_amount=row.total_amount,
        tickets=row.tickets or [],
        payment=PaymentInfo(
            status=row.payment_status,
            razorpay_order_id=row.razorpay_order_id,
            razorpay_payment_id=row.razorpay_payment_id,
            razorpay_signature=row.razorpay_signature,
            transaction_id=row.transaction_id,
            paid_at=row.paid_at,
        ),
        cancellation=CancellationInfo(
            is_cancelled=bool(row.is_cancelled),
            refund_status=row.refund_status,
            refund_amount=row.refund_amount or 0.0,
            refund_transaction_id=row.refund_transaction_id,
        ),
        notifications=Notifications(
            booking_confirmation=NotificationMarker(
                sent=bool(row.confirmation_sent),
                sent_at=row.confirmation_sent_at,
            )
        ),
        movie=MovieRef(id=row.movie.id, title=row.movie.title) if row.movie else MovieRef(id=row.movie_id),
        theater=TheatreRef(id=row.theatre.id, name=row.theatre.name) if row.theatre else TheatreRef(id=row.theatre_id),
        customer=Customer(name=row.user.name, email=row.user.email) if row.user else Customer(),
        show_date=row.show_date,
        show_time=row.show_time,
        qr_code=row.qr_code,
    )


def _apply(row: models.Booking, booking: BookingRecord) -> None:
    row.status = booking.status.value
    row.tickets = [t.model_dump() for t in booking.tickets]
    row.qr_code = booking.qr_code

    row.payment_status = booking.payment.status.value
    row.razorpay_order_id = booking.payment.razorpay_order_id
    row.razorpay_payment_id = booking.payment.razorpay_payment_id
    row.razorpay_signature = booking.payment.razorpay_signature
    row.transaction_id = booking.payment.transaction_id
    row.paid_at = booking.payment.paid_at

    row.is_cancelled = booking.cancellation.is_cancelled
    row.refund_status = booking.cancellation.refund_status.value
    row.refund_amount = booking.cancellation.refund_amount
    row.refund_transaction_id = booking.cancellation.refund_transaction_id

    marker = booking.notifications.booking_confirmation
    row.confirmation_sent = marker.sent
    row.confirmation_sent_at = marker.sent_at


class SqlBookingRepository(BookingRepository):
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(models.Booking).options(
            joinedload(models.Booking.user),
            joinedload(models.Booking.movie),
            joinedload(models.Booking.theatre),
        )

    def is_valid_id(self, booking_id: str) -> bool:
        return bool(booking_id) and _SQL_ID_RE.match(booking_id) is not None

    def find(self, booking_id: str) -> Optional[BookingRecord]:
        if not self.is_valid_id(booking_id):
            return None
        row = self._query().filter(models.Booking.id == booking_id).first()
        return _to_record(row) if row else None

    def find_by_order_id(self, order_id: str) -> Optional[BookingRecord]:
        row = self._query().filter(models.Booking.razorpay_order_id == order_id).first()
        return _to_record(row) if row else None

    def save(self, booking: BookingRecord) -> BookingRecord:
        row = self.db.query(models.Booking).filter(models.Booking.id == booking.id).first()
        if row is None:
            row = models.Booking(
                id=booking.id,
                booking_number=booking.booking_number,
                user_id=int(booking.user_id),
                movie_id=booking.movie.id,
                theatre_id=booking.theater.id,
                show_date=booking.show_date,
                show_time=booking.show_time,
                total_amount=booking.total_amount,
            )
            self.db.add(row)
        _apply(row, booking)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception("Failed to persist booking %s", booking.id)
            raise
        return booking

    def mark_refunded(self, booking_id: str, refund_transaction_id: str) -> bool:
        stmt = (
            update(models.Booking)
            .where(
                models.Booking.id == booking_id,
                models.Booking.refund_status != RefundStatus.processed.value,
            )
            .values(
                refund_status=RefundStatus.processed.value,
                refund_transaction_id=refund_transaction_id,
                updated_at=datetime.now(timezone.utc),
            )
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception("Failed to record refund for booking %s", booking_id)
            raise
        return result.rowcount == 1


# Process-wide map backing BOOKING_STORE=memory
memory_store = InMemoryBookingRepository()
