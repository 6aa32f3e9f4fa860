# cinepay/database/models.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from cinepay.database.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_booking_id() -> str:
    return uuid.uuid4().hex


# ==========================
# USER MODEL
# ==========================
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    role = Column(String(50), default="user")  # user | admin
    created_at = Column(DateTime, default=_utcnow)

    bookings = relationship("Booking", back_populates="user")


# ==========================
# MOVIE MODEL
# ==========================
class Movie(Base):
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(150), nullable=False)
    language = Column(String(50), nullable=True)
    runtime = Column(Integer, nullable=True)


# ==========================
# THEATRE MODEL
# ==========================
class Theatre(Base):
    __tablename__ = "theatres"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    city = Column(String(100), nullable=True)


# ==========================
# BOOKING MODEL
# ==========================
class Booking(Base):
    """Booking with its payment and cancellation sub-state flattened into columns"""
    __tablename__ = "bookings"

    id = Column(String(32), primary_key=True, default=_new_booking_id)
    booking_number = Column(String(40), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    movie_id = Column(Integer, ForeignKey("movies.id"), nullable=True)
    theatre_id = Column(Integer, ForeignKey("theatres.id"), nullable=True)
    show_date = Column(Date, nullable=True)
    show_time = Column(String(10), nullable=True)  # e.g. "18:30"
    status = Column(String(20), nullable=False, default="pending")
    total_amount = Column(Float, nullable=False)  # rupees
    tickets = Column(JSON, nullable=False, default=list)  # [{row, number, type, price}]
    qr_code = Column(Text, nullable=True)

    # payment
    payment_status = Column(String(20), nullable=False, default="pending")
    razorpay_order_id = Column(String(100), nullable=True, unique=True, index=True)
    razorpay_payment_id = Column(String(100), nullable=True)
    razorpay_signature = Column(String(500), nullable=True)
    transaction_id = Column(String(100), nullable=True)
    paid_at = Column(DateTime, nullable=True)

    # cancellation
    is_cancelled = Column(Boolean, nullable=False, default=False)
    refund_status = Column(String(20), nullable=False, default="none")
    refund_amount = Column(Float, nullable=False, default=0.0)
    refund_transaction_id = Column(String(100), nullable=True)

    # notifications
    confirmation_sent = Column(Boolean, nullable=False, default=False)
    confirmation_sent_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    user = relationship("User", back_populates="bookings")
    movie = relationship("Movie")
    theatre = relationship("Theatre")
