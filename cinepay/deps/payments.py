"""
FastAPI dependencies for the payment routes.

Tests swap these out through `app.dependency_overrides`.
"""
import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from cinepay.core.config import settings
from cinepay.core.dispatcher import NotificationDispatcher, dispatcher
from cinepay.database.database import get_db
from cinepay.services.booking_store import BookingRepository, SqlBookingRepository, memory_store
from cinepay.services.gateway import PaymentGateway, build_gateway

logger = logging.getLogger(__name__)

_gateway: Optional[PaymentGateway] = None


def get_booking_store(db: Session = Depends(get_db)) -> BookingRepository:
    if settings.BOOKING_STORE == "memory":
        return memory_store
    return SqlBookingRepository(db)


def get_gateway() -> PaymentGateway:
    """Singleton Razorpay gateway, built on first use."""
    global _gateway
    if _gateway is None:
        _gateway = build_gateway()
        logger.info("Payment gateway initialised (configured=%s)", _gateway.configured)
    return _gateway


def get_dispatcher() -> NotificationDispatcher:
    return dispatcher
