import os

# Configure before any cinepay module reads the environment
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BOOKING_STORE"] = "memory"
os.environ["RAZORPAY_KEY_ID"] = ""
os.environ["RAZORPAY_KEY_SECRET"] = ""
os.environ["RAZORPAY_WEBHOOK_SECRET"] = ""
os.environ["SECRET_KEY"] = "test-secret-key"

from datetime import date  # noqa: E402
from typing import Any, Dict, List  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from cinepay.auth import create_access_token  # noqa: E402
from cinepay.core.config import settings  # noqa: E402
from cinepay.core.dispatcher import NotificationDispatcher  # noqa: E402
from cinepay.core.exceptions import UpstreamFailure  # noqa: E402
from cinepay.database import models  # noqa: E402,F401
from cinepay.database.database import Base, get_db  # noqa: E402
from cinepay.database.schemas import (  # noqa: E402
    AuthenticatedUser,
    BookingRecord,
    Customer,
    MovieRef,
    TheatreRef,
    TicketSeat,
)
from cinepay.deps.payments import get_booking_store, get_dispatcher, get_gateway  # noqa: E402
from cinepay.main import app  # noqa: E402
from cinepay.services.booking_store import InMemoryBookingRepository  # noqa: E402
from cinepay.services.gateway import GatewayOrder, GatewayRefund, PaymentGateway  # noqa: E402
from cinepay.services.signature import compute_signature  # noqa: E402

KEY_ID = "rzp_test_public"
KEY_SECRET = "rzp_test_secret"
WEBHOOK_SECRET = "whsec_test"


class FakeGateway(PaymentGateway):
    """Records calls instead of talking to Razorpay."""

    key_id = KEY_ID

    def __init__(self, configured: bool = True, fail: bool = False):
        self._configured = configured
        self.fail = fail
        self.orders: List[Dict[str, Any]] = []
        self.refunds: List[Dict[str, Any]] = []

    @property
    def configured(self) -> bool:
        return self._configured

    def create_order(self, amount, currency, receipt, notes):
        if self.fail:
            raise UpstreamFailure("Server error while creating payment order")
        self.orders.append({"amount": amount, "currency": currency, "receipt": receipt, "notes": notes})
        return GatewayOrder(id=f"order_{len(self.orders)}", amount=amount, currency=currency, receipt=receipt, status="created")

    def refund(self, payment_id, amount, notes):
        if self.fail:
            raise UpstreamFailure("Server error while processing refund")
        self.refunds.append({"payment_id": payment_id, "amount": amount, "notes": notes})
        return GatewayRefund(id=f"rfnd_{len(self.refunds)}", amount=amount, status="processed")


class RecordingDispatcher(NotificationDispatcher):
    def __init__(self):
        super().__init__()
        self.submitted: List[Any] = []

    def submit(self, name, func, *args):
        self.submitted.append((name, func, args))
        return None


def make_booking(**overrides) -> BookingRecord:
    data: Dict[str, Any] = dict(
        id="B1",
        booking_number="BK0001",
        user_id="U1",
        total_amount=499.5,
        tickets=[
            TicketSeat(row="A", number=5, type="premium", price=249.75),
            TicketSeat(row="A", number=6, type="premium", price=249.75),
        ],
        movie=MovieRef(id=7, title="Interstellar"),
        theater=TheatreRef(id=3, name="PVR Koramangala"),
        customer=Customer(name="Uma Rao", email="uma@example.com"),
        show_date=date(2026, 10, 20),
        show_time="18:30",
    )
    data.update(overrides)
    return BookingRecord(**data)


def checkout_signature(order_id: str, payment_id: str, secret: str = KEY_SECRET) -> str:
    return compute_signature(secret, f"{order_id}|{payment_id}")


def bearer(user_id: str = "U1", role: str = "user") -> Dict[str, str]:
    token = create_access_token({"sub": user_id, "role": role, "email": f"{user_id.lower()}@example.com"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner():
    return AuthenticatedUser(id="U1", email="uma@example.com", name="Uma Rao")


@pytest.fixture
def stranger():
    return AuthenticatedUser(id="U2", email="ravi@example.com", name="Ravi")


@pytest.fixture
def admin():
    return AuthenticatedUser(id="A1", email="ops@example.com", name="Ops", role="admin")


@pytest.fixture
def store():
    return InMemoryBookingRepository()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def secrets(monkeypatch):
    monkeypatch.setattr(settings, "RAZORPAY_KEY_SECRET", KEY_SECRET)
    monkeypatch.setattr(settings, "RAZORPAY_WEBHOOK_SECRET", WEBHOOK_SECRET)


@pytest.fixture
def client(store, gateway, dispatcher, db_session, secrets):
    def _get_db():
        yield db_session

    app.dependency_overrides[get_booking_store] = lambda: store
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
