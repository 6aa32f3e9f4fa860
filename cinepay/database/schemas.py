# cinepay/database/schemas.py
# =========================================================
# Booking payment schemas (Pydantic v2)
# =========================================================
import enum
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field


# =========================================================
# Status enums
# =========================================================
class BookingStatus(str, enum.Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"
    expired = "expired"
    failed = "failed"


class PaymentStatus(str, enum.Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"


class RefundStatus(str, enum.Enum):
    none = "none"
    processed = "processed"


# =========================================================
# Booking record (what the payment services read and write)
# =========================================================
class TicketSeat(BaseModel):
    row: str
    number: int
    type: str = "regular"
    price: float = 0.0

    @property
    def label(self) -> str:
        return f"{self.row}{self.number}"


class PaymentInfo(BaseModel):
    status: PaymentStatus = PaymentStatus.pending
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    transaction_id: Optional[str] = None
    paid_at: Optional[datetime] = None


class CancellationInfo(BaseModel):
    is_cancelled: bool = False
    refund_status: RefundStatus = RefundStatus.none
    refund_amount: float = 0.0
    refund_transaction_id: Optional[str] = None


class NotificationMarker(BaseModel):
    sent: bool = False
    sent_at: Optional[datetime] = None


class Notifications(BaseModel):
    booking_confirmation: NotificationMarker = Field(default_factory=NotificationMarker)


class MovieRef(BaseModel):
    id: Optional[int] = None
    title: str = "Movie"


class TheatreRef(BaseModel):
    id: Optional[int] = None
    name: str = "Theater"


class Customer(BaseModel):
    name: str = "Customer"
    email: str = ""


class BookingRecord(BaseModel):
    id: str
    booking_number: str
    user_id: str
    status: BookingStatus = BookingStatus.pending
    total_amount: float
    tickets: List[TicketSeat] = Field(default_factory=list)
    payment: PaymentInfo = Field(default_factory=PaymentInfo)
    cancellation: CancellationInfo = Field(default_factory=CancellationInfo)
    notifications: Notifications = Field(default_factory=Notifications)
    movie: MovieRef = Field(default_factory=MovieRef)
    theater: TheatreRef = Field(default_factory=TheatreRef)
    customer: Customer = Field(default_factory=Customer)
    show_date: Optional[date] = None
    show_time: Optional[str] = None
    qr_code: Optional[str] = None

    def seat_labels(self) -> List[str]:
        return [t.label for t in self.tickets]


# =========================================================
# Payment API payloads
# =========================================================
class CreateOrderRequest(BaseModel):
    bookingId: str = Field(..., min_length=1, description="Booking ID is required")


class Prefill(BaseModel):
    name: str
    email: str


class CreateOrderResponse(BaseModel):
    orderId: str
    amount: int  # paise
    currency: str
    keyId: Optional[str] = None
    bookingNumber: str
    prefill: Prefill


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)
    bookingId: str = Field(..., min_length=1)

    model_config = {"json_schema_extra": {
        "example": {
            "razorpay_order_id": "order_Rf6Cbf0fMUaEkg",
            "razorpay_payment_id": "pay_Rf6CmmCCUD38fa",
            "razorpay_signature": "a83a0edf775d7c4c1cf5cc3a15f4b17adc1b66503767a90e5509303d64ac1121",
            "bookingId": "5f1d7c2b9a4e4c0f8b3a2d1e0f9c8b7a",
        }
    }}


class VerifyPaymentResponse(BaseModel):
    message: str
    booking: BookingRecord


class RefundRequest(BaseModel):
    bookingId: str = Field(..., min_length=1)
    amount: Optional[float] = Field(default=None, ge=0, description="Refund amount in rupees")


class RefundSummary(BaseModel):
    id: str
    amount: float
    status: Optional[str] = None


class RefundResponse(BaseModel):
    message: str
    refund: RefundSummary


class PaymentStatusResponse(BaseModel):
    bookingNumber: str
    status: BookingStatus
    paymentStatus: PaymentStatus
    paidAt: Optional[datetime] = None


class GatewayConfigResponse(BaseModel):
    keyId: Optional[str] = None
    configured: bool


class WebhookAck(BaseModel):
    received: bool = True


class PaymentMethod(BaseModel):
    id: str
    name: str
    description: str
    icon: str


# =========================================================
# Token Schemas
# =========================================================
class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class AuthenticatedUser(BaseModel):
    """Identity decoded from a bearer token"""
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class ErrorResponse(BaseModel):
    message: str
    errors: Optional[List[Dict[str, Any]]] = None
