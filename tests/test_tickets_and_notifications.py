import asyncio
import base64

import aiosmtplib
import pytest

from cinepay import utils
from cinepay.core.config import settings
from cinepay.database.schemas import PaymentInfo
from cinepay.services import notification_service
from cinepay.services.ticket_generator import build_ticket_payload, generate_qr_code
from tests.conftest import make_booking


def test_ticket_payload_describes_the_show():
    payload = build_ticket_payload(make_booking())
    assert payload == {
        "bookingNumber": "BK0001",
        "movie": "Interstellar",
        "movieId": 7,
        "seats": ["A5", "A6"],
        "showDate": "2026-10-20",
        "showTime": "18:30",
    }


def test_qr_code_is_png_data_url():
    data_url = generate_qr_code(build_ticket_payload(make_booking()))
    prefix = "data:image/png;base64,"
    assert data_url.startswith(prefix)
    assert base64.b64decode(data_url[len(prefix):]).startswith(b"\x89PNG")


def test_confirmation_email_lists_booking_details():
    booking = make_booking(payment=PaymentInfo(razorpay_payment_id="pay_1"))
    subject, body = notification_service.build_confirmation_email(booking)

    assert subject == "Booking confirmed: Interstellar (BK0001)"
    assert "Hello Uma Rao" in body
    assert "Seats: A5, A6" in body
    assert "Theater: PVR Koramangala" in body
    assert "Show: 20 Oct 2026 18:30" in body
    assert "Amount paid: Rs. 499.50" in body
    assert "Payment ID: pay_1" in body


def test_send_booking_confirmation_emails_customer(monkeypatch):
    sent = []

    async def fake_send_email(to_email, subject, body):
        sent.append((to_email, subject))

    monkeypatch.setattr(notification_service, "send_email", fake_send_email)
    asyncio.run(notification_service.send_booking_confirmation(make_booking()))

    assert sent == [("uma@example.com", "Booking confirmed: Interstellar (BK0001)")]


def test_send_booking_confirmation_rejects_bad_address(monkeypatch):
    async def fake_send_email(to_email, subject, body):
        raise AssertionError("should not send")

    monkeypatch.setattr(notification_service, "send_email", fake_send_email)
    booking = make_booking()
    booking.customer.email = "not-an-email"

    with pytest.raises(ValueError):
        asyncio.run(notification_service.send_booking_confirmation(booking))


def test_send_email_uses_starttls_and_login(monkeypatch):
    calls = []

    async def fake_send(message, **kwargs):
        calls.append((message, kwargs))
        return ({}, "250 OK")

    monkeypatch.setattr(utils.aiosmtplib, "send", fake_send)
    monkeypatch.setattr(settings, "SMTP_SERVER", "smtp.example.com")
    monkeypatch.setattr(settings, "SMTP_PORT", 587)
    monkeypatch.setattr(settings, "EMAIL_USER", "tickets@example.com")
    monkeypatch.setattr(settings, "EMAIL_PASSWORD", "app-password")

    response = asyncio.run(utils.send_email("uma@example.com", "Booking confirmed", "Enjoy the show!"))

    assert response == ({}, "250 OK")
    message, kwargs = calls[0]
    assert message["From"] == "CinePay <tickets@example.com>"
    assert message["To"] == "uma@example.com"
    assert message["Subject"] == "Booking confirmed"
    assert message.get_content().strip() == "Enjoy the show!"
    assert kwargs["hostname"] == "smtp.example.com"
    assert kwargs["port"] == 587
    assert kwargs["start_tls"] is True
    assert kwargs["username"] == "tickets@example.com"
    assert kwargs["password"] == "app-password"
    assert kwargs["timeout"] == utils.SMTP_TIMEOUT_SECONDS


def test_send_email_propagates_smtp_failure(monkeypatch):
    async def refused(message, **kwargs):
        raise aiosmtplib.SMTPConnectError("connection refused")

    monkeypatch.setattr(utils.aiosmtplib, "send", refused)
    monkeypatch.setattr(settings, "SMTP_SERVER", "smtp.example.com")

    with pytest.raises(aiosmtplib.SMTPConnectError):
        asyncio.run(utils.send_email("uma@example.com", "Booking confirmed", "body"))


def test_send_email_requires_smtp_server(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_SERVER", None)
    with pytest.raises(RuntimeError):
        asyncio.run(utils.send_email("uma@example.com", "Booking confirmed", "body"))
