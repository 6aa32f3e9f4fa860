import logging

from cinepay.database.schemas import BookingRecord
from cinepay.utils import send_email, validate_user_email

logger = logging.getLogger(__name__)


def build_confirmation_email(booking: BookingRecord) -> tuple[str, str]:
    seats = ", ".join(booking.seat_labels()) or "-"
    show_date = booking.show_date.strftime("%d %b %Y") if booking.show_date else "TBD"
    subject = f"Booking confirmed: {booking.movie.title} ({booking.booking_number})"
    body = (
        f"Hello {booking.customer.name},\n\n"
        f"Your booking {booking.booking_number} is confirmed.\n\n"
        f"Movie: {booking.movie.title}\n"
        f"Theater: {booking.theater.name}\n"
        f"Show: {show_date} {booking.show_time or ''}\n"
        f"Seats: {seats}\n"
        f"Amount paid: Rs. {booking.total_amount:.2f}\n"
        f"Payment ID: {booking.payment.razorpay_payment_id or booking.payment.transaction_id}\n\n"
        "Show the QR code from your booking page at the entrance.\n\n"
        "Enjoy the show!"
    )
    return subject, body


async def send_booking_confirmation(booking: BookingRecord) -> None:
    recipient = validate_user_email(booking.customer.email)
    subject, body = build_confirmation_email(booking)
    await send_email(recipient, subject, body)
    logger.info("Booking confirmation sent for %s", booking.booking_number)
