"""
Ticket QR code generator
"""
import base64
import hashlib
import io
import json
import logging
from typing import Any, Dict

import qrcode  # type: ignore[import-untyped]

from cinepay.database.schemas import BookingRecord

logger = logging.getLogger(__name__)

BLACK = "#000000"
WHITE = "#FFFFFF"


def build_ticket_payload(booking: BookingRecord) -> Dict[str, Any]:
    return {
        "bookingNumber": booking.booking_number,
        "movie": booking.movie.title,
        "movieId": booking.movie.id,
        "seats": booking.seat_labels(),
        "showDate": booking.show_date.isoformat() if booking.show_date else None,
        "showTime": booking.show_time,
    }


def generate_qr_code(data: Dict[str, Any]) -> str:
    """
    Generate a QR code with booking data and checksum
    Returns the PNG image as a data URL
    """
    payload = dict(data)
    # Add checksum for verification at the gate
    payload["checksum"] = hashlib.sha256(json.dumps(data, sort_keys=True).encode()).hexdigest()[:16]

    qr = qrcode.QRCode(version=1, box_size=10, border=2)
    qr.add_data(json.dumps(payload, sort_keys=True))
    qr.make(fit=True)
    qr_img = qr.make_image(fill_color=BLACK, back_color=WHITE)

    buffer = io.BytesIO()
    qr_img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"
