import logging
from email.message import EmailMessage
from typing import Any

import aiosmtplib
import bcrypt
from email_validator import EmailNotValidError, validate_email

from cinepay.core.config import settings

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12
SMTP_TIMEOUT_SECONDS = 10


# ---------------- Password Hashing ----------------
def _normalize_password(password: str | bytes) -> bytes:
    if isinstance(password, str):
        password_bytes = password.encode("utf-8")
    elif isinstance(password, bytes):
        password_bytes = password
    else:
        raise TypeError("Password must be str or bytes")

    if len(password_bytes) > 72:
        logger.debug("Truncating password to 72 bytes for bcrypt compatibility")
        password_bytes = password_bytes[:72]
    return password_bytes


def hash_password(password: str | bytes, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a password using bcrypt."""
    secret = _normalize_password(password)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(secret, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str | bytes, hashed_password: str | bytes) -> bool:
    """Verify the provided password against the stored bcrypt hash."""
    if not hashed_password:
        return False

    secret = _normalize_password(plain_password)
    hashed = hashed_password.encode("utf-8") if isinstance(hashed_password, str) else hashed_password
    try:
        return bcrypt.checkpw(secret, hashed)
    except ValueError:
        # Occurs if hashed value is not a valid bcrypt hash
        logger.exception("Failed to verify bcrypt hash due to invalid stored value")
        return False


# ---------------- Email ----------------
async def send_email(to_email: str, subject: str, body: str) -> Any:
    """Send a plain-text email. Raises on failure so callers can record it."""
    if not settings.SMTP_SERVER:
        raise RuntimeError("SMTP_SERVER is not configured")

    message = EmailMessage()
    message["From"] = f"CinePay <{settings.EMAIL_USER}>"
    message["To"] = to_email
    message["Subject"] = subject
    message.set_content(body)

    response = await aiosmtplib.send(
        message,
        hostname=settings.SMTP_SERVER,
        port=settings.SMTP_PORT,
        start_tls=True,
        username=settings.EMAIL_USER,
        password=settings.EMAIL_PASSWORD,
        timeout=SMTP_TIMEOUT_SECONDS,
    )
    logger.info("Email sent to %s: %s", to_email, response)
    return response


# ---------------- Email Validation ----------------
def validate_user_email(email: str) -> str:
    try:
        valid = validate_email(email, check_deliverability=False)
        return valid.normalized
    except EmailNotValidError as e:
        raise ValueError(f"Invalid email: {str(e)}")
