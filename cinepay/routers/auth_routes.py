# cinepay/routers/auth_routes.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from cinepay.auth import authenticate_user, create_user_token
from cinepay.database.database import get_db
from cinepay.database.schemas import LoginRequest, Token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=Token)
def login(credentials: LoginRequest, db: Session = Depends(get_db)) -> Token:
    """Exchange email and password for a bearer token."""
    logger.info("Login attempt for %s", credentials.email)
    user = authenticate_user(db, credentials.email, credentials.password)
    if user is None:
        logger.warning("Login failed for %s", credentials.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return Token(access_token=create_user_token(user))
