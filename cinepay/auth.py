# cinepay/auth.py

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from cinepay.core.config import settings
from cinepay.database import models
from cinepay.database.schemas import AuthenticatedUser
from cinepay.utils import verify_password

# =====================================
# Configurations
# =====================================
ALGORITHM = "HS256"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


# =====================================
# JWT Helpers
# =====================================
def create_access_token(data: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
    """Create a new JWT access token."""
    to_encode = data.copy()
    minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def create_user_token(user: models.User) -> str:
    return create_access_token({
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role or "user",
    })


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify a JWT token."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def authenticate_user(db: Session, email: str, password: str) -> Optional[models.User]:
    user = db.query(models.User).filter(models.User.email == email).first()
    if user is None or not verify_password(password, str(user.password)):
        return None
    return user


# =====================================
# Current User Fetcher
# =====================================
def get_current_user(token: str = Depends(oauth2_scheme)) -> AuthenticatedUser:
    """Return the identity carried by the bearer token."""
    payload = decode_access_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AuthenticatedUser(
        id=str(user_id),
        email=payload.get("email"),
        name=payload.get("name"),
        role=payload.get("role") or "user",
    )


# =====================================
# Role-based Access Control
# =====================================
def require_role(required_role: str):
    """Dependency to restrict access to users with a given role."""
    def checker(current_user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if current_user.role not in [required_role, "admin"]:
            raise HTTPException(
                status_code=403,
                detail=f"Access forbidden: {required_role} role required"
            )
        return current_user
    return checker
