# ============================================================================
# FILE: studio_scheduler/api/dependencies.py
# JWT authentication and per-request service wiring
# ============================================================================
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from studio_scheduler.config.database import get_db
from studio_scheduler.config.settings import settings
from studio_scheduler.services.appointment.appointment_service import AppointmentService
from studio_scheduler.services.availability.slot_generator import SlotGenerator
from studio_scheduler.services.store.scheduling_store import SqlAlchemySchedulingStore

# ============================================================================
# Security Schemes
# ============================================================================

jwt_security = HTTPBearer(
    scheme_name="JWT Bearer Token",
    description="Enter your JWT access token"
)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller: who acts, and for which studio"""
    user_id: str
    studio_id: UUID


# ============================================================================
# JWT Token Functions
# ============================================================================

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Dictionary with claims (should include 'sub' and 'studio_id')
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({
        "exp": expire,
        "iat": datetime.now(timezone.utc),
        "type": "access"
    })

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )


def verify_access_token(token: str) -> dict:
    """
    Verify and decode a JWT access token.

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Could not validate credentials: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload


# ============================================================================
# Dependencies
# ============================================================================

async def get_current_principal(
        credentials: HTTPAuthorizationCredentials = Depends(jwt_security)
) -> Principal:
    """
    Dependency to get the caller from the JWT access token.

    Usage in routes:
        @router.get("/appointments")
        async def list_appointments(principal: Principal = Depends(get_current_principal)):
            ...

    Raises:
        HTTPException 401: If the token is invalid
        HTTPException 403: If the token is not tied to a studio
    """
    payload = verify_access_token(credentials.credentials)

    user_id: Optional[str] = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    studio_id_str = payload.get("studio_id")
    if not studio_id_str:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User not associated with a studio"
        )

    try:
        studio_id = UUID(studio_id_str)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid studio ID in token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Principal(user_id=user_id, studio_id=studio_id)


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    return AppointmentService(SqlAlchemySchedulingStore(db))


def get_slot_generator(db: Session = Depends(get_db)) -> SlotGenerator:
    return SlotGenerator(SqlAlchemySchedulingStore(db))
