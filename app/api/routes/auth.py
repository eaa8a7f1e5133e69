"""
Authentication Endpoints
Admin login and current-user lookup
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.deps import bearer_scheme, ensure_schema
from app.core.security import ADMIN_ROLE, create_user_token, decode_access_token
from app.schemas.auth import LoginRequest, UserResponse
from app.services.auth_service import authenticate_user, get_user_by_id

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login")
def login(credentials: LoginRequest, db: Session = Depends(ensure_schema)):
    """Login and get a bearer token; admin accounts only"""
    if not credentials.email or not credentials.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email and password are required"
        )

    try:
        user = authenticate_user(db, credentials.email, credentials.password)
    except Exception as e:
        logger.error(f"Database error during login: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error occurred"
        )

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if user.role != ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Admin privileges required."
        )

    logger.info(f"[OK] Admin login: {user.email}")
    return {
        "success": True,
        "token": create_user_token(user),
        "user": UserResponse.model_validate(user).model_dump(),
    }


@router.get("/me")
def get_current_user_info(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(ensure_schema),
):
    """Fresh copy of the signed-in admin's row"""
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token provided")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = get_user_by_id(db, payload.get("sub"))
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    if user.role != ADMIN_ROLE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    return {"success": True, "user": UserResponse.model_validate(user).model_dump()}
