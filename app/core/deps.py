from typing import Any, Dict, Optional, Set
import logging
import threading

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.security import ADMIN_ROLE, decode_access_token
from app.database import get_db, init_db

logger = logging.getLogger(__name__)

# auto_error=False so a missing header yields our own 401 body
bearer_scheme = HTTPBearer(auto_error=False)

_initialized_binds: Set[int] = set()
_init_lock = threading.Lock()


def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Dict[str, Any]:
    """
    Admin guard for back-office routes.

    Returns the decoded token claims. Any missing, malformed or non-admin
    token is a 401 Unauthorized.
    """
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None or (credentials.scheme or "").lower() != "bearer":
        raise unauthorized

    payload = decode_access_token(credentials.credentials)
    if not payload or payload.get("role") != ADMIN_ROLE:
        raise unauthorized

    return payload


def ensure_schema(db: Session = Depends(get_db)) -> Session:
    """
    Run the idempotent schema bootstrap once per engine, then hand back the session.

    Routes touching catalogue or CRM tables depend on this instead of get_db.
    """
    bind = db.get_bind()
    key = id(bind)

    if key not in _initialized_binds:
        with _init_lock:
            if key not in _initialized_binds:
                if not init_db(bind):
                    raise HTTPException(
                        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                        detail="Database initialization failed",
                    )
                _initialized_binds.add(key)

    return db
