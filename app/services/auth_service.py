"""
Authentication Service
Handles back-office user creation and credential checks
"""
from sqlalchemy.orm import Session
from typing import Optional

from app.models.user import User
from app.core.security import get_password_hash, verify_password


def create_user(
    db: Session,
    email: str,
    password: str,
    name: Optional[str] = None,
    role: str = "USER",
    phone: Optional[str] = None
) -> User:
    """
    Create a new user

    Args:
        db: Database session
        email: User email (unique)
        password: Plain text password (will be hashed)
        name: Display name
        role: USER or ADMIN
        phone: User phone number (optional)

    Returns:
        Created user object
    """
    db_user = User(
        email=email,
        name=name,
        password=get_password_hash(password),
        role=role,
        phone=phone
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """User for the email/password pair, or None when either is wrong"""
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.password):
        return None
    return user


def get_user_by_id(db: Session, user_id) -> Optional[User]:
    try:
        return db.get(User, int(user_id))
    except (TypeError, ValueError):
        return None
