"""
User Model - back-office accounts
Staff sign in with email + password; role ADMIN unlocks the admin API
"""
from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Authentication
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)  # bcrypt hash
    role: Mapped[str] = mapped_column(String(20), default="USER", nullable=False)

    # Profile
    name: Mapped[str] = mapped_column(String(255), nullable=True)
    phone: Mapped[str] = mapped_column(String(50), nullable=True)
    profile_image: Mapped[str] = mapped_column(String(500), nullable=True)

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
