"""
Enquiry Model - raw website / contact-form submissions (general_enquiries)
"""
from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin
from app.models.lead import ClientProfileMixin, LeadStatus, status_column


class Enquiry(ClientProfileMixin, TimestampMixin, Base):
    __tablename__ = "general_enquiries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    first_name: Mapped[str] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str] = mapped_column(String(255), nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=True, index=True)
    phone: Mapped[str] = mapped_column(String(50), nullable=True)

    subject: Mapped[str] = mapped_column(String(500), nullable=True)
    event: Mapped[str] = mapped_column(String(255), nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=True)

    status: Mapped[LeadStatus] = status_column()

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part).strip()

    def to_dict(self) -> dict:
        data = self.column_dict()
        data["status"] = self.status.value if self.status else None
        return data

    def __repr__(self):
        return f"<Enquiry {self.email} ({self.status})>"
