"""
Developer Model - property developers ("Company" in API payloads)
"""
import uuid
from typing import List

from sqlalchemy import Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin


class Developer(TimestampMixin, Base):
    __tablename__ = "developers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    logo: Mapped[str] = mapped_column(String(500), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=True)
    website: Mapped[str] = mapped_column(String(500), nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=True)
    phone: Mapped[str] = mapped_column(String(50), nullable=True)

    # Number of active projects; recomputed by the project service on writes
    project_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)

    projects: Mapped[List["Project"]] = relationship(  # noqa: F821
        "Project",
        back_populates="developer",
        passive_deletes=True,
    )

    def to_company(self, extended: bool = False) -> dict:
        """Nested Company object used in project payloads"""
        company = {
            "id": str(self.id),
            "name": self.name,
            "logo": self.logo,
        }
        if extended:
            company.update({
                "description": self.description,
                "website": self.website,
                "email": self.email,
                "phone": self.phone,
            })
        return company

    def __repr__(self):
        return f"<Developer {self.name}>"
