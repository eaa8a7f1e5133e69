"""
Project Model - internal listing catalogue
List-valued columns are JSON so the same table works on PostgreSQL and SQLite
"""
import uuid
from typing import List, Optional

from sqlalchemy import JSON, Float, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin
from app.utils.listings import clean_text

PROJECT_STATUS_ACTIVE = "active"


class Project(TimestampMixin, Base):
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=True)
    city: Mapped[str] = mapped_column(String(100), nullable=True, index=True)
    category: Mapped[str] = mapped_column(String(50), nullable=True, index=True)  # Off_plan, Ready, ...

    type: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=True)  # Villa, Apartment, ...
    unit_types: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=True)  # Studio, One, Two, ...

    min_price: Mapped[Optional[float]] = mapped_column(Numeric(15, 2, asdecimal=False), nullable=True)
    max_price: Mapped[Optional[float]] = mapped_column(Numeric(15, 2, asdecimal=False), nullable=True)

    description: Mapped[str] = mapped_column(Text, nullable=True)
    amenities: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=True)
    images: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=True)

    location_lat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    location_lng: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    developer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("developers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    status: Mapped[str] = mapped_column(String(20), default=PROJECT_STATUS_ACTIVE, nullable=False, index=True)

    developer = relationship("Developer", back_populates="projects", lazy="joined")

    def to_dict(self, extended_company: bool = False) -> dict:
        """Row plus nested Company (None when the developer is unset)"""
        data = self.column_dict()
        data["id"] = str(self.id)
        data["developer_id"] = str(self.developer_id) if self.developer_id else None
        if data.get("description"):
            data["description"] = clean_text(data["description"])
        for field in ("type", "unit_types", "amenities", "images"):
            data[field] = data.get(field) or []
        data["Company"] = self.developer.to_company(extended=extended_company) if self.developer else None
        return data

    def __repr__(self):
        return f"<Project {self.title}>"
