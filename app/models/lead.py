"""
Lead Model - qualified prospects moving through the sales pipeline
"""
import enum
from datetime import date
from typing import Optional

from sqlalchemy import Date, Enum as SQLEnum, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class LeadStatus(str, enum.Enum):
    """Temperature of a lead or enquiry"""
    HOT = "HOT"
    WARM = "WARM"
    COLD = "COLD"


class SalesStage(str, enum.Enum):
    """Pipeline position. Any stage may move to any other."""
    NEW_INQUIRY = "New Inquiry"
    CONTACTED = "Contacted"
    REQUIREMENTS_CAPTURED = "Requirements Captured"
    QUALIFIED_LEAD = "Qualified Lead"
    PROPERTY_SHARED = "Property Shared"
    SHORTLISTED = "Shortlisted"
    SITE_VISIT_SCHEDULED = "Site Visit Scheduled"
    SITE_VISIT_DONE = "Site Visit Done"
    NEGOTIATION = "Negotiation"
    OFFER_MADE = "Offer Made"
    OFFER_ACCEPTED = "Offer Accepted"
    BOOKING_RESERVATION = "Booking / Reservation"
    SPA_ISSUED = "SPA Issued"
    SPA_SIGNED = "SPA Signed"
    MORTGAGE_APPROVED = "Mortgage Approved"
    TITLE_DEED_ISSUED = "Oqood Registered / Title Deed Issued"
    DEAL_WON = "Deal Closed – Won"
    DEAL_LOST = "Deal Lost"
    POST_SALE_FOLLOW_UP = "Post-Sale Follow-up"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


def status_column(default=LeadStatus.HOT):
    # VARCHAR + CHECK instead of a native PG enum, so SQLite and Postgres match
    return mapped_column(
        SQLEnum(
            LeadStatus,
            name="lead_status",
            native_enum=False,
            length=10,
            values_callable=_enum_values,
            validate_strings=True,
        ),
        default=default,
        nullable=False,
        index=True,
    )


class ClientProfileMixin:
    """Client profile fields shared by enquiries and leads"""
    job_title: Mapped[str] = mapped_column(String(255), nullable=True)
    employer: Mapped[str] = mapped_column(String(255), nullable=True)
    property_interests: Mapped[str] = mapped_column(Text, nullable=True)
    notes: Mapped[str] = mapped_column(Text, nullable=True)
    client_folder_link: Mapped[str] = mapped_column(String(500), nullable=True)
    nationality: Mapped[str] = mapped_column(String(100), nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    home_address: Mapped[str] = mapped_column(Text, nullable=True)


class Lead(ClientProfileMixin, TimestampMixin, Base):
    __tablename__ = "leads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Contact
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=True)

    # Interest
    property_id: Mapped[str] = mapped_column(String(100), nullable=True)
    price: Mapped[float] = mapped_column(Numeric(15, 2, asdecimal=False), nullable=True)
    project_name: Mapped[str] = mapped_column(String(500), nullable=True, index=True)
    type: Mapped[str] = mapped_column(String(100), nullable=True)
    intent: Mapped[str] = mapped_column(String(100), nullable=True)
    event: Mapped[str] = mapped_column(String(255), nullable=True)

    # Pipeline
    status: Mapped[LeadStatus] = status_column()
    sales_stage: Mapped[SalesStage] = mapped_column(
        SQLEnum(
            SalesStage,
            name="sales_stage",
            native_enum=False,
            length=50,
            values_callable=_enum_values,
            validate_strings=True,
        ),
        default=SalesStage.NEW_INQUIRY,
        nullable=False,
    )

    def to_dict(self) -> dict:
        data = self.column_dict()
        data["status"] = self.status.value if self.status else None
        data["sales_stage"] = self.sales_stage.value if self.sales_stage else None
        return data

    def __repr__(self):
        return f"<Lead {self.name} ({self.status})>"
