"""
Enquiry Service
Website form intake and admin CRUD for general enquiries
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.models.enquiry import Enquiry
from app.models.lead import LeadStatus
from app.utils.validators import (
    INVALID_EMAIL_MESSAGE,
    INVALID_PHONE_MESSAGE,
    is_valid_email,
    is_valid_phone,
    split_name,
)

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "job_title",
    "employer",
    "property_interests",
    "notes",
    "client_folder_link",
    "nationality",
    "date_of_birth",
    "home_address",
)

ENQUIRY_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "subject",
    "event",
    "message",
    "status",
) + PROFILE_FIELDS


def derive_subject_and_message(data: Dict[str, Any]) -> Tuple[str, str]:
    """
    Contact forms carry subject + message; property cards carry
    project_name / type / price; anything else is a general enquiry.
    """
    subject = data.get("subject")
    message = data.get("message")
    if subject and message:
        return subject, message

    project_name = data.get("project_name")
    property_type = data.get("type")
    price = data.get("price")
    if project_name or property_type or price:
        return (
            "Property Enquiry",
            f"Property: {project_name or 'N/A'}, Type: {property_type or 'N/A'}, Budget: {price or 'N/A'}",
        )

    return "General Enquiry", "No additional details provided"


def validate_contact(phone: Optional[str], email: Optional[str]) -> None:
    if phone and not is_valid_phone(phone):
        raise ValueError(INVALID_PHONE_MESSAGE)
    if email and not is_valid_email(email):
        raise ValueError(INVALID_EMAIL_MESSAGE)


class EnquiryService:
    def __init__(self, db: Session):
        self.db = db

    def submit_public(self, data: Dict[str, Any]) -> Enquiry:
        """Store a website submission as a HOT enquiry."""
        name = (data.get("name") or "").strip()
        if not name:
            raise ValueError("Please fill in: Name")
        validate_contact(data.get("phone"), data.get("email"))

        subject, message = derive_subject_and_message(data)
        first_name, last_name = split_name(name)

        enquiry = Enquiry(
            first_name=first_name or None,
            last_name=last_name or None,
            email=data.get("email") or None,
            phone=data.get("phone") or None,
            subject=subject,
            event=data.get("event") or None,
            message=message,
            status=LeadStatus.HOT,
            **{field: data.get(field) or None for field in PROFILE_FIELDS if field != "property_interests"},
            property_interests=data.get("property_interests") or data.get("project_name") or None,
        )
        self.db.add(enquiry)
        self.db.commit()
        self.db.refresh(enquiry)
        logger.info(f"[OK] Enquiry received: {enquiry.id} ({subject})")
        return enquiry

    def list_admin(
        self,
        status: Optional[str],
        search: Optional[str],
        page: int,
        page_size: int,
    ) -> Tuple[List[Dict[str, Any]], int]:
        q = self.db.query(Enquiry)

        if status and status.lower() != "all":
            try:
                q = q.filter(Enquiry.status == LeadStatus(status.upper()))
            except ValueError:
                return [], 0
        if search:
            like = f"%{search.lower()}%"
            q = q.filter(or_(
                func.lower(Enquiry.first_name).like(like),
                func.lower(Enquiry.last_name).like(like),
                func.lower(Enquiry.email).like(like),
                func.lower(Enquiry.subject).like(like),
                func.lower(Enquiry.message).like(like),
            ))

        total = q.count()
        rows = (
            q.order_by(Enquiry.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return [e.to_dict() for e in rows], total

    def get(self, enquiry_id: Any) -> Optional[Enquiry]:
        try:
            return self.db.get(Enquiry, int(enquiry_id))
        except (TypeError, ValueError):
            return None

    def create(self, data: Dict[str, Any]) -> Enquiry:
        if not data.get("email") or not data.get("phone"):
            raise ValueError("Email and phone are required")
        validate_contact(data.get("phone"), data.get("email"))

        values = {field: data.get(field) for field in ENQUIRY_FIELDS}
        values["status"] = values.get("status") or LeadStatus.HOT
        enquiry = Enquiry(**values)
        self.db.add(enquiry)
        self.db.commit()
        self.db.refresh(enquiry)
        return enquiry

    def update(self, enquiry: Enquiry, data: Dict[str, Any]) -> Enquiry:
        """Write only the fields that carry a value; None keeps the stored one."""
        updates = {k: v for k, v in data.items() if k in ENQUIRY_FIELDS and v is not None}
        validate_contact(updates.get("phone"), updates.get("email"))

        for field, value in updates.items():
            setattr(enquiry, field, value)
        self.db.commit()
        self.db.refresh(enquiry)
        return enquiry

    def delete(self, enquiry: Enquiry) -> None:
        self.db.delete(enquiry)
        self.db.commit()
