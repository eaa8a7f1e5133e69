"""
Lead Service
Admin CRUD for leads, enquiry-to-lead conversion and dashboard stats
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.enquiry import Enquiry
from app.models.lead import Lead, LeadStatus, SalesStage
from app.services.enquiry_service import PROFILE_FIELDS, validate_contact
from app.utils.aggregator import to_fixed
from app.utils.validators import join_name

logger = logging.getLogger(__name__)

LEAD_FIELDS = (
    "name",
    "phone",
    "email",
    "property_id",
    "price",
    "project_name",
    "type",
    "intent",
    "event",
    "status",
    "sales_stage",
) + PROFILE_FIELDS

RECENT_LEAD_FIELDS = ("id", "name", "phone", "email", "project_name", "price", "status", "created_at")


def _percent(part: int, total: int) -> float:
    if not total:
        return 0
    return float(to_fixed(part / total * 100, 1))


class LeadService:
    def __init__(self, db: Session):
        self.db = db

    # ── CRUD ──────────────────────────────────────────────────────────────────

    def list_admin(
        self,
        status: Optional[str],
        search: Optional[str],
        page: int,
        page_size: int,
    ) -> Tuple[List[Dict[str, Any]], int]:
        q = self.db.query(Lead)

        if status and status.lower() != "all":
            try:
                q = q.filter(Lead.status == LeadStatus(status.upper()))
            except ValueError:
                return [], 0
        if search:
            like = f"%{search.lower()}%"
            q = q.filter(or_(
                func.lower(Lead.name).like(like),
                func.lower(Lead.project_name).like(like),
            ))

        total = q.count()
        rows = (
            q.order_by(Lead.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return [lead.to_dict() for lead in rows], total

    def get(self, lead_id: Any) -> Optional[Lead]:
        try:
            return self.db.get(Lead, int(lead_id))
        except (TypeError, ValueError):
            return None

    def create(self, data: Dict[str, Any]) -> Lead:
        if not (data.get("name") or "").strip() or not (data.get("phone") or "").strip():
            raise ValueError("Name and phone are required")
        validate_contact(data.get("phone"), data.get("email"))

        values = {field: data.get(field) for field in LEAD_FIELDS}
        values["status"] = values.get("status") or LeadStatus.HOT
        values["sales_stage"] = values.get("sales_stage") or SalesStage.NEW_INQUIRY
        lead = Lead(**values)
        self.db.add(lead)
        self.db.commit()
        self.db.refresh(lead)
        logger.info(f"[OK] Lead created: {lead.id}")
        return lead

    def update(self, lead: Lead, data: Dict[str, Any]) -> Lead:
        """Write only the fields that carry a value; None keeps the stored one."""
        updates = {k: v for k, v in data.items() if k in LEAD_FIELDS and v is not None}
        if "name" in updates and not updates["name"].strip():
            raise ValueError("Name and phone are required")
        if "phone" in updates and not updates["phone"].strip():
            raise ValueError("Name and phone are required")
        validate_contact(updates.get("phone"), updates.get("email"))

        for field, value in updates.items():
            setattr(lead, field, value)
        self.db.commit()
        self.db.refresh(lead)
        return lead

    def delete(self, lead: Lead) -> None:
        self.db.delete(lead)
        self.db.commit()

    # ── Conversion ────────────────────────────────────────────────────────────

    def move_from_enquiry(self, enquiry: Enquiry, lead_data: Dict[str, Any]) -> Lead:
        """
        Create a lead from an enquiry and delete the enquiry, atomically.

        lead_data overrides the enquiry's contact and profile details.
        Either both writes land or neither does.
        """
        name = lead_data.get("name") or join_name(enquiry.first_name, enquiry.last_name)
        email = lead_data.get("email") or enquiry.email
        phone = lead_data.get("phone") or enquiry.phone or ""

        if not name or not phone:
            raise ValueError("Name and phone are required")
        validate_contact(phone, None)

        values = {field: lead_data.get(field) for field in LEAD_FIELDS}
        values.update({
            "name": name,
            "email": email or None,
            "phone": phone,
            "status": lead_data.get("status") or LeadStatus.HOT,
            "sales_stage": lead_data.get("sales_stage") or SalesStage.NEW_INQUIRY,
        })
        for field in PROFILE_FIELDS:
            if values.get(field) is None:
                values[field] = getattr(enquiry, field)

        lead = Lead(**values)
        try:
            self.db.add(lead)
            self.db.delete(enquiry)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error(f"Move to leads failed for enquiry {enquiry.id}", exc_info=True)
            raise

        self.db.refresh(lead)
        logger.info(f"[OK] Enquiry moved to lead {lead.id}")
        return lead

    # ── Dashboard ─────────────────────────────────────────────────────────────

    def stats(self) -> Dict[str, Any]:
        counts = dict(
            self.db.query(Lead.status, func.count(Lead.id))
            .group_by(Lead.status)
            .all()
        )
        hot = counts.get(LeadStatus.HOT, 0)
        warm = counts.get(LeadStatus.WARM, 0)
        lost = counts.get(LeadStatus.COLD, 0)
        total = sum(counts.values())
        enquiries = self.db.query(func.count(Enquiry.id)).scalar() or 0

        return {
            "total": total,
            "hot": hot,
            "warm": warm,
            "lost": lost,
            "clients": enquiries,
            "enquiries": enquiries,
            "conversion_rate": _percent(hot, total),
            "lost_rate": _percent(lost, total),
        }

    def recent(self, limit: int = 5) -> List[Dict[str, Any]]:
        rows = (
            self.db.query(Lead)
            .order_by(Lead.created_at.desc(), Lead.id.desc())
            .limit(limit)
            .all()
        )
        return [
            {field: value for field, value in lead.to_dict().items() if field in RECENT_LEAD_FIELDS}
            for lead in rows
        ]
