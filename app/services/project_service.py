"""
Project Service
Public catalogue queries and admin CRUD for projects. Keeps each
developer's project_count in step with project writes.
"""
import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Query, Session

from app.models.developer import Developer
from app.models.project import Project, PROJECT_STATUS_ACTIVE
from app.utils.pagination import paginate_list

logger = logging.getLogger(__name__)


# ── Helpers ────────────────────────────────────────────────────────────────────

def parse_uuid(value: Any) -> Optional[uuid.UUID]:
    """uuid.UUID from str/UUID; None when unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, AttributeError, TypeError):
        return None


def _overlaps(values: Optional[List[str]], wanted: List[str]) -> bool:
    return bool(set(values or []) & set(wanted))


def _text_search(term: str):
    like = f"%{term.lower()}%"
    return or_(
        func.lower(Project.title).like(like),
        func.lower(Project.address).like(like),
        func.lower(Project.city).like(like),
    )


class ProjectService:
    def __init__(self, db: Session):
        self.db = db

    # ── Public catalogue ──────────────────────────────────────────────────────

    def _public_query(self, filters: Dict[str, Any]) -> Query:
        q = self.db.query(Project).filter(Project.status == PROJECT_STATUS_ACTIVE)

        if filters.get("category"):
            q = q.filter(Project.category == filters["category"])
        if filters.get("min_price") is not None:
            q = q.filter(Project.min_price >= float(filters["min_price"]))
        if filters.get("max_price") is not None:
            q = q.filter(Project.min_price <= float(filters["max_price"]))
        if filters.get("city"):
            q = q.filter(func.lower(Project.city) == filters["city"].lower())
        if filters.get("developer_id"):
            developer_id = parse_uuid(filters["developer_id"])
            if developer_id is None:
                # Unknown id format matches nothing
                return q.filter(Project.id.is_(None))
            q = q.filter(Project.developer_id == developer_id)
        if filters.get("search"):
            q = q.filter(_text_search(filters["search"]))

        return q

    def _public_order(self, q: Query, priority_ids: Iterable[Any]) -> Query:
        priority = [pid for pid in (parse_uuid(p) for p in priority_ids or []) if pid]
        if priority:
            q = q.order_by(
                case((Project.developer_id.in_(priority), 0), else_=1),
                Project.created_at.desc(),
            )
        else:
            q = q.order_by(Project.created_at.desc())
        return q

    def list_public(self, filters: Dict[str, Any], page: int, limit: int) -> Tuple[List[Dict[str, Any]], int]:
        """
        Active projects matching the filters, one page at a time.

        type / unit_types match when the project's list shares any value
        with the requested list. They are checked in Python so the same
        query runs on SQLite and PostgreSQL.
        """
        q = self._public_order(self._public_query(filters), filters.get("priority_company_ids"))

        types = filters.get("type") or []
        unit_types = filters.get("unit_types") or []

        if types or unit_types:
            rows = [
                p for p in q.all()
                if (not types or _overlaps(p.type, types))
                and (not unit_types or _overlaps(p.unit_types, unit_types))
            ]
            total = len(rows)
            page_rows = paginate_list(rows, page, limit)
        else:
            total = q.order_by(None).count()
            page_rows = q.offset((page - 1) * limit).limit(limit).all()

        return [p.to_dict() for p in page_rows], total

    def get_public(self, project_id: Any) -> Optional[Dict[str, Any]]:
        pid = parse_uuid(project_id)
        if pid is None:
            return None
        project = (
            self.db.query(Project)
            .filter(Project.id == pid, Project.status == PROJECT_STATUS_ACTIVE)
            .first()
        )
        return project.to_dict(extended_company=True) if project else None

    def list_newest(self, limit: int = 100) -> List[Dict[str, Any]]:
        rows = (
            self.db.query(Project)
            .filter(Project.status == PROJECT_STATUS_ACTIVE)
            .order_by(Project.created_at.desc())
            .limit(limit)
            .all()
        )
        return [p.to_dict() for p in rows]

    def list_priority(self, priority_ids: Iterable[Any], limit: int = 100) -> List[Dict[str, Any]]:
        q = self._public_order(
            self.db.query(Project).filter(Project.status == PROJECT_STATUS_ACTIVE),
            priority_ids,
        )
        return [p.to_dict() for p in q.limit(limit).all()]

    # ── Admin ─────────────────────────────────────────────────────────────────

    def list_admin(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        developer_id: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[Dict[str, Any]], int]:
        q = self.db.query(Project)

        if status and status != "all":
            q = q.filter(Project.status == status)
        if category and category != "all":
            q = q.filter(Project.category == category)
        if developer_id:
            parsed = parse_uuid(developer_id)
            # Unknown id format matches nothing
            q = q.filter(Project.developer_id == parsed) if parsed else q.filter(Project.id.is_(None))
        if search:
            q = q.filter(_text_search(search))

        total = q.count()
        rows = (
            q.order_by(Project.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return [p.to_dict() for p in rows], total

    def get(self, project_id: Any) -> Optional[Project]:
        pid = parse_uuid(project_id)
        if pid is None:
            return None
        return self.db.query(Project).filter(Project.id == pid).first()

    def create(self, data: Dict[str, Any]) -> Project:
        if not (data.get("title") or "").strip():
            raise ValueError("Title is required")
        self._check_developer(data.get("developer_id"))

        project = Project(
            title=data["title"].strip(),
            address=data.get("address"),
            city=data.get("city"),
            category=data.get("category"),
            type=data.get("type") or [],
            unit_types=data.get("unit_types") or [],
            min_price=data.get("min_price"),
            max_price=data.get("max_price"),
            description=data.get("description"),
            amenities=data.get("amenities") or [],
            images=data.get("images") or [],
            location_lat=data.get("location_lat"),
            location_lng=data.get("location_lng"),
            developer_id=data.get("developer_id"),
            status=data.get("status") or PROJECT_STATUS_ACTIVE,
        )
        self.db.add(project)
        self.db.flush()
        self.refresh_developer_counts([project.developer_id])
        self.db.commit()
        self.db.refresh(project)
        logger.info(f"[OK] Project created: {project.id}")
        return project

    def update(self, project: Project, updates: Dict[str, Any]) -> Project:
        if not updates:
            raise ValueError("No fields to update")
        if "title" in updates and not (updates["title"] or "").strip():
            raise ValueError("Title is required")
        if "developer_id" in updates:
            self._check_developer(updates["developer_id"])

        previous_developer = project.developer_id
        for field, value in updates.items():
            if field in ("type", "unit_types", "amenities", "images") and value is None:
                value = []
            setattr(project, field, value)

        self.db.flush()
        self.refresh_developer_counts([previous_developer, project.developer_id])
        self.db.commit()
        self.db.refresh(project)
        return project

    def delete(self, project: Project) -> None:
        project_id, developer_id = project.id, project.developer_id
        self.db.delete(project)
        self.db.flush()
        self.refresh_developer_counts([developer_id])
        self.db.commit()
        logger.info(f"[OK] Project deleted: {project_id}")

    # ── Developer counts ──────────────────────────────────────────────────────

    def _check_developer(self, developer_id: Optional[uuid.UUID]) -> None:
        if developer_id is None:
            return
        if not self.db.query(Developer.id).filter(Developer.id == developer_id).first():
            raise ValueError("Developer not found")

    def refresh_developer_counts(self, developer_ids: Iterable[Optional[uuid.UUID]]) -> None:
        """Recompute project_count (active projects) for each given developer."""
        for developer_id in {d for d in developer_ids if d}:
            developer = self.db.get(Developer, developer_id)
            if developer is None:
                continue
            developer.project_count = (
                self.db.query(func.count(Project.id))
                .filter(
                    Project.developer_id == developer_id,
                    Project.status == PROJECT_STATUS_ACTIVE,
                )
                .scalar()
            ) or 0
