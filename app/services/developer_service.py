"""
Developer Service
Public directory and admin CRUD for developers
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.developer import Developer
from app.models.project import Project
from app.services.project_service import parse_uuid

logger = logging.getLogger(__name__)

LOGO_HOST_REWRITES = [
    ("https://oss.pixxicrm.com/", "https://pixxicrm.ae/api/"),
]


def rewrite_logo(logo: Optional[str]) -> Optional[str]:
    """Point logos at the host that actually serves them"""
    if not logo:
        return logo
    for old, new in LOGO_HOST_REWRITES:
        logo = logo.replace(old, new)
    return logo


def directory_entry(developer: Developer) -> Dict[str, Any]:
    """Public directory shape: {id, project_count, Company {...}}"""
    return {
        "id": str(developer.id),
        "project_count": developer.project_count,
        "Company": developer.to_company(extended=True),
    }


class DeveloperService:
    def __init__(self, db: Session):
        self.db = db

    def _search(self, q, search: Optional[str]):
        if search:
            q = q.filter(func.lower(Developer.name).like(f"%{search.lower()}%"))
        return q

    def list_public(
        self,
        page: int,
        limit: int,
        min_projects: int = 0,
        search: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        q = self._search(self.db.query(Developer), search)
        if min_projects:
            q = q.filter(Developer.project_count >= min_projects)

        total = q.count()
        rows = (
            q.order_by(Developer.project_count.desc(), Developer.name.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return [directory_entry(d) for d in rows], total

    def list_with_projects(self) -> List[Dict[str, Any]]:
        """Every developer with at least one project and a name, logos rewritten."""
        rows = (
            self.db.query(Developer)
            .filter(Developer.project_count >= 1)
            .order_by(Developer.project_count.desc(), Developer.name.asc())
            .all()
        )
        return [
            {
                "id": str(d.id),
                "project_count": d.project_count,
                "Company": {"name": d.name, "logo": rewrite_logo(d.logo)},
            }
            for d in rows
            if d.name
        ]

    def list_admin(self, search: Optional[str], page: int, page_size: int) -> Tuple[List[Dict[str, Any]], int]:
        q = self._search(self.db.query(Developer), search)
        total = q.count()
        rows = (
            q.order_by(Developer.project_count.desc(), Developer.name.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return [d.column_dict() for d in rows], total

    def get(self, developer_id: Any) -> Optional[Developer]:
        did = parse_uuid(developer_id)
        if did is None:
            return None
        return self.db.get(Developer, did)

    def create(self, data: Dict[str, Any]) -> Developer:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValueError("Name is required")

        developer = Developer(
            name=name,
            logo=data.get("logo"),
            description=data.get("description"),
            website=data.get("website"),
            email=data.get("email"),
            phone=data.get("phone"),
            project_count=0,
        )
        self.db.add(developer)
        self.db.commit()
        self.db.refresh(developer)
        logger.info(f"[OK] Developer created: {developer.name}")
        return developer

    def update(self, developer: Developer, updates: Dict[str, Any]) -> Developer:
        if not updates:
            raise ValueError("No fields to update")
        if "name" in updates and not (updates["name"] or "").strip():
            raise ValueError("Name is required")

        for field, value in updates.items():
            setattr(developer, field, value.strip() if field == "name" else value)

        self.db.commit()
        self.db.refresh(developer)
        return developer

    def delete(self, developer: Developer) -> None:
        has_projects = (
            self.db.query(Project.id)
            .filter(Project.developer_id == developer.id)
            .first()
        )
        if has_projects:
            raise ValueError(
                "Cannot delete developer with existing projects. "
                "Please remove or reassign projects first."
            )
        developer_id = developer.id
        self.db.delete(developer)
        self.db.commit()
        logger.info(f"[OK] Developer deleted: {developer_id}")
