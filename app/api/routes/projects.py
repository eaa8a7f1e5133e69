"""
Public Project Endpoints
Catalogue listing with filters, featured / latest listings and detail
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import ensure_schema
from app.schemas.project import ProjectFilters
from app.services.listing_cache import listing_cache
from app.services.project_service import ProjectService
from app.utils.listings import filter_data, get_recent_properties
from app.utils.pagination import clamp_page, pagination_meta

logger = logging.getLogger(__name__)

router = APIRouter()


def _list_projects(db: Session, filters: ProjectFilters, page: int, limit: int):
    page, limit = clamp_page(page, limit, default_limit=settings.PUBLIC_PAGE_SIZE)
    try:
        projects, total = ProjectService(db).list_public(filters.model_dump(), page, limit)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching projects: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch projects: {str(e)}"
        )

    return {
        "success": True,
        "data": projects,
        "pagination": pagination_meta(page, limit, total),
    }


@router.get("")
def list_projects(
    page: int = Query(1),
    limit: int = Query(12),
    category: Optional[str] = None,
    type: Optional[List[str]] = Query(None),
    unit_types: Optional[List[str]] = Query(None),
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    city: Optional[str] = None,
    search: Optional[str] = None,
    developer_id: Optional[str] = None,
    priority_company_ids: Optional[str] = None,
    db: Session = Depends(ensure_schema),
):
    """Active projects, newest first (priority developers first when given)"""
    filters = ProjectFilters(
        category=category,
        type=type,
        unit_types=unit_types,
        min_price=min_price,
        max_price=max_price,
        city=city,
        search=search,
        developer_id=developer_id,
        priority_company_ids=priority_company_ids,
    )
    return _list_projects(db, filters, page, limit)


@router.post("")
def search_projects(
    filters: Optional[ProjectFilters] = Body(None),
    page: int = Query(1),
    limit: int = Query(12),
    db: Session = Depends(ensure_schema),
):
    """Same as GET, with filters in a JSON body"""
    return _list_projects(db, filters or ProjectFilters(), page, limit)


@router.get("/featured")
async def featured_projects(force_refresh: bool = False):
    """Newly launched listing: priority developers first, cached"""
    data = await listing_cache.get_priority(force_refresh=force_refresh)
    return {"success": True, "total": len(data), "data": data}


@router.get("/latest")
async def latest_projects(
    type: Optional[str] = None,
    category: Optional[str] = None,
    bedrooms: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    search: Optional[str] = None,
    limit: int = Query(100, ge=1, le=100),
):
    """Active projects newest first, optionally narrowed in memory"""
    data = await listing_cache.get_plain()
    filtered = filter_data(data, {
        "type": type,
        "category": category,
        "bedrooms": bedrooms,
        "min_price": min_price,
        "max_price": max_price,
        "search": search,
    })
    recent = get_recent_properties(filtered, limit)
    return {"success": True, "total": len(recent), "data": recent}


@router.get("/{project_id}")
def get_project(project_id: str, db: Session = Depends(ensure_schema)):
    """Single active project with its developer's contact details"""
    try:
        project = ProjectService(db).get_public(project_id)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching project {project_id}: {e}")
        project = listing_cache.find_cached_project(project_id)
        if project is None:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to fetch project: {str(e)}"
            )

    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    return {"success": True, "data": project}
