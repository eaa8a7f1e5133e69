"""
Public Developer Endpoints
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import ensure_schema
from app.services.developer_service import DeveloperService
from app.services.listing_cache import listing_cache
from app.utils.pagination import clamp_page, pagination_meta

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def list_developers(
    page: int = Query(1),
    limit: int = Query(12),
    min_projects: int = Query(0, ge=0),
    search: Optional[str] = None,
    db: Session = Depends(ensure_schema),
):
    """Developer directory, busiest first"""
    page, limit = clamp_page(page, limit, default_limit=settings.PUBLIC_PAGE_SIZE)
    try:
        developers, total = DeveloperService(db).list_public(page, limit, min_projects, search)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching developers: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch developers: {str(e)}"
        )

    return {
        "success": True,
        "data": developers,
        "pagination": pagination_meta(page, limit, total),
    }


@router.get("/all")
async def all_developers(force_refresh: bool = False):
    """Every developer with at least one project (cached)"""
    data = await listing_cache.get_developers(force_refresh=force_refresh)
    return {"success": True, "total": len(data), "data": data}
