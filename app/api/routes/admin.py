"""
Admin Back Office Routes
Catalogue management (developers, projects), CRM (enquiries, leads),
dashboard stats and cache control
"""
import logging
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import ensure_schema, require_admin
from app.models.lead import LeadStatus, SalesStage
from app.schemas.developer import DeveloperCreate, DeveloperUpdate
from app.schemas.enquiry import EnquiryCreate, EnquiryUpdate
from app.schemas.lead import LeadCreate, LeadUpdate, MoveToLeadsRequest
from app.schemas.project import ProjectCreate, ProjectUpdate
from app.services.aggregator_service import alnair_service
from app.services.developer_service import DeveloperService
from app.services.enquiry_service import EnquiryService
from app.services.lead_service import LeadService
from app.services.listing_cache import listing_cache
from app.services.project_service import ProjectService
from app.utils.pagination import clamp_page, pagination_meta

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


def _database_error(db: Session, action: str, error: SQLAlchemyError) -> HTTPException:
    logger.error(f"Admin {action} error: {error}")
    db.rollback()
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}: {str(error)}"
    )


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


def _bad_request(error: ValueError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


def admin_paging(
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
    page_size_camel: Optional[int] = Query(None, alias="pageSize"),
) -> Tuple[int, int]:
    """(page, page_size); the dashboard sends pageSize"""
    size = page_size if page_size is not None else page_size_camel
    return clamp_page(page, size, default_limit=settings.DEFAULT_PAGE_SIZE)


# ==================== DEVELOPERS ====================

@router.get("/developers")
def list_developers(
    search: Optional[str] = None,
    paging: Tuple[int, int] = Depends(admin_paging),
    db: Session = Depends(ensure_schema),
):
    page, page_size = paging
    try:
        developers, total = DeveloperService(db).list_admin(search, page, page_size)
    except SQLAlchemyError as e:
        raise _database_error(db, "fetch developers", e)

    return {"success": True, "data": developers, "pagination": pagination_meta(page, page_size, total)}


@router.post("/developers", status_code=status.HTTP_201_CREATED)
def create_developer(payload: DeveloperCreate, db: Session = Depends(ensure_schema)):
    try:
        developer = DeveloperService(db).create(payload.model_dump())
    except ValueError as e:
        raise _bad_request(e)
    except SQLAlchemyError as e:
        raise _database_error(db, "create developer", e)

    listing_cache.clear()
    return {"success": True, "data": developer.column_dict()}


@router.put("/developers/{developer_id}")
def update_developer(developer_id: str, payload: DeveloperUpdate, db: Session = Depends(ensure_schema)):
    service = DeveloperService(db)
    developer = service.get(developer_id)
    if not developer:
        raise _not_found("Developer")

    try:
        developer = service.update(developer, payload.model_dump(exclude_unset=True))
    except ValueError as e:
        raise _bad_request(e)
    except SQLAlchemyError as e:
        raise _database_error(db, "update developer", e)

    listing_cache.clear()
    return {"success": True, "data": developer.column_dict()}


@router.delete("/developers/{developer_id}")
def delete_developer(developer_id: str, db: Session = Depends(ensure_schema)):
    service = DeveloperService(db)
    developer = service.get(developer_id)
    if not developer:
        raise _not_found("Developer")

    try:
        service.delete(developer)
    except ValueError as e:
        raise _bad_request(e)
    except SQLAlchemyError as e:
        raise _database_error(db, "delete developer", e)

    listing_cache.clear()
    return {"success": True, "message": "Developer deleted successfully"}


# ==================== PROJECTS ====================

@router.get("/projects")
def list_projects(
    search: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    category: Optional[str] = None,
    developer_id: Optional[str] = None,
    paging: Tuple[int, int] = Depends(admin_paging),
    db: Session = Depends(ensure_schema),
):
    page, page_size = paging
    try:
        projects, total = ProjectService(db).list_admin(
            search=search,
            status=status_filter,
            category=category,
            developer_id=developer_id,
            page=page,
            page_size=page_size,
        )
    except SQLAlchemyError as e:
        raise _database_error(db, "fetch projects", e)

    return {"success": True, "data": projects, "pagination": pagination_meta(page, page_size, total)}


@router.post("/projects", status_code=status.HTTP_201_CREATED)
def create_project(payload: ProjectCreate, db: Session = Depends(ensure_schema)):
    try:
        project = ProjectService(db).create(payload.model_dump())
    except ValueError as e:
        raise _bad_request(e)
    except SQLAlchemyError as e:
        raise _database_error(db, "create project", e)

    listing_cache.clear()
    return {"success": True, "data": project.to_dict()}


@router.put("/projects/{project_id}")
def update_project(project_id: str, payload: ProjectUpdate, db: Session = Depends(ensure_schema)):
    service = ProjectService(db)
    project = service.get(project_id)
    if not project:
        raise _not_found("Project")

    try:
        project = service.update(project, payload.model_dump(exclude_unset=True))
    except ValueError as e:
        raise _bad_request(e)
    except SQLAlchemyError as e:
        raise _database_error(db, "update project", e)

    listing_cache.clear()
    return {"success": True, "data": project.to_dict()}


@router.delete("/projects/{project_id}")
def delete_project(project_id: str, db: Session = Depends(ensure_schema)):
    service = ProjectService(db)
    project = service.get(project_id)
    if not project:
        raise _not_found("Project")

    try:
        service.delete(project)
    except SQLAlchemyError as e:
        raise _database_error(db, "delete project", e)

    listing_cache.clear()
    return {"success": True, "message": "Project deleted successfully"}


# ==================== ENQUIRIES ====================

@router.get("/enquiries")
def list_enquiries(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
    paging: Tuple[int, int] = Depends(admin_paging),
    db: Session = Depends(ensure_schema),
):
    page, page_size = paging
    try:
        enquiries, total = EnquiryService(db).list_admin(status_filter, search, page, page_size)
    except SQLAlchemyError as e:
        raise _database_error(db, "fetch enquiries", e)

    return {"success": True, "data": enquiries, "pagination": pagination_meta(page, page_size, total)}


@router.post("/enquiries", status_code=status.HTTP_201_CREATED)
def create_enquiry(payload: EnquiryCreate, db: Session = Depends(ensure_schema)):
    try:
        enquiry = EnquiryService(db).create(payload.model_dump())
    except ValueError as e:
        raise _bad_request(e)
    except SQLAlchemyError as e:
        raise _database_error(db, "create enquiry", e)

    return {"success": True, "data": enquiry.to_dict()}


@router.put("/enquiries/{enquiry_id}")
def update_enquiry(enquiry_id: str, payload: EnquiryUpdate, db: Session = Depends(ensure_schema)):
    service = EnquiryService(db)
    enquiry = service.get(enquiry_id)
    if not enquiry:
        raise _not_found("Enquiry")

    try:
        enquiry = service.update(enquiry, payload.model_dump())
    except ValueError as e:
        raise _bad_request(e)
    except SQLAlchemyError as e:
        raise _database_error(db, "update enquiry", e)

    return {"success": True, "data": enquiry.to_dict()}


@router.delete("/enquiries/{enquiry_id}")
def delete_enquiry(enquiry_id: str, db: Session = Depends(ensure_schema)):
    service = EnquiryService(db)
    enquiry = service.get(enquiry_id)
    if not enquiry:
        raise _not_found("Enquiry")

    try:
        service.delete(enquiry)
    except SQLAlchemyError as e:
        raise _database_error(db, "delete enquiry", e)

    return {"success": True, "message": "Enquiry deleted successfully"}


# ==================== LEADS ====================

@router.get("/leads")
def list_leads(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
    paging: Tuple[int, int] = Depends(admin_paging),
    db: Session = Depends(ensure_schema),
):
    page, page_size = paging
    try:
        leads, total = LeadService(db).list_admin(status_filter, search, page, page_size)
    except SQLAlchemyError as e:
        raise _database_error(db, "fetch leads", e)

    return {"success": True, "data": leads, "pagination": pagination_meta(page, page_size, total)}


@router.post("/leads", status_code=status.HTTP_201_CREATED)
def create_lead(payload: LeadCreate, db: Session = Depends(ensure_schema)):
    try:
        lead = LeadService(db).create(payload.model_dump())
    except ValueError as e:
        raise _bad_request(e)
    except SQLAlchemyError as e:
        raise _database_error(db, "create lead", e)

    return {"success": True, "data": lead.to_dict()}


@router.put("/leads/{lead_id}")
def update_lead(lead_id: str, payload: LeadUpdate, db: Session = Depends(ensure_schema)):
    service = LeadService(db)
    lead = service.get(lead_id)
    if not lead:
        raise _not_found("Lead")

    try:
        lead = service.update(lead, payload.model_dump())
    except ValueError as e:
        raise _bad_request(e)
    except SQLAlchemyError as e:
        raise _database_error(db, "update lead", e)

    return {"success": True, "data": lead.to_dict()}


@router.delete("/leads/{lead_id}")
def delete_lead(lead_id: str, db: Session = Depends(ensure_schema)):
    service = LeadService(db)
    lead = service.get(lead_id)
    if not lead:
        raise _not_found("Lead")

    try:
        service.delete(lead)
    except SQLAlchemyError as e:
        raise _database_error(db, "delete lead", e)

    return {"success": True, "message": "Lead deleted successfully"}


@router.post("/move-to-leads", status_code=status.HTTP_201_CREATED)
def move_to_leads(payload: MoveToLeadsRequest, db: Session = Depends(ensure_schema)):
    """Convert an enquiry into a lead; the enquiry is removed in the same commit"""
    if payload.source_id in (None, "") or payload.source_type != "enquiry":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid source ID or type")
    if payload.lead_data is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Lead data is required")

    enquiry = EnquiryService(db).get(payload.source_id)
    if not enquiry:
        raise _not_found("Enquiry")

    try:
        lead = LeadService(db).move_from_enquiry(enquiry, payload.lead_data.model_dump())
    except ValueError as e:
        raise _bad_request(e)
    except SQLAlchemyError as e:
        raise _database_error(db, "move enquiry to leads", e)

    return {"success": True, "lead": lead.to_dict()}


# ==================== DASHBOARD ====================

@router.get("/stats")
def dashboard_stats(response: Response, db: Session = Depends(ensure_schema)):
    """Lead funnel totals and the five most recent leads"""
    service = LeadService(db)
    try:
        stats = service.stats()
        recent = service.recent(limit=5)
    except SQLAlchemyError as e:
        raise _database_error(db, "fetch stats", e)

    response.headers["Cache-Control"] = "private, max-age=30"
    return {"success": True, "stats": stats, "recent_leads": recent}


@router.get("/sales-stages")
def sales_stages():
    return {
        "success": True,
        "stages": [stage.value for stage in SalesStage],
        "statuses": [s.value for s in LeadStatus],
    }


# ==================== CACHE ====================

@router.get("/cache")
def cache_stats():
    return {
        "success": True,
        "alnair": alnair_service.get_cache_stats(),
        "listings": listing_cache.stats(),
    }


@router.delete("/cache")
def clear_caches():
    alnair_service.clear_cache()
    listing_cache.clear()
    logger.info("[OK] Aggregator and listing caches cleared")
    return {"success": True, "message": "Caches cleared"}
