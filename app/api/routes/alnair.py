"""
Alnair Aggregator Endpoints
Browser-facing proxy plus server-side browse endpoints over the
aggregator's Dubai project search.
"""
import logging
from typing import Annotated, Any, Dict

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse, Response

from app.core.config import settings
from app.schemas.aggregator import AggregatorProjectQuery, ProxyRequest
from app.services.aggregator_service import (
    AggregatorError,
    UpstreamTransportError,
    alnair_service,
    get_construction_progress,
    parse_project_description,
    project_to_map_marker,
)
from app.utils.aggregator import (
    extract_project_features,
    filter_aggregator_projects,
    format_price,
    get_construction_status_badge,
    get_emirate_from_coordinates,
    get_unit_types_summary,
    group_by_district,
    is_valid_coordinates,
    sort_aggregator_projects,
)
from app.utils.listings import clean_text

logger = logging.getLogger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

# Edge caches may keep a good response for 5 min, serving stale for 60s more
PROXY_CACHE_CONTROL = "public, s-maxage=300, stale-while-revalidate=60"


def _aggregator_http_error(error: AggregatorError) -> HTTPException:
    return HTTPException(status_code=error.status_code or status.HTTP_502_BAD_GATEWAY, detail=error.message)


def _enrich(project: Dict[str, Any]) -> Dict[str, Any]:
    """Aggregator project plus display-ready price, progress and emirate"""
    total = (project.get("statistics") or {}).get("total") or {}
    progress = get_construction_progress(project)
    return {
        **project,
        "formatted_price": format_price(total.get("price_from")),
        "formatted_price_short": format_price(total.get("price_from"), "short"),
        "construction": progress,
        "badge": get_construction_status_badge(progress["percentage"]),
        "emirate": get_emirate_from_coordinates(project.get("latitude"), project.get("longitude")),
    }


# ==================== PROXY ====================


@router.options("/proxy")
async def proxy_preflight():
    return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)


@router.api_route("/proxy", methods=["GET", "PUT", "PATCH", "DELETE"])
async def proxy_wrong_method():
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content={"error": "Method POST required"},
        headers={"Allow": "POST, OPTIONS"},
    )


@router.post("/proxy")
async def proxy(payload: ProxyRequest, request: Request):
    """
    Relay {endpoint, queryParams} to the aggregator and return its JSON.

    Upstream errors keep their status (502 when none came back). One
    attempt per transport, no retries.
    """
    if not payload.endpoint:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Endpoint parameter is required"},
            headers=CORS_HEADERS,
        )

    user_agent = request.headers.get("user-agent") or settings.DEFAULT_USER_AGENT

    try:
        data = await alnair_service.fetch_raw(payload.endpoint, payload.queryParams, user_agent=user_agent)
    except UpstreamTransportError as e:
        logger.error(f"[PROXY] Fatal error: {e.details}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": e.message, "message": e.details},
            headers=CORS_HEADERS,
        )
    except AggregatorError as e:
        content = {"error": e.message}
        if e.details is not None:
            content["details"] = e.details
        return JSONResponse(status_code=e.status_code, content=content, headers=CORS_HEADERS)
    except Exception as e:
        logger.error(f"[PROXY] Unexpected failure: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Proxy failed to reach Alnair API", "message": str(e)},
            headers=CORS_HEADERS,
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=data,
        headers={**CORS_HEADERS, "Cache-Control": PROXY_CACHE_CONTROL},
    )


# ==================== BROWSE ====================


@router.get("/projects")
async def list_aggregator_projects(query: Annotated[AggregatorProjectQuery, Query()]):
    """Dubai projects with filters, sorting and display enrichments"""
    try:
        projects = await alnair_service.fetch_projects(limit=query.limit, force_refresh=query.force_refresh)
    except AggregatorError as e:
        raise _aggregator_http_error(e)

    filtered = filter_aggregator_projects(projects, query.model_dump())
    ordered = sort_aggregator_projects(filtered, query.sort)

    return {
        "success": True,
        "total": len(ordered),
        "data": [_enrich(p) for p in ordered],
    }


@router.get("/projects/{slug}/{property_name}/{property_slug}")
async def aggregator_project_details(
    slug: str,
    property_name: str,
    property_slug: str,
    force_refresh: bool = False,
):
    """Full project record with parsed description and unit summary"""
    try:
        response = await alnair_service.get_project_details(
            slug, property_name, property_slug, force_refresh=force_refresh
        )
    except AggregatorError as e:
        raise _aggregator_http_error(e)

    project = response.get("data") if isinstance(response, dict) and isinstance(response.get("data"), dict) else response
    if not isinstance(project, dict):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Unexpected project details shape")

    return {
        "success": True,
        "data": _enrich(project),
        "description": parse_project_description(clean_text(project.get("description"))),
        "units": get_unit_types_summary(project),
        "features": extract_project_features(project),
    }


@router.get("/markers")
async def aggregator_markers(
    limit: int = Query(100, ge=1, le=500),
    force_refresh: bool = False,
):
    """Map markers for every Dubai project with usable coordinates"""
    try:
        projects = await alnair_service.fetch_projects(limit=limit, force_refresh=force_refresh)
    except AggregatorError as e:
        raise _aggregator_http_error(e)

    markers = [
        project_to_map_marker(p) for p in projects
        if is_valid_coordinates(p.get("latitude"), p.get("longitude"))
    ]
    return {"success": True, "total": len(markers), "data": markers}


@router.get("/districts")
async def aggregator_districts(force_refresh: bool = False):
    """Project counts per district, largest first"""
    try:
        projects = await alnair_service.fetch_projects(force_refresh=force_refresh)
    except AggregatorError as e:
        raise _aggregator_http_error(e)

    groups = group_by_district(projects)
    districts = sorted(
        ({"district": name, "count": len(items)} for name, items in groups.items()),
        key=lambda d: (-d["count"], d["district"]),
    )
    return {"success": True, "total": len(districts), "data": districts}
