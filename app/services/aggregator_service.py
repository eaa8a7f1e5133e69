"""
Alnair Aggregator Service
Client for api.alnair.ae: browser-like fetch, response cache and the pure
helpers used to present aggregator projects.

The upstream sits behind a TLS-fingerprinting edge that rejects typical
server TLS stacks. fetch_upstream first tries httpx with a Chrome-ordered
cipher list, then falls back to the curl binary with the same cipher set.
"""
import asyncio
import json
import logging
import math
import re
import ssl
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

import httpx

from app.core.config import settings
from app.services.cache import TTLCache
from app.utils.aggregator import parse_percent, price_bounds

logger = logging.getLogger(__name__)

# Chrome 121 TLS 1.2 suites, in ClientHello order. TLS 1.3 suites are
# OpenSSL defaults and cannot be set through set_ciphers.
CHROME_TLS12_CIPHERS = ":".join([
    "ECDHE-ECDSA-AES128-GCM-SHA256",
    "ECDHE-RSA-AES128-GCM-SHA256",
    "ECDHE-ECDSA-AES256-GCM-SHA384",
    "ECDHE-RSA-AES256-GCM-SHA384",
    "ECDHE-ECDSA-CHACHA20-POLY1305",
    "ECDHE-RSA-CHACHA20-POLY1305",
    "ECDHE-RSA-AES128-SHA",
    "ECDHE-RSA-AES256-SHA",
    "AES128-GCM-SHA256",
    "AES256-GCM-SHA384",
    "AES128-SHA",
    "AES256-SHA",
])

CURL_TLS13_CIPHERS = "TLS_AES_128_GCM_SHA256:TLS_AES_256_GCM_SHA384:TLS_CHACHA20_POLY1305_SHA256"
CURL_TLS12_CIPHERS = ":".join([
    "ECDHE-ECDSA-AES128-GCM-SHA256",
    "ECDHE-RSA-AES128-GCM-SHA256",
    "ECDHE-ECDSA-AES256-GCM-SHA384",
    "ECDHE-RSA-AES256-GCM-SHA384",
    "ECDHE-ECDSA-CHACHA20-POLY1305",
    "ECDHE-RSA-CHACHA20-POLY1305",
    "ECDHE-RSA-AES128-SHA",
    "ECDHE-RSA-AES256-SHA",
])

STATUS_TRAILER = "__HTTP_STATUS__"
_STATUS_TRAILER_RE = re.compile(r"\n" + STATUS_TRAILER + r"(\d+)$")

# Default search box covering Dubai
DUBAI_SEARCH_AREA = {
    "east": 55.529708862304695,
    "west": 54.99275207519532,
    "north": 25.24283273549745,
    "south": 25.066319162978587,
}

EARTH_RADIUS_KM = 6371


class AggregatorError(Exception):
    """Upstream answered with an error status or an unusable body."""

    def __init__(self, status_code: int, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details


class UpstreamTransportError(AggregatorError):
    """Neither httpx nor curl could complete the request."""

    def __init__(self, details: str):
        super().__init__(500, "Proxy failed to reach Alnair API", details)


# ── Transport ─────────────────────────────────────────────────────────────────

def chrome_ssl_context() -> ssl.SSLContext:
    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.set_ciphers(CHROME_TLS12_CIPHERS)
    context.set_alpn_protocols(["http/1.1"])
    return context


def build_url(endpoint: str, query_params: Optional[Dict[str, Any]] = None, base_url: Optional[str] = None) -> str:
    """Base + endpoint with every non-None query param appended."""
    url = f"{(base_url or settings.ALNAIR_API_BASE).rstrip('/')}{endpoint}"

    pairs = []
    for key, value in (query_params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        pairs.append((key, str(value)))

    if not pairs:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(pairs)}"


def browser_headers(auth_token: str, user_agent: str) -> Dict[str, str]:
    return {
        "Authorization": auth_token,
        "Accept": "application/json, text/plain, */*",
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": "gzip, deflate",
        "User-Agent": user_agent,
        "Cache-Control": "no-cache",
        "Connection": "keep-alive",
        "Sec-Fetch-Dest": "empty",
        "Sec-Fetch-Mode": "cors",
        "Sec-Fetch-Site": "same-site",
    }


async def _fetch_with_httpx(url: str, auth_token: str, user_agent: str) -> Tuple[int, str]:
    async with httpx.AsyncClient(
        verify=chrome_ssl_context(),
        timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
    ) as client:
        response = await client.get(url, headers=browser_headers(auth_token, user_agent))
        return response.status_code, response.text


def curl_args(url: str, auth_token: str, user_agent: str) -> List[str]:
    return [
        "--silent",
        "--compressed",
        "--max-time", str(settings.CURL_MAX_TIME),
        "--tlsv1.2",
        "--tls13-ciphers", CURL_TLS13_CIPHERS,
        "--ciphers", CURL_TLS12_CIPHERS,
        "-H", f"Authorization: {auth_token}",
        "-H", "Accept: application/json, text/plain, */*",
        "-H", "Accept-Language: en-US,en;q=0.9",
        "-H", f"User-Agent: {user_agent}",
        "-H", "Sec-Fetch-Dest: empty",
        "-H", "Sec-Fetch-Mode: cors",
        "-H", "Sec-Fetch-Site: same-site",
        "-w", f"\n{STATUS_TRAILER}%{{http_code}}",
        url,
    ]


def parse_curl_output(stdout: str) -> Tuple[int, str]:
    """Split curl output into (status, body); status is 0 when the trailer is missing."""
    match = _STATUS_TRAILER_RE.search(stdout)
    if not match:
        return 0, stdout
    return int(match.group(1)), stdout[:match.start()]


async def _fetch_with_curl(url: str, auth_token: str, user_agent: str) -> Tuple[int, str]:
    process = await asyncio.create_subprocess_exec(
        settings.CURL_BINARY,
        *curl_args(url, auth_token, user_agent),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(
            process.communicate(),
            timeout=settings.CURL_MAX_TIME + 5,
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise

    if process.returncode != 0:
        message = stderr.decode("utf-8", errors="replace").strip()
        raise RuntimeError(f"curl exited with code {process.returncode}: {message}")

    return parse_curl_output(stdout.decode("utf-8", errors="replace"))


async def fetch_upstream(url: str, auth_token: str, user_agent: Optional[str] = None) -> Tuple[int, str]:
    """
    GET url with browser headers, returning (status, body).

    Raises UpstreamTransportError when both the httpx and curl paths fail.
    No retries.
    """
    user_agent = user_agent or settings.DEFAULT_USER_AGENT
    logger.info(f"[ALNAIR] -> {url}")

    try:
        status, body = await _fetch_with_httpx(url, auth_token, user_agent)
        logger.info(f"[ALNAIR] httpx -> status {status}")
        return status, body
    except (httpx.HTTPError, httpx.InvalidURL, ssl.SSLError, OSError, UnicodeEncodeError) as e:
        logger.warning(f"[ALNAIR] httpx failed, falling back to curl: {e}")

    try:
        status, body = await _fetch_with_curl(url, auth_token, user_agent)
        logger.info(f"[ALNAIR] curl -> status {status}")
        return status, body
    except (OSError, RuntimeError, ValueError, asyncio.TimeoutError) as e:
        logger.error(f"[ALNAIR] Both transports failed: {e}")
        raise UpstreamTransportError(str(e) or e.__class__.__name__)


def parse_upstream_response(status: int, body: str) -> Any:
    """Decode a 2xx JSON body, raising AggregatorError otherwise."""
    if status < 200 or status >= 300:
        logger.error(f"[ALNAIR] Upstream error {status}: {body[:300]}")
        raise AggregatorError(status or 502, f"Alnair API Error: {status}", body[:500])

    try:
        return json.loads(body)
    except ValueError:
        logger.error(f"[ALNAIR] Non-JSON response: {body[:200]}")
        raise AggregatorError(502, "Invalid JSON from Alnair API", body[:200])


# ── Service ───────────────────────────────────────────────────────────────────

class AlnairService:
    """Cached access to the aggregator's project search and detail endpoints"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth_token: Optional[str] = None,
        cache: Optional[TTLCache] = None,
    ):
        self.base_url = base_url or settings.ALNAIR_API_BASE
        self._auth_token = auth_token
        self.cache = cache or TTLCache(settings.ALNAIR_CACHE_SECONDS)

    @property
    def auth_token(self) -> str:
        return self._auth_token if self._auth_token is not None else settings.ALNAIR_AUTH_TOKEN

    async def fetch_raw(
        self,
        endpoint: str,
        query_params: Optional[Dict[str, Any]] = None,
        user_agent: Optional[str] = None,
    ) -> Any:
        """Uncached GET of an aggregator endpoint, decoded as JSON."""
        if not self.auth_token:
            raise AggregatorError(500, "ALNAIR_AUTH_TOKEN is not configured in environment variables")

        url = build_url(endpoint, query_params, base_url=self.base_url)
        status, body = await fetch_upstream(url, self.auth_token, user_agent)
        return parse_upstream_response(status, body)

    async def find_projects(self, params: Optional[Dict[str, Any]] = None, force_refresh: bool = False) -> Any:
        """
        Search projects inside a bounding box.

        params: search_area {east, west, north, south}, has_cluster,
        has_boundary, zoom, limit (default 100), page.
        """
        params = params or {}
        cache_key = TTLCache.make_key("/project/find", params)

        if not force_refresh:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        query: Dict[str, Any] = {}
        search_area = params.get("search_area")
        if search_area:
            for side in ("east", "west", "north", "south"):
                query[f"search_area[{side}]"] = search_area[side]
        if params.get("has_cluster") is not None:
            query["has_cluster"] = 1 if params["has_cluster"] else 0
        if params.get("has_boundary") is not None:
            query["has_boundary"] = 1 if params["has_boundary"] else 0
        if params.get("zoom") is not None:
            query["zoom"] = params["zoom"]
        query["limit"] = params["limit"] if params.get("limit") is not None else 100
        if params.get("page") is not None:
            query["page"] = params["page"]

        response = await self.fetch_raw("/project/find", query)
        self.cache.set(cache_key, response)
        return response

    async def get_project_details(
        self,
        slug: str,
        property_name: str,
        property_slug: str,
        force_refresh: bool = False,
    ) -> Any:
        cache_key = TTLCache.make_key(
            f"/project/look/{slug}",
            {"propertyName": property_name, "propertySlug": property_slug},
        )

        if not force_refresh:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        response = await self.fetch_raw(f"/project/look/{slug}/{property_name}/{property_slug}")
        self.cache.set(cache_key, response)
        return response

    async def find_projects_in_dubai(self, limit: int = 100, page: int = 1, force_refresh: bool = False) -> Any:
        return await self.find_projects(
            {
                "search_area": DUBAI_SEARCH_AREA,
                "has_cluster": 1,
                "has_boundary": 0,
                "zoom": 11,
                "limit": limit or 100,
                "page": page or 1,
            },
            force_refresh=force_refresh,
        )

    async def fetch_projects(self, limit: int = 100, force_refresh: bool = False) -> List[Dict[str, Any]]:
        """Project items from the Dubai search"""
        response = await self.find_projects_in_dubai(limit=limit, force_refresh=force_refresh)
        return extract_items(response)

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("[ALNAIR] Cache cleared")

    def get_cache_stats(self) -> Dict[str, Any]:
        return self.cache.stats()


# ── Presentation helpers ──────────────────────────────────────────────────────

def extract_items(response: Any) -> List[Dict[str, Any]]:
    """items list from a /project/find response ({data: {items: [...]}})"""
    if isinstance(response, list):
        return response
    if not isinstance(response, dict):
        return []
    data = response.get("data")
    if isinstance(data, dict):
        return data.get("items") or []
    if isinstance(data, list):
        return data
    return response.get("items") or []


def project_to_map_marker(project: Dict[str, Any]) -> Dict[str, Any]:
    min_price, max_price = price_bounds(project)
    units = (project.get("statistics") or {}).get("units")
    if not min_price and isinstance(units, list) and units:
        first = units[0] or {}
        min_price = first.get("min_price") or first.get("price_from") or 0
        max_price = first.get("max_price") or first.get("price_to") or min_price

    return {
        "id": project.get("id"),
        "slug": project.get("slug"),
        "title": project.get("title"),
        "latitude": project.get("latitude"),
        "longitude": project.get("longitude"),
        "min_price": min_price or None,
        "max_price": max_price or None,
        "builder": project.get("builder"),
        "logo": project.get("logo"),
        "cover": project.get("cover"),
    }


def parse_project_description(description: Optional[str], max_lines: int = 20, max_chars: int = 1000) -> Dict[str, Any]:
    """
    Truncate a long description on paragraph boundaries.

    Stops before the paragraph that would exceed max_chars, or once
    max_lines have been emitted (each paragraph counts its lines plus one).
    """
    if not description:
        return {"text": "", "is_truncated": False, "full_text": ""}

    paragraphs = re.split(r"\n\n+|\r\n\r\n+", description)
    text = ""
    line_count = 0
    char_count = 0

    for paragraph in paragraphs:
        if line_count >= max_lines or char_count + len(paragraph) > max_chars:
            return {"text": text.strip(), "is_truncated": True, "full_text": description}
        text += paragraph + "\n\n"
        line_count += len(paragraph.split("\n")) + 1
        char_count += len(paragraph)

    return {"text": text.strip(), "is_truncated": False, "full_text": description}


def get_construction_progress(project: Dict[str, Any]) -> Dict[str, Any]:
    percent = parse_percent(project.get("construction_percent"))

    if percent == 0:
        status = "planning"
    elif percent < 30:
        status = "foundation"
    elif percent < 70:
        status = "structure"
    elif percent < 100:
        status = "finishing"
    else:
        status = "completed"

    return {"percentage": percent, "status": status}


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in km (haversine)"""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


# Module-level singleton
alnair_service = AlnairService()


def clear_cache() -> None:
    alnair_service.clear_cache()


def get_cache_stats() -> Dict[str, Any]:
    return alnair_service.get_cache_stats()
