"""
Listing Caches
Process-wide caches over the internal catalogue: the priority ("newly
launched") listing and the developer directory. Both collapse concurrent
refreshes into one database load. The plain newest-first listing is never
cached, but its last result is kept so single projects can be served from
memory when the database lookup fails.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool

from app.core.config import settings
from app.database import SessionLocal
from app.services.cache import SingleFlightCache
from app.services.developer_service import DeveloperService
from app.services.project_service import ProjectService

logger = logging.getLogger(__name__)

LISTING_LIMIT = 100


class ListingCache:
    def __init__(self, session_factory: Callable = SessionLocal, ttl_seconds: Optional[float] = None):
        ttl = ttl_seconds if ttl_seconds is not None else settings.LISTING_CACHE_SECONDS
        self.session_factory = session_factory
        self.priority = SingleFlightCache(self._load_priority, ttl, name="priority listings")
        self.developers = SingleFlightCache(self._load_developers, ttl, name="developers")
        self.plain_data: Optional[List[Dict[str, Any]]] = None

    # ── Loaders ───────────────────────────────────────────────────────────────

    def _run(self, work: Callable) -> Any:
        db = self.session_factory()
        try:
            return work(db)
        finally:
            db.close()

    async def _load_priority(self) -> List[Dict[str, Any]]:
        return await run_in_threadpool(
            self._run,
            lambda db: ProjectService(db).list_priority(settings.PRIORITY_DEVELOPER_IDS, LISTING_LIMIT),
        )

    async def _load_developers(self) -> List[Dict[str, Any]]:
        return await run_in_threadpool(
            self._run,
            lambda db: DeveloperService(db).list_with_projects(),
        )

    # ── Public API ────────────────────────────────────────────────────────────

    async def get_priority(self, force_refresh: bool = False) -> List[Dict[str, Any]]:
        return await self.priority.get(force_refresh=force_refresh)

    async def get_plain(self) -> List[Dict[str, Any]]:
        """Active projects newest first; always read from the database."""
        data = await run_in_threadpool(
            self._run,
            lambda db: ProjectService(db).list_newest(LISTING_LIMIT),
        )
        self.plain_data = data
        return data

    async def get_developers(self, force_refresh: bool = False) -> List[Dict[str, Any]]:
        return await self.developers.get(force_refresh=force_refresh)

    def find_cached_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        """Look in the priority listing, then the last plain listing."""
        for data in (self.priority.data, self.plain_data):
            for project in data or []:
                if str(project.get("id")) == str(project_id):
                    return project
        return None

    def clear(self) -> None:
        self.priority.clear()
        self.developers.clear()
        self.plain_data = None
        logger.info("[CACHE] Listing caches cleared")

    def stats(self) -> Dict[str, Any]:
        return {
            "priority": self.priority.stats(),
            "developers": self.developers.stats(),
            "plain": {"cached": self.plain_data is not None, "size": len(self.plain_data or [])},
        }


# Module-level singleton
listing_cache = ListingCache()
