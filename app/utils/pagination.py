"""
Page/limit helpers for list endpoints
"""
import math
from typing import Any, Dict, List, Sequence, Tuple

from app.core.config import settings


def clamp_page(page: int, limit: int, default_limit: int = None) -> Tuple[int, int]:
    """Page >= 1 and 1 <= limit <= MAX_PAGE_SIZE"""
    default_limit = default_limit or settings.DEFAULT_PAGE_SIZE
    page = max(int(page or 1), 1)
    limit = int(limit or default_limit)
    limit = min(max(limit, 1), settings.MAX_PAGE_SIZE)
    return page, limit


def pagination_meta(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": max(math.ceil(total / limit), 1) if limit else 1,
    }


def paginate_list(items: Sequence[Any], page: int, limit: int) -> List[Any]:
    offset = (page - 1) * limit
    return list(items[offset:offset + limit])
