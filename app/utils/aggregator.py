"""
Aggregator project helpers
Format, filter, compare and group projects in the shape returned by the
Alnair aggregator (statistics.total / statistics.units keyed by unit code).
All functions are pure and never mutate their input.
"""
import re
from decimal import Decimal, ROUND_HALF_UP
from functools import cmp_to_key
from typing import Any, Dict, Iterable, List, Optional, Tuple

Project = Dict[str, Any]

# Unit-type codes used by the aggregator
UNIT_KEY_LABELS = {
    "110": "Studio",
    "111": "1 BR",
    "112": "2 BR",
    "113": "3 BR",
    "114": "4 BR",
    "115": "5 BR+",
}

BEDROOM_TO_UNIT_KEY = {
    "studio": "110", "0": "110",
    "1": "111", "one": "111",
    "2": "112", "two": "112",
    "3": "113", "three": "113",
    "4": "114", "four": "114",
    "5": "115", "five": "115",
}

# Title keyword -> feature label, checked in this order
FEATURE_KEYWORDS = [
    ("luxury", "Luxury"),
    ("villa", "Villa"),
    ("apartment", "Apartment"),
    ("townhouse", "Townhouse"),
    ("penthouse", "Penthouse"),
    ("duplex", "Duplex"),
    ("studio", "Studio"),
    ("creek", "Waterfront"),
    ("marina", "Marina"),
    ("gated community", "Gated Community"),
    ("retail", "Mixed-Use"),
    ("commercial", "Commercial"),
]

# Display label -> title keywords; an empty list matches everything
PROPERTY_TYPE_KEYWORDS = {
    "villa": ["villa", "villas"],
    "apartment": ["apartment", "residence", "residences", "tower", "heights", "views"],
    "townhouse": ["townhouse", "townhouses"],
    "penthouse": ["penthouse", "penthouses"],
    "compound": ["compound"],
    "project": [],
}

# (lat_min, lat_max, lon_min, lon_max)
EMIRATE_BOUNDS = {
    "Dubai": (25.06, 25.25, 54.99, 55.53),
    "Abu Dhabi": (23.95, 24.4, 53.5, 54.5),
    "Sharjah": (25.24, 25.35, 55.35, 55.65),
}

CONSTRUCTION_STATUSES = ("planning", "foundation", "structure", "finishing", "completed")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


# ── Number helpers ────────────────────────────────────────────────────────────

def parse_percent(value: Any) -> int:
    """Leading integer of a value ("45", "45.7", 45.7 -> 45); 0 when unparseable."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        try:
            return int(value)
        except (OverflowError, ValueError):
            return 0
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


def _as_number(value: Any) -> float:
    if not value:
        return 0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


def to_fixed(value: float, digits: int) -> str:
    """Fixed-point rendering with half-up rounding of the exact binary value."""
    quantum = Decimal(1).scaleb(-digits)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def locale_number(value: float) -> str:
    """Thousands-separated number with at most three fraction digits."""
    rounded = Decimal(value).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)
    text = f"{rounded:,.3f}"
    return text.rstrip("0").rstrip(".")


def _statistics(project: Project) -> Dict[str, Any]:
    return project.get("statistics") or {}


def _total(project: Project) -> Dict[str, Any]:
    return _statistics(project).get("total") or {}


def _unit_items(project: Project) -> List[Tuple[str, Dict[str, Any]]]:
    units = _statistics(project).get("units")
    if not units:
        return []
    if isinstance(units, dict):
        return [(str(key), value or {}) for key, value in units.items()]
    return [(str(index), value or {}) for index, value in enumerate(units)]


def total_unit_count(project: Project) -> float:
    """Sum of per-unit-type counts"""
    return sum(_as_number(unit.get("count")) for _, unit in _unit_items(project))


def price_bounds(project: Project) -> Tuple[float, float]:
    """(price_from, price_to) from statistics.total; price_to falls back to price_from."""
    total = _total(project)
    project_min = _as_number(total.get("price_from"))
    project_max = _as_number(total.get("price_to")) or project_min
    return project_min, project_max


# ── Formatting ────────────────────────────────────────────────────────────────

def format_price(price: Optional[float], fmt: str = "aed") -> str:
    if not price:
        return "Price on Request"

    if fmt == "short":
        if price >= 1_000_000:
            return f"{to_fixed(price / 1_000_000, 1)}M"
        if price >= 1000:
            return f"{to_fixed(price / 1000, 0)}K"
        return locale_number(price)

    if price >= 1_000_000:
        return f"AED {to_fixed(price / 1_000_000, 2)}M"
    if price >= 1000:
        return f"AED {to_fixed(price / 1000, 0)}K"
    return f"AED {locale_number(price)}"


def get_construction_status_badge(percentage: int) -> Dict[str, Any]:
    """Label, colour tone and bar progress for a construction percentage"""
    if percentage == 0:
        return {"label": "Planning", "tone": "gray", "progress": 5}
    if percentage < 30:
        return {"label": "Foundation", "tone": "orange", "progress": percentage}
    if percentage < 70:
        return {"label": "Under Construction", "tone": "yellow", "progress": percentage}
    if percentage < 100:
        return {"label": "Finishing Touches", "tone": "blue", "progress": percentage}
    return {"label": "Completed", "tone": "green", "progress": 100}


def get_unit_types_summary(project: Project) -> Dict[str, Any]:
    items = _unit_items(project)
    if not items:
        return {"total": 0, "types": [], "price_range": None}

    types = [UNIT_KEY_LABELS.get(key, key) for key, _ in items]

    prices = []
    for _, unit in items:
        for field in ("price_from", "price_to"):
            price = _as_number(unit.get(field))
            if price > 0:
                prices.append(price)

    total = _as_number(_total(project).get("units_count")) or total_unit_count(project)

    return {
        "total": int(total),
        "types": types,
        "price_range": {"min": min(prices), "max": max(prices)} if prices else None,
    }


def extract_project_features(project: Project) -> List[str]:
    title = (project.get("title") or "").lower()
    features = [label for keyword, label in FEATURE_KEYWORDS if keyword in title]
    return features or ["Residential"]


def get_formatted_distance(distance_km: float) -> str:
    if distance_km < 1:
        return f"{to_fixed(distance_km * 1000, 0)}m away"
    return f"{to_fixed(distance_km, 1)}km away"


# ── Geography ─────────────────────────────────────────────────────────────────

def is_valid_coordinates(latitude: Optional[float], longitude: Optional[float]) -> bool:
    if latitude is None or longitude is None:
        return False
    return -90 <= latitude <= 90 and -180 <= longitude <= 180


def _in_bounds(latitude, longitude, bounds) -> bool:
    if latitude is None or longitude is None:
        return False
    lat_min, lat_max, lon_min, lon_max = bounds
    return lat_min <= latitude <= lat_max and lon_min <= longitude <= lon_max


def is_in_dubai(latitude: Optional[float], longitude: Optional[float]) -> bool:
    return _in_bounds(latitude, longitude, EMIRATE_BOUNDS["Dubai"])


def is_in_abu_dhabi(latitude: Optional[float], longitude: Optional[float]) -> bool:
    return _in_bounds(latitude, longitude, EMIRATE_BOUNDS["Abu Dhabi"])


def is_in_sharjah(latitude: Optional[float], longitude: Optional[float]) -> bool:
    return _in_bounds(latitude, longitude, EMIRATE_BOUNDS["Sharjah"])


def get_emirate_from_coordinates(latitude: Optional[float], longitude: Optional[float]) -> str:
    # Dubai and Sharjah boxes overlap at 25.24-25.25; Dubai wins
    if is_in_dubai(latitude, longitude):
        return "Dubai"
    if is_in_abu_dhabi(latitude, longitude):
        return "Abu Dhabi"
    if is_in_sharjah(latitude, longitude):
        return "Sharjah"
    return "Other"


# ── Comparators ───────────────────────────────────────────────────────────────

def compare_projects_by_price(p1: Project, p2: Project) -> float:
    """Ascending by statistics.total.price_from"""
    return _as_number(_total(p1).get("price_from")) - _as_number(_total(p2).get("price_from"))


def compare_projects_by_unit_count(p1: Project, p2: Project) -> float:
    """Descending by summed unit counts"""
    return total_unit_count(p2) - total_unit_count(p1)


def compare_projects_by_progress(p1: Project, p2: Project) -> int:
    """Descending by construction percent"""
    return parse_percent(p2.get("construction_percent")) - parse_percent(p1.get("construction_percent"))


# ── Filters ───────────────────────────────────────────────────────────────────

def filter_by_emirate(projects: Iterable[Project], emirate: str) -> List[Project]:
    return [
        p for p in projects
        if get_emirate_from_coordinates(p.get("latitude"), p.get("longitude")) == emirate
    ]


def filter_by_price_range(projects: Iterable[Project], min_price: float, max_price: float) -> List[Project]:
    """Keep projects whose [price_from, price_to] overlaps the range; 0 disables a bound."""
    result = []
    for p in projects:
        project_min, project_max = price_bounds(p)
        if min_price > 0 and project_max < min_price:
            continue
        if max_price > 0 and project_min > max_price:
            continue
        result.append(p)
    return result


def filter_by_price(
    projects: Iterable[Project],
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
) -> List[Project]:
    """Like filter_by_price_range, but any falsy bound is ignored."""
    result = []
    for p in projects:
        project_min, project_max = price_bounds(p)
        if min_price and project_max < min_price:
            continue
        if max_price and project_min > max_price:
            continue
        result.append(p)
    return result


def filter_by_property_type(projects: Iterable[Project], property_type: str) -> List[Project]:
    """
    Match by title keywords, since the aggregator labels everything "project".

    Unknown labels fall back to an exact (case-insensitive) match on the type field.
    """
    lower_type = property_type.lower()
    keywords = PROPERTY_TYPE_KEYWORDS.get(lower_type)

    if keywords is None:
        return [p for p in projects if (p.get("type") or "").lower() == lower_type]
    if not keywords:
        return list(projects)

    return [
        p for p in projects
        if any(keyword in (p.get("title") or "").lower() for keyword in keywords)
    ]


def unit_key_for_bedrooms(bedrooms: Any) -> str:
    text = str(bedrooms)
    return BEDROOM_TO_UNIT_KEY.get(text.lower(), text)


def filter_by_bedrooms(projects: Iterable[Project], bedrooms: Any) -> List[Project]:
    """Projects whose statistics.units has a non-null entry for the bedroom's unit code."""
    target = unit_key_for_bedrooms(bedrooms)
    result = []
    for p in projects:
        units = _statistics(p).get("units")
        if isinstance(units, dict) and units.get(target) is not None:
            result.append(p)
    return result


def filter_by_developer(projects: Iterable[Project], developer: str) -> List[Project]:
    needle = developer.lower()
    return [p for p in projects if needle in (p.get("builder") or "").lower()]


def filter_by_builder(projects: Iterable[Project], builder: str) -> List[Project]:
    return filter_by_developer(projects, builder)


def _matches_construction_status(percent: int, status: str) -> bool:
    if status == "planning":
        return percent == 0
    if status == "foundation":
        return 0 < percent < 30
    if status == "structure":
        return 30 <= percent < 70
    if status == "finishing":
        return 70 <= percent < 100
    if status == "completed":
        return percent == 100
    return False


def filter_by_construction_status(projects: Iterable[Project], status: str) -> List[Project]:
    return [
        p for p in projects
        if _matches_construction_status(parse_percent(p.get("construction_percent")), status)
    ]


def search_projects(projects: Iterable[Project], query: str) -> List[Project]:
    """Case-insensitive substring match on title, builder and district title"""
    needle = query.lower()
    result = []
    for p in projects:
        district = (p.get("district") or {}).get("title") or ""
        haystacks = (p.get("title") or "", p.get("builder") or "", district)
        if any(needle in value.lower() for value in haystacks):
            result.append(p)
    return result


# ── Grouping & ranking ────────────────────────────────────────────────────────

def group_by_district(projects: Iterable[Project]) -> Dict[str, List[Project]]:
    groups: Dict[str, List[Project]] = {}
    for p in projects:
        district = (p.get("district") or {}).get("title") or "Unknown"
        groups.setdefault(district, []).append(p)
    return groups


def group_by_builder(projects: Iterable[Project]) -> Dict[str, List[Project]]:
    groups: Dict[str, List[Project]] = {}
    for p in projects:
        groups.setdefault(p.get("builder") or "Unknown Developer", []).append(p)
    return groups


def recommendation_score(project: Project) -> float:
    progress = parse_percent(project.get("construction_percent"))
    return progress * 0.4 + min(total_unit_count(project) / 10, 10) * 0.6


def get_recommended_projects(projects: Iterable[Project], limit: int = 6) -> List[Project]:
    return sorted(projects, key=recommendation_score, reverse=True)[:limit]


SORTERS = {
    "price": compare_projects_by_price,
    "units": compare_projects_by_unit_count,
    "progress": compare_projects_by_progress,
}


def sort_aggregator_projects(projects: Iterable[Project], sort: Optional[str]) -> List[Project]:
    """Stable sort by price, units, progress or recommendation score"""
    projects = list(projects)
    if sort == "recommended":
        return get_recommended_projects(projects, limit=len(projects))
    comparator = SORTERS.get(sort or "")
    if comparator is None:
        return projects
    return sorted(projects, key=cmp_to_key(comparator))


def filter_aggregator_projects(projects: Iterable[Project], filters: Dict[str, Any]) -> List[Project]:
    """
    Apply every populated filter in turn.

    Recognised keys: min_price, max_price, bedrooms, property_type,
    developer, emirate, construction_status, search.
    """
    result = list(projects)

    if filters.get("min_price") or filters.get("max_price"):
        result = filter_by_price(result, filters.get("min_price"), filters.get("max_price"))
    if filters.get("bedrooms") not in (None, ""):
        result = filter_by_bedrooms(result, filters["bedrooms"])
    if filters.get("property_type"):
        result = filter_by_property_type(result, filters["property_type"])
    if filters.get("developer"):
        result = filter_by_developer(result, filters["developer"])
    if filters.get("emirate"):
        result = filter_by_emirate(result, filters["emirate"])
    if filters.get("construction_status"):
        result = filter_by_construction_status(result, filters["construction_status"])
    if filters.get("search"):
        result = search_projects(result, filters["search"])

    return result
