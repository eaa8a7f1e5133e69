"""
Internal listing helpers
Text repair, client-side style filters and recency ordering for projects
in the internal catalogue shape (type / unit_types lists, min_price, ...).
"""
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

Listing = Dict[str, Any]

# Mis-decoded UTF-8 sequences (CP437 rendering) -> intended character.
# Applied in order; the first mapping for a sequence wins.
MOJIBAKE_REPLACEMENTS = [
    ("ΓÇÖ", "'"),
    ("ΓÇ£", '"'),
    ("ΓÇ¥", '"'),
    ("ΓÇô", "–"),
    ("ΓÇö", "—"),
    ("ΓÇª", "..."),
    ("├ž", "ç"),
    ("├º", "ç"),
    ("├ç", "Ç"),
    ("├®", "è"),
    ("├¿", "è"),
    ("├⌐", "é"),
    ("├á", "à"),
    ("├í", "á"),
    ("├╝", "ü"),
    ("├╣", "ù"),
    ("├║", "ú"),
    ("├╗", "û"),
    ("├Â", "ö"),
    ("├▓", "ò"),
    ("├│", "ó"),
    ("├┤", "ô"),
    ("├ñ", "ä"),
    ("├¡", "í"),
    ("├¼", "ì"),
    ("├«", "î"),
    ("├»", "ï"),
    ("├▒", "ñ"),
    ("Γäó", "™"),
    ("┬░", "°"),
    ("┬▓", "²"),
    ("┬│", "³"),
    ("┬®", "®"),
    ("┬⌐", "©"),
]

BEDROOM_LABELS = {
    "studio": "Studio",
    "one": "One",
    "two": "Two",
    "three": "Three",
    "four": "Four",
    "five": "Five",
    "six": "Six",
    "seven": "Seven",
}

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def clean_text(text: Optional[str]) -> str:
    """Repair common mojibake; None/empty becomes ''."""
    if not text:
        return ""
    for broken, fixed in MOJIBAKE_REPLACEMENTS:
        text = text.replace(broken, fixed)
    return text


def _as_list(value: Union[str, Sequence[str], None]) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def _type_matches(listing: Listing, wanted: Sequence[str]) -> bool:
    wanted_lower = {w.lower() for w in wanted}
    listing_type = listing.get("type")
    if not listing_type:
        return False
    if isinstance(listing_type, str):
        return listing_type.lower() in wanted_lower
    return any(str(t).lower() in wanted_lower for t in listing_type)


def _has_unit_type(listing: Listing, unit_type: str) -> bool:
    target = unit_type.lower()
    return any(str(ut).lower() == target for ut in listing.get("unit_types") or [])


def _price(listing: Listing) -> Optional[float]:
    value = listing.get("min_price")
    return float(value) if value is not None else None


def filter_data(data: Iterable[Listing], filters: Optional[Dict[str, Any]] = None) -> List[Listing]:
    """
    Apply type, category, bedrooms, min_price, max_price and search filters.

    type may be one value or a list (any match). bedrooms accepts the lower
    case words used in links (studio, two) as well as the stored labels.

    Price bounds both compare against the listing's min_price. Listings
    without a min_price never pass a price bound.
    """
    filters = filters or {}
    result = list(data)

    types = _as_list(filters.get("type"))
    if types:
        result = [p for p in result if _type_matches(p, types)]

    result = filter_by_category(result, filters.get("category"))
    result = filter_by_bedrooms(result, filters.get("bedrooms"))

    min_price = filters.get("min_price")
    if min_price:
        result = [p for p in result if _price(p) is not None and _price(p) >= min_price]

    max_price = filters.get("max_price")
    if max_price:
        result = [p for p in result if _price(p) is not None and _price(p) <= max_price]

    search = filters.get("search")
    if search:
        needle = search.lower()
        result = [
            p for p in result
            if any(needle in (p.get(field) or "").lower() for field in ("title", "address", "city"))
        ]

    return result


def filter_by_bedrooms(listings: Optional[Iterable[Listing]], bedrooms: Optional[str]) -> List[Listing]:
    """Match unit_types against a bedroom word (studio, one ... seven)."""
    if not listings:
        return []
    if not bedrooms:
        return list(listings)
    normalized = BEDROOM_LABELS.get(bedrooms.lower(), bedrooms)
    return [p for p in listings if _has_unit_type(p, normalized)]


def filter_by_category(listings: Optional[Iterable[Listing]], category: Optional[str]) -> List[Listing]:
    if not listings:
        return []
    if not category:
        return list(listings)
    return [p for p in listings if (p.get("category") or "").lower() == category.lower()]


def created_at_key(listing: Listing) -> datetime:
    """created_at as an aware datetime; missing or unparseable values sort as oldest."""
    value = listing.get("created_at")
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return _EPOCH
    if not isinstance(value, datetime):
        return _EPOCH
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def sort_newest_first(listings: Iterable[Listing]) -> List[Listing]:
    return sorted(listings, key=created_at_key, reverse=True)


def get_recent_properties(listings: Optional[Iterable[Listing]], limit: int = 10) -> List[Listing]:
    if not listings:
        return []
    return sort_newest_first(listings)[:limit]
