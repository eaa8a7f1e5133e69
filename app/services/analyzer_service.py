"""
Smart Analyzer Service
Four-question investor quiz. Only the budget answer narrows results today;
goal, holding period and return appetite are recorded with the result.
"""
import logging
from typing import Any, Dict, List, Optional

from app.services.aggregator_service import AlnairService, alnair_service, project_to_map_marker
from app.utils.aggregator import filter_by_price

logger = logging.getLogger(__name__)

RESULT_LIMIT = 100
RECOMMENDED_BELOW = 1_000_000

QUIZ_STEPS: List[Dict[str, Any]] = [
    {
        "id": "goal",
        "question": "What is your investment goal?",
        "layout": "horizontal",
        "options": [
            {"label": "Flipping", "value": "flipping"},
            {"label": "Capital Appreciation", "value": "appreciation"},
        ],
    },
    {
        "id": "holding",
        "question": "How long do you usually hold a property before selling?",
        "layout": "horizontal",
        "options": [
            {"label": "Less than 1 year", "value": "short"},
            {"label": "1-3 years", "value": "mid"},
            {"label": "3+ years", "value": "long"},
        ],
    },
    {
        "id": "returns",
        "question": "What's your ideal return expectation?",
        "layout": "vertical",
        "options": [
            {"label": "6-10% short-term", "value": "return-short"},
            {"label": "6-8% yearly stable return", "value": "return-stable"},
            {"label": "Anything above 20% if high potential", "value": "return-aggressive"},
        ],
    },
    {
        "id": "budget",
        "question": "What's your investment range?",
        "layout": "vertical",
        "options": [
            {"label": "AED 500K - 800K", "value": "budget-low"},
            {"label": "AED 800K - 1.5M", "value": "budget-mid"},
            {"label": "AED 3M+", "value": "budget-high"},
        ],
    },
]

# budget answer -> (min_price, max_price); None leaves that side open
BUDGET_RANGES = {
    "budget-low": (None, 800_000),
    "budget-mid": (800_000, 1_500_000),
    "budget-high": (3_000_000, None),
}


def budget_price_filter(budget: str) -> Dict[str, Optional[int]]:
    min_price, max_price = BUDGET_RANGES.get(budget, (None, None))
    return {"min_price": min_price, "max_price": max_price}


def budget_query_string(budget: str) -> str:
    """Query string for the /properties page with the same budget"""
    price_filter = budget_price_filter(budget)
    parts = [f"{key}={value}" for key, value in price_filter.items() if value is not None]
    return "&".join(parts)


def analyze_projects(projects: List[Dict[str, Any]], answers: Dict[str, str]) -> Dict[str, Any]:
    """Pure part of the analysis: filter by budget, cap and mark recommendations."""
    price_filter = budget_price_filter(answers.get("budget", ""))
    matches = filter_by_price(projects, price_filter["min_price"], price_filter["max_price"])[:RESULT_LIMIT]

    markers = []
    for project in matches:
        marker = project_to_map_marker(project)
        price_from = ((project.get("statistics") or {}).get("total") or {}).get("price_from") or 0
        marker["recommended"] = price_from < RECOMMENDED_BELOW
        markers.append(marker)

    return {
        "answers": answers,
        "filters": price_filter,
        "count": len(markers),
        "projects": markers,
        "properties_query": budget_query_string(answers.get("budget", "")),
    }


async def run_analysis(
    answers: Dict[str, str],
    service: AlnairService = alnair_service,
    force_refresh: bool = False,
) -> Dict[str, Any]:
    projects = await service.fetch_projects(force_refresh=force_refresh)
    result = analyze_projects(projects, answers)
    logger.info(f"[ANALYZER] budget={answers.get('budget')} -> {result['count']} projects")
    return result
