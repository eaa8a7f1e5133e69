"""
Smart Analyzer Endpoints
"""
from fastapi import APIRouter, HTTPException, status

from app.schemas.aggregator import AnalyzerAnswers
from app.services.aggregator_service import AggregatorError
from app.services.analyzer_service import QUIZ_STEPS, run_analysis

router = APIRouter()


@router.get("/steps")
async def analyzer_steps():
    """Quiz questions and their allowed answers"""
    return {"success": True, "steps": QUIZ_STEPS}


@router.post("")
async def analyze(answers: AnalyzerAnswers, force_refresh: bool = False):
    """Projects matching the investor's budget, flagged when under AED 1M"""
    try:
        result = await run_analysis(answers.model_dump(), force_refresh=force_refresh)
    except AggregatorError as e:
        raise HTTPException(status_code=e.status_code or status.HTTP_502_BAD_GATEWAY, detail=e.message)

    return {"success": True, **result}
