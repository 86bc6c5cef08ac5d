"""
Recommendation API Endpoints

Store AI recommendations, run evaluation passes and report accuracy.
"""

import logging
from dataclasses import asdict
from typing import Any, Union

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from pydantic import BaseModel

from cryptoadvisor.db.store import RecommendationStore, get_recommendation_store
from cryptoadvisor.schemas.recommendation import EvaluationStats, Recommendation
from cryptoadvisor.services.base import DataFormatError, PersistenceError
from cryptoadvisor.services.evaluation import (
    RecommendationEvaluator,
    get_evaluation_stats,
    get_evaluator,
)
from cryptoadvisor.services.recommendations import (
    RecommendationIntakeService,
    coerce_candidate,
    get_intake_service,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class EvaluationRunResponse(BaseModel):
    """Counters from one evaluation pass."""
    evaluated: int
    transitioned: int
    skipped: int
    failed: int


class RecommendationFailure(BaseModel):
    """One batch entry that could not be stored."""
    index: int
    symbol: str
    detail: str


class RecommendationBatchResponse(BaseModel):
    """Outcome of storing a batch: what was written and what was not."""
    stored: list[Recommendation]
    failed: list[RecommendationFailure]


@router.post("", response_model=RecommendationBatchResponse, status_code=201)
async def create_recommendations(
    response: Response,
    payload: Union[list[dict[str, Any]], dict[str, Any]] = Body(...),
    intake: RecommendationIntakeService = Depends(get_intake_service),
):
    """
    Store one recommendation or a batch from the AI generator.

    Accepts the generator's keys (crypto, targetPrice, stopLoss, riskLevel)
    as well as snake_case. The whole request is rejected with 422 if any
    entry is structurally invalid. Stored records are never rolled back:
    201 when every entry was stored, 207 when only some were (the body
    lists both), 503 when none were.
    """
    raws = payload if isinstance(payload, list) else [payload]
    if not raws:
        raise HTTPException(status_code=422, detail="No recommendations provided")

    try:
        candidates = [coerce_candidate(raw) for raw in raws]
    except DataFormatError as e:
        raise HTTPException(status_code=422, detail=e.message)

    result = RecommendationBatchResponse(stored=[], failed=[])
    for index, candidate in enumerate(candidates):
        rec = await intake.record(candidate)
        if rec is None:
            result.failed.append(
                RecommendationFailure(
                    index=index,
                    symbol=candidate.symbol,
                    detail="Recommendation storage is temporarily unavailable",
                )
            )
        else:
            result.stored.append(rec)

    if not result.stored:
        raise HTTPException(
            status_code=503,
            detail="Recommendation storage is temporarily unavailable",
        )
    if result.failed:
        logger.warning(
            f"Stored {len(result.stored)}/{len(candidates)} recommendations; "
            f"failed: {[f.symbol for f in result.failed]}"
        )
        response.status_code = 207
    return result


@router.get("", response_model=list[Recommendation])
async def list_recommendations(
    limit: int = Query(default=50, ge=1, le=500),
    store: RecommendationStore = Depends(get_recommendation_store),
):
    """Most recent recommendations, newest first."""
    try:
        return await store.select_recent(limit)
    except PersistenceError as e:
        logger.error(f"Failed to list recommendations: {e}")
        raise HTTPException(
            status_code=503,
            detail="Recommendation history is temporarily unavailable",
        )


@router.post("/evaluate", response_model=EvaluationRunResponse)
async def evaluate_recommendations(
    evaluator: RecommendationEvaluator = Depends(get_evaluator),
):
    """Run one evaluation pass over all pending recommendations."""
    summary = await evaluator.evaluate_all_pending()
    return EvaluationRunResponse(**asdict(summary))


@router.get("/stats", response_model=EvaluationStats)
async def recommendation_stats(
    store: RecommendationStore = Depends(get_recommendation_store),
):
    """Counts per status and accuracy rate over all recommendations."""
    return await get_evaluation_stats(store)
