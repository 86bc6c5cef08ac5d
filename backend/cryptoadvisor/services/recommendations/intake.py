"""
Recommendation Intake

Boundary between the AI recommendation generator and the store. Raw
generator output is coerced into a RecommendationCandidate here, so only
structurally valid records ever reach the evaluator.
"""

import logging
from typing import Any, Optional, Union

from pydantic import ValidationError

from cryptoadvisor.db.store import RecommendationStore, get_recommendation_store
from cryptoadvisor.schemas.recommendation import Recommendation, RecommendationCandidate
from cryptoadvisor.services.base import DataFormatError, PersistenceError
from cryptoadvisor.services.market_data.price_oracle import PriceOracle, get_price_oracle

logger = logging.getLogger(__name__)

SERVICE_NAME = "RecommendationIntake"

CandidateInput = Union[RecommendationCandidate, dict[str, Any]]


def coerce_candidate(raw: CandidateInput) -> RecommendationCandidate:
    """
    Coerce loosely-typed generator output.

    Raises DataFormatError when the record cannot be made structurally valid.
    """
    if isinstance(raw, RecommendationCandidate):
        return raw
    if not isinstance(raw, dict):
        raise DataFormatError(SERVICE_NAME, f"Expected an object, got {type(raw).__name__}")

    try:
        return RecommendationCandidate.model_validate(raw)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise DataFormatError(
            SERVICE_NAME,
            f"Invalid recommendation: {', '.join(fields)}",
            {"errors": e.errors(include_url=False, include_context=False)},
        ) from e


class RecommendationIntakeService:
    """Coerces, prices and stores generator output."""

    def __init__(
        self,
        store: Optional[RecommendationStore] = None,
        oracle: Optional[PriceOracle] = None,
    ):
        self.store = store or get_recommendation_store()
        self.oracle = oracle or get_price_oracle()

    async def resolve_entry_price(
        self, candidate: RecommendationCandidate, entry_price: Optional[float] = None
    ) -> float:
        """Explicit price, then the candidate's own, then the live quote, then the target."""
        if entry_price and entry_price > 0:
            return entry_price
        if candidate.entry_price:
            return candidate.entry_price

        quote = await self.oracle.get_quote(candidate.symbol)
        if quote is not None:
            return quote.price

        logger.warning(
            f"No live price for {candidate.symbol}, using target price as entry price"
        )
        return candidate.target_price

    async def record(
        self, raw: CandidateInput, entry_price: Optional[float] = None
    ) -> Optional[Recommendation]:
        """
        Store one recommendation as pending.

        Raises DataFormatError for structurally invalid input. Returns None
        when the store write fails.
        """
        candidate = coerce_candidate(raw)
        price = await self.resolve_entry_price(candidate, entry_price)

        try:
            return await self.store.insert(candidate, price)
        except PersistenceError as e:
            logger.error(f"Error storing trade recommendation for {candidate.symbol}: {e.message}")
            return None

    async def record_many(self, raws: list[CandidateInput]) -> list[Recommendation]:
        """Store a batch; invalid or unstorable entries are logged and dropped."""
        stored: list[Recommendation] = []
        for raw in raws:
            try:
                rec = await self.record(raw)
            except DataFormatError as e:
                logger.warning(f"Skipping recommendation: {e.message}")
                continue
            if rec is not None:
                stored.append(rec)

        logger.info(f"Stored {len(stored)}/{len(raws)} recommendations")
        return stored


# Singleton instance
_service_instance: Optional[RecommendationIntakeService] = None


def get_intake_service() -> RecommendationIntakeService:
    """Get or create the intake service."""
    global _service_instance
    if _service_instance is None:
        _service_instance = RecommendationIntakeService()
    return _service_instance
