"""
Recommendation transition rules.

Pure functions: given a recommendation, the current price and the current
time, decide whether the record leaves the pending state and where it goes.

    pending --(age > expiry)----------------------------> expired
    pending --(buy: price >= target)--------------------> accurate
    pending --(buy: price <= stop)----------------------> inaccurate
    pending --(sell: price <= target)-------------------> accurate
    pending --(sell: price >= stop)---------------------> inaccurate
    pending --(hold: |move| <= tolerance, age >= min)---> accurate
    pending --(hold: price <= stop)---------------------> inaccurate

Terminal records never transition again.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from cryptoadvisor.schemas.recommendation import (
    Action,
    Recommendation,
    RecommendationStatus,
)

DEFAULT_EXPIRY_DAYS = 30
DEFAULT_HOLD_MIN_DAYS = 7
DEFAULT_HOLD_TOLERANCE_PERCENT = 10.0

NO_PRICE_REASON = "no price available"


@dataclass
class EvaluationDecision:
    """Outcome of one rule check. status is None when the record stays as it is."""

    status: Optional[RecommendationStatus]
    reason: str

    @property
    def transitions(self) -> bool:
        return self.status is not None


def is_expired(
    rec: Recommendation, now: datetime, expiry_days: int = DEFAULT_EXPIRY_DAYS
) -> bool:
    """Strictly older than the expiry window."""
    return now - rec.created_at > timedelta(days=expiry_days)


def price_change_percent(entry_price: float, current_price: float) -> float:
    return (current_price - entry_price) / entry_price * 100


def decide(
    rec: Recommendation,
    current_price: Optional[float],
    now: datetime,
    expiry_days: int = DEFAULT_EXPIRY_DAYS,
    hold_min_days: int = DEFAULT_HOLD_MIN_DAYS,
    hold_tolerance_percent: float = DEFAULT_HOLD_TOLERANCE_PERCENT,
) -> EvaluationDecision:
    """
    Decide the next status for a recommendation.

    Expiry is checked before any price logic, so an expired record needs no
    price. Without a price a live record stays pending.
    """
    if rec.status.is_terminal:
        return EvaluationDecision(None, f"already {rec.status.value}")

    if is_expired(rec, now, expiry_days):
        return EvaluationDecision(
            RecommendationStatus.EXPIRED, f"older than {expiry_days} days"
        )

    if current_price is None:
        return EvaluationDecision(None, NO_PRICE_REASON)

    if rec.action == Action.BUY:
        # Target first: target == stop == price grades as accurate
        if current_price >= rec.target_price:
            return EvaluationDecision(RecommendationStatus.ACCURATE, "target reached")
        if current_price <= rec.stop_loss:
            return EvaluationDecision(RecommendationStatus.INACCURATE, "stop loss hit")

    elif rec.action == Action.SELL:
        if current_price <= rec.target_price:
            return EvaluationDecision(RecommendationStatus.ACCURATE, "target reached")
        if current_price >= rec.stop_loss:
            return EvaluationDecision(RecommendationStatus.INACCURATE, "stop loss hit")

    elif rec.action == Action.HOLD:
        change = price_change_percent(rec.entry_price, current_price)
        held_long_enough = now - rec.created_at >= timedelta(days=hold_min_days)

        if abs(change) <= hold_tolerance_percent and held_long_enough:
            return EvaluationDecision(
                RecommendationStatus.ACCURATE,
                f"price stable ({change:+.2f}%) for {hold_min_days}+ days",
            )
        if current_price <= rec.stop_loss:
            return EvaluationDecision(RecommendationStatus.INACCURATE, "stop loss hit")

    return EvaluationDecision(None, "no condition met")
