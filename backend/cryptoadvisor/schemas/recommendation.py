"""
CONTRACT 3: Trading Recommendations

RecommendationCandidate: loosely-typed output of the AI generator, coerced here
Recommendation: stored record graded by the Recommendation Evaluator
EvaluationStats: accuracy summary over all stored records
"""

import math
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import AliasChoices, BaseModel, Field, field_validator

MAX_REASONS = 4
MAX_REASON_LENGTH = 150
DEFAULT_REASONING = ["AI analysis completed"]
DEFAULT_TIMEFRAME = "1-4 weeks"


def _to_float(value: Any, field: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be a number, got {value!r}")
    if not math.isfinite(number):
        raise ValueError(f"{field} must be finite, got {value!r}")
    return number


# =============================================================================
# ENUMS
# =============================================================================


class Action(str, Enum):
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecommendationStatus(str, Enum):
    PENDING = "pending"
    ACCURATE = "accurate"
    INACCURATE = "inaccurate"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not RecommendationStatus.PENDING


# =============================================================================
# INPUT: RecommendationCandidate (from the AI generator)
# =============================================================================


class RecommendationCandidate(BaseModel):
    """
    A recommendation as produced by the AI generator.

    Accepts both the generator's camelCase keys (crypto, targetPrice, ...)
    and snake_case. Values are coerced into the strict shape:
    - confidence rounded and clamped to [0, 100]
    - risk level outside the enum falls back to medium
    - reasoning capped at 4 items of 150 characters
    Unknown actions and non-positive target/stop prices are rejected.
    """

    symbol: str = Field(..., validation_alias=AliasChoices("symbol", "crypto"))
    action: Action
    confidence: int
    target_price: float = Field(
        ..., validation_alias=AliasChoices("target_price", "targetPrice")
    )
    stop_loss: float = Field(..., validation_alias=AliasChoices("stop_loss", "stopLoss"))
    reasoning: list[str] = Field(default_factory=lambda: list(DEFAULT_REASONING))
    timeframe: str = DEFAULT_TIMEFRAME
    risk_level: RiskLevel = Field(
        default=RiskLevel.MEDIUM,
        validation_alias=AliasChoices("risk_level", "riskLevel"),
    )
    entry_price: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("entry_price", "entryPrice")
    )

    model_config = {"extra": "ignore"}

    @field_validator("symbol", mode="before")
    @classmethod
    def _normalize_symbol(cls, v: Any) -> str:
        symbol = str(v or "").strip().upper()
        if not symbol:
            raise ValueError("symbol is required")
        return symbol

    @field_validator("action", mode="before")
    @classmethod
    def _normalize_action(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, v: Any) -> int:
        return max(0, min(100, round(_to_float(v, "confidence"))))

    @field_validator("target_price", "stop_loss", mode="before")
    @classmethod
    def _coerce_price(cls, v: Any) -> float:
        price = _to_float(v or 0, "price")
        if price <= 0:
            raise ValueError("price must be positive")
        return price

    @field_validator("entry_price", mode="before")
    @classmethod
    def _coerce_entry(cls, v: Any) -> Optional[float]:
        if v is None:
            return None
        price = _to_float(v, "entry price")
        return price if price > 0 else None

    @field_validator("reasoning", mode="before")
    @classmethod
    def _bound_reasoning(cls, v: Any) -> list[str]:
        if not isinstance(v, (list, tuple)):
            return list(DEFAULT_REASONING)
        reasons = []
        for item in v:
            text = str(item).strip()
            if not text:
                continue
            if len(text) > MAX_REASON_LENGTH:
                text = text[:MAX_REASON_LENGTH] + "..."
            reasons.append(text)
        return reasons[:MAX_REASONS] or list(DEFAULT_REASONING)

    @field_validator("timeframe", mode="before")
    @classmethod
    def _default_timeframe(cls, v: Any) -> str:
        text = str(v).strip() if v is not None else ""
        return text or DEFAULT_TIMEFRAME

    @field_validator("risk_level", mode="before")
    @classmethod
    def _normalize_risk(cls, v: Any) -> str:
        value = str(v).strip().lower() if v is not None else ""
        if value not in {level.value for level in RiskLevel}:
            return RiskLevel.MEDIUM.value
        return value


# =============================================================================
# STORED: Recommendation
# =============================================================================


class Recommendation(BaseModel):
    """A stored recommendation. Status moves from pending to a terminal value once."""

    id: str
    symbol: str
    action: Action
    confidence: int = Field(..., ge=0, le=100)
    target_price: float = Field(..., gt=0)
    stop_loss: float = Field(..., gt=0)
    entry_price: float = Field(..., gt=0)
    reasoning: list[str]
    timeframe: str
    risk_level: RiskLevel
    status: RecommendationStatus = RecommendationStatus.PENDING
    created_at: datetime
    evaluation_timestamp: Optional[datetime] = None

    model_config = {"frozen": True, "from_attributes": True}


# =============================================================================
# OUTPUT: EvaluationStats
# =============================================================================


class EvaluationStats(BaseModel):
    """Counts per status and accuracy over graded records."""

    total: int = 0
    pending: int = 0
    accurate: int = 0
    inaccurate: int = 0
    expired: int = 0
    accuracy_rate: float = Field(
        default=0.0,
        description="accurate / (accurate + inaccurate) * 100, 0 when nothing graded",
    )
