"""Pydantic v2 data models for exposure data, risk levels and approval decisions."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Opaque payload from the advisory collaborator; the workflow never inspects it.
ProposedAction = Any


class RiskLevel(str, Enum):
    """Risk level of a proposed action, totally ordered LOW < MEDIUM < HIGH < CRITICAL."""

    LOW = "LOW"  # Standard operations with minimal risk
    MEDIUM = "MEDIUM"  # Monitored, no approval needed
    HIGH = "HIGH"  # Requires explicit approval before execution
    CRITICAL = "CRITICAL"  # Highest risk, requires immediate attention

    @property
    def rank(self) -> int:
        """Position in the ordering (LOW is 0)."""
        return _RISK_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank >= other.rank


_RISK_RANK = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.CRITICAL: 3,
}


class ApprovalStatus(str, Enum):
    """Lifecycle status of an approval request."""

    PENDING = "PENDING"  # Awaiting a decision
    APPROVED = "APPROVED"  # Approved, ready for a single execution
    REJECTED = "REJECTED"  # Rejected, never executes
    EXPIRED = "EXPIRED"  # No decision before the deadline
    EXECUTED = "EXECUTED"  # Approved action handed to the executor


class NewsSignal(BaseModel):
    """Sentiment summary produced by the news feed for a counterparty."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    sentiment: Literal["positive", "negative", "neutral"] = "neutral"
    risk_hint: Literal["low", "medium", "high"] = Field(default="low", alias="riskLevel")
    key_insights: tuple[str, ...] = Field(default=(), alias="keyInsights")


class ExposureSnapshot(BaseModel):
    """Counterparty exposure data used to classify a proposed action.

    Monetary fields are Decimal. Floats are converted through ``str`` so the
    value the caller printed is the value compared.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    counterparty_id: str = Field(alias="counterpartyId", min_length=1)
    current_exposure: Decimal = Field(alias="currentExposure", ge=0)
    exposure_limit: Decimal = Field(default=Decimal("0"), alias="exposureLimit", ge=0)
    collateral_held: Decimal = Field(default=Decimal("0"), alias="collateralHeld", ge=0)
    market_volatility: float = Field(default=0.0, alias="marketVolatility", ge=0.0)
    credit_rating: str = Field(default="", alias="creditRating")
    news: NewsSignal | None = Field(default=None, alias="newsAnalysis")

    # Context forwarded to the advisory collaborator, not used for classification
    net_position: Decimal | None = Field(default=None, alias="netPosition")
    sector_performance: str | None = Field(default=None, alias="sectorPerformance")
    credit_spreads: float | None = Field(default=None, alias="creditSpreads")

    @field_validator(
        "current_exposure", "exposure_limit", "collateral_held", "net_position", mode="before"
    )
    @classmethod
    def float_to_decimal(cls, v: Any) -> Any:
        """Convert floats via their string form to avoid binary rounding."""
        if isinstance(v, float):
            return Decimal(str(v))
        return v


class HumanFeedback(BaseModel):
    """Optional expert feedback forwarded to the advisory collaborator."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    risk_assessment: str | None = Field(default=None, alias="riskAssessment")
    recommended_actions: str | None = Field(default=None, alias="recommendedActions")
    additional_context: str | None = Field(default=None, alias="additionalContext")


class CounterpartyAction(BaseModel):
    """Usual shape of an advisory recommendation.

    Extra fields are kept as-is; the approval workflow passes the whole
    payload through untouched.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    counterparty_id: str | None = Field(default=None, alias="counterpartyId")
    risk_level: Literal["low", "medium", "high"] | None = Field(default=None, alias="riskLevel")
    collateral_action: Literal["maintain", "request_collateral"] = Field(
        default="maintain", alias="collateralAction"
    )
    collateral_amount: Decimal = Field(default=Decimal("0"), alias="collateralAmount")
    exposure_action: Literal["maintain", "reduce_exposure"] = Field(
        default="maintain", alias="exposureAction"
    )
    reduction_amount: Decimal = Field(default=Decimal("0"), alias="reductionAmount")
    limit_action: Literal["maintain", "update_limit"] = Field(
        default="maintain", alias="limitAction"
    )
    new_limit: Decimal | None = Field(default=None, alias="newLimit")
    monitoring_frequency: Literal["daily", "weekly", "monthly"] | None = Field(
        default=None, alias="monitoringFrequency"
    )
    rationale: str = ""

    @property
    def is_noop(self) -> bool:
        """True if the recommendation changes nothing."""
        return (
            self.collateral_action == "maintain"
            and self.exposure_action == "maintain"
            and self.limit_action == "maintain"
        )


class ApprovalDecision(BaseModel):
    """A single approver's decision on a pending request."""

    model_config = ConfigDict(frozen=True)

    approved: bool
    approver: str = Field(min_length=1)
    reasoning: str | None = None


class ExecutionReceipt(BaseModel):
    """Receipt returned by the execution collaborator."""

    model_config = ConfigDict(extra="allow")

    success: bool = True
    reference: str | None = None
    request_id: str | None = None
    executed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    details: dict[str, Any] = Field(default_factory=dict)
