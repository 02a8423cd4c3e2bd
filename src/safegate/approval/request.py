"""Approval request record."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from safegate.models import ApprovalStatus, ExposureSnapshot, ProposedAction, RiskLevel


@dataclass
class ApprovalRequest:
    """A request for human approval of a gated action.

    Only the registry mutates a stored request. ``risk_level``,
    ``exposure_snapshot`` and ``proposed_action`` are fixed at creation.

    Attributes:
        id: Unique request identifier
        created_at: UTC time the request was created
        expires_at: UTC deadline for a decision
        risk_level: Risk level assessed at creation
        exposure_snapshot: Exposure data that triggered the request
        proposed_action: Action awaiting approval (opaque)
        status: Current lifecycle status
        approver: Who decided (set with the decision)
        approval_timestamp: When the decision was recorded
        reasoning: Optional reasoning given with the decision
        executed_at: When the approved action was handed to the executor
    """

    id: str
    created_at: datetime
    expires_at: datetime
    risk_level: RiskLevel
    exposure_snapshot: ExposureSnapshot
    proposed_action: ProposedAction
    status: ApprovalStatus = ApprovalStatus.PENDING
    approver: str | None = None
    approval_timestamp: datetime | None = None
    reasoning: str | None = None
    executed_at: datetime | None = None

    @property
    def counterparty_id(self) -> str:
        return self.exposure_snapshot.counterparty_id

    @property
    def is_pending(self) -> bool:
        return self.status == ApprovalStatus.PENDING

    def is_past_deadline(self, now: datetime) -> bool:
        """Check if a decision at ``now`` would be too late."""
        return now >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe dictionary.

        Nested models use their field names, matching the top-level keys.
        """
        action = self.proposed_action
        if isinstance(action, BaseModel):
            action = action.model_dump(mode="json")
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "risk_level": self.risk_level.value,
            "status": self.status.value,
            "counterparty_id": self.counterparty_id,
            "exposure_snapshot": self.exposure_snapshot.model_dump(mode="json"),
            "proposed_action": action,
            "approver": self.approver,
            "approval_timestamp": (
                self.approval_timestamp.isoformat() if self.approval_timestamp else None
            ),
            "reasoning": self.reasoning,
            "executed_at": self.executed_at.isoformat() if self.executed_at else None,
        }
