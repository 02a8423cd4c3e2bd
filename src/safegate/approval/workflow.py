"""Approval workflow: classify, gate, decide and resolve proposed actions.

The workflow never executes an action. ``evaluate`` only says whether the
caller may proceed; executing is the job of the ActionGate at each call site.

USAGE:
    workflow = ApprovalWorkflow.from_settings(get_settings())

    decision = workflow.evaluate(snapshot, action)
    if isinstance(decision, RequireApproval):
        # surface decision.request_id to a human
        ...

    # later, after a human decision
    workflow.decide(request_id, ApprovalDecision(approved=True, approver="alice"))
    action = workflow.resolve(request_id)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from safegate.approval.errors import ApprovalNotFoundError, NotApprovedError
from safegate.approval.registry import ApprovalRegistry
from safegate.approval.request import ApprovalRequest
from safegate.clock import ClockProtocol
from safegate.config import Settings, resolve_risk_policy
from safegate.logging import get_logger
from safegate.models import (
    ApprovalDecision,
    ApprovalStatus,
    ExposureSnapshot,
    ProposedAction,
    RiskLevel,
)
from safegate.risk.classifier import RiskClassifier, requires_approval

logger = get_logger("approval.workflow")


@dataclass(frozen=True)
class Proceed:
    """The action may execute immediately."""

    risk_level: RiskLevel


@dataclass(frozen=True)
class RequireApproval:
    """The action is held until request ``request_id`` is approved."""

    request_id: str
    risk_level: RiskLevel


GateDecision = Proceed | RequireApproval


class ApprovalWorkflow:
    """Composes the risk classifier and the approval registry."""

    def __init__(
        self,
        classifier: RiskClassifier | None = None,
        registry: ApprovalRegistry | None = None,
    ) -> None:
        self.classifier = classifier if classifier is not None else RiskClassifier()
        self.registry = registry if registry is not None else ApprovalRegistry()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        clock: ClockProtocol | None = None,
    ) -> ApprovalWorkflow:
        """Build a workflow from application settings."""
        classifier = RiskClassifier(resolve_risk_policy(settings))
        registry = ApprovalRegistry(
            timeout=timedelta(hours=settings.approval.timeout_hours),
            clock=clock,
        )
        return cls(classifier=classifier, registry=registry)

    def evaluate(self, snapshot: ExposureSnapshot, action: ProposedAction) -> GateDecision:
        """Decide whether a proposed action may proceed.

        HIGH and CRITICAL actions get a new PENDING request; everything else
        proceeds.

        Args:
            snapshot: Exposure data for the counterparty
            action: The proposed action (not inspected)

        Returns:
            Proceed or RequireApproval
        """
        level = self.classifier.classify(snapshot)

        if not requires_approval(level):
            logger.info(
                f"{level.value} risk action for {snapshot.counterparty_id} may proceed"
            )
            return Proceed(risk_level=level)

        request = self.registry.create(snapshot, action, level)
        logger.warning(
            f"{level.value} risk action for {snapshot.counterparty_id} held for approval: "
            f"{'; '.join(self.classifier.explain(snapshot))}",
            extra={"request_id": request.id},
        )
        return RequireApproval(request_id=request.id, risk_level=level)

    def decide(self, request_id: str, decision: ApprovalDecision) -> ApprovalRequest:
        """Apply a human decision. See ApprovalRegistry.decide."""
        return self.registry.decide(request_id, decision)

    def resolve(self, request_id: str) -> ProposedAction:
        """Return the stored action of an approved request.

        Does not mark the request consumed; use ``consume`` for that.

        Raises:
            ApprovalNotFoundError: Unknown request id
            NotApprovedError: Request status is not APPROVED
        """
        request = self.registry.get(request_id)
        if request is None:
            raise ApprovalNotFoundError(request_id)
        if request.status != ApprovalStatus.APPROVED:
            raise NotApprovedError(request_id, request.status)
        return request.proposed_action

    def consume(self, request_id: str) -> ApprovalRequest:
        """Move an approved request to EXECUTED. See ApprovalRegistry.consume."""
        return self.registry.consume(request_id)

    def get(self, request_id: str) -> ApprovalRequest | None:
        return self.registry.get(request_id)

    def list_pending(self) -> list[ApprovalRequest]:
        return self.registry.list_pending()

    def sweep_expired(self, now: datetime | None = None) -> list[str]:
        return self.registry.sweep_expired(now)
