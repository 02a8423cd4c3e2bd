"""Counterparty exposure agent.

Asks the advisory collaborator for a recommendation and hands anything
actionable to the ActionGate. HIGH and CRITICAL recommendations surface as
ApprovalRequiredError carrying the request id; the caller re-enters through
``execute_approved`` once a human has approved.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from safegate.approval.gate import ActionGate
from safegate.logging import get_logger
from safegate.models import (
    CounterpartyAction,
    ExecutionReceipt,
    ExposureSnapshot,
    HumanFeedback,
    ProposedAction,
)

logger = get_logger("agents.exposure")


class AdvisoryClient(Protocol):
    """Protocol for the advisory collaborator (e.g. an LLM service)."""

    def propose(
        self,
        snapshot: ExposureSnapshot,
        feedback: HumanFeedback | None = None,
    ) -> ProposedAction:
        """Turn exposure data into a proposed action."""
        ...


@dataclass
class ExposureAssessment:
    """Outcome of one assessment that did not need approval."""

    counterparty_id: str
    action: ProposedAction
    receipt: ExecutionReceipt | None = None  # None when nothing was executed

    @property
    def executed(self) -> bool:
        return self.receipt is not None


class CounterpartyExposureAgent:
    """Assesses counterparty exposure and executes gated recommendations."""

    def __init__(self, advisor: AdvisoryClient, gate: ActionGate) -> None:
        self._advisor = advisor
        self._gate = gate

    def assess_exposure(
        self,
        snapshot: ExposureSnapshot,
        feedback: HumanFeedback | None = None,
    ) -> ExposureAssessment:
        """Get a recommendation and execute it through the gate.

        Args:
            snapshot: Current exposure data
            feedback: Optional human expert feedback for the advisor

        Returns:
            ExposureAssessment with the receipt, if anything executed

        Raises:
            ApprovalRequiredError: The recommendation needs human approval
        """
        action = self._advisor.propose(snapshot, feedback)

        if isinstance(action, CounterpartyAction) and action.is_noop:
            logger.info(f"No action recommended for {snapshot.counterparty_id}")
            return ExposureAssessment(counterparty_id=snapshot.counterparty_id, action=action)

        receipt = self._gate.submit(snapshot, action)
        return ExposureAssessment(
            counterparty_id=snapshot.counterparty_id, action=action, receipt=receipt
        )

    def execute_approved(self, request_id: str) -> ExecutionReceipt:
        """Execute a previously held recommendation after approval."""
        return self._gate.execute_approved(request_id)
