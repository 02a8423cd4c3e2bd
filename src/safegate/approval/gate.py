"""Action gate: the only path from a proposed action to the executor.

Every agent that would execute a proposed action goes through an
ActionGate. The executor is reached in exactly two places:

- ``submit`` when the workflow returns Proceed
- ``execute_approved`` after the request is approved and consumed

A RequireApproval result raises ApprovalRequiredError before the executor
is touched.
"""

from __future__ import annotations

from typing import Protocol

from safegate.approval.errors import ApprovalRequiredError
from safegate.approval.workflow import ApprovalWorkflow, RequireApproval
from safegate.logging import get_logger, log_approval_event
from safegate.models import ExecutionReceipt, ExposureSnapshot, ProposedAction

logger = get_logger("approval.gate")


class ExecutionClient(Protocol):
    """Protocol for the execution collaborator (e.g. a multisig submitter)."""

    def execute(self, action: ProposedAction) -> ExecutionReceipt:
        """Execute an action and return its receipt."""
        ...


class ActionGate:
    """Enforces "no execution while un-approved" for one executor."""

    def __init__(self, workflow: ApprovalWorkflow, executor: ExecutionClient) -> None:
        self.workflow = workflow
        self._executor = executor

    def submit(self, snapshot: ExposureSnapshot, action: ProposedAction) -> ExecutionReceipt:
        """Evaluate an action and execute it if no approval is needed.

        Args:
            snapshot: Exposure data for the counterparty
            action: Proposed action

        Returns:
            Execution receipt for a proceeding action

        Raises:
            ApprovalRequiredError: The action was held; carries the request id
        """
        decision = self.workflow.evaluate(snapshot, action)

        if isinstance(decision, RequireApproval):
            raise ApprovalRequiredError(decision.request_id, decision.risk_level)

        logger.info(
            f"Executing {decision.risk_level.value} risk action for {snapshot.counterparty_id}"
        )
        return self._executor.execute(action)

    def execute_approved(self, request_id: str) -> ExecutionReceipt:
        """Execute the action of an approved request, at most once.

        The request moves to EXECUTED before the executor is called, so a
        second call fails even if the first execution raised.

        Raises:
            ApprovalNotFoundError: Unknown request id
            NotApprovedError: Request is not APPROVED (or already executed)
        """
        action = self.workflow.resolve(request_id)
        self.workflow.consume(request_id)

        try:
            receipt = self._executor.execute(action)
        except Exception as e:
            logger.error(f"Execution of approved request {request_id} failed: {e}")
            log_approval_event("EXECUTION_FAILED", request_id, error=str(e))
            raise

        if receipt.request_id is None:
            receipt = receipt.model_copy(update={"request_id": request_id})
        log_approval_event(
            "EXECUTION_RECEIPT", request_id, success=receipt.success, reference=receipt.reference
        )
        return receipt
