"""Errors raised by the approval workflow.

All of them are local, recoverable conditions reported to the immediate
caller. Nothing here is retried automatically.
"""

from __future__ import annotations

from safegate.models import ApprovalStatus, RiskLevel


class ApprovalError(Exception):
    """Base exception for approval workflow errors."""

    def __init__(self, message: str, request_id: str | None = None) -> None:
        super().__init__(message)
        self.request_id = request_id


class ApprovalNotFoundError(ApprovalError):
    """No approval request exists with the given id."""

    def __init__(self, request_id: str) -> None:
        super().__init__(f"Approval request {request_id} not found", request_id)


class InvalidApprovalStateError(ApprovalError):
    """Decision submitted against a request that is no longer pending."""

    def __init__(self, request_id: str, status: ApprovalStatus) -> None:
        super().__init__(
            f"Approval request {request_id} is not pending (status: {status.value})", request_id
        )
        self.status = status


class ApprovalExpiredError(ApprovalError):
    """Decision submitted after the request's deadline."""

    def __init__(self, request_id: str) -> None:
        super().__init__(f"Approval request {request_id} has expired", request_id)


class NotApprovedError(ApprovalError):
    """Execution requested for a request that is not approved."""

    def __init__(self, request_id: str, status: ApprovalStatus) -> None:
        super().__init__(
            f"Approval request {request_id} is not approved (status: {status.value})", request_id
        )
        self.status = status


class ApprovalRequiredError(ApprovalError):
    """Action was gated: a human decision is needed before it may execute."""

    def __init__(self, request_id: str, risk_level: RiskLevel) -> None:
        super().__init__(
            f"{risk_level.value} risk action requires approval (request {request_id})",
            request_id,
        )
        self.risk_level = risk_level
