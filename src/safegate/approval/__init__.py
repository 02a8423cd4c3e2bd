"""Human approval workflow for high-risk counterparty actions.

This module provides:
- An in-memory registry owning approval request lifecycle state
- The workflow orchestrator gating actions on risk level
- A background expiry sweeper with an explicit start/stop lifecycle
- The ActionGate used by agents before calling an executor
"""

from safegate.approval.errors import (
    ApprovalError,
    ApprovalExpiredError,
    ApprovalNotFoundError,
    ApprovalRequiredError,
    InvalidApprovalStateError,
    NotApprovedError,
)
from safegate.approval.gate import ActionGate, ExecutionClient
from safegate.approval.registry import ApprovalRegistry
from safegate.approval.request import ApprovalRequest
from safegate.approval.store import ApprovalStore, InMemoryApprovalStore
from safegate.approval.sweeper import ExpirySweeper
from safegate.approval.workflow import ApprovalWorkflow, GateDecision, Proceed, RequireApproval

__all__ = [
    "ActionGate",
    "ApprovalError",
    "ApprovalExpiredError",
    "ApprovalNotFoundError",
    "ApprovalRegistry",
    "ApprovalRequest",
    "ApprovalRequiredError",
    "ApprovalStore",
    "ApprovalWorkflow",
    "ExecutionClient",
    "ExpirySweeper",
    "GateDecision",
    "InMemoryApprovalStore",
    "InvalidApprovalStateError",
    "NotApprovedError",
    "Proceed",
    "RequireApproval",
]
