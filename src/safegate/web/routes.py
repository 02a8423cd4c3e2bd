"""API routes for evaluating actions and recording approval decisions."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from safegate import __version__
from safegate.approval.errors import ApprovalNotFoundError
from safegate.approval.workflow import ApprovalWorkflow, RequireApproval
from safegate.models import ApprovalDecision, ApprovalStatus, ExposureSnapshot

router = APIRouter()


class EvaluateBody(BaseModel):
    """Body of POST /api/evaluate."""

    snapshot: ExposureSnapshot
    action: dict[str, Any]


def get_workflow(request: Request) -> ApprovalWorkflow:
    """Get the workflow served by this app."""
    workflow: ApprovalWorkflow = request.app.state.workflow
    return workflow


# =============================================================================
# API Endpoints
# =============================================================================


@router.get("/api/health")
def health_check(request: Request) -> dict[str, Any]:
    """Health check endpoint.

    Returns:
        Health status with timestamp, version and sweeper state
    """
    sweeper = request.app.state.sweeper
    return {
        "ok": True,
        "time": datetime.now(UTC).isoformat(),
        "version": __version__,
        "sweeper_running": bool(sweeper and sweeper.is_running),
    }


@router.post("/api/evaluate")
def evaluate(body: EvaluateBody, request: Request) -> dict[str, Any]:
    """Classify a proposed action and open an approval request if needed."""
    decision = get_workflow(request).evaluate(body.snapshot, body.action)
    if isinstance(decision, RequireApproval):
        return {
            "decision": "REQUIRE_APPROVAL",
            "request_id": decision.request_id,
            "risk_level": decision.risk_level.value,
        }
    return {"decision": "PROCEED", "request_id": None, "risk_level": decision.risk_level.value}


@router.get("/api/approvals")
def list_approvals(
    request: Request,
    status: str | None = Query(default=None),
) -> dict[str, Any]:
    """List approval requests, optionally filtered by status."""
    status_filter = None
    if status:
        try:
            status_filter = ApprovalStatus(status.upper())
        except ValueError:
            raise HTTPException(status_code=422, detail=f"Unknown status: {status}") from None

    requests = get_workflow(request).registry.list_requests(status_filter)
    return {"approvals": [r.to_dict() for r in requests], "count": len(requests)}


@router.get("/api/approvals/pending")
def list_pending(request: Request) -> dict[str, Any]:
    """List requests awaiting a decision."""
    pending = get_workflow(request).list_pending()
    return {"approvals": [r.to_dict() for r in pending], "count": len(pending)}


@router.post("/api/approvals/sweep")
def sweep(request: Request) -> dict[str, Any]:
    """Run an expiry sweep now."""
    expired = get_workflow(request).sweep_expired()
    return {"expired": expired, "count": len(expired)}


@router.get("/api/approvals/{request_id}")
def get_approval(request_id: str, request: Request) -> dict[str, Any]:
    """Get one approval request."""
    approval = get_workflow(request).get(request_id)
    if approval is None:
        raise ApprovalNotFoundError(request_id)
    return approval.to_dict()


@router.post("/api/approvals/{request_id}/decision")
def decide(request_id: str, decision: ApprovalDecision, request: Request) -> dict[str, Any]:
    """Record an approve/reject decision."""
    return get_workflow(request).decide(request_id, decision).to_dict()


@router.post("/api/approvals/{request_id}/resolve")
def resolve(request_id: str, request: Request) -> dict[str, Any]:
    """Return the action of an approved request for execution."""
    action = get_workflow(request).resolve(request_id)
    return {"request_id": request_id, "action": action}
