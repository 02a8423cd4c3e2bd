"""Approval request registry: the sole owner of request lifecycle state.

State machine:

    PENDING --decide(approved)--> APPROVED --consume--> EXECUTED
    PENDING --decide(rejected)--> REJECTED
    PENDING --deadline passed---> EXPIRED

Every operation runs under one registry lock, so a decision racing an
expiry sweep on the same request resolves to exactly one outcome and the
loser gets InvalidApprovalStateError or ApprovalExpiredError.
"""

from __future__ import annotations

import secrets
import threading
from datetime import UTC, datetime, timedelta

from safegate.approval.errors import (
    ApprovalExpiredError,
    ApprovalNotFoundError,
    InvalidApprovalStateError,
    NotApprovedError,
)
from safegate.approval.request import ApprovalRequest
from safegate.approval.store import ApprovalStore, InMemoryApprovalStore
from safegate.clock import ClockProtocol, RealClock
from safegate.logging import get_logger, log_approval_event
from safegate.models import (
    ApprovalDecision,
    ApprovalStatus,
    ExposureSnapshot,
    ProposedAction,
    RiskLevel,
)

logger = get_logger("approval.registry")

DEFAULT_APPROVAL_TIMEOUT = timedelta(hours=24)


class ApprovalRegistry:
    """Creates, decides, expires and consumes approval requests.

    Returned requests are the stored records. Callers read them but must not
    mutate them; all transitions go through the registry.
    """

    def __init__(
        self,
        timeout: timedelta = DEFAULT_APPROVAL_TIMEOUT,
        store: ApprovalStore | None = None,
        clock: ClockProtocol | None = None,
    ) -> None:
        """Initialize registry.

        Args:
            timeout: Time a pending request stays open
            store: Request storage (defaults to in-memory)
            clock: Time provider (defaults to real clock)
        """
        if timeout <= timedelta(0):
            raise ValueError(f"Approval timeout must be positive, got {timeout}")
        self.timeout = timeout
        self._store: ApprovalStore = store if store is not None else InMemoryApprovalStore()
        self.clock = clock or RealClock()
        self._lock = threading.RLock()

    def _new_id(self, counterparty_id: str, now: datetime) -> str:
        """Timestamp and counterparty for readability, random suffix for uniqueness."""
        millis = int(now.timestamp() * 1000)
        while True:
            request_id = f"apr_{millis}_{counterparty_id}_{secrets.token_hex(6)}"
            if self._store.get(request_id) is None:
                return request_id

    def create(
        self,
        snapshot: ExposureSnapshot,
        action: ProposedAction,
        risk_level: RiskLevel,
    ) -> ApprovalRequest:
        """Create a new PENDING request.

        Args:
            snapshot: Exposure data that produced the request
            action: The action awaiting approval
            risk_level: Risk level assessed for the action

        Returns:
            The stored request
        """
        with self._lock:
            now = self.clock.now()
            request = ApprovalRequest(
                id=self._new_id(snapshot.counterparty_id, now),
                created_at=now,
                expires_at=now + self.timeout,
                risk_level=risk_level,
                exposure_snapshot=snapshot,
                proposed_action=action,
            )
            self._store.add(request)

        log_approval_event(
            "CREATED",
            request.id,
            counterparty_id=snapshot.counterparty_id,
            risk_level=risk_level.value,
            expires_at=request.expires_at.isoformat(),
        )
        return request

    def decide(self, request_id: str, decision: ApprovalDecision) -> ApprovalRequest:
        """Record an approve/reject decision on a pending request.

        The deadline is checked here even if no sweep has run, so a late
        decision is never honored.

        Args:
            request_id: Request to decide
            decision: The approver's decision

        Returns:
            The updated request

        Raises:
            ApprovalNotFoundError: Unknown request id
            InvalidApprovalStateError: Request is not PENDING
            ApprovalExpiredError: Deadline passed (request is now EXPIRED)
        """
        with self._lock:
            request = self._store.get(request_id)
            if request is None:
                raise ApprovalNotFoundError(request_id)

            if not request.is_pending:
                raise InvalidApprovalStateError(request_id, request.status)

            now = self.clock.now()
            if request.is_past_deadline(now):
                request.status = ApprovalStatus.EXPIRED
                self._store.update(request)
                expired = True
            else:
                request.status = (
                    ApprovalStatus.APPROVED if decision.approved else ApprovalStatus.REJECTED
                )
                request.approver = decision.approver
                request.approval_timestamp = now
                request.reasoning = decision.reasoning
                self._store.update(request)
                expired = False

        if expired:
            logger.warning(
                f"Late decision by {decision.approver} on {request_id}; request expired at "
                f"{request.expires_at.isoformat()}"
            )
            log_approval_event("EXPIRED", request_id, trigger="decision")
            raise ApprovalExpiredError(request_id)

        log_approval_event(
            request.status.value,
            request_id,
            approver=decision.approver,
            reasoning=decision.reasoning,
        )
        return request

    def consume(self, request_id: str) -> ApprovalRequest:
        """Mark an approved request as executed so it cannot run twice.

        Raises:
            ApprovalNotFoundError: Unknown request id
            NotApprovedError: Request is not APPROVED (including already EXECUTED)
        """
        with self._lock:
            request = self._store.get(request_id)
            if request is None:
                raise ApprovalNotFoundError(request_id)
            if request.status != ApprovalStatus.APPROVED:
                raise NotApprovedError(request_id, request.status)
            request.status = ApprovalStatus.EXECUTED
            request.executed_at = self.clock.now()
            self._store.update(request)

        log_approval_event("EXECUTED", request_id, approver=request.approver)
        return request

    def get(self, request_id: str) -> ApprovalRequest | None:
        """Get a request by id, or None if unknown."""
        with self._lock:
            return self._store.get(request_id)

    def list_pending(self) -> list[ApprovalRequest]:
        """List PENDING requests, oldest first (snapshot at call time)."""
        return self.list_requests(ApprovalStatus.PENDING)

    def list_requests(self, status: ApprovalStatus | None = None) -> list[ApprovalRequest]:
        """List requests, optionally filtered by status, oldest first."""
        with self._lock:
            requests = list(self._store.scan(status))
        return sorted(requests, key=lambda r: r.created_at)

    def sweep_expired(self, now: datetime | None = None) -> list[str]:
        """Transition PENDING requests past their deadline to EXPIRED.

        Idempotent; never touches a non-PENDING request.

        Args:
            now: Reference time (defaults to clock; naive values are taken as UTC)

        Returns:
            Ids of requests expired by this call
        """
        expired_ids: list[str] = []
        if now is None:
            now = self.clock.now()
        elif now.tzinfo is None:
            now = now.replace(tzinfo=UTC)

        with self._lock:
            for request in self._store.scan(ApprovalStatus.PENDING):
                if request.expires_at < now:
                    request.status = ApprovalStatus.EXPIRED
                    self._store.update(request)
                    expired_ids.append(request.id)

        for request_id in expired_ids:
            log_approval_event("EXPIRED", request_id, trigger="sweep")
        if expired_ids:
            logger.info(f"Expiry sweep closed {len(expired_ids)} pending request(s)")
        else:
            logger.debug("Expiry sweep found nothing to expire")
        return expired_ids

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for _ in self._store.scan())
