"""Storage for approval requests.

The registry talks to storage only through ``ApprovalStore`` so an
in-memory map can later be swapped for a durable store without touching
workflow logic. Stores are not thread-safe on their own; the registry
serializes access.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol

from safegate.approval.request import ApprovalRequest
from safegate.models import ApprovalStatus


class ApprovalStore(Protocol):
    """Protocol for approval request storage."""

    def add(self, request: ApprovalRequest) -> None:
        """Store a new request. Raises KeyError if the id exists."""
        ...

    def get(self, request_id: str) -> ApprovalRequest | None:
        """Get a request by id."""
        ...

    def update(self, request: ApprovalRequest) -> None:
        """Persist changes to an existing request."""
        ...

    def scan(self, status: ApprovalStatus | None = None) -> Iterator[ApprovalRequest]:
        """Iterate requests, optionally filtered by status."""
        ...


class InMemoryApprovalStore:
    """Dictionary-backed store. State does not survive a restart."""

    def __init__(self) -> None:
        self._requests: dict[str, ApprovalRequest] = {}

    def add(self, request: ApprovalRequest) -> None:
        if request.id in self._requests:
            raise KeyError(f"Duplicate approval request id: {request.id}")
        self._requests[request.id] = request

    def get(self, request_id: str) -> ApprovalRequest | None:
        return self._requests.get(request_id)

    def update(self, request: ApprovalRequest) -> None:
        if request.id not in self._requests:
            raise KeyError(f"Unknown approval request id: {request.id}")
        self._requests[request.id] = request

    def scan(self, status: ApprovalStatus | None = None) -> Iterator[ApprovalRequest]:
        # Copy values so callers may transition entries while iterating
        for request in list(self._requests.values()):
            if status is None or request.status == status:
                yield request

    def __len__(self) -> int:
        return len(self._requests)
