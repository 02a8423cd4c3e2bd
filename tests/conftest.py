"""Shared fixtures: a controllable clock and exposure snapshot builders."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

import pytest

from safegate.models import ExposureSnapshot


@dataclass
class FakeClock:
    """Fake clock for testing."""

    _current_time: datetime

    def now(self) -> datetime:
        """Return current fake time."""
        return self._current_time

    def advance(self, delta: timedelta) -> None:
        """Move the clock forward."""
        self._current_time += delta


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at a known instant."""
    return FakeClock(datetime(2025, 1, 6, 9, 0, tzinfo=UTC))


@pytest.fixture
def make_snapshot() -> Callable[..., ExposureSnapshot]:
    """Build an ExposureSnapshot with nominal (MEDIUM risk) defaults."""

    def _make(**overrides: Any) -> ExposureSnapshot:
        fields: dict[str, Any] = {
            "counterparty_id": "cp-001",
            "current_exposure": Decimal("50000"),
            "exposure_limit": Decimal("250000"),
            "collateral_held": Decimal("60000"),
            "market_volatility": 0.2,
            "credit_rating": "AA",
        }
        fields.update(overrides)
        return ExposureSnapshot(**fields)

    return _make


@pytest.fixture
def action() -> dict[str, Any]:
    """A collateral call recommendation as produced by the advisor."""
    return {
        "collateralAction": "request_collateral",
        "collateralAmount": 150000,
        "exposureAction": "maintain",
        "rationale": "Exposure exceeds collateral by a wide margin",
    }
