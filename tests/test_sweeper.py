"""Tests for the background expiry sweeper.

Tests cover:
- Sweeping on each interval
- Graceful shutdown and cancellation
- Start/stop lifecycle and context manager use
- Errors in a sweep do not stop the loop
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest

from safegate.approval.registry import ApprovalRegistry
from safegate.approval.sweeper import ExpirySweeper
from safegate.models import ApprovalStatus, RiskLevel

# =============================================================================
# Fakes
# =============================================================================


class FakeSleep:
    """Fake async sleep that advances the fake clock."""

    def __init__(self, clock=None, stop_after: int | None = None, sweeper=None) -> None:
        self.total_sleep = 0.0
        self.call_count = 0
        self._clock = clock
        self._stop_after = stop_after
        self.sweeper: ExpirySweeper | None = sweeper

    async def __call__(self, seconds: float) -> None:
        self.total_sleep += seconds
        self.call_count += 1
        if self._clock is not None:
            self._clock.advance(timedelta(seconds=seconds))
        if self._stop_after is not None and self.call_count > self._stop_after:
            assert self.sweeper is not None
            self.sweeper.request_shutdown()
        await asyncio.sleep(0)  # Yield to event loop


class BrokenRegistry:
    """Registry whose sweep always fails."""

    def __init__(self) -> None:
        self.calls = 0

    def sweep_expired(self, now=None) -> list[str]:
        self.calls += 1
        raise RuntimeError("store unavailable")


@pytest.fixture
def registry(clock) -> ApprovalRegistry:
    return ApprovalRegistry(timeout=timedelta(hours=24), clock=clock)


# =============================================================================
# Tests
# =============================================================================


class TestExpirySweeper:
    """Tests for ExpirySweeper."""

    def test_interval_must_be_positive(self, registry) -> None:
        """Non-positive intervals are rejected."""
        with pytest.raises(ValueError):
            ExpirySweeper(registry, interval_seconds=0)

    def test_sweep_once(self, registry, clock, make_snapshot, action) -> None:
        """sweep_once expires overdue requests and counts them."""
        registry.create(make_snapshot(), action, RiskLevel.HIGH)
        clock.advance(timedelta(hours=25))
        sweeper = ExpirySweeper(registry)

        assert len(sweeper.sweep_once()) == 1
        assert sweeper.sweep_count == 1
        assert sweeper.total_expired == 1

    @pytest.mark.asyncio
    async def test_run_sweeps_every_interval(self, registry, clock, make_snapshot, action) -> None:
        """Hourly sweeps expire a request once its deadline passes."""
        request = registry.create(
            make_snapshot(current_exposure=Decimal("600000")), action, RiskLevel.CRITICAL
        )
        fake_sleep = FakeSleep(clock=clock, stop_after=25)
        sweeper = ExpirySweeper(registry, interval_seconds=3600, sleep_fn=fake_sleep)
        fake_sleep.sweeper = sweeper

        await asyncio.wait_for(sweeper.run(), timeout=5.0)

        assert sweeper.sweep_count == 25
        assert sweeper.total_expired == 1
        assert registry.get(request.id).status == ApprovalStatus.EXPIRED
        assert fake_sleep.total_sleep == 26 * 3600
        assert not sweeper.is_running

    @pytest.mark.asyncio
    async def test_not_expired_before_deadline(
        self, registry, clock, make_snapshot, action
    ) -> None:
        """Sweeps before the deadline leave the request pending."""
        request = registry.create(make_snapshot(), action, RiskLevel.HIGH)
        fake_sleep = FakeSleep(clock=clock, stop_after=23)
        sweeper = ExpirySweeper(registry, interval_seconds=3600, sleep_fn=fake_sleep)
        fake_sleep.sweeper = sweeper

        await asyncio.wait_for(sweeper.run(), timeout=5.0)

        assert registry.get(request.id).status == ApprovalStatus.PENDING

    @pytest.mark.asyncio
    async def test_start_and_stop(self, registry) -> None:
        """stop() cancels a sweeper blocked in its sleep."""
        sweeper = ExpirySweeper(registry, interval_seconds=3600)
        task = sweeper.start()
        await asyncio.sleep(0.01)
        assert sweeper.is_running

        await asyncio.wait_for(sweeper.stop(), timeout=2.0)

        assert task.done()
        assert not sweeper.is_running
        assert sweeper.sweep_count == 0

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, registry) -> None:
        """Stopping twice, or before start, is safe."""
        sweeper = ExpirySweeper(registry, interval_seconds=3600)
        await sweeper.stop()
        sweeper.start()
        await sweeper.stop()
        await sweeper.stop()
        assert not sweeper.is_running

    @pytest.mark.asyncio
    async def test_double_start_rejected(self, registry) -> None:
        """A running sweeper cannot be started again."""
        sweeper = ExpirySweeper(registry, interval_seconds=3600)
        sweeper.start()
        try:
            with pytest.raises(RuntimeError):
                sweeper.start()
        finally:
            await sweeper.stop()

    @pytest.mark.asyncio
    async def test_context_manager(self, registry) -> None:
        """async with starts and stops the sweeper."""
        sweeper = ExpirySweeper(registry, interval_seconds=3600)
        async with sweeper:
            await asyncio.sleep(0.01)
            assert sweeper.is_running
        assert not sweeper.is_running

    @pytest.mark.asyncio
    async def test_sweep_error_does_not_stop_loop(self) -> None:
        """A failing sweep is logged and the loop keeps going."""
        broken = BrokenRegistry()
        fake_sleep = FakeSleep(stop_after=3)
        sweeper = ExpirySweeper(broken, interval_seconds=60, sleep_fn=fake_sleep)  # type: ignore[arg-type]
        fake_sleep.sweeper = sweeper

        await asyncio.wait_for(sweeper.run(), timeout=5.0)

        assert broken.calls == 3
        assert sweeper.sweep_count == 0
