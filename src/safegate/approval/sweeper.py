"""Background expiry sweep for pending approval requests.

The sweep is housekeeping only: ApprovalRegistry.decide already refuses
late decisions. Sweeping keeps list_pending() from reporting requests
whose deadline has passed.

The sweeper is an owned task with an explicit lifecycle:

    sweeper = ExpirySweeper(workflow.registry, interval_seconds=3600)
    sweeper.start()
    ...
    await sweeper.stop()

or as an async context manager:

    async with ExpirySweeper(registry):
        ...
"""

from __future__ import annotations

import asyncio
import contextlib
from types import TracebackType

from safegate.approval.registry import ApprovalRegistry
from safegate.clock import SleepProtocol, real_sleep
from safegate.logging import get_logger

logger = get_logger("approval.sweeper")

DEFAULT_SWEEP_INTERVAL_S = 3600.0


class ExpirySweeper:
    """Runs ApprovalRegistry.sweep_expired on a fixed interval."""

    def __init__(
        self,
        registry: ApprovalRegistry,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_S,
        sleep_fn: SleepProtocol | None = None,
    ) -> None:
        """Initialize sweeper.

        Args:
            registry: Registry to sweep
            interval_seconds: Delay between sweeps
            sleep_fn: Async sleep function (defaults to real sleep)
        """
        if interval_seconds <= 0:
            raise ValueError(f"Sweep interval must be positive, got {interval_seconds}")
        self.registry = registry
        self.interval_seconds = interval_seconds
        self.sleep_fn = sleep_fn or real_sleep

        self._task: asyncio.Task[None] | None = None
        self._shutdown_requested = False
        self._running = False
        self.sweep_count = 0
        self.total_expired = 0

    @property
    def is_running(self) -> bool:
        """Check if the sweep loop is currently running."""
        return self._running

    def request_shutdown(self) -> None:
        """Ask the loop to exit after the current iteration."""
        self._shutdown_requested = True

    def sweep_once(self) -> list[str]:
        """Run a single sweep and update counters."""
        expired = self.registry.sweep_expired()
        self.sweep_count += 1
        self.total_expired += len(expired)
        return expired

    async def run(self) -> None:
        """Sweep loop: wait one interval, sweep, repeat until shutdown."""
        self._running = True
        self._shutdown_requested = False
        logger.info(f"Expiry sweeper starting: interval={self.interval_seconds:.0f}s")

        try:
            while not self._shutdown_requested:
                await self.sleep_fn(self.interval_seconds)
                if self._shutdown_requested:
                    break
                try:
                    self.sweep_once()
                except Exception:
                    # Housekeeping must not die; the next interval retries
                    logger.exception("Expiry sweep failed")
        except asyncio.CancelledError:
            logger.info("Expiry sweeper cancelled")
            raise
        finally:
            self._running = False
            logger.info(
                f"Expiry sweeper stopped after {self.sweep_count} sweep(s), "
                f"{self.total_expired} request(s) expired"
            )

    def start(self) -> asyncio.Task[None]:
        """Start the loop as a task on the running event loop.

        Raises:
            RuntimeError: If already started or no loop is running
        """
        if self._task is not None and not self._task.done():
            raise RuntimeError("Expiry sweeper already started")
        self._task = asyncio.get_running_loop().create_task(
            self.run(), name="safegate-expiry-sweeper"
        )
        return self._task

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish. Safe to call twice."""
        self.request_shutdown()
        task = self._task
        if task is None:
            return
        if not task.done():
            task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        self._task = None

    async def __aenter__(self) -> ExpirySweeper:
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()
