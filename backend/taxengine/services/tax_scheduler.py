"""Periodic tax sync scheduler.

Re-runs the tax engine at a fixed interval with a fixed configuration and
keeps a bounded history of run summaries in memory.

Design constraints:
- Runs never overlap: the next sleep starts after a run completes
- History is bounded (newest first)
- A failed run is logged and recorded; the schedule continues
"""

import asyncio
import logging
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Any, Deque, Dict, Optional

from .tax_engine import TaxEngine, TaxEngineOptions, summarize

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60
DEFAULT_HISTORY_SIZE = 10


class TaxScheduler:
    """Runs the tax engine periodically and reports its status."""

    def __init__(
        self,
        engine: TaxEngine,
        options: Optional[TaxEngineOptions] = None,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ):
        """Initialize scheduler.

        Args:
            engine: Tax engine to invoke
            options: Fixed run options (FIFO / CHF by default)
            interval_seconds: Delay between the end of one run and the next
            history_size: Number of run summaries to retain
        """
        self.engine = engine
        self.options = options or TaxEngineOptions(cost_basis="FIFO", base_currency="CHF")
        self.interval_seconds = interval_seconds

        self.status = "idle"
        self.last_run_at: Optional[datetime] = None
        self.next_run_at: Optional[datetime] = None
        self.last_summary: Optional[Dict[str, Any]] = None
        self.last_error: Optional[str] = None
        self.run_history: Deque[Dict[str, Any]] = deque(maxlen=history_size)

        self._task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start periodic runs. The first run happens immediately."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())

        logger.info(f"TaxScheduler started (interval {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop periodic runs."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        self.next_run_at = None
        logger.info("TaxScheduler stopped")

    async def _run_loop(self) -> None:
        while self._running:
            try:
                self.run_once()
            except Exception:
                logger.exception("Scheduled tax sync failed")
            await asyncio.sleep(self.interval_seconds)

    def run_once(self) -> Dict[str, Any]:
        """Run the engine now and record the outcome.

        Returns:
            Scheduler status after the run

        Raises:
            TaxEngineError: If the engine rejects the run (recorded in status)
        """
        self.status = "running"
        run_at = datetime.now(timezone.utc)

        try:
            result = self.engine.run(self.options)
        except Exception as e:
            self.last_error = str(e)
            raise
        finally:
            self.status = "idle"
            self.last_run_at = run_at
            self.next_run_at = run_at + timedelta(seconds=self.interval_seconds)

        summary = summarize(result)
        self.last_summary = summary
        self.last_error = None
        self.run_history.appendleft({
            "run_at": run_at.isoformat(),
            "realized_gains": summary["realized_gains"],
            "income": summary["income"],
        })

        logger.info(
            f"Tax sync complete: realized={summary['realized_gains']:+.2f} "
            f"income={summary['income']:.2f} {summary['base_currency']}"
        )

        return self.get_status()

    def get_status(self) -> Dict[str, Any]:
        """Scheduler status for display."""
        return {
            "status": self.status,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "next_run_at": self.next_run_at.isoformat() if self.next_run_at else None,
            "interval_seconds": self.interval_seconds,
            "last_summary": dict(self.last_summary) if self.last_summary else None,
            "last_error": self.last_error,
            "run_history": list(self.run_history),
            "options": {
                "cost_basis": self.options.cost_basis,
                "base_currency": self.options.base_currency,
            },
        }
