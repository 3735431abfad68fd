"""Tests for LibraryReconcileWorker."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from medialedger.application.workers import LibraryReconcileWorker
from medialedger.domain.entities import SweepReport

# Hey future me - these tests verify the worker:
# 1. Sweeps immediately on start, then waits for the interval
# 2. trigger() wakes it early
# 3. stop() ends the loop and cancels a running sweep
# 4. A crashing sweep never kills the loop


async def _wait_for_calls(mock: AsyncMock, count: int) -> None:
    for _ in range(200):
        if mock.await_count >= count:
            return
        await asyncio.sleep(0.01)
    raise AssertionError(f"expected {count} sweeps, got {mock.await_count}")


@pytest.fixture
def reconciler() -> MagicMock:
    mock = MagicMock()
    mock.sweep = AsyncMock(return_value=SweepReport(sweep_id="abc", removed=["s1", "s2"]))
    mock.in_progress = False
    return mock


@pytest.fixture
def worker(reconciler: MagicMock) -> LibraryReconcileWorker:
    return LibraryReconcileWorker(reconciler, interval_seconds=3600)


class TestRunOnce:
    async def test_counts_completed_sweep(self, worker, reconciler) -> None:
        await worker.run_once()

        stats = worker.get_stats()
        assert stats["sweeps_completed"] == 1
        assert stats["tracks_removed"] == 2
        assert stats["last_sweep_at"] is not None
        assert stats["interval_seconds"] == 3600
        assert stats["sweep_in_progress"] is False

    async def test_skipped_sweep_is_not_counted(self, worker, reconciler) -> None:
        reconciler.sweep.return_value = None

        await worker.run_once()

        assert worker.get_stats()["sweeps_completed"] == 0

    async def test_crashing_sweep_is_logged(self, worker, reconciler) -> None:
        reconciler.sweep.side_effect = RuntimeError("boom")

        await worker.run_once()

        stats = worker.get_stats()
        assert stats["sweeps_failed"] == 1
        assert stats["sweeps_completed"] == 0


class TestLoop:
    async def test_first_sweep_runs_immediately(self, worker, reconciler) -> None:
        task = asyncio.create_task(worker.start())
        await _wait_for_calls(reconciler.sweep, 1)
        assert worker.is_running is True

        worker.stop()
        await asyncio.wait_for(task, timeout=1)

        assert worker.is_running is False
        reconciler.cancel.assert_called_once()

    async def test_trigger_wakes_worker(self, worker, reconciler) -> None:
        task = asyncio.create_task(worker.start())
        await _wait_for_calls(reconciler.sweep, 1)

        worker.trigger()
        await _wait_for_calls(reconciler.sweep, 2)

        worker.stop()
        await asyncio.wait_for(task, timeout=1)
        assert reconciler.sweep.await_count == 2

    async def test_trigger_during_sweep_is_absorbed(self, worker, reconciler) -> None:
        async def sweep_with_trigger() -> SweepReport:
            worker.trigger()
            return SweepReport(sweep_id="abc")

        reconciler.sweep.side_effect = sweep_with_trigger

        task = asyncio.create_task(worker.start())
        await _wait_for_calls(reconciler.sweep, 1)
        await asyncio.sleep(0.05)

        assert reconciler.sweep.await_count == 1

        reconciler.sweep.side_effect = None
        worker.trigger()
        await _wait_for_calls(reconciler.sweep, 2)

        worker.stop()
        await asyncio.wait_for(task, timeout=1)
        assert reconciler.sweep.await_count == 2

    async def test_loop_survives_failures(self, reconciler) -> None:
        calls = 0

        async def fail_first() -> None:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("boom")

        reconciler.sweep.side_effect = fail_first
        worker = LibraryReconcileWorker(reconciler, interval_seconds=0)

        task = asyncio.create_task(worker.start())
        await _wait_for_calls(reconciler.sweep, 2)
        worker.stop()
        await asyncio.wait_for(task, timeout=1)

        assert worker.get_stats()["sweeps_failed"] == 1
