"""Unit tests for orchestrator.py - Resolve-then-watch sequencing."""

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from conftest import FakeSource, added, wait_until
from connectors import Connector
from initial_reconciler import ReconcileResult
from orchestrator import Orchestrator
from results import Rejected


@pytest.mark.asyncio
class TestOrchestrator:
    """Tests for Orchestrator."""

    async def test_not_ready_before_start(self, kafka_connect):
        orchestrator = Orchestrator(FakeSource(), kafka_connect)
        assert orchestrator.ready is False
        assert orchestrator.initial_result is None

    async def test_start_reconciles_then_watches(self, kafka_connect):
        source = FakeSource(
            events=[added("B", k="2")],
            connectors=[Connector("A", {"k": "1"})],
        )
        kafka_connect.list_connectors.return_value = ["C"]
        orchestrator = Orchestrator(source, kafka_connect)

        task = await orchestrator.start()
        try:
            assert orchestrator.ready
            assert orchestrator.initial_result == ReconcileResult(
                upserted=["A"], deleted=["C"], failed=[]
            )
            await wait_until(lambda: kafka_connect.upsert.await_count == 2)
            names = [c.args[0].name for c in kafka_connect.upsert.await_args_list]
            assert names == ["A", "B"]
        finally:
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
        assert source.watch_released == 1

    async def test_watch_not_opened_until_initial_pass_completes(self, kafka_connect):
        source = FakeSource(events=[added("B")], connectors=[Connector("A")])
        opened_during_initial = []

        async def upsert(connector):
            opened_during_initial.append((connector.name, source.emitted))
            return Rejected("nope")

        kafka_connect.upsert.side_effect = upsert
        orchestrator = Orchestrator(source, kafka_connect)

        task = await orchestrator.start()
        try:
            await wait_until(lambda: kafka_connect.upsert.await_count == 2)
        finally:
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        assert opened_during_initial[0] == ("A", 0)
        assert opened_during_initial[1][0] == "B"

    async def test_initial_failure_aborts_without_watching(self, kafka_connect, caplog):
        source = FakeSource(events=[added("B")])
        source.events = AsyncMock()
        kafka_connect.list_connectors.side_effect = ConnectionError("refused")
        orchestrator = Orchestrator(source, kafka_connect)

        with caplog.at_level(logging.ERROR):
            with pytest.raises(ConnectionError):
                await orchestrator.start()

        source.events.assert_not_called()
        assert orchestrator.ready is False
        assert "Initial reconciliation failed" in caplog.text

    async def test_partial_failures_log_warning_and_continue(
        self, kafka_connect, caplog
    ):
        source = FakeSource(connectors=[Connector("A"), Connector("B")])
        kafka_connect.upsert.side_effect = [Rejected("bad"), RuntimeError("io")]
        orchestrator = Orchestrator(source, kafka_connect)

        with caplog.at_level(logging.WARNING):
            task = await orchestrator.start()

        try:
            assert orchestrator.ready
            assert orchestrator.initial_result.failed == ["A", "B"]
            warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
            assert any("completed with failures" in r.getMessage() for r in warnings)
        finally:
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

    async def test_run_propagates_reconciler_failure(self, kafka_connect):
        source = FakeSource(events=[added("B")])
        kafka_connect.upsert.side_effect = RuntimeError("boom")
        orchestrator = Orchestrator(source, kafka_connect)

        with pytest.raises(RuntimeError, match="boom"):
            await orchestrator.run()

        assert orchestrator.ready
        assert source.watch_released == 1
