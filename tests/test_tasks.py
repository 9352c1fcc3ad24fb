"""
Tests for the dispatch task registry.
"""
import asyncio
import pytest
from unittest.mock import patch

from affiliate_outreach.core.exceptions import InvalidStateTransitionError
from affiliate_outreach.core.tasks import DispatchRegistry, TaskState


class TestDispatchRegistry:
    """Background task bookkeeping."""

    @pytest.mark.asyncio
    async def test_unknown_key(self):
        registry = DispatchRegistry()

        assert registry.status("nope") == {"state": TaskState.UNKNOWN, "error": None}
        assert await registry.wait("nope") is None

    @pytest.mark.asyncio
    async def test_runs_and_reports_completion(self):
        registry = DispatchRegistry()
        release = asyncio.Event()

        async def job():
            await release.wait()
            return "done"

        registry.submit("c1", job())
        assert registry.status("c1")["state"] == TaskState.RUNNING

        release.set()
        assert await registry.wait("c1", timeout=1) == "done"
        assert registry.status("c1") == {"state": TaskState.COMPLETED, "error": None}

    @pytest.mark.asyncio
    async def test_refuses_second_live_task(self):
        """Only one dispatch per campaign at a time."""
        registry = DispatchRegistry()
        release = asyncio.Event()

        async def job():
            await release.wait()

        registry.submit("c1", job())
        duplicate = job()
        with pytest.raises(InvalidStateTransitionError):
            registry.submit("c1", duplicate)

        release.set()
        await registry.wait("c1", timeout=1)
        assert duplicate.cr_frame is None  # closed, never scheduled

    @pytest.mark.asyncio
    async def test_failure_is_logged_and_kept(self):
        registry = DispatchRegistry()

        async def job():
            raise RuntimeError("database is gone")

        with patch("affiliate_outreach.core.tasks.logger") as mock_logger:
            registry.submit("c1", job())
            assert await registry.wait("c1", timeout=1) is None

            mock_logger.error.assert_called()
            assert "c1" in str(mock_logger.error.call_args)

        assert registry.status("c1") == {"state": TaskState.FAILED, "error": "RuntimeError: database is gone"}
        assert registry.failure_counts() == {"c1": 1}

    @pytest.mark.asyncio
    async def test_finished_key_can_be_resubmitted(self):
        registry = DispatchRegistry()

        async def job(value):
            return value

        registry.submit("c1", job(1))
        await registry.wait("c1")
        registry.submit("c1", job(2))

        assert await registry.wait("c1") == 2
