"""
Tests for the per-application action queue.
"""
import asyncio

import pytest

from xcast_simulator.async_execution.action_queue import ActionQueue


def make_action(order, label, delay=0.0, result=None):
    async def action():
        order.append(("start", label))
        await asyncio.sleep(delay)
        order.append(("end", label))
        return result if result is not None else label
    return action


class TestActionQueue:

    @pytest.mark.asyncio
    async def test_actions_run_one_at_a_time_in_order(self):
        queue = ActionQueue("TestApp")
        order = []

        first = queue.submit("launch", make_action(order, 1, delay=0.02))
        second = queue.submit("stop", make_action(order, 2))

        assert await second == 2
        assert await first == 1
        assert order == [("start", 1), ("end", 1), ("start", 2), ("end", 2)]

    @pytest.mark.asyncio
    async def test_active_marker_and_pending_count(self):
        queue = ActionQueue("TestApp")
        observed = {}

        async def inspect():
            observed["active"] = queue.active_action
            observed["pending"] = queue.pending

        first = queue.submit("launch", inspect)
        queue.submit("hide", make_action([], "hide"))
        await first
        await queue.join()

        assert observed == {"active": "launch", "pending": 1}
        assert queue.is_idle()
        assert queue.completed_count == 2

    @pytest.mark.asyncio
    async def test_failing_action_does_not_stop_the_queue(self):
        queue = ActionQueue("TestApp")

        async def broken():
            raise RuntimeError("boom")

        failed = queue.submit("launch", broken)
        following = queue.submit("stop", make_action([], "stop"))

        assert await failed is False
        assert await following == "stop"
        assert queue.failed_count == 1

    @pytest.mark.asyncio
    async def test_close_cancels_pending_actions(self):
        queue = ActionQueue("TestApp")
        order = []

        running = queue.submit("launch", make_action(order, 1, delay=1.0))
        waiting = queue.submit("stop", make_action(order, 2))
        await asyncio.sleep(0.01)

        await queue.close()

        assert running.cancelled()
        assert waiting.cancelled()
        assert order == [("start", 1)]

    @pytest.mark.asyncio
    async def test_worker_restarts_after_close(self):
        queue = ActionQueue("TestApp")
        await queue.close()

        assert await queue.submit("launch", make_action([], "again")) == "again"
