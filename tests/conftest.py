"""
Xcast Device Simulator - Test Configuration

Pytest fixtures shared by all tests.
"""
import asyncio
import json
from typing import Any, Callable, Dict, List

import pytest
import pytest_asyncio
import websockets

from xcast_simulator.core_application.application import TransitionTimings
from xcast_simulator.core_application.application_registry import ApplicationRegistry

STATE_CHANGED_METHOD = "org.rdk.Xcast.1.onApplicationStateChanged"

FAST_TIMINGS = TransitionTimings(
    launch_delay=0.05,
    hide_delay=0.02,
    stop_delay=0.05,
    state_request_delay=0.01
)


class RecordingNotifier:
    """Collects outbound notification frames."""

    def __init__(self):
        self.messages: List[Dict[str, Any]] = []

    async def __call__(self, message: str):
        self.messages.append(json.loads(message))

    @property
    def states(self) -> List[str]:
        return [message["params"]["state"] for message in self.messages]

    def for_application(self, name: str) -> List[Dict[str, Any]]:
        return [m for m in self.messages if m["params"]["applicationName"] == name]


class FakeController:
    """In-process websocket server standing in for the Thunder Xcast plugin."""

    def __init__(self):
        self.port = None
        self.connections = []
        self.received: asyncio.Queue = asyncio.Queue()

    async def handler(self, websocket):
        self.connections.append(websocket)
        async for message in websocket:
            await self.received.put(json.loads(message))

    async def send(self, payload: Dict[str, Any]):
        await self.connections[-1].send(json.dumps(payload))

    async def next_message(self, timeout: float = 2.0) -> Dict[str, Any]:
        return await asyncio.wait_for(self.received.get(), timeout)

    async def collect(self, count: int, timeout: float = 2.0) -> List[Dict[str, Any]]:
        return [await self.next_message(timeout) for _ in range(count)]


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def registry(notifier) -> ApplicationRegistry:
    """Registry with simulated (shortened) latency."""
    return ApplicationRegistry(
        notifier=notifier,
        notification_method=STATE_CHANGED_METHOD,
        timings=FAST_TIMINGS,
        simulate_latency=True
    )


@pytest.fixture
def immediate_registry(notifier) -> ApplicationRegistry:
    """Registry in instant-response mode."""
    return ApplicationRegistry(
        notifier=notifier,
        notification_method=STATE_CHANGED_METHOD,
        simulate_latency=False
    )


@pytest.fixture
def wait_until() -> Callable:
    """Poll a predicate on the event loop until it holds."""

    async def _wait_until(predicate: Callable[[], bool], timeout: float = 1.0):
        async def _poll():
            while not predicate():
                await asyncio.sleep(0.001)

        await asyncio.wait_for(_poll(), timeout)

    return _wait_until


@pytest_asyncio.fixture
async def fake_controller():
    controller = FakeController()
    async with websockets.serve(controller.handler, "127.0.0.1", 0, subprotocols=["jsonrpc"]) as server:
        controller.port = list(server.sockets)[0].getsockname()[1]
        yield controller
