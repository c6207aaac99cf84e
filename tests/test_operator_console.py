"""
Tests for the operator console.
"""
import io
import os

import pytest
from rich.console import Console

from xcast_simulator.core_application.application import Activity, ApplicationState
from xcast_simulator.user_interaction.operator_console import OperatorConsole


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def operator_console(registry, output):
    return OperatorConsole(registry, console=Console(file=output, width=120, color_system=None))


class TestOperatorConsole:

    @pytest.mark.asyncio
    async def test_launch_forces_running(self, operator_console, registry, notifier):
        assert await operator_console.handle_line("launch Netflix\n") is True

        assert registry.get("Netflix").state == ApplicationState.RUNNING
        assert notifier.states == ["running"]

    @pytest.mark.asyncio
    async def test_force_bypasses_transition_rules(self, operator_console, registry):
        await operator_console.handle_line("hide Netflix")
        assert registry.get("Netflix").state == ApplicationState.HIDDEN

        await operator_console.handle_line("STOP Netflix")
        assert registry.get("Netflix").state == ApplicationState.STOPPED

    @pytest.mark.asyncio
    async def test_force_supersedes_in_flight_transition(self, operator_console, registry, notifier, wait_until):
        app = registry.get_or_create("Netflix")
        launched = await app.launch()
        await wait_until(lambda: app.activity == Activity.STARTING)

        await operator_console.handle_line("stop Netflix")

        assert await launched is False
        assert app.state == ApplicationState.STOPPED
        assert notifier.states == ["stopped"]

    @pytest.mark.asyncio
    async def test_dump_prints_registry(self, operator_console, registry, output):
        registry.get_or_create("Netflix", "7")
        await operator_console.handle_line("launch YouTube")

        assert await operator_console.handle_line("dump") is True

        text = output.getvalue()
        assert "Netflix" in text
        assert "YouTube" in text
        assert "running" in text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("line", ["", "   ", "launch", "reboot now"])
    async def test_unrecognized_lines_are_ignored(self, operator_console, registry, line):
        assert await operator_console.handle_line(line) is False
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_run_reads_until_eof(self, operator_console, registry):
        read_fd, write_fd = os.pipe()
        os.write(write_fd, b"launch Netflix\nbogus\nlaunch YouTube\n")
        os.close(write_fd)

        with os.fdopen(read_fd, "rb") as stream:
            await operator_console.run(stream)

        assert registry.get("Netflix").state == ApplicationState.RUNNING
        assert registry.get("YouTube").state == ApplicationState.RUNNING
