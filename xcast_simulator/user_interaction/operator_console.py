#!/usr/bin/env python3
"""
操作员控制台
Operator Console

从标准输入读取行命令，直接强制设置应用状态（绕过转换规则）：
  launch <name>   强制为 running
  hide <name>     强制为 hidden
  stop <name>     强制为 stopped
  dump            打印注册表
  help            显示命令列表
"""
import asyncio
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.table import Table

from xcast_simulator.core_application.application import ApplicationState
from xcast_simulator.core_application.application_registry import ApplicationRegistry

logger = logging.getLogger(__name__)

FORCE_COMMANDS = {
    "launch": ApplicationState.RUNNING,
    "hide": ApplicationState.HIDDEN,
    "stop": ApplicationState.STOPPED,
}

STATE_COLORS = {
    ApplicationState.RUNNING.value: "green",
    ApplicationState.HIDDEN.value: "yellow",
    ApplicationState.STOPPED.value: "red",
}


class OperatorConsole:
    """行命令控制台"""

    def __init__(
        self,
        registry: ApplicationRegistry,
        console: Optional[Console] = None,
        notify_on_force: bool = True
    ):
        self.registry = registry
        self.console = console or Console()
        self.notify_on_force = notify_on_force

    async def run(self, stream=None):
        """读取命令直到EOF"""
        stream = stream or sys.stdin
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)
        try:
            await loop.connect_read_pipe(lambda: protocol, stream)
        except (ValueError, OSError) as e:
            logger.warning(f"⚠️ 控制台不可用: {e}")
            return

        logger.info("🖥️ 操作员控制台已启动 (输入 help 查看命令)")
        while True:
            line = await reader.readline()
            if not line:
                logger.info("🛑 控制台输入结束")
                break
            await self.handle_line(line.decode(errors="replace"))

    async def handle_line(self, line: str) -> bool:
        """处理一行命令，返回是否被识别"""
        parts = line.split()
        if not parts:
            return False

        command, args = parts[0].lower(), parts[1:]

        if command in FORCE_COMMANDS:
            if not args:
                logger.warning(f"⚠️ {command} 缺少应用名称")
                return False
            application = self.registry.get_or_create(args[0])
            await application.force_state(FORCE_COMMANDS[command], notify=self.notify_on_force)
            return True

        if command == "dump":
            self.console.print(self.create_registry_table())
            return True

        if command == "help":
            self.console.print(__doc__)
            return True

        logger.warning(f"⚠️ unknown command: {line.strip()}")
        return False

    def create_registry_table(self) -> Table:
        """创建注册表表格"""
        table = Table(title=f"📋 Applications ({len(self.registry)})")
        table.add_column("应用名称", style="cyan")
        table.add_column("ID", style="dim")
        table.add_column("状态")
        table.add_column("活动", style="yellow")
        table.add_column("通知序号", style="magenta", justify="right")
        table.add_column("排队动作", style="blue", justify="right")

        for entry in self.registry.snapshot():
            color = STATE_COLORS.get(entry["state"], "white")
            table.add_row(
                entry["applicationName"],
                entry["applicationId"] or "-",
                f"[{color}]{entry['state']}[/{color}]",
                entry["activity"] or "-",
                str(entry["notificationSequence"]),
                str(entry["pendingActions"]),
            )
        return table
