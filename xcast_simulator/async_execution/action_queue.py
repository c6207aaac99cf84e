"""
Per-application action queue
每个应用实体一个FIFO动作队列，保证同一实体上的定时动作按接收顺序串行执行
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Action = Callable[[], Awaitable[Any]]


class ActionQueue:
    """串行动作队列"""

    def __init__(self, owner: str):
        self.owner = owner
        self.active_action: Optional[str] = None
        self.completed_count = 0
        self.failed_count = 0
        self._queue: asyncio.Queue = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None

    def submit(self, name: str, action: Action) -> asyncio.Future:
        """
        将动作追加到队尾

        Returns:
            asyncio.Future: 动作执行完毕后以其返回值完成
        """
        future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((name, action, future))
        logger.debug(f"📥 {self.owner}: queued {name} (pending: {self._queue.qsize()})")

        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run())
        return future

    @property
    def pending(self) -> int:
        """尚未开始执行的动作数"""
        return self._queue.qsize()

    def is_idle(self) -> bool:
        return self.active_action is None and self._queue.empty()

    async def join(self):
        """等待队列中所有动作执行完毕"""
        await self._queue.join()

    async def _run(self):
        """动作执行循环"""
        while True:
            name, action, future = await self._queue.get()
            self.active_action = name
            try:
                result = await action()
                self.completed_count += 1
                if not future.done():
                    future.set_result(result)
            except asyncio.CancelledError:
                if not future.done():
                    future.cancel()
                raise
            except Exception as e:
                self.failed_count += 1
                logger.error(f"❌ {self.owner}: action {name} failed: {e}")
                if not future.done():
                    future.set_result(False)
            finally:
                self.active_action = None
                self._queue.task_done()

    async def close(self):
        """停止执行循环并取消未执行的动作"""
        if self._worker:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

        while not self._queue.empty():
            _, _, future = self._queue.get_nowait()
            future.cancel()
            self._queue.task_done()
