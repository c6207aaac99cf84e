"""
Xcast 消息通道
Xcast Message Channel

到设备上Thunder Xcast插件的WebSocket通道：
- 使用jsonrpc子协议连接，每次连上后调用 on_connected (事件注册)
- 入站文本帧交给 on_message
- 出站帧经发送队列串行写出，drain() 等待队列清空
- 断线或连接失败时按指数退避重试，直到 max_retries
"""
import asyncio
import contextlib
import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

logger = logging.getLogger(__name__)

# 连接失败时视为可重试的异常
RETRYABLE_ERRORS = (OSError, asyncio.TimeoutError, WebSocketException)


class ConnectionState(str, Enum):
    """通道状态"""
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    BACKING_OFF = "backing_off"
    FAILED = "failed"
    CLOSED = "closed"


@dataclass
class ChannelCounters:
    """通道计数，供 /health 报告"""
    connects: int = 0
    failed_attempts: int = 0
    frames_in: int = 0
    frames_out: int = 0
    frames_dropped: int = 0


class XcastConnection:
    """到Xcast插件的WebSocket消息通道"""

    def __init__(
        self,
        url: str,
        subprotocol: str = "jsonrpc",
        max_retries: int = 10,
        initial_retry_delay: float = 1.0,
        max_retry_delay: float = 60.0,
        backoff_multiplier: float = 2.0,
        ping_interval: Optional[float] = 30.0,
        ping_timeout: Optional[float] = 20.0,
        connection_timeout: float = 10.0
    ):
        self.url = url
        self.subprotocol = subprotocol
        self.max_retries = max_retries
        self.initial_retry_delay = initial_retry_delay
        self.max_retry_delay = max_retry_delay
        self.backoff_multiplier = backoff_multiplier
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self.connection_timeout = connection_timeout

        self.state = ConnectionState.IDLE
        self.counters = ChannelCounters()

        self.on_connected: Optional[Callable[[], Awaitable[None]]] = None
        self.on_message: Optional[Callable[[str], Awaitable[Any]]] = None

        self._socket = None
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._runner: Optional[asyncio.Task] = None
        self._first_attempt_done = asyncio.Event()
        self._closing = False

    @property
    def runner(self) -> Optional[asyncio.Task]:
        """后台连接任务"""
        return self._runner

    @property
    def pending_frames(self) -> int:
        return self._outbox.qsize()

    def is_connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED

    def retry_delay(self, attempt: int) -> float:
        """第 attempt 次重试前的等待时间(秒)"""
        return min(self.initial_retry_delay * self.backoff_multiplier ** attempt, self.max_retry_delay)

    async def connect(self, wait_timeout: float = 30.0) -> bool:
        """
        启动后台连接任务，等待第一次连接尝试的结果

        Returns:
            bool: 第一次尝试是否连上；失败时后台继续按退避重试
        """
        if self._runner and not self._runner.done():
            logger.warning("⚠️ 通道已在运行")
            return self.is_connected()

        self._closing = False
        self._first_attempt_done.clear()
        self._runner = asyncio.create_task(self._run())
        try:
            await asyncio.wait_for(self._first_attempt_done.wait(), timeout=wait_timeout)
        except asyncio.TimeoutError:
            logger.error(f"❌ {wait_timeout}s 内未连上 {self.url}")
        return self.is_connected()

    async def disconnect(self):
        """关闭通道并停止重连"""
        self._closing = True
        if self._socket is not None:
            await self._socket.close()
        if self._runner:
            self._runner.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._runner
        self._set_state(ConnectionState.CLOSED)
        logger.info("🔌 通道已关闭")

    async def send_message(self, message: str):
        """排队一个出站帧；未连接时丢弃"""
        if not self.is_connected():
            self.counters.frames_dropped += 1
            logger.warning(f"⚠️ not connected, dropping frame: {message}")
            return
        await self._outbox.put(message)

    async def drain(self, timeout: float) -> bool:
        """等待发送队列中的帧全部写出"""
        try:
            await asyncio.wait_for(self._outbox.join(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"⚠️ {self.pending_frames} frame(s) still queued after {timeout}s")
            return False

    def status(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "state": self.state.value,
            "pending_frames": self.pending_frames,
            **asdict(self.counters),
        }

    # ==================== 内部实现 ====================

    def _set_state(self, state: ConnectionState):
        if state != self.state:
            logger.info(f"🔄 channel {self.state.value} → {state.value}")
            self.state = state

    async def _run(self):
        attempt = 0
        while not self._closing:
            self._set_state(ConnectionState.CONNECTING)
            logger.info(f"about to connect to {self.url}")
            try:
                socket = await websockets.connect(
                    self.url,
                    subprotocols=[self.subprotocol],
                    ping_interval=self.ping_interval,
                    ping_timeout=self.ping_timeout,
                    open_timeout=self.connection_timeout
                )
            except RETRYABLE_ERRORS as e:
                self.counters.failed_attempts += 1
                logger.error(f"❌ connect failed: {e!r}")
                if attempt >= self.max_retries:
                    logger.error(f"❌ giving up after {attempt + 1} attempt(s)")
                    self._set_state(ConnectionState.FAILED)
                    self._first_attempt_done.set()
                    return
                self._set_state(ConnectionState.BACKING_OFF)
                self._first_attempt_done.set()
                await asyncio.sleep(self.retry_delay(attempt))
                attempt += 1
                continue

            attempt = 0
            await self._serve(socket)
            if not self._closing:
                # 对端断开: 稍等后重新连接并重新注册
                await asyncio.sleep(self.retry_delay(0))

    async def _serve(self, socket):
        """在一条已建立的连接上收发，直到连接关闭"""
        self._socket = socket
        self.counters.connects += 1
        self._set_state(ConnectionState.CONNECTED)
        logger.info("✅ Connected!")
        writer = asyncio.create_task(self._write_frames(socket))
        try:
            if self.on_connected:
                await self._invoke(self.on_connected)
            self._first_attempt_done.set()

            async for frame in socket:
                self.counters.frames_in += 1
                if self.on_message:
                    await self._invoke(self.on_message, frame)
        except ConnectionClosed as e:
            logger.warning(f"🔴 connection closed: {e}")
        finally:
            if not self._closing:
                self._set_state(ConnectionState.BACKING_OFF)
            writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await writer
            self._socket = None

    async def _write_frames(self, socket):
        while True:
            frame = await self._outbox.get()
            try:
                await socket.send(frame)
                self.counters.frames_out += 1
                logger.debug(f"📤 {frame}")
            except ConnectionClosed:
                self.counters.frames_dropped += 1
                logger.warning(f"⚠️ connection closed, dropping frame: {frame}")
                return
            finally:
                self._outbox.task_done()

    @staticmethod
    async def _invoke(callback, *args):
        try:
            await callback(*args)
        except Exception as e:
            logger.error(f"❌ channel callback {getattr(callback, '__name__', callback)} failed: {e}")
