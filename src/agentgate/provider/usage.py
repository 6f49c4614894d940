"""UsageRecorder -- 用量记录的异步写入器

record() 只把记录放入有界队列，不等待持久层；后台写入任务负责落库。
写入失败只记录日志，永远不会影响生成请求。
"""

import asyncio
import contextlib

import structlog
from agentgate.core.models import UsageRecord
from agentgate.core.store import UsageStore

log = structlog.get_logger()


class UsageRecorder:
    """尽力而为的用量记录器

    生命周期: start() 启动后台写入 -> record() 入队 -> stop() 排空队列并停止。
    start() 之前入队的记录会在启动后写入，也可以通过 flush() 直接排空。
    """

    def __init__(self, store: UsageStore, max_queue_size: int = 1000) -> None:
        """
        Args:
            store: 用量存储
            max_queue_size: 队列容量，满时丢弃新记录并告警
        """
        self._store = store
        self._queue: asyncio.Queue[UsageRecord] = asyncio.Queue(maxsize=max_queue_size)
        self._writer: asyncio.Task | None = None
        self._dropped = 0

    @property
    def dropped_count(self) -> int:
        """因队列已满被丢弃的记录数"""
        return self._dropped

    @property
    def pending_count(self) -> int:
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        return self._writer is not None and not self._writer.done()

    def record(self, record: UsageRecord) -> None:
        """入队一条用量记录（非阻塞，不抛异常）"""
        try:
            self._queue.put_nowait(record)
        except asyncio.QueueFull:
            self._dropped += 1
            log.warning(
                "usage_record_dropped",
                usage_id=record.usage_id,
                agent_id=record.agent_id,
                provider=record.provider,
                status=record.status.value,
                dropped_total=self._dropped,
            )

    async def start(self) -> None:
        """启动后台写入任务（重复调用无副作用）"""
        if self.running:
            return
        self._writer = asyncio.create_task(self._run(), name="usage-recorder")
        log.info("usage_recorder_started", pending=self.pending_count)

    async def flush(self) -> None:
        """等待队列中所有记录写入完成"""
        if self.running:
            await self._queue.join()
            return
        # 后台任务未运行：在当前协程内直接排空
        while not self._queue.empty():
            record = self._queue.get_nowait()
            try:
                await self._persist(record)
            finally:
                self._queue.task_done()

    async def stop(self) -> None:
        """排空队列并停止后台写入任务"""
        await self.flush()
        if self._writer is not None:
            self._writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._writer
            self._writer = None
        log.info("usage_recorder_stopped", dropped_total=self._dropped)

    async def _run(self) -> None:
        while True:
            record = await self._queue.get()
            try:
                await self._persist(record)
            finally:
                self._queue.task_done()

    async def _persist(self, record: UsageRecord) -> None:
        try:
            await self._store.append_usage(record)
        except Exception as e:
            log.error(
                "usage_record_persist_failed",
                usage_id=record.usage_id,
                agent_id=record.agent_id,
                provider=record.provider,
                status=record.status.value,
                error=str(e),
                error_type=type(e).__name__,
            )
