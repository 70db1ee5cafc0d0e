"""
画像异步持久化队列

调用方只负责入队，不等待落库；后台 worker 逐条投递到持久化存储，
失败按次数重试（至少一次语义），最终失败只记日志，不影响内存画像。
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from app.data.models import InteractionEvent, UserProfile
from app.data.user_profile_store import IProfileRepository


@dataclass
class PersistJob:
    profile: UserProfile  # 入队时的画像快照
    event: Optional[InteractionEvent] = None


class ProfilePersistenceQueue:
    def __init__(
        self,
        repository: IProfileRepository,
        *,
        max_attempts: int = 3,
        retry_delay_seconds: float = 0.05,
    ):
        self._repository = repository
        self._max_attempts = max(1, int(max_attempts))
        self._retry_delay = float(retry_delay_seconds)
        self._queue: asyncio.Queue[PersistJob] = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self.delivered = 0
        self.failed = 0

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        if self.running:
            return
        self._worker = asyncio.get_running_loop().create_task(self._run(), name="profile-persistence")
        logger.info("[ProfilePersistence] 持久化 worker 已启动")

    def enqueue(self, profile: UserProfile, event: Optional[InteractionEvent] = None) -> None:
        self._queue.put_nowait(PersistJob(profile=profile, event=event))

    def pending(self) -> int:
        return self._queue.qsize()

    async def drain(self) -> None:
        """等待已入队的任务全部投递（成功或最终失败）"""
        if not self.running and not self._queue.empty():
            self.start()
        await self._queue.join()

    async def stop(self) -> None:
        await self.drain()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        logger.info(f"[ProfilePersistence] worker 已停止: delivered={self.delivered}, failed={self.failed}")

    async def _run(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self._deliver(job)
            finally:
                self._queue.task_done()

    async def _deliver(self, job: PersistJob) -> None:
        event_written = job.event is None
        for attempt in range(1, self._max_attempts + 1):
            try:
                if not event_written:
                    await asyncio.to_thread(self._repository.append_interaction, job.event)
                    event_written = True
                await asyncio.to_thread(self._repository.save_profile, job.profile)
                self.delivered += 1
                return
            except Exception as e:
                logger.warning(
                    f"[ProfilePersistence] 保存画像失败: user={job.profile.user_id}, "
                    f"attempt={attempt}/{self._max_attempts}, error={e}"
                )
                if attempt < self._max_attempts:
                    await asyncio.sleep(self._retry_delay * attempt)

        self.failed += 1
        logger.error(f"[ProfilePersistence] 放弃保存画像: user={job.profile.user_id}，等待下一次交互重新落库")
