"""
体验目录服务接口

推荐引擎只通过此接口访问目录：初始化时全量拉取，打分时按 ID 查询，
评分时回写热度聚合。
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from loguru import logger

from app.data.models import ExperienceRecord


class IExperienceCatalog(ABC):
    """目录服务接口"""

    @abstractmethod
    def get_all_experiences(self) -> List[ExperienceRecord]:
        pass

    @abstractmethod
    def get_experience(self, experience_id: str) -> Optional[ExperienceRecord]:
        pass

    @abstractmethod
    def record_rating(self, experience_id: str, rating: int) -> None:
        """把一次评分计入体验的热度聚合（平均分、评价数）"""
        pass


class InMemoryCatalog(IExperienceCatalog):
    """
    进程内目录实现

    用于单机部署与测试；返回的记录都是副本，调用方无法修改目录。
    """

    def __init__(self, records: Iterable[ExperienceRecord] = ()):
        self._lock = threading.Lock()
        self._records: Dict[str, ExperienceRecord] = {r.experience_id: replace(r) for r in records}

    def get_all_experiences(self) -> List[ExperienceRecord]:
        with self._lock:
            return [replace(r) for r in self._records.values()]

    def get_experience(self, experience_id: str) -> Optional[ExperienceRecord]:
        with self._lock:
            record = self._records.get(experience_id)
            return replace(record) if record else None

    def record_rating(self, experience_id: str, rating: int) -> None:
        with self._lock:
            record = self._records.get(experience_id)
            if record is None:
                logger.warning(f"[Catalog] 评分的体验不存在: {experience_id}")
                return
            total = record.rating * record.review_count + rating
            record.review_count += 1
            record.rating = total / record.review_count

    def upsert(self, record: ExperienceRecord) -> None:
        with self._lock:
            self._records[record.experience_id] = replace(record)
