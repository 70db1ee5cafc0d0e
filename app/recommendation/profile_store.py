"""
进程内画像表

每个用户一把锁：同一用户的更新（加分 + 衰减）相对读取是原子的，
不同用户之间互不阻塞。读取方拿到的永远是深拷贝快照。
"""

from __future__ import annotations

import copy
import threading
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

from app.data.models import UserProfile

T = TypeVar("T")


class ProfileStore:
    def __init__(self) -> None:
        self._profiles: Dict[str, UserProfile] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def load(self, profiles: Iterable[UserProfile]) -> int:
        """
        批量装入持久化画像，返回装入条数

        内存中已存在的用户保持不变（内存画像比持久化数据新）。
        """
        count = 0
        with self._registry_lock:
            for profile in profiles:
                if profile.user_id in self._profiles:
                    continue
                self._profiles[profile.user_id] = copy.deepcopy(profile)
                self._locks.setdefault(profile.user_id, threading.Lock())
                count += 1
        return count

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.Lock()
                self._profiles[user_id] = UserProfile(user_id=user_id)
            return lock

    def update(self, user_id: str, mutate: Callable[[UserProfile], T]) -> T:
        """在用户锁内执行 mutate（不存在则先创建画像）"""
        lock = self._lock_for(user_id)
        with lock:
            return mutate(self._profiles[user_id])

    def snapshot(self, user_id: str) -> Optional[UserProfile]:
        with self._registry_lock:
            lock = self._locks.get(user_id)
        if lock is None:
            return None
        with lock:
            return copy.deepcopy(self._profiles[user_id])

    def snapshot_or_empty(self, user_id: str) -> UserProfile:
        """读取画像快照；未知用户返回空画像但不落表"""
        return self.snapshot(user_id) or UserProfile(user_id=user_id)

    def snapshot_all(self) -> List[UserProfile]:
        with self._registry_lock:
            user_ids = list(self._profiles)
        return [p for p in (self.snapshot(uid) for uid in user_ids) if p is not None]

    def __contains__(self, user_id: object) -> bool:
        with self._registry_lock:
            return user_id in self._profiles

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._profiles)
