"""
交互记录器

接收交互事件，更新画像（加分 + 时间衰减），追加到有界交互日志，
并把画像快照交给持久化队列。
"""

from __future__ import annotations

import copy
import threading
from collections import Counter, deque
from datetime import datetime
from typing import Any, Deque, Dict, Iterable, List, Mapping, Optional

from loguru import logger

from app.core.exceptions import InvalidInteractionError
from app.data.models import InteractionEvent, InteractionType, UserProfile
from app.recommendation.persistence import ProfilePersistenceQueue
from app.recommendation.profile_store import ProfileStore

INTERACTION_WEIGHTS: Dict[InteractionType, float] = {
    InteractionType.VIEW: 0.1,
    InteractionType.LIKE: 0.3,
    InteractionType.SAVE: 0.5,
    InteractionType.SHARE: 0.4,
    InteractionType.BOOK: 0.8,
    InteractionType.RATE: 0.6,
    InteractionType.REVIEW: 0.7,
}


def parse_interaction_type(value: Any) -> InteractionType:
    if isinstance(value, InteractionType):
        return value
    try:
        return InteractionType(str(value).strip().lower())
    except ValueError:
        raise InvalidInteractionError(f"未知的交互类型: {value!r}") from None


def interaction_weight(interaction_type: InteractionType) -> float:
    return INTERACTION_WEIGHTS[interaction_type]


def apply_interaction(
    profile: UserProfile,
    event: InteractionEvent,
    *,
    learning_rate: float,
    decay_factor: float,
) -> None:
    """
    把一次交互作用到画像上（调用方负责加锁）

    目标体验: score = min(1, score + weight * learning_rate)
    其余体验: score *= decay_factor
    """
    target = event.experience_id
    increment = interaction_weight(event.interaction_type) * learning_rate

    for exp_id, score in profile.preferences.items():
        if exp_id != target:
            profile.preferences[exp_id] = score * decay_factor

    current = profile.preferences.get(target, 0.0)
    profile.preferences[target] = max(0.0, min(1.0, current + increment))

    profile.interaction_count += 1
    profile.last_active = event.timestamp


class InteractionRecorder:
    def __init__(
        self,
        profile_store: ProfileStore,
        persistence: Optional[ProfilePersistenceQueue] = None,
        *,
        learning_rate: float = 0.1,
        decay_factor: float = 0.95,
        log_size: int = 10000,
    ):
        self._profiles = profile_store
        self._persistence = persistence
        self._learning_rate = learning_rate
        self._decay_factor = decay_factor
        self._log: Deque[InteractionEvent] = deque(maxlen=max(1, log_size))
        self._log_lock = threading.Lock()

    def record(
        self,
        user_id: str,
        experience_id: str,
        interaction_type: Any,
        context: Optional[Mapping[str, Any]] = None,
        *,
        rating: Optional[int] = None,
        timestamp: Optional[datetime] = None,
    ) -> UserProfile:
        """记录一次交互，返回更新后的画像快照"""
        if not user_id or not experience_id:
            raise InvalidInteractionError("user_id 与 experience_id 不能为空")

        event = InteractionEvent(
            user_id=user_id,
            experience_id=experience_id,
            interaction_type=parse_interaction_type(interaction_type),
            timestamp=timestamp or datetime.now(),
            context=dict(context or {}),
            rating=rating,
        )

        def _mutate(profile: UserProfile) -> UserProfile:
            apply_interaction(
                profile,
                event,
                learning_rate=self._learning_rate,
                decay_factor=self._decay_factor,
            )
            return copy.deepcopy(profile)

        snapshot = self._profiles.update(user_id, _mutate)

        with self._log_lock:
            self._log.append(event)

        if self._persistence is not None:
            self._persistence.enqueue(snapshot, event)

        logger.debug(
            f"[InteractionRecorder] 记录交互: user={user_id}, exp={experience_id}, "
            f"type={event.interaction_type.value}, score={snapshot.preferences[experience_id]:.3f}"
        )
        return snapshot

    def load_history(self, events: Iterable[InteractionEvent]) -> int:
        events = list(events)
        with self._log_lock:
            self._log.extend(events)
        return len(events)

    def recent_interactions(self, user_id: Optional[str] = None, limit: Optional[int] = None) -> List[InteractionEvent]:
        with self._log_lock:
            events = [e for e in self._log if user_id is None or e.user_id == user_id]
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events

    def interaction_breakdown(self, user_id: str) -> Dict[str, int]:
        counts = Counter(e.interaction_type.value for e in self.recent_interactions(user_id))
        return dict(counts)
