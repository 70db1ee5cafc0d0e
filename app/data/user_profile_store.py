"""
画像持久化存储

进程内的画像表是权威数据；这里的存储只负责跨进程重启的持久化。
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.database import Base, SessionLocal
from app.data.models import ExplicitPreferences, InteractionEvent, InteractionType, UserProfile
from app.data.sql_models import InteractionRecord, UserProfileRecord


class IProfileRepository(ABC):
    """持久化画像存储接口"""

    @abstractmethod
    def load_all_profiles(self) -> List[UserProfile]:
        pass

    @abstractmethod
    def save_profile(self, profile: UserProfile) -> None:
        pass

    @abstractmethod
    def load_interaction_history(self, limit: int) -> List[InteractionEvent]:
        """按时间正序返回最近 limit 条交互"""
        pass

    @abstractmethod
    def append_interaction(self, event: InteractionEvent) -> None:
        pass


class SqlProfileRepository(IProfileRepository):
    def __init__(self, session_factory: Optional[sessionmaker] = None, bind: Optional[Engine] = None):
        self._session_factory = session_factory or SessionLocal
        # 确保表存在
        Base.metadata.create_all(bind=bind or self._session_factory.kw["bind"])

    def load_all_profiles(self) -> List[UserProfile]:
        db: Session = self._session_factory()
        try:
            rows = db.execute(select(UserProfileRecord)).scalars().all()
            return [_to_profile(row) for row in rows]
        finally:
            db.close()

    def save_profile(self, profile: UserProfile) -> None:
        db: Session = self._session_factory()
        try:
            row = db.get(UserProfileRecord, profile.user_id)
            if row is None:
                row = UserProfileRecord(user_id=profile.user_id)
                db.add(row)

            row.preferences = dict(profile.preferences)
            row.interaction_count = profile.interaction_count
            row.last_active = profile.last_active
            row.explicit_preferences = _explicit_to_dict(profile.explicit_preferences)

            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"[ProfileRepository] 保存画像失败: user={profile.user_id}, error={e}")
            raise
        finally:
            db.close()

    def load_interaction_history(self, limit: int) -> List[InteractionEvent]:
        if limit <= 0:
            return []
        db: Session = self._session_factory()
        try:
            stmt = select(InteractionRecord).order_by(InteractionRecord.id.desc()).limit(limit)
            rows = db.execute(stmt).scalars().all()
            events = []
            for row in reversed(rows):
                try:
                    events.append(_to_event(row))
                except ValueError:
                    logger.warning(f"[ProfileRepository] 跳过无法解析的交互记录: id={row.id}")
            return events
        finally:
            db.close()

    def append_interaction(self, event: InteractionEvent) -> None:
        db: Session = self._session_factory()
        try:
            db.add(
                InteractionRecord(
                    user_id=event.user_id,
                    experience_id=event.experience_id,
                    interaction_type=event.interaction_type.value,
                    timestamp=event.timestamp,
                    context=_jsonable(event.context),
                    rating=event.rating,
                )
            )
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"[ProfileRepository] 写入交互日志失败: user={event.user_id}, error={e}")
            raise
        finally:
            db.close()


def _to_profile(row: UserProfileRecord) -> UserProfile:
    explicit = row.explicit_preferences or {}
    return UserProfile(
        user_id=row.user_id,
        preferences={k: float(v) for k, v in (row.preferences or {}).items()},
        interaction_count=row.interaction_count or 0,
        last_active=row.last_active or datetime.now(),
        explicit_preferences=ExplicitPreferences(
            categories=list(explicit.get("categories") or []),
            budget_band=explicit.get("budget_band"),
            accessibility_needs=list(explicit.get("accessibility_needs") or []),
            regions=list(explicit.get("regions") or []),
        ),
    )


def _to_event(row: InteractionRecord) -> InteractionEvent:
    return InteractionEvent(
        user_id=row.user_id,
        experience_id=row.experience_id,
        interaction_type=InteractionType(row.interaction_type),
        timestamp=row.timestamp,
        context=row.context or {},
        rating=row.rating,
    )


def _explicit_to_dict(explicit: ExplicitPreferences) -> Dict[str, Any]:
    return {
        "categories": list(explicit.categories),
        "budget_band": explicit.budget_band,
        "accessibility_needs": list(explicit.accessibility_needs),
        "regions": list(explicit.regions),
    }


def _jsonable(context: Mapping[str, Any]) -> Dict[str, Any]:
    # 上下文是自由格式，日期等对象统一转成字符串
    return json.loads(json.dumps(dict(context or {}), default=str))
