from __future__ import annotations

import threading
from datetime import date
from typing import List, Optional

from app.data.models import ExperienceRecord, InteractionEvent, Location, UserProfile
from app.data.user_profile_store import IProfileRepository


def make_record(
    experience_id: str,
    *,
    category: str = "museum",
    price: float = 10.0,
    state: Optional[str] = "CA",
    latitude: Optional[float] = 34.05,
    longitude: Optional[float] = -118.25,
    rating: float = 4.0,
    views: int = 0,
    bookings: int = 0,
    review_count: int = 0,
    accessibility_tags: Optional[List[str]] = None,
    available_from: Optional[date] = None,
    available_until: Optional[date] = None,
) -> ExperienceRecord:
    return ExperienceRecord(
        experience_id=experience_id,
        name=experience_id.replace("-", " ").title(),
        category=category,
        price=price,
        location=Location(latitude=latitude, longitude=longitude, state=state, country="US"),
        rating=rating,
        views=views,
        bookings=bookings,
        review_count=review_count,
        accessibility_tags=list(accessibility_tags or []),
        available_from=available_from,
        available_until=available_until,
    )


class InMemoryProfileRepository(IProfileRepository):
    """测试用画像存储，可配置前 N 次保存失败"""

    def __init__(self, profiles: Optional[List[UserProfile]] = None, fail_saves: int = 0, fail_loads: bool = False):
        self._lock = threading.Lock()
        self.profiles = {p.user_id: p for p in (profiles or [])}
        self.events: List[InteractionEvent] = []
        self.fail_saves = fail_saves
        self.fail_loads = fail_loads
        self.save_attempts = 0

    def load_all_profiles(self) -> List[UserProfile]:
        if self.fail_loads:
            raise ConnectionError("profile store unavailable")
        return list(self.profiles.values())

    def save_profile(self, profile: UserProfile) -> None:
        with self._lock:
            self.save_attempts += 1
            if self.fail_saves > 0:
                self.fail_saves -= 1
                raise ConnectionError("save failed")
            self.profiles[profile.user_id] = profile

    def load_interaction_history(self, limit: int) -> List[InteractionEvent]:
        return self.events[-limit:]

    def append_interaction(self, event: InteractionEvent) -> None:
        with self._lock:
            self.events.append(event)
