from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class InteractionType(str, Enum):
    VIEW = "view"
    LIKE = "like"
    SAVE = "save"
    SHARE = "share"
    BOOK = "book"
    RATE = "rate"
    REVIEW = "review"


@dataclass
class ExplicitPreferences:
    """用户主动声明的偏好，只在冷启动时被内容推荐使用"""
    categories: List[str] = field(default_factory=list)
    budget_band: Optional[str] = None  # free / low / medium / high
    accessibility_needs: List[str] = field(default_factory=list)
    regions: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.categories or self.budget_band or self.regions)


@dataclass
class UserProfile:
    user_id: str
    preferences: Dict[str, float] = field(default_factory=dict)  # experience_id -> [0, 1]
    interaction_count: int = 0
    last_active: datetime = field(default_factory=datetime.now)
    explicit_preferences: ExplicitPreferences = field(default_factory=ExplicitPreferences)


@dataclass(frozen=True)
class InteractionEvent:
    user_id: str
    experience_id: str
    interaction_type: InteractionType
    timestamp: datetime = field(default_factory=datetime.now)
    context: Mapping[str, Any] = field(default_factory=dict)
    rating: Optional[int] = None


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Location:
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    state: Optional[str] = None
    country: Optional[str] = None

    def point(self) -> Optional[GeoPoint]:
        if self.latitude is None or self.longitude is None:
            return None
        return GeoPoint(self.latitude, self.longitude)


@dataclass
class ExperienceRecord:
    """目录服务返回的体验记录（含热度聚合指标）"""
    experience_id: str
    name: str = ""
    category: str = "unknown"
    price: float = 0.0
    location: Optional[Location] = None
    rating: float = 0.0
    views: int = 0
    bookings: int = 0
    review_count: int = 0
    accessibility_tags: List[str] = field(default_factory=list)
    duration_minutes: int = 0
    indoor: bool = False
    family_friendly: bool = False
    available_from: Optional[date] = None
    available_until: Optional[date] = None


@dataclass(frozen=True)
class ExperienceFeatureVector:
    experience_id: str
    category: str
    price: float
    price_tier: str
    location_region: str
    rating: float
    accessibility_tags: tuple = ()
    duration_minutes: int = 0
    indoor: bool = False
    family_friendly: bool = False


@dataclass
class ScoredCandidate:
    """单路打分器输出的候选"""
    experience_id: str
    score: float
    algorithm: str
    explanation: str = ""


@dataclass
class RecommendationItem:
    experience_id: str
    blended_score: float
    confidence: float
    contributing_algorithms: List[str] = field(default_factory=list)
    explanation: str = ""
    category: Optional[str] = None
    algorithm_scores: Dict[str, float] = field(default_factory=dict)  # 未加权的原始分数


@dataclass
class ModelWeights:
    collaborative: float = 0.4
    content_based: float = 0.4
    popularity: float = 0.2

    def for_algorithm(self, algorithm: str) -> float:
        return {
            "collaborative": self.collaborative,
            "content_based": self.content_based,
            "popularity": self.popularity,
        }.get(algorithm, 0.0)


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date


@dataclass
class RecommendationContext:
    location: Optional[GeoPoint] = None
    radius: Optional[float] = None  # 英里
    date_range: Optional[DateRange] = None
    budget: Optional[float] = None

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Any]]) -> "RecommendationContext":
        """
        从自由格式的字典构造上下文

        支持 location={"latitude", "longitude"}、radius、
        date_range={"start", "end"}（date 或 ISO 字符串）、budget。
        """
        if not raw:
            return cls()
        if isinstance(raw, RecommendationContext):
            return raw

        location = None
        loc = raw.get("location")
        if isinstance(loc, GeoPoint):
            location = loc
        elif isinstance(loc, Mapping) and loc.get("latitude") is not None and loc.get("longitude") is not None:
            location = GeoPoint(float(loc["latitude"]), float(loc["longitude"]))

        date_range = None
        dr = raw.get("date_range")
        if isinstance(dr, DateRange):
            date_range = dr
        elif isinstance(dr, Mapping) and dr.get("start") and dr.get("end"):
            date_range = DateRange(_as_date(dr["start"]), _as_date(dr["end"]))

        radius = raw.get("radius")
        budget = raw.get("budget")
        return cls(
            location=location,
            radius=float(radius) if radius is not None else None,
            date_range=date_range,
            budget=float(budget) if budget is not None else None,
        )


@dataclass
class PersonalizationSummary:
    user_id: str
    level: float
    description: str
    data_points: int
    top_category: Optional[str] = None
    interaction_breakdown: Dict[str, int] = field(default_factory=dict)


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))
