"""
体验特征索引

初始化时从目录全量重建，推荐过程中只读。
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, Optional

from loguru import logger

from app.data.models import ExperienceFeatureVector, ExperienceRecord, Location


def price_tier(price: float) -> str:
    if price <= 0:
        return "free"
    if price < 20:
        return "low"
    if price < 50:
        return "medium"
    return "high"


def region_of(location: Optional[Location]) -> str:
    if location is None:
        return "unknown"
    return location.state or location.country or "unknown"


def to_feature_vector(record: ExperienceRecord) -> ExperienceFeatureVector:
    return ExperienceFeatureVector(
        experience_id=record.experience_id,
        category=record.category,
        price=float(record.price or 0.0),
        price_tier=price_tier(float(record.price or 0.0)),
        location_region=region_of(record.location),
        rating=float(record.rating or 0.0),
        accessibility_tags=tuple(record.accessibility_tags or ()),
        duration_minutes=int(record.duration_minutes or 0),
        indoor=bool(record.indoor),
        family_friendly=bool(record.family_friendly),
    )


class FeatureIndex:
    def __init__(self) -> None:
        self._vectors: Dict[str, ExperienceFeatureVector] = {}

    def build(self, records: Iterable[ExperienceRecord]) -> int:
        """整体替换索引，返回索引条数"""
        vectors = {r.experience_id: to_feature_vector(r) for r in records}
        self._vectors = vectors
        logger.info(f"[FeatureIndex] 特征索引构建完成: {len(vectors)} 个体验")
        return len(vectors)

    def get(self, experience_id: str) -> Optional[ExperienceFeatureVector]:
        return self._vectors.get(experience_id)

    def ids(self) -> list[str]:
        return list(self._vectors)

    def vectors(self) -> Iterator[ExperienceFeatureVector]:
        return iter(list(self._vectors.values()))

    def __contains__(self, experience_id: object) -> bool:
        return experience_id in self._vectors

    def __len__(self) -> int:
        return len(self._vectors)
