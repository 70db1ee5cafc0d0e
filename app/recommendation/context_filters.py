"""
请求上下文过滤

按 地理半径 -> 日期可用性 -> 预算 的顺序执行，谓词所需数据均来自目录查询。
目录中查不到的体验在任何激活的过滤器上都不通过。
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence, TypeVar

from loguru import logger

from app.data.models import DateRange, ExperienceRecord, GeoPoint, RecommendationContext

EARTH_RADIUS_MILES = 3959.0

T = TypeVar("T")


def haversine_miles(a: GeoPoint, b: GeoPoint) -> float:
    d_lat = math.radians(b.latitude - a.latitude)
    d_lon = math.radians(b.longitude - a.longitude)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.latitude)) * math.cos(math.radians(b.latitude)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


class IContextFilter(ABC):
    name: str = "base"

    @abstractmethod
    def accepts(self, record: Optional[ExperienceRecord]) -> bool:
        pass


class RadiusFilter(IContextFilter):
    name = "radius"

    def __init__(self, center: GeoPoint, radius_miles: float):
        self.center = center
        self.radius_miles = radius_miles

    def accepts(self, record: Optional[ExperienceRecord]) -> bool:
        if record is None or record.location is None:
            return False
        point = record.location.point()
        if point is None:
            return False
        return haversine_miles(self.center, point) <= self.radius_miles


class DateRangeFilter(IContextFilter):
    name = "date_range"

    def __init__(self, date_range: DateRange):
        self.date_range = date_range

    def accepts(self, record: Optional[ExperienceRecord]) -> bool:
        if record is None:
            return False
        # 未设置开放期的体验视为全年可用
        if record.available_from is not None and record.available_from > self.date_range.end:
            return False
        if record.available_until is not None and record.available_until < self.date_range.start:
            return False
        return True


class BudgetFilter(IContextFilter):
    name = "budget"

    def __init__(self, budget: float):
        self.budget = budget

    def accepts(self, record: Optional[ExperienceRecord]) -> bool:
        if record is None:
            return False
        return float(record.price or 0.0) <= self.budget


def build_context_filters(context: RecommendationContext, default_radius_miles: float = 100.0) -> List[IContextFilter]:
    filters: List[IContextFilter] = []
    if context.location is not None:
        radius = context.radius if context.radius is not None else default_radius_miles
        filters.append(RadiusFilter(context.location, radius))
    if context.date_range is not None:
        filters.append(DateRangeFilter(context.date_range))
    if context.budget is not None:
        filters.append(BudgetFilter(context.budget))
    return filters


def accepts_all(filters: Sequence[IContextFilter], record: Optional[ExperienceRecord]) -> bool:
    return all(f.accepts(record) for f in filters)


def apply_context_filters(
    items: List[T],
    filters: Sequence[IContextFilter],
    key: Callable[[T], str],
    lookup: Callable[[str], Optional[ExperienceRecord]],
) -> List[T]:
    """依次执行过滤器，保持输入顺序"""
    if not filters:
        return items

    records = {}
    result = items
    for context_filter in filters:
        before = len(result)
        kept = []
        for item in result:
            exp_id = key(item)
            if exp_id not in records:
                records[exp_id] = lookup(exp_id)
            if context_filter.accepts(records[exp_id]):
                kept.append(item)
        result = kept
        if before != len(result):
            logger.debug(f"[ContextFilter] {context_filter.name}: 移除 {before - len(result)} 条")
    return result
