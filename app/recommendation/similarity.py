"""
相似度计算

- 用户相似度（协同信号）：共同体验上的 Pearson 相关系数
- 用户-特征相似度（内容信号）：用户特征偏好分布与体验特征向量的加权匹配
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple

from loguru import logger

from app.data.models import ExperienceFeatureVector, UserProfile
from app.recommendation.feature_index import FeatureIndex

CATEGORY_WEIGHT = 0.4
PRICE_TIER_WEIGHT = 0.2
REGION_WEIGHT = 0.3
ACCESSIBILITY_WEIGHT = 0.1

MIN_COMMON_EXPERIENCES = 2


def pearson_correlation(xs: Sequence[float], ys: Sequence[float]) -> float:
    """
    Pearson 相关系数

    Returns:
        [-1, 1] 之间的相关系数；向量为空时返回 0。
        任一方差为 0 时相关系数无定义：两向量逐项相同返回 1，否则返回 0
    """
    n = len(xs)
    if n == 0 or n != len(ys):
        return 0.0

    identical = all(math.isclose(x, y, rel_tol=1e-9, abs_tol=1e-12) for x, y in zip(xs, ys))

    sum1 = sum(xs)
    sum2 = sum(ys)
    sum1_sq = sum(x * x for x in xs)
    sum2_sq = sum(y * y for y in ys)
    p_sum = sum(x * y for x, y in zip(xs, ys))

    num = p_sum - (sum1 * sum2 / n)
    den = math.sqrt(max(sum1_sq - sum1 * sum1 / n, 0.0) * max(sum2_sq - sum2 * sum2 / n, 0.0))
    if den == 0:
        return 1.0 if identical else 0.0
    if identical:
        return 1.0
    return max(-1.0, min(1.0, num / den))


def user_similarity(profile1: UserProfile, profile2: UserProfile) -> float:
    """共同体验少于 2 个时信号不足，相似度为 0"""
    common = [exp_id for exp_id in profile1.preferences if exp_id in profile2.preferences]
    if len(common) < MIN_COMMON_EXPERIENCES:
        return 0.0
    xs = [profile1.preferences[exp_id] for exp_id in common]
    ys = [profile2.preferences[exp_id] for exp_id in common]
    return pearson_correlation(xs, ys)


def find_similar_users(
    target: UserProfile,
    profiles: Iterable[UserProfile],
    *,
    threshold: float = 0.3,
    limit: int = 50,
) -> List[Tuple[UserProfile, float]]:
    """
    查找与目标用户相似的用户

    Args:
        target: 目标用户画像
        profiles: 候选用户画像
        threshold: 相似度阈值（严格大于才保留）
        limit: 最多返回的用户数

    Returns:
        (画像, 相似度) 列表，按相似度降序
    """
    similar: List[Tuple[UserProfile, float]] = []
    for other in profiles:
        if other.user_id == target.user_id:
            continue
        sim = user_similarity(target, other)
        if sim > threshold:
            similar.append((other, sim))

    similar.sort(key=lambda pair: (-pair[1], pair[0].user_id))
    return similar[:limit]


@dataclass
class FeaturePreferences:
    """用户在各特征取值上的累计偏好"""
    categories: Dict[str, float] = field(default_factory=dict)
    price_tiers: Dict[str, float] = field(default_factory=dict)
    regions: Dict[str, float] = field(default_factory=dict)
    accessibility_needs: Tuple[str, ...] = ()
    cold_start: bool = False

    def is_empty(self) -> bool:
        return not (self.categories or self.price_tiers or self.regions)


def extract_feature_preferences(profile: UserProfile, index: FeatureIndex) -> FeaturePreferences:
    """
    把用户的体验偏好分数累加到 类别 / 价格档 / 地区 三个分桶

    偏好为空时用用户主动声明的偏好做冷启动（每个声明值计 1.0）。
    """
    categories: Dict[str, float] = defaultdict(float)
    price_tiers: Dict[str, float] = defaultdict(float)
    regions: Dict[str, float] = defaultdict(float)
    explicit = profile.explicit_preferences

    for exp_id, score in profile.preferences.items():
        vector = index.get(exp_id)
        if vector is None:
            continue
        categories[vector.category] += score
        price_tiers[vector.price_tier] += score
        regions[vector.location_region] += score

    cold_start = not profile.preferences
    if cold_start:
        for category in explicit.categories:
            categories[category] = 1.0
        for region in explicit.regions:
            regions[region] = 1.0
        if explicit.budget_band:
            price_tiers[explicit.budget_band] = 1.0

    return FeaturePreferences(
        categories=dict(categories),
        price_tiers=dict(price_tiers),
        regions=dict(regions),
        accessibility_needs=tuple(explicit.accessibility_needs),
        cold_start=cold_start,
    )


def accessibility_match(prefs: FeaturePreferences, vector: ExperienceFeatureVector) -> float:
    if not prefs.accessibility_needs:
        return 1.0
    tags = set(vector.accessibility_tags)
    return 1.0 if all(need in tags for need in prefs.accessibility_needs) else 0.0


def feature_similarity_terms(prefs: FeaturePreferences, vector: ExperienceFeatureVector) -> Dict[str, float]:
    """各特征项的加权贡献（未除以权重和），用于生成推荐理由"""
    return {
        "category": prefs.categories.get(vector.category, 0.0) * CATEGORY_WEIGHT,
        "price_tier": prefs.price_tiers.get(vector.price_tier, 0.0) * PRICE_TIER_WEIGHT,
        "region": prefs.regions.get(vector.location_region, 0.0) * REGION_WEIGHT,
        "accessibility": accessibility_match(prefs, vector) * ACCESSIBILITY_WEIGHT,
    }


def feature_similarity(prefs: FeaturePreferences, vector: ExperienceFeatureVector) -> float:
    terms = feature_similarity_terms(prefs, vector)
    weight_sum = CATEGORY_WEIGHT + PRICE_TIER_WEIGHT + REGION_WEIGHT + ACCESSIBILITY_WEIGHT
    score = sum(terms.values()) / weight_sum
    logger.trace(f"[Similarity] exp={vector.experience_id}, terms={terms}, score={score:.4f}")
    return score
