"""
多路打分结果融合

执行流程:
    1. 按打分器权重累加分数（同一体验出现在多路时分数相加）
    2. 按融合分数降序
    3. 上下文过滤（半径 -> 日期 -> 预算）
    4. 类别多样性控制
    5. 截断到 max_recommendations
    6. 附加置信度与推荐理由
    7. 结果为空时返回固定的兜底列表
"""

from __future__ import annotations

import math
import random
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from loguru import logger

from app.data.models import ExperienceRecord, ModelWeights, RecommendationItem, ScoredCandidate
from app.recommendation.context_filters import IContextFilter, apply_context_filters

FALLBACK_ALGORITHM = "fallback"

# 人工精选的兜底体验
FALLBACK_EXPERIENCES = (
    ("griffith-observatory", 0.9),
    ("kennedy-space-center", 0.85),
    ("smithsonian-air-space", 0.8),
)
FALLBACK_EXPLANATION = "Popular pick while we learn your preferences"


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def fallback_recommendations() -> List[RecommendationItem]:
    return [
        RecommendationItem(
            experience_id=exp_id,
            blended_score=score,
            confidence=clamp(score),
            contributing_algorithms=[FALLBACK_ALGORITHM],
            explanation=FALLBACK_EXPLANATION,
            algorithm_scores={FALLBACK_ALGORITHM: score},
        )
        for exp_id, score in FALLBACK_EXPERIENCES
    ]


def templated_explanation(category: Optional[str]) -> str:
    if category:
        return f"Matches your interest in {category} experiences"
    return "Recommended for you"


@dataclass
class BlendedCandidate:
    experience_id: str
    score: float = 0.0
    contributions: Dict[str, float] = field(default_factory=dict)  # 加权后的贡献
    raw_scores: Dict[str, float] = field(default_factory=dict)
    explanations: Dict[str, str] = field(default_factory=dict)

    def explanation(self) -> str:
        for algorithm in sorted(self.contributions, key=lambda a: -self.contributions[a]):
            if self.explanations.get(algorithm):
                return self.explanations[algorithm]
        return ""


class Blender:
    def __init__(
        self,
        weights: ModelWeights,
        *,
        max_recommendations: int = 20,
        diversity_weight: float = 0.2,
        rng: Optional[random.Random] = None,
    ):
        self.weights = weights
        self.max_recommendations = max(1, int(max_recommendations))
        self.diversity_weight = diversity_weight
        self.rng = rng or random.Random()

    @property
    def max_per_category(self) -> int:
        return math.ceil(self.max_recommendations / 4)

    def merge(self, candidate_lists: Sequence[List[ScoredCandidate]]) -> List[BlendedCandidate]:
        """按权重累加各路分数并降序排列"""
        merged: Dict[str, BlendedCandidate] = {}
        for candidates in candidate_lists:
            for candidate in candidates:
                weight = self.weights.for_algorithm(candidate.algorithm)
                entry = merged.get(candidate.experience_id)
                if entry is None:
                    entry = merged[candidate.experience_id] = BlendedCandidate(candidate.experience_id)
                weighted = candidate.score * weight
                entry.score += weighted
                entry.contributions[candidate.algorithm] = entry.contributions.get(candidate.algorithm, 0.0) + weighted
                entry.raw_scores[candidate.algorithm] = candidate.score
                if candidate.explanation:
                    entry.explanations.setdefault(candidate.algorithm, candidate.explanation)

        return sorted(merged.values(), key=lambda c: (-c.score, c.experience_id))

    def diversify(
        self,
        candidates: List[BlendedCandidate],
        category_of: Callable[[str], Optional[str]],
    ) -> List[BlendedCandidate]:
        """
        类别多样性控制

        每个类别最多 ceil(max_recommendations / 4) 条；超出上限的候选
        以 diversity_weight 的概率保留。diversity_weight=0 时上限是硬约束。
        """
        cap = self.max_per_category
        category_count: Dict[str, int] = defaultdict(int)
        diversified: List[BlendedCandidate] = []

        for candidate in candidates:
            category = category_of(candidate.experience_id)
            if category is None:
                continue
            if category_count[category] < cap:
                diversified.append(candidate)
                category_count[category] += 1
            elif self.diversity_weight > 0 and self.rng.random() < self.diversity_weight:
                diversified.append(candidate)

        return diversified

    def blend(
        self,
        candidate_lists: Sequence[List[ScoredCandidate]],
        *,
        filters: Sequence[IContextFilter] = (),
        record_lookup: Callable[[str], Optional[ExperienceRecord]],
        category_of: Callable[[str], Optional[str]],
    ) -> List[RecommendationItem]:
        logger.debug(f"[Blender] 开始融合: 各路候选数量={[len(c) for c in candidate_lists]}")

        merged = self.merge(candidate_lists)
        filtered = apply_context_filters(merged, filters, key=lambda c: c.experience_id, lookup=record_lookup)
        diversified = self.diversify(filtered, category_of)
        final = diversified[: self.max_recommendations]

        items = []
        for candidate in final:
            category = category_of(candidate.experience_id)
            items.append(
                RecommendationItem(
                    experience_id=candidate.experience_id,
                    blended_score=candidate.score,
                    confidence=clamp(candidate.score),
                    contributing_algorithms=sorted(candidate.contributions, key=lambda a: -candidate.contributions[a]),
                    explanation=candidate.explanation() or templated_explanation(category),
                    category=category,
                    algorithm_scores=dict(candidate.raw_scores),
                )
            )

        logger.debug(
            f"[Blender] 融合完成: 合并={len(merged)}, 过滤后={len(filtered)}, "
            f"多样性后={len(diversified)}, 返回={len(items)}"
        )

        if not items:
            logger.info("[Blender] 结果为空，使用兜底推荐")
            return fallback_recommendations()
        return items
