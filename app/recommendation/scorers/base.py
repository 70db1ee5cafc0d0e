"""
打分器接口定义

所有打分策略（协同、内容、热度）的基类。每路打分器独立失败：
内部异常只会让该路贡献空列表，不会中断整个请求。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Sequence

from loguru import logger

from app.data.models import RecommendationContext, ScoredCandidate, UserProfile
from app.recommendation.context_filters import IContextFilter


@dataclass
class ScoringRequest:
    """
    一次推荐请求的只读输入

    画像均为快照，打分器之间不共享可变状态，可以并发执行。
    """

    user_id: str
    profile: UserProfile
    all_profiles: List[UserProfile] = field(default_factory=list)
    context: RecommendationContext = field(default_factory=RecommendationContext)
    filters: Sequence[IContextFilter] = ()


class IScorer(ABC):
    @property
    @abstractmethod
    def algorithm_name(self) -> str:
        """策略名称，用于加权融合与日志，例如 "collaborative" """
        pass

    @abstractmethod
    def score(self, request: ScoringRequest) -> List[ScoredCandidate]:
        """返回按分数降序排列的候选"""
        pass


def score_safely(scorer: IScorer, request: ScoringRequest) -> List[ScoredCandidate]:
    try:
        candidates = scorer.score(request)
        logger.debug(f"[{scorer.algorithm_name}] 打分完成: user={request.user_id}, candidates={len(candidates)}")
        return candidates
    except Exception:
        logger.exception(f"[{scorer.algorithm_name}] 打分失败，该路返回空列表: user={request.user_id}")
        return []


def rank_candidates(candidates: List[ScoredCandidate]) -> List[ScoredCandidate]:
    # 同分按 ID 排序，保证结果可复现
    return sorted(candidates, key=lambda c: (-c.score, c.experience_id))
