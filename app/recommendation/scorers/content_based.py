from __future__ import annotations

from typing import List

from app.data.models import ExperienceFeatureVector, ScoredCandidate
from app.recommendation.feature_index import FeatureIndex
from app.recommendation.scorers.base import IScorer, ScoringRequest, rank_candidates
from app.recommendation.similarity import (
    FeaturePreferences,
    extract_feature_preferences,
    feature_similarity,
    feature_similarity_terms,
)


def content_explanation(prefs: FeaturePreferences, vector: ExperienceFeatureVector) -> str:
    """根据贡献最大的一到两个特征生成推荐理由"""
    terms = feature_similarity_terms(prefs, vector)
    phrases = {
        "category": f"your interest in {vector.category} experiences",
        "region": f"places you like in {vector.location_region}",
        "price_tier": f"your usual {vector.price_tier} budget",
    }
    dominant = sorted(
        (name for name in phrases if terms[name] > 0),
        key=lambda name: -terms[name],
    )[:2]
    if not dominant:
        return "Similar to experiences you've enjoyed"
    return "Matches " + " and ".join(phrases[name] for name in dominant)


class ContentBasedScorer(IScorer):
    """用户特征偏好与体验特征的匹配"""

    def __init__(self, feature_index: FeatureIndex, *, min_similarity: float = 0.3):
        self.feature_index = feature_index
        self.min_similarity = min_similarity

    @property
    def algorithm_name(self) -> str:
        return "content_based"

    def score(self, request: ScoringRequest) -> List[ScoredCandidate]:
        profile = request.profile
        prefs = extract_feature_preferences(profile, self.feature_index)
        if prefs.is_empty():
            return []

        candidates: List[ScoredCandidate] = []
        for vector in self.feature_index.vectors():
            if vector.experience_id in profile.preferences:
                continue
            similarity = feature_similarity(prefs, vector)
            if similarity > self.min_similarity:
                candidates.append(
                    ScoredCandidate(
                        experience_id=vector.experience_id,
                        score=similarity,
                        algorithm=self.algorithm_name,
                        explanation=content_explanation(prefs, vector),
                    )
                )
        return rank_candidates(candidates)
