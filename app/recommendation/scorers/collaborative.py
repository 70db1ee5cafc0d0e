from __future__ import annotations

from collections import defaultdict
from typing import Dict, List

from app.data.models import ScoredCandidate
from app.recommendation.scorers.base import IScorer, ScoringRequest, rank_candidates
from app.recommendation.similarity import find_similar_users

COLLABORATIVE_EXPLANATION = "Users with similar interests also liked this"
LIKED_THRESHOLD = 0.5


class CollaborativeScorer(IScorer):
    """基于相似用户的协同过滤"""

    def __init__(self, *, min_similarity: float = 0.3, max_similar_users: int = 50):
        self.min_similarity = min_similarity
        self.max_similar_users = max_similar_users

    @property
    def algorithm_name(self) -> str:
        return "collaborative"

    def score(self, request: ScoringRequest) -> List[ScoredCandidate]:
        target = request.profile
        if not target.preferences:
            return []

        similar_users = find_similar_users(
            target,
            request.all_profiles,
            threshold=self.min_similarity,
            limit=self.max_similar_users,
        )

        scores: Dict[str, float] = defaultdict(float)
        for other, similarity in similar_users:
            for exp_id, preference in other.preferences.items():
                if exp_id in target.preferences or preference <= LIKED_THRESHOLD:
                    continue
                scores[exp_id] += similarity * preference

        return rank_candidates(
            [
                ScoredCandidate(
                    experience_id=exp_id,
                    score=score,
                    algorithm=self.algorithm_name,
                    explanation=COLLABORATIVE_EXPLANATION,
                )
                for exp_id, score in scores.items()
            ]
        )
