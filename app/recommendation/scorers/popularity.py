from __future__ import annotations

from typing import List

from app.data.catalog import IExperienceCatalog
from app.data.models import ExperienceRecord, ScoredCandidate
from app.recommendation.context_filters import accepts_all
from app.recommendation.scorers.base import IScorer, ScoringRequest, rank_candidates

POPULARITY_EXPLANATION = "Popular among users like you"


def popularity_score(record: ExperienceRecord) -> float:
    return (
        (record.views or 0) * 0.1
        + (record.bookings or 0) * 0.4
        + (record.rating or 0.0) * 0.3
        + (record.review_count or 0) * 0.2
    )


class PopularityScorer(IScorer):
    """目录热度，满足请求上下文的前 top_n 个体验"""

    def __init__(self, catalog: IExperienceCatalog, *, top_n: int = 10):
        self.catalog = catalog
        self.top_n = top_n

    @property
    def algorithm_name(self) -> str:
        return "popularity"

    def score(self, request: ScoringRequest) -> List[ScoredCandidate]:
        candidates = [
            ScoredCandidate(
                experience_id=record.experience_id,
                score=popularity_score(record),
                algorithm=self.algorithm_name,
                explanation=POPULARITY_EXPLANATION,
            )
            for record in self.catalog.get_all_experiences()
            if accepts_all(request.filters, record)
        ]
        return rank_candidates(candidates)[: self.top_n]
