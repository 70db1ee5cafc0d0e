"""
打分器模块

三路独立打分策略：协同过滤、内容匹配、目录热度
"""

from app.recommendation.scorers.base import IScorer, ScoringRequest, score_safely
from app.recommendation.scorers.collaborative import CollaborativeScorer
from app.recommendation.scorers.content_based import ContentBasedScorer
from app.recommendation.scorers.popularity import PopularityScorer, popularity_score

__all__ = [
    "IScorer",
    "ScoringRequest",
    "score_safely",
    "CollaborativeScorer",
    "ContentBasedScorer",
    "PopularityScorer",
    "popularity_score",
]
