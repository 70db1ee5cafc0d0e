"""
服务模块入口
"""

from app.services.recommendation_service import RecommendationService

__all__ = ["RecommendationService"]
