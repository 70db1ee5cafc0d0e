# 依赖注入（推荐服务进程内单例）
from functools import lru_cache

from app.core.config import RecommendationConfig, settings
from app.core.database import SessionLocal
from app.data.catalog import InMemoryCatalog
from app.data.demo_catalog import demo_experiences
from app.data.user_profile_store import SqlProfileRepository
from app.services.recommendation_service import RecommendationService


@lru_cache(maxsize=1)
def get_recommendation_service() -> RecommendationService:
    """整个进程共享一个推荐服务，画像与索引都在它内部"""
    return RecommendationService(
        catalog=InMemoryCatalog(demo_experiences()),
        repository=SqlProfileRepository(session_factory=SessionLocal),
        config=RecommendationConfig.from_settings(settings),
    )
