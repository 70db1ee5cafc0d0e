# 读取 .env 配置
from dataclasses import dataclass, field

from pydantic_settings import BaseSettings, SettingsConfigDict

from app.data.models import ModelWeights


class Settings(BaseSettings):
    # App
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # Database（画像持久化）
    DATABASE_URL: str = "sqlite:///./recommendations.db"

    # 推荐引擎参数
    RECO_MAX_RECOMMENDATIONS: int = 20
    RECO_MIN_SIMILARITY_THRESHOLD: float = 0.3
    RECO_LEARNING_RATE: float = 0.1
    RECO_DECAY_FACTOR: float = 0.95
    RECO_DIVERSITY_WEIGHT: float = 0.2

    # 各路打分器的相对权重（不要求和为 1）
    RECO_WEIGHT_COLLABORATIVE: float = 0.4
    RECO_WEIGHT_CONTENT_BASED: float = 0.4
    RECO_WEIGHT_POPULARITY: float = 0.2

    RECO_SIMILAR_USERS_LIMIT: int = 50
    RECO_POPULARITY_TOP_N: int = 10
    RECO_INTERACTION_LOG_SIZE: int = 10000
    RECO_PERSIST_MAX_ATTEMPTS: int = 3
    RECO_DEFAULT_RADIUS_MILES: float = 100.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"  # 忽略多余的环境变量
    )


settings = Settings()


@dataclass(frozen=True)
class RecommendationConfig:
    """推荐引擎参数（引擎只依赖这个视图，不直接读取环境变量）"""
    max_recommendations: int = 20
    min_similarity_threshold: float = 0.3
    learning_rate: float = 0.1
    decay_factor: float = 0.95
    diversity_weight: float = 0.2
    weights: ModelWeights = field(default_factory=ModelWeights)
    similar_users_limit: int = 50
    popularity_top_n: int = 10
    interaction_log_size: int = 10000
    persist_max_attempts: int = 3
    default_radius_miles: float = 100.0

    @classmethod
    def from_settings(cls, s: Settings) -> "RecommendationConfig":
        return cls(
            max_recommendations=s.RECO_MAX_RECOMMENDATIONS,
            min_similarity_threshold=s.RECO_MIN_SIMILARITY_THRESHOLD,
            learning_rate=s.RECO_LEARNING_RATE,
            decay_factor=s.RECO_DECAY_FACTOR,
            diversity_weight=s.RECO_DIVERSITY_WEIGHT,
            weights=ModelWeights(
                collaborative=s.RECO_WEIGHT_COLLABORATIVE,
                content_based=s.RECO_WEIGHT_CONTENT_BASED,
                popularity=s.RECO_WEIGHT_POPULARITY,
            ),
            similar_users_limit=s.RECO_SIMILAR_USERS_LIMIT,
            popularity_top_n=s.RECO_POPULARITY_TOP_N,
            interaction_log_size=s.RECO_INTERACTION_LOG_SIZE,
            persist_max_attempts=s.RECO_PERSIST_MAX_ATTEMPTS,
            default_radius_miles=s.RECO_DEFAULT_RADIUS_MILES,
        )
