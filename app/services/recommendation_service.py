"""
推荐服务门面

对外暴露初始化、获取推荐、记录交互、评分等操作，内部组合：
    FeatureIndex（只读特征） + ProfileStore（画像） + InteractionRecorder
    + 三路打分器（并发执行） + Blender（融合/过滤/多样性）
    + ProfilePersistenceQueue（异步落库）

所有依赖通过构造函数注入，进程内单例由 API 层的依赖函数负责。
"""

from __future__ import annotations

import asyncio
import copy
import random
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from loguru import logger

from app.core.config import RecommendationConfig
from app.core.exceptions import EngineInitializationError, InvalidInteractionError, RecommendationError
from app.data.catalog import IExperienceCatalog
from app.data.models import (
    ExperienceRecord,
    InteractionType,
    ModelWeights,
    PersonalizationSummary,
    RecommendationContext,
    RecommendationItem,
    UserProfile,
)
from app.data.user_profile_store import IProfileRepository
from app.recommendation.blender import Blender, fallback_recommendations
from app.recommendation.context_filters import build_context_filters
from app.recommendation.feature_index import FeatureIndex
from app.recommendation.interaction_recorder import InteractionRecorder
from app.recommendation.persistence import ProfilePersistenceQueue
from app.recommendation.profile_store import ProfileStore
from app.recommendation.scorers import (
    CollaborativeScorer,
    ContentBasedScorer,
    IScorer,
    PopularityScorer,
    ScoringRequest,
    score_safely,
)

BUDGET_BANDS = ("free", "low", "medium", "high")


def personalization_level(profile: UserProfile) -> float:
    return min(1.0, profile.interaction_count / 50 + len(profile.preferences) / 20)


def describe_personalization(level: float) -> str:
    if level < 0.2:
        return "Getting to know you"
    if level < 0.5:
        return "Learning your preferences"
    if level < 0.8:
        return "Good personalization"
    return "Highly personalized"


class RecommendationService:
    def __init__(
        self,
        catalog: IExperienceCatalog,
        repository: Optional[IProfileRepository] = None,
        *,
        config: Optional[RecommendationConfig] = None,
        feature_index: Optional[FeatureIndex] = None,
        profile_store: Optional[ProfileStore] = None,
        rng: Optional[random.Random] = None,
        scorers: Optional[Iterable[IScorer]] = None,
    ):
        self.config = config or RecommendationConfig()
        self.catalog = catalog
        self.repository = repository
        self.feature_index = feature_index or FeatureIndex()
        self.profile_store = profile_store or ProfileStore()

        self.persistence: Optional[ProfilePersistenceQueue] = None
        if repository is not None:
            self.persistence = ProfilePersistenceQueue(repository, max_attempts=self.config.persist_max_attempts)

        self.recorder = InteractionRecorder(
            self.profile_store,
            self.persistence,
            learning_rate=self.config.learning_rate,
            decay_factor=self.config.decay_factor,
            log_size=self.config.interaction_log_size,
        )

        if scorers is None:
            scorers = [
                CollaborativeScorer(
                    min_similarity=self.config.min_similarity_threshold,
                    max_similar_users=self.config.similar_users_limit,
                ),
                ContentBasedScorer(self.feature_index, min_similarity=self.config.min_similarity_threshold),
                PopularityScorer(catalog, top_n=self.config.popularity_top_n),
            ]
        self.scorers: List[IScorer] = list(scorers)

        self.blender = Blender(
            copy.copy(self.config.weights),
            max_recommendations=self.config.max_recommendations,
            diversity_weight=self.config.diversity_weight,
            rng=rng,
        )

        self._initialized = False
        self._init_lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """
        加载画像、交互历史与目录，构建特征索引并启动持久化 worker

        重复调用无副作用；失败时抛出 EngineInitializationError，引擎保持未初始化。
        """
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:
                return

            logger.info("[RecommendationService] 开始初始化推荐引擎...")
            try:
                profiles: List[UserProfile] = []
                history = []
                if self.repository is not None:
                    profiles = await asyncio.to_thread(self.repository.load_all_profiles)
                    history = await asyncio.to_thread(
                        self.repository.load_interaction_history, self.config.interaction_log_size
                    )
                records = await asyncio.to_thread(self.catalog.get_all_experiences)
            except Exception as e:
                logger.exception(f"[RecommendationService] 初始化失败: {e}")
                raise EngineInitializationError(f"推荐引擎初始化失败: {e}") from e

            loaded = self.profile_store.load(profiles)
            replayed = self.recorder.load_history(history)
            indexed = self.feature_index.build(records)

            if self.persistence is not None:
                self.persistence.start()

            self._initialized = True
            logger.info(
                f"[RecommendationService] 初始化完成: profiles={loaded}, "
                f"interactions={replayed}, experiences={indexed}"
            )

    async def get_recommendations(
        self,
        user_id: str,
        context: Union[RecommendationContext, Mapping[str, Any], None] = None,
    ) -> List[RecommendationItem]:
        """
        为用户生成推荐列表

        任何环节出错都不会抛给调用方，而是返回兜底列表。
        """
        if not self._initialized:
            try:
                await self.initialize()
            except EngineInitializationError:
                logger.error(f"[RecommendationService] 引擎不可用，返回兜底推荐: user={user_id}")
                return fallback_recommendations()

        try:
            ctx = RecommendationContext.from_mapping(context)
            filters = build_context_filters(ctx, self.config.default_radius_miles)
            request = ScoringRequest(
                user_id=user_id,
                profile=self.profile_store.snapshot_or_empty(user_id),
                all_profiles=self.profile_store.snapshot_all(),
                context=ctx,
                filters=filters,
            )

            candidate_lists = await asyncio.gather(
                *(asyncio.to_thread(score_safely, scorer, request) for scorer in self.scorers)
            )

            items = self.blender.blend(
                candidate_lists,
                filters=filters,
                record_lookup=self._record_lookup,
                category_of=self._category_of,
            )
        except Exception:
            logger.exception(f"[RecommendationService] 推荐流程异常，返回兜底推荐: user={user_id}")
            return fallback_recommendations()

        logger.info(
            f"[RecommendationService] 生成推荐: user={user_id}, count={len(items)}, "
            f"algorithms={sorted({a for item in items for a in item.contributing_algorithms})}"
        )
        return items

    async def record_interaction(
        self,
        user_id: str,
        experience_id: str,
        interaction_type: Any,
        context: Optional[Mapping[str, Any]] = None,
        *,
        rating: Optional[int] = None,
    ) -> UserProfile:
        """更新内存画像后立即返回，落库由后台 worker 完成"""
        await self.initialize()

        if self.persistence is not None and not self.persistence.running:
            self.persistence.start()

        return self.recorder.record(user_id, experience_id, interaction_type, context, rating=rating)

    async def rate_experience(
        self,
        user_id: str,
        experience_id: str,
        rating: int,
        review: Optional[str] = None,
    ) -> UserProfile:
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise InvalidInteractionError(f"评分必须是 1-5 的整数: {rating!r}")

        context: Dict[str, Any] = {"rating": rating}
        if review:
            context["review"] = review

        snapshot = await self.record_interaction(
            user_id, experience_id, InteractionType.RATE, context, rating=rating
        )

        try:
            await asyncio.to_thread(self.catalog.record_rating, experience_id, rating)
        except Exception:
            logger.exception(f"[RecommendationService] 回写目录评分失败: exp={experience_id}")

        return snapshot

    async def update_explicit_preferences(
        self,
        user_id: str,
        *,
        categories: Optional[List[str]] = None,
        budget_band: Optional[str] = None,
        accessibility_needs: Optional[List[str]] = None,
        regions: Optional[List[str]] = None,
    ) -> UserProfile:
        """更新用户主动声明的偏好（只覆盖传入的字段）"""
        if budget_band is not None and budget_band not in BUDGET_BANDS:
            raise RecommendationError(f"未知的预算档位: {budget_band!r}")

        await self.initialize()

        def _mutate(profile: UserProfile) -> UserProfile:
            explicit = profile.explicit_preferences
            if categories is not None:
                explicit.categories = list(categories)
            if budget_band is not None:
                explicit.budget_band = budget_band
            if accessibility_needs is not None:
                explicit.accessibility_needs = list(accessibility_needs)
            if regions is not None:
                explicit.regions = list(regions)
            return copy.deepcopy(profile)

        snapshot = self.profile_store.update(user_id, _mutate)
        if self.persistence is not None:
            if not self.persistence.running:
                self.persistence.start()
            self.persistence.enqueue(snapshot)

        logger.info(f"[RecommendationService] 更新显式偏好: user={user_id}")
        return snapshot

    def set_model_weights(self, weights: Union[ModelWeights, Mapping[str, float]]) -> ModelWeights:
        if not isinstance(weights, ModelWeights):
            current = self.blender.weights
            weights = ModelWeights(
                collaborative=float(weights.get("collaborative", current.collaborative)),
                content_based=float(weights.get("content_based", current.content_based)),
                popularity=float(weights.get("popularity", current.popularity)),
            )

        if min(weights.collaborative, weights.content_based, weights.popularity) < 0:
            raise RecommendationError(f"模型权重不能为负: {weights}")

        self.blender.weights = weights
        logger.info(f"[RecommendationService] 更新模型权重: {weights}")
        return weights

    async def get_personalization_summary(self, user_id: str) -> PersonalizationSummary:
        await self.initialize()
        profile = self.profile_store.snapshot_or_empty(user_id)
        level = personalization_level(profile)
        return PersonalizationSummary(
            user_id=user_id,
            level=level,
            description=describe_personalization(level),
            data_points=profile.interaction_count,
            top_category=self._top_category(profile),
            interaction_breakdown=self.recorder.interaction_breakdown(user_id),
        )

    async def shutdown(self) -> None:
        if self.persistence is not None:
            logger.info(f"[RecommendationService] 正在落库剩余画像: pending={self.persistence.pending()}")
            await self.persistence.stop()
        logger.info("[RecommendationService] 推荐引擎已关闭")

    def _record_lookup(self, experience_id: str) -> Optional[ExperienceRecord]:
        return self.catalog.get_experience(experience_id)

    def _category_of(self, experience_id: str) -> Optional[str]:
        vector = self.feature_index.get(experience_id)
        if vector is not None:
            return vector.category
        record = self.catalog.get_experience(experience_id)
        return record.category if record else None

    def _top_category(self, profile: UserProfile) -> Optional[str]:
        totals: Dict[str, float] = defaultdict(float)
        for exp_id, score in profile.preferences.items():
            vector = self.feature_index.get(exp_id)
            if vector is not None:
                totals[vector.category] += score
        if not totals:
            return None
        return min(totals, key=lambda c: (-totals[c], c))
