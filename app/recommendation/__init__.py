"""
推荐打分引擎

特征索引、画像表、交互记录、相似度、三路打分器与融合器的核心实现。
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.recommendation.blender import Blender
    from app.recommendation.feature_index import FeatureIndex
    from app.recommendation.interaction_recorder import InteractionRecorder
    from app.recommendation.persistence import ProfilePersistenceQueue
    from app.recommendation.profile_store import ProfileStore

__all__ = [
    "Blender",
    "FeatureIndex",
    "InteractionRecorder",
    "ProfilePersistenceQueue",
    "ProfileStore",
]
