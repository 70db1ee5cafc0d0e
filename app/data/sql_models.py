from sqlalchemy import Column, DateTime, Integer, JSON, String

from app.core.database import Base


# 1. 用户画像表（偏好分数以 JSON 存储）
class UserProfileRecord(Base):
    __tablename__ = "reco_user_profiles"

    user_id = Column(String(128), primary_key=True)
    preferences = Column(JSON, default=dict)           # 例如: {"griffith-observatory": 0.42}
    interaction_count = Column(Integer, default=0)
    last_active = Column(DateTime)
    explicit_preferences = Column(JSON, default=dict)  # 例如: {"categories": ["museum"], "budget_band": "low"}


# 2. 交互日志表（仅作为相似度计算的历史参考，不是事实来源）
class InteractionRecord(Base):
    __tablename__ = "reco_interactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), index=True, nullable=False)
    experience_id = Column(String(128), nullable=False)
    interaction_type = Column(String(16), nullable=False)
    timestamp = Column(DateTime, nullable=False)
    context = Column(JSON, default=dict)
    rating = Column(Integer, nullable=True)
