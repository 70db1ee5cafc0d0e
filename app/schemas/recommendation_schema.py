"""
推荐接口的请求和响应 Schema
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# ============= 推荐结果 =============

class RecommendationItemResponse(BaseModel):
    """单条推荐"""
    experience_id: str = Field(..., description="体验ID")
    score: float = Field(..., description="融合分数")
    confidence: float = Field(..., description="置信度 [0, 1]")
    algorithms: List[str] = Field(default_factory=list, description="参与贡献的算法，按贡献降序")
    explanation: str = Field("", description="推荐理由")
    category: Optional[str] = Field(None, description="体验类别")
    algorithm_scores: Dict[str, float] = Field(default_factory=dict, description="各路算法的原始分数")


class RecommendationResponse(BaseModel):
    """推荐列表响应"""
    success: bool = Field(True, description="请求是否成功")
    user_id: str = Field(..., description="用户ID")
    recommendations: List[RecommendationItemResponse] = Field(..., description="推荐结果列表")
    count: int = Field(..., description="推荐数量")
    timestamp: datetime = Field(default_factory=datetime.now, description="响应时间")

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": True,
                "user_id": "user_123",
                "recommendations": [
                    {
                        "experience_id": "griffith-observatory",
                        "score": 0.62,
                        "confidence": 0.62,
                        "algorithms": ["content_based", "popularity"],
                        "explanation": "Matches your interest in observatory experiences in CA",
                        "category": "observatory",
                        "algorithm_scores": {"content_based": 0.8, "popularity": 0.5},
                    }
                ],
                "count": 1,
                "timestamp": "2024-01-15T10:30:00",
            }
        }
    }


# ============= 交互与评分 =============

class InteractionRequest(BaseModel):
    """交互事件上报"""
    user_id: str = Field(..., min_length=1, description="用户ID")
    experience_id: str = Field(..., min_length=1, description="体验ID")
    interaction_type: str = Field(..., description="交互类型: view/like/save/share/book/rate/review")
    context: Dict[str, object] = Field(default_factory=dict, description="交互上下文（自由格式）")


class RatingRequest(BaseModel):
    """评分上报"""
    user_id: str = Field(..., min_length=1, description="用户ID")
    experience_id: str = Field(..., min_length=1, description="体验ID")
    rating: int = Field(..., description="评分 1-5")
    review: Optional[str] = Field(None, description="评价内容")


class ProfileUpdateResponse(BaseModel):
    """交互记录后的画像概况"""
    success: bool = Field(True, description="是否成功")
    user_id: str = Field(..., description="用户ID")
    interaction_count: int = Field(..., description="累计交互次数")
    preference_score: float = Field(..., description="本次交互体验的最新偏好分数")


class PersonalizationResponse(BaseModel):
    """个性化程度"""
    user_id: str = Field(..., description="用户ID")
    level: float = Field(..., description="个性化程度 [0, 1]")
    description: str = Field(..., description="个性化程度描述")
    data_points: int = Field(..., description="累计交互次数")
    top_category: Optional[str] = Field(None, description="最偏好的类别")
    interaction_breakdown: Dict[str, int] = Field(default_factory=dict, description="各交互类型次数")
