"""
体验推荐模块的 API 端点
包含获取推荐、交互上报、评分上报、个性化程度查询
"""
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger

from app.api.deps import get_recommendation_service
from app.core.exceptions import EngineInitializationError, InvalidInteractionError
from app.data.models import RecommendationItem, UserProfile
from app.schemas.recommendation_schema import (
    InteractionRequest,
    PersonalizationResponse,
    ProfileUpdateResponse,
    RatingRequest,
    RecommendationItemResponse,
    RecommendationResponse,
)
from app.services.recommendation_service import RecommendationService

router = APIRouter()


# ============= 辅助函数：数据转换 =============

def convert_to_item_response(item: RecommendationItem) -> RecommendationItemResponse:
    return RecommendationItemResponse(
        experience_id=item.experience_id,
        score=item.blended_score,
        confidence=item.confidence,
        algorithms=item.contributing_algorithms,
        explanation=item.explanation,
        category=item.category,
        algorithm_scores=item.algorithm_scores,
    )


def convert_to_profile_response(profile: UserProfile, experience_id: str) -> ProfileUpdateResponse:
    return ProfileUpdateResponse(
        user_id=profile.user_id,
        interaction_count=profile.interaction_count,
        preference_score=profile.preferences.get(experience_id, 0.0),
    )


def build_context(
    lat: Optional[float],
    lon: Optional[float],
    radius: Optional[float],
    start_date: Optional[date],
    end_date: Optional[date],
    budget: Optional[float],
) -> Dict[str, Any]:
    """把查询参数拼成推荐上下文；经纬度或日期只给一半时忽略"""
    context: Dict[str, Any] = {}
    if lat is not None and lon is not None:
        context["location"] = {"latitude": lat, "longitude": lon}
    if radius is not None:
        context["radius"] = radius
    if start_date is not None and end_date is not None:
        context["date_range"] = {"start": start_date, "end": end_date}
    if budget is not None:
        context["budget"] = budget
    return context


# ============= API 端点 =============

@router.get("/{user_id}",
            response_model=RecommendationResponse,
            summary="获取个性化体验推荐",
            description="融合协同过滤、内容匹配与热度三路结果，按上下文过滤并控制类别多样性")
async def get_recommendations(
    user_id: str,
    lat: Optional[float] = Query(None, ge=-90, le=90, description="纬度"),
    lon: Optional[float] = Query(None, ge=-180, le=180, description="经度"),
    radius: Optional[float] = Query(None, gt=0, description="搜索半径（英里），默认 100"),
    start_date: Optional[date] = Query(None, description="可用日期起"),
    end_date: Optional[date] = Query(None, description="可用日期止"),
    budget: Optional[float] = Query(None, ge=0, description="预算上限"),
    service: RecommendationService = Depends(get_recommendation_service),
):
    context = build_context(lat, lon, radius, start_date, end_date, budget)
    items: List[RecommendationItem] = await service.get_recommendations(user_id, context)

    recommendations = [convert_to_item_response(item) for item in items]
    return RecommendationResponse(
        user_id=user_id,
        recommendations=recommendations,
        count=len(recommendations),
    )


@router.post("/interactions",
             response_model=ProfileUpdateResponse,
             summary="上报用户交互")
async def record_interaction(
    request: InteractionRequest,
    service: RecommendationService = Depends(get_recommendation_service),
):
    try:
        profile = await service.record_interaction(
            request.user_id,
            request.experience_id,
            request.interaction_type,
            request.context,
        )
    except InvalidInteractionError as e:
        logger.warning(f"[API] 交互参数不合法: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    except EngineInitializationError as e:
        logger.error(f"[API] 推荐引擎不可用，交互未记录: {e}")
        raise HTTPException(status_code=503, detail="推荐引擎暂不可用")

    return convert_to_profile_response(profile, request.experience_id)


@router.post("/ratings",
             response_model=ProfileUpdateResponse,
             summary="上报用户评分")
async def rate_experience(
    request: RatingRequest,
    service: RecommendationService = Depends(get_recommendation_service),
):
    try:
        profile = await service.rate_experience(
            request.user_id,
            request.experience_id,
            request.rating,
            request.review,
        )
    except InvalidInteractionError as e:
        logger.warning(f"[API] 评分参数不合法: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    except EngineInitializationError as e:
        logger.error(f"[API] 推荐引擎不可用，评分未记录: {e}")
        raise HTTPException(status_code=503, detail="推荐引擎暂不可用")

    return convert_to_profile_response(profile, request.experience_id)


@router.get("/{user_id}/personalization",
            response_model=PersonalizationResponse,
            summary="查询个性化程度")
async def get_personalization(
    user_id: str,
    service: RecommendationService = Depends(get_recommendation_service),
):
    try:
        summary = await service.get_personalization_summary(user_id)
    except EngineInitializationError as e:
        logger.error(f"[API] 推荐引擎不可用: {e}")
        raise HTTPException(status_code=503, detail="推荐引擎暂不可用")

    return PersonalizationResponse(
        user_id=summary.user_id,
        level=summary.level,
        description=summary.description,
        data_points=summary.data_points,
        top_category=summary.top_category,
        interaction_breakdown=summary.interaction_breakdown,
    )
