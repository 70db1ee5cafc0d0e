# 路由汇总
from fastapi import APIRouter
from app.api.v1.endpoints import recommendations

api_router = APIRouter()

# 挂载体验推荐模块 (访问地址: /api/v1/recommendations/...)
api_router.include_router(recommendations.router, prefix="/recommendations", tags=["体验推荐模块"])
