# 【入口】整个程序的启动点
from fastapi import FastAPI
from loguru import logger

from app.api.deps import get_recommendation_service
from app.api.v1.router import api_router
from app.core.config import settings
from app.core.exceptions import EngineInitializationError
from app.core.logging import setup_logger


# 初始化日志
setup_logger()


# ========================================
# FastAPI 应用配置
# ========================================
app = FastAPI(
    title="Experience Recommendation Engine",
    description="协同过滤 + 内容匹配 + 热度三路打分融合的体验推荐服务",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# 注册所有路由，统一加前缀 /api/v1
app.include_router(api_router, prefix="/api/v1")


def _resolve_service():
    # 测试中可能通过 dependency_overrides 替换服务实例
    provider = app.dependency_overrides.get(get_recommendation_service, get_recommendation_service)
    return provider()


@app.on_event("startup")
async def startup_event():
    """应用启动事件：加载画像与目录，启动持久化 worker"""
    logger.info("=" * 60)
    logger.info("体验推荐服务正在启动...")
    logger.info(f"调试模式: {settings.DEBUG}")
    logger.info(f"日志级别: {settings.LOG_LEVEL}")
    logger.info("=" * 60)

    try:
        await _resolve_service().initialize()
    except EngineInitializationError as e:
        # 首次请求时会再次尝试初始化，失败则返回兜底推荐
        logger.error(f"推荐引擎初始化失败: {e}")


@app.on_event("shutdown")
async def shutdown_event():
    """应用关闭事件：落库剩余画像"""
    logger.info("体验推荐服务正在关闭...")
    await _resolve_service().shutdown()


@app.get("/")
def health_check():
    """健康检查端点"""
    return {
        "status": "ok",
        "message": "Experience Recommendation Engine is running!",
        "version": "1.0.0",
    }
