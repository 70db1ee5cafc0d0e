"""
推荐引擎异常定义
"""


class RecommendationError(Exception):
    """推荐引擎异常基类"""


class EngineInitializationError(RecommendationError):
    """初始化失败（目录服务或画像存储不可用），引擎在重试成功前不可用"""


class InvalidInteractionError(RecommendationError, ValueError):
    """非法的交互事件（未知类型、评分越界等）"""
