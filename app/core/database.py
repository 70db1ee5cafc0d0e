# 数据库连接池生成器
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from app.core.config import settings


def build_engine(url: str) -> Engine:
    """
    创建数据库引擎 (Engine)

    SQLite 需要关闭 check_same_thread：画像持久化在后台线程中执行。
    其余数据库保持连接回收与 pre-ping，防止空闲连接被服务端断开。
    """
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_recycle=3600, pool_pre_ping=True)


engine = build_engine(settings.DATABASE_URL)

# 每次持久化操作调用它产生一个新的数据库会话
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 所有的 Model 都要继承这个类
Base = declarative_base()
