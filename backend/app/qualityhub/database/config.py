"""QualityHub - Database Configuration

数据库引擎与会话

- 路由层通过 get_db 依赖获取请求级会话
- 启动 seed 和 CLI 等非请求代码使用 session_scope
"""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from qualityhub.core.config import settings

Base = declarative_base()

# QH_DB_URL 环境变量
DATABASE_URL = settings.DB_URL

engine = create_engine(
    DATABASE_URL,
    echo=settings.DB_ECHO,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """请求级数据库会话（依赖注入）"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """非请求代码使用的会话，异常时回滚"""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
