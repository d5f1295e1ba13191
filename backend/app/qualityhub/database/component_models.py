"""QualityHub - Component Models

组件（项目、视图、目录、文件）与分析快照数据模型
"""
import enum
from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, String, Boolean, DateTime, Integer, ForeignKey, Index

from qualityhub.database.config import Base
from qualityhub.database.organization_models import new_uuid


class Qualifier(str, enum.Enum):
    """组件类型"""
    PROJECT = "TRK"
    VIEW = "VW"
    SUBVIEW = "SVW"
    MODULE = "BRC"
    DIRECTORY = "DIR"
    FILE = "FIL"
    UNIT_TEST_FILE = "UTS"


# 可以直接授予权限的根组件
ROOT_QUALIFIERS = (Qualifier.PROJECT.value, Qualifier.VIEW.value)


class Component(Base):
    """组件模型

    project_uuid 指向所属根项目；对项目本身而言 project_uuid == uuid。
    """
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(String(50), unique=True, nullable=False, default=new_uuid)
    organization_uuid = Column(String(40), ForeignKey("organizations.uuid", ondelete="CASCADE"), nullable=False)
    kee = Column(String(400), unique=True, nullable=False)
    name = Column(String(2000), nullable=True)
    qualifier = Column(String(10), nullable=False, default=Qualifier.PROJECT.value)
    scope = Column(String(3), nullable=True, default="PRJ")
    project_uuid = Column(String(50), nullable=False, index=True)
    path = Column(String(2000), nullable=True)
    enabled = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_projects_organization_uuid", "organization_uuid"),
    )

    @property
    def is_root(self) -> bool:
        return self.qualifier in ROOT_QUALIFIERS

    def __repr__(self):
        return f"<Component(key='{self.kee}', qualifier='{self.qualifier}')>"


class Snapshot(Base):
    """分析快照

    只保留第一个（泄漏期）period，其余 period 已通过迁移删除。
    """
    __tablename__ = "snapshots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(String(50), unique=True, nullable=False, default=new_uuid)
    component_uuid = Column(String(50), nullable=False, index=True)
    status = Column(String(4), nullable=False, default="U")
    islast = Column(Boolean, nullable=False, default=False)
    version = Column(String(500), nullable=True)
    period1_mode = Column(String(100), nullable=True)
    period1_param = Column(String(100), nullable=True)
    period1_date = Column(BigInteger, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
