"""QualityHub - Property Models

配置属性模型
- Property: 全局 / 项目 / 用户级配置（例如默认质量门、项目关联的质量门）
- InternalProperty: 服务内部状态（例如组织功能开关、默认组织）
"""
from datetime import datetime, timezone
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text, Index

from qualityhub.database.config import Base


class Property(Base):
    """配置属性

    resource_id 与 user_id 都为空表示全局属性。
    """
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, autoincrement=True)
    prop_key = Column(String(512), nullable=False)
    resource_id = Column(Integer, nullable=True)
    user_id = Column(Integer, nullable=True)
    text_value = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_properties_key", "prop_key"),
    )


class InternalProperty(Base):
    """内部属性（键值对）"""
    __tablename__ = "internal_properties"

    kee = Column(String(20), primary_key=True)
    is_empty = Column(Boolean, nullable=False, default=False)
    text_value = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    def get_value(self):
        """获取属性值（空属性返回空字符串）"""
        if self.is_empty:
            return ""
        return self.text_value


class InternalPropertyKey:
    """预定义内部属性键"""
    ORGANIZATION_ENABLED = "organization.enabled"
    DEFAULT_ORGANIZATION = "organization.default"
