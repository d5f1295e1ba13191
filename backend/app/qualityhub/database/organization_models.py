"""QualityHub - Organization Models

组织与权限模板数据模型
- Organization: 组织
- PermissionTemplate: 权限模板（新建项目时应用）
- PermTemplateGroup: 模板中的用户组权限
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Integer, Index

from qualityhub.database.config import Base


def new_uuid() -> str:
    return str(uuid.uuid4())


class Organization(Base):
    """组织模型

    key 全局唯一，guarded 组织只能由 root 删除。
    """
    __tablename__ = "organizations"

    uuid = Column(String(40), primary_key=True, default=new_uuid)
    kee = Column(String(32), unique=True, nullable=False, index=True)
    name = Column(String(64), nullable=False)
    description = Column(String(256), nullable=True)
    url = Column(String(256), nullable=True)
    avatar_url = Column(String(256), nullable=True)
    guarded = Column(Boolean, default=False, nullable=False)

    # 默认权限模板
    default_perm_template_project = Column(String(40), nullable=True)
    default_perm_template_view = Column(String(40), nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<Organization(key='{self.kee}', name='{self.name}')>"


class PermissionTemplate(Base):
    """权限模板"""
    __tablename__ = "permission_templates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_uuid = Column(String(40), ForeignKey("organizations.uuid", ondelete="CASCADE"), nullable=False)
    kee = Column(String(100), unique=True, nullable=False, default=new_uuid)
    name = Column(String(100), nullable=False)
    description = Column(String(4000), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))


class PermTemplateGroup(Base):
    """权限模板中的用户组权限

    group_id 为空表示 Anyone。
    """
    __tablename__ = "perm_templates_groups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    template_id = Column(Integer, ForeignKey("permission_templates.id", ondelete="CASCADE"), nullable=False)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=True)
    permission_reference = Column(String(64), nullable=False)

    __table_args__ = (
        Index("ix_perm_templates_groups_template_id", "template_id"),
    )
