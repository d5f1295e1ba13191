"""QualityHub - Permission Models

权限数据模型
- UserPermission: 直接授予用户的权限
- GroupPermission: 授予用户组的权限（group_id 为空表示 Anyone）

resource_id 为空表示组织级（全局）权限，否则为项目级权限。
"""
from sqlalchemy import Column, String, Integer, ForeignKey, Index

from qualityhub.database.config import Base


class UserPermission(Base):
    """用户权限"""
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_uuid = Column(String(40), ForeignKey("organizations.uuid", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    resource_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True)
    role = Column(String(64), nullable=False)

    __table_args__ = (
        Index("ix_user_roles_user_id", "user_id"),
        Index("ix_user_roles_resource_id", "resource_id"),
    )

    def __repr__(self):
        return f"<UserPermission(user={self.user_id}, role='{self.role}', resource={self.resource_id})>"


class GroupPermission(Base):
    """用户组权限"""
    __tablename__ = "group_roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_uuid = Column(String(40), ForeignKey("organizations.uuid", ondelete="CASCADE"), nullable=False)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=True)
    resource_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True)
    role = Column(String(64), nullable=False)

    __table_args__ = (
        Index("ix_group_roles_group_id", "group_id"),
        Index("ix_group_roles_resource_id", "resource_id"),
    )

    def __repr__(self):
        return f"<GroupPermission(group={self.group_id}, role='{self.role}', resource={self.resource_id})>"
