"""QualityHub - User Models

用户与用户组数据模型
"""
from datetime import datetime, timezone
from sqlalchemy import Column, String, Boolean, DateTime, Integer, ForeignKey, UniqueConstraint, Index

from qualityhub.database.config import Base


class User(Base):
    """用户模型

    is_root 为 True 的用户拥有所有权限。
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    login = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=True)
    email = Column(String(100), nullable=True)
    password_hash = Column(String(255), nullable=True)
    is_root = Column(Boolean, default=False, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<User(login='{self.login}', root={self.is_root})>"


class Group(Base):
    """用户组模型

    用户组属于某个组织，组名在组织内唯一。
    """
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_uuid = Column(String(40), ForeignKey("organizations.uuid", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("organization_uuid", "name", name="uniq_groups_org_name"),
    )

    def __repr__(self):
        return f"<Group(name='{self.name}', organization='{self.organization_uuid}')>"


class UserGroup(Base):
    """用户-用户组成员关系"""
    __tablename__ = "groups_users"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True)

    __table_args__ = (
        Index("ix_groups_users_group_id", "group_id"),
    )
