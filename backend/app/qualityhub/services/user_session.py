"""QualityHub - User Session

当前请求调用者的身份与权限判断

## 权限判断规则

1. root 用户拥有所有权限（包括未知权限、未知组件），优先于其他判断
2. 每种权限都提供两种形式：
   - has_xxx()   返回 bool
   - check_xxx() 在 has_xxx() 为 False 时抛出异常，否则返回 session 本身（可链式调用）
3. 权限数据每个请求只加载一次，之后使用缓存
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from qualityhub.core.exceptions import (
    AUTHENTICATION_IS_REQUIRED_MESSAGE,
    UnauthorizedException,
    insufficient_privileges,
)
from qualityhub.database.component_models import Component
from qualityhub.database.user_models import Group, User, UserGroup
from qualityhub.services.default_organization import DefaultOrganizationProvider
from qualityhub.services.organization_feature import OrganizationFeature
from qualityhub.services.permission_service import GlobalPermission, PermissionService

logger = logging.getLogger(__name__)


class ComponentLike(Protocol):
    project_uuid: str


class AbstractUserSession(ABC):
    """用户会话抽象基类

    子类只需实现身份信息和三个 _has_xxx 钩子，
    root 短路与 check_xxx 的异常语义统一在这里实现。
    """

    # ========== 身份 ==========

    @property
    @abstractmethod
    def login(self) -> Optional[str]:
        ...

    @property
    @abstractmethod
    def name(self) -> Optional[str]:
        ...

    @property
    @abstractmethod
    def user_id(self) -> Optional[int]:
        ...

    @abstractmethod
    def is_logged_in(self) -> bool:
        ...

    @abstractmethod
    def is_root(self) -> bool:
        ...

    @abstractmethod
    def groups(self) -> list:
        """当前用户所属的用户组（匿名用户为空）"""

    # ========== 子类钩子 ==========

    @abstractmethod
    def _has_organization_permission(self, organization_uuid: str, permission: str) -> bool:
        ...

    @abstractmethod
    def _has_component_uuid_permission(self, permission: str, component_uuid: str) -> bool:
        ...

    @abstractmethod
    def _is_system_administrator(self) -> bool:
        ...

    # ========== 登录 / root ==========

    def check_logged_in(self) -> "AbstractUserSession":
        if not self.is_logged_in():
            raise UnauthorizedException(AUTHENTICATION_IS_REQUIRED_MESSAGE)
        return self

    def check_is_root(self) -> "AbstractUserSession":
        if not self.is_root():
            raise insufficient_privileges()
        return self

    # ========== 组织权限 ==========

    def has_organization_permission(self, organization_uuid: str, permission: str) -> bool:
        if self.is_root():
            return True
        return self._has_organization_permission(organization_uuid, _value(permission))

    def check_organization_permission(self, organization_uuid: str, permission: str) -> "AbstractUserSession":
        if not self.has_organization_permission(organization_uuid, permission):
            raise insufficient_privileges()
        return self

    # ========== 组件权限 ==========

    def has_component_permission(self, permission: str, component: ComponentLike) -> bool:
        """组件权限即其根项目上的权限"""
        return self.has_component_uuid_permission(permission, component.project_uuid)

    def check_component_permission(self, permission: str, component: ComponentLike) -> "AbstractUserSession":
        if not self.has_component_permission(permission, component):
            raise insufficient_privileges()
        return self

    def has_component_uuid_permission(self, permission: str, component_uuid: str) -> bool:
        if self.is_root():
            return True
        return self._has_component_uuid_permission(_value(permission), component_uuid)

    def check_component_uuid_permission(self, permission: str, component_uuid: str) -> "AbstractUserSession":
        if not self.has_component_uuid_permission(permission, component_uuid):
            raise insufficient_privileges()
        return self

    # ========== 系统管理员 ==========

    def is_system_administrator(self) -> bool:
        if self.is_root():
            return True
        return self._is_system_administrator()

    def check_is_system_administrator(self) -> "AbstractUserSession":
        if not self.is_system_administrator():
            raise insufficient_privileges()
        return self

    def __repr__(self):
        return f"<{type(self).__name__}(login={self.login!r}, root={self.is_root()})>"


def _value(permission) -> str:
    return getattr(permission, "value", permission)


class ServerUserSession(AbstractUserSession):
    """基于数据库的用户会话

    user 为 None 表示匿名用户，匿名用户只拥有 Anyone 用户组的权限。
    """

    def __init__(
        self,
        db: Session,
        user: Optional[User],
        organization_feature: Optional[OrganizationFeature] = None,
        default_organization_provider: Optional[DefaultOrganizationProvider] = None,
    ):
        self._db = db
        self._user = user
        self._organization_feature = organization_feature or OrganizationFeature()
        self._default_organization_provider = default_organization_provider or DefaultOrganizationProvider()

        self._groups: Optional[list[Group]] = None
        self._cached_group_ids: list[int] = []
        self._permissions_by_organization: dict[str, set[str]] = {}
        self._permissions_by_project: dict[str, set[str]] = {}
        self._project_uuid_by_component_uuid: dict[str, Optional[str]] = {}

    @classmethod
    def for_user(cls, db: Session, user: User, **kwargs) -> "ServerUserSession":
        if user is None:
            raise ValueError("User must not be null")
        return cls(db, user, **kwargs)

    @classmethod
    def for_anonymous(cls, db: Session, **kwargs) -> "ServerUserSession":
        return cls(db, None, **kwargs)

    @property
    def login(self) -> Optional[str]:
        return self._user.login if self._user else None

    @property
    def name(self) -> Optional[str]:
        return self._user.name if self._user else None

    @property
    def user_id(self) -> Optional[int]:
        return self._user.id if self._user else None

    def is_logged_in(self) -> bool:
        return self._user is not None

    def is_root(self) -> bool:
        return bool(self._user is not None and self._user.is_root)

    def groups(self) -> list[Group]:
        if self._groups is None:
            if self._user is None:
                self._groups = []
            else:
                self._groups = (
                    self._db.query(Group)
                    .join(UserGroup, UserGroup.group_id == Group.id)
                    .filter(UserGroup.user_id == self._user.id)
                    .order_by(Group.name)
                    .all()
                )
            self._cached_group_ids = [group.id for group in self._groups]
        return list(self._groups)

    def _has_organization_permission(self, organization_uuid: str, permission: str) -> bool:
        permissions = self._permissions_by_organization.get(organization_uuid)
        if permissions is None:
            permissions = PermissionService.select_global_permissions(
                self._db, organization_uuid, self.user_id, self._group_ids()
            )
            self._permissions_by_organization[organization_uuid] = permissions
        return permission in permissions

    def _has_component_uuid_permission(self, permission: str, component_uuid: str) -> bool:
        project_uuid = self._resolve_project_uuid(component_uuid)
        if project_uuid is None:
            return False

        permissions = self._permissions_by_project.get(project_uuid)
        if permissions is None:
            permissions = self._load_project_permissions(project_uuid)
            self._permissions_by_project[project_uuid] = permissions
        return permission in permissions

    def _is_system_administrator(self) -> bool:
        if self._organization_feature.is_enabled(self._db):
            # 组织功能开启后，只有 root 是系统管理员
            return False
        default_organization = self._default_organization_provider.get(self._db)
        return self.has_organization_permission(default_organization.uuid, GlobalPermission.ADMIN)

    def _resolve_project_uuid(self, component_uuid: str) -> Optional[str]:
        if component_uuid not in self._project_uuid_by_component_uuid:
            component = self._db.query(Component).filter(Component.uuid == component_uuid).first()
            self._project_uuid_by_component_uuid[component_uuid] = (
                component.project_uuid if component else None
            )
        return self._project_uuid_by_component_uuid[component_uuid]

    def _load_project_permissions(self, project_uuid: str) -> set[str]:
        project = self._db.query(Component).filter(Component.uuid == project_uuid).first()
        if project is None:
            logger.debug(f"Project {project_uuid} not found while loading permissions")
            return set()
        return PermissionService.select_project_permissions(
            self._db, project.organization_uuid, project.id, self.user_id, self._group_ids()
        )

    def _group_ids(self) -> list[int]:
        # 权限与 groups() 使用同一份成员关系
        self.groups()
        return self._cached_group_ids
