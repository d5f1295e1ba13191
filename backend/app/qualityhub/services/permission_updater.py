"""QualityHub - Permission Updater

权限授予与撤销

- 用户 / 用户组，组织级 / 项目级
- group_id 为 None 表示 Anyone
- 授予操作是幂等的
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from qualityhub.core.exceptions import check_argument, check_found, insufficient_privileges
from qualityhub.database.component_models import Component
from qualityhub.database.organization_models import Organization
from qualityhub.database.permission_models import GroupPermission, UserPermission
from qualityhub.database.user_models import Group, User
from qualityhub.services.component_service import ComponentFinder
from qualityhub.services.default_organization import DefaultOrganizationProvider
from qualityhub.services.organization_service import OrganizationService
from qualityhub.services.permission_service import (
    ANYONE,
    GLOBAL_PERMISSIONS,
    PROJECT_PERMISSIONS,
    GlobalPermission,
    PermissionService,
)
from qualityhub.services.user_session import AbstractUserSession

logger = logging.getLogger(__name__)

LAST_ADMIN_MESSAGE = "Last user with permission '%s'. Permission cannot be removed."


@dataclass(frozen=True)
class GroupIdOrAnyone:
    """用户组引用，id 为 None 表示 Anyone"""
    organization_uuid: str
    id: Optional[int] = None

    @property
    def is_anyone(self) -> bool:
        return self.id is None


class PermissionUpdater:
    """权限更新服务"""

    def __init__(self, db: Session, user_session: AbstractUserSession,
                 default_organization_provider: Optional[DefaultOrganizationProvider] = None):
        self.db = db
        self.user_session = user_session
        self.default_organization_provider = default_organization_provider or DefaultOrganizationProvider()

    # ========== 用户权限 ==========

    def add_user_permission(
        self,
        login: str,
        permission: str,
        organization_key: Optional[str] = None,
        project_id: Optional[str] = None,
        project_key: Optional[str] = None,
    ) -> None:
        organization, project = self._resolve_scope(organization_key, project_id, project_key)
        self._check_project_admin(organization, project)
        self._validate_permission(permission, project)
        user = self._get_user(login)

        resource_id = project.id if project else None
        if PermissionService.has_user_permission(self.db, organization.uuid, user.id, permission, resource_id):
            return
        self.db.add(UserPermission(
            organization_uuid=organization.uuid,
            user_id=user.id,
            resource_id=resource_id,
            role=permission,
        ))
        self.db.commit()
        logger.info(f"Permission '{permission}' granted to user {login}{self._scope_label(organization, project)}")

    def remove_user_permission(
        self,
        login: str,
        permission: str,
        organization_key: Optional[str] = None,
        project_id: Optional[str] = None,
        project_key: Optional[str] = None,
    ) -> None:
        organization, project = self._resolve_scope(organization_key, project_id, project_key)
        self._check_project_admin(organization, project)
        self._validate_permission(permission, project)
        user = self._get_user(login)

        if project is None and permission == GlobalPermission.ADMIN.value:
            remaining = PermissionService.count_admins(self.db, organization.uuid, excluded_user_id=user.id)
            check_argument(remaining > 0, LAST_ADMIN_MESSAGE, permission)

        query = self.db.query(UserPermission).filter(
            UserPermission.organization_uuid == organization.uuid,
            UserPermission.user_id == user.id,
            UserPermission.role == permission,
        )
        query = query.filter(
            UserPermission.resource_id.is_(None) if project is None else UserPermission.resource_id == project.id
        )
        query.delete(synchronize_session=False)
        self.db.commit()
        logger.info(f"Permission '{permission}' removed from user {login}{self._scope_label(organization, project)}")

    # ========== 用户组权限 ==========

    def add_group_permission(
        self,
        permission: str,
        group_id: Optional[int] = None,
        group_name: Optional[str] = None,
        organization_key: Optional[str] = None,
        project_id: Optional[str] = None,
        project_key: Optional[str] = None,
    ) -> None:
        group = self.find_group(group_id, group_name, organization_key)
        organization = OrganizationService.get_by_uuid(self.db, group.organization_uuid)
        project = self._find_project(project_id, project_key)
        self._check_project_in_organization(organization, project)
        self._check_project_admin(organization, project)
        self._validate_permission(permission, project)
        check_argument(
            not (group.is_anyone and permission == GlobalPermission.ADMIN.value),
            "It is not possible to add the '%s' permission to group '%s'", permission, ANYONE,
        )

        resource_id = project.id if project else None
        if PermissionService.has_group_permission(self.db, organization.uuid, group.id, permission, resource_id):
            return
        self.db.add(GroupPermission(
            organization_uuid=organization.uuid,
            group_id=group.id,
            resource_id=resource_id,
            role=permission,
        ))
        self.db.commit()
        logger.info(
            f"Permission '{permission}' granted to group {group.id or ANYONE}"
            f"{self._scope_label(organization, project)}"
        )

    def remove_group_permission(
        self,
        permission: str,
        group_id: Optional[int] = None,
        group_name: Optional[str] = None,
        organization_key: Optional[str] = None,
        project_id: Optional[str] = None,
        project_key: Optional[str] = None,
    ) -> None:
        group = self.find_group(group_id, group_name, organization_key)
        organization = OrganizationService.get_by_uuid(self.db, group.organization_uuid)
        project = self._find_project(project_id, project_key)
        self._check_project_in_organization(organization, project)
        self._check_project_admin(organization, project)
        self._validate_permission(permission, project)

        if project is None and permission == GlobalPermission.ADMIN.value and not group.is_anyone:
            remaining = PermissionService.count_admins(self.db, organization.uuid, excluded_group_ids=[group.id])
            check_argument(remaining > 0, LAST_ADMIN_MESSAGE, permission)

        query = self.db.query(GroupPermission).filter(
            GroupPermission.organization_uuid == organization.uuid,
            GroupPermission.role == permission,
            GroupPermission.group_id.is_(None) if group.is_anyone else GroupPermission.group_id == group.id,
            GroupPermission.resource_id.is_(None) if project is None else GroupPermission.resource_id == project.id,
        )
        query.delete(synchronize_session=False)
        self.db.commit()
        logger.info(
            f"Permission '{permission}' removed from group {group.id or ANYONE}"
            f"{self._scope_label(organization, project)}"
        )

    # ========== 解析 ==========

    def find_group(
        self,
        group_id: Optional[int],
        group_name: Optional[str],
        organization_key: Optional[str],
    ) -> GroupIdOrAnyone:
        """按 id 或名称解析用户组，名称 Anyone 表示匿名用户组"""
        check_argument(
            (group_id is None) != (group_name is None),
            "Group name or group id must be provided",
        )
        if group_id is not None:
            group = check_found(
                self.db.query(Group).filter(Group.id == group_id).first(),
                "No group with id '%s'", group_id,
            )
            return GroupIdOrAnyone(organization_uuid=group.organization_uuid, id=group.id)

        organization = OrganizationService.get_by_key_or_default(
            self.db, organization_key, self.default_organization_provider
        )
        if group_name.lower() == ANYONE.lower():
            return GroupIdOrAnyone(organization_uuid=organization.uuid)

        group = check_found(
            self.db.query(Group).filter(
                Group.organization_uuid == organization.uuid,
                Group.name == group_name,
            ).first(),
            "No group with name '%s' in organization '%s'", group_name, organization.kee,
        )
        return GroupIdOrAnyone(organization_uuid=organization.uuid, id=group.id)

    def _resolve_scope(
        self,
        organization_key: Optional[str],
        project_id: Optional[str],
        project_key: Optional[str],
    ) -> tuple[Organization, Optional[Component]]:
        project = self._find_project(project_id, project_key)
        if project is not None and organization_key is None:
            organization = OrganizationService.get_by_uuid(self.db, project.organization_uuid)
        else:
            organization = OrganizationService.get_by_key_or_default(
                self.db, organization_key, self.default_organization_provider
            )
        self._check_project_in_organization(organization, project)
        return organization, project

    def _find_project(self, project_id: Optional[str], project_key: Optional[str]) -> Optional[Component]:
        if project_id is None and project_key is None:
            return None
        return ComponentFinder.get_root_component(self.db, project_id, project_key)

    @staticmethod
    def _check_project_in_organization(organization: Organization, project: Optional[Component]) -> None:
        if project is not None:
            check_argument(
                project.organization_uuid == organization.uuid,
                "Organization '%s' is not the organization of project '%s'", organization.kee, project.kee,
            )

    def _get_user(self, login: str) -> User:
        user = self.db.query(User).filter(User.login == login, User.active.is_(True)).first()
        return check_found(user, "User with login '%s' is not found", login)

    # ========== 校验 ==========

    def _check_project_admin(self, organization: Organization, project: Optional[Component]) -> None:
        """组织管理员可管理所有权限，项目管理员只能管理本项目权限"""
        self.user_session.check_logged_in()
        if self.user_session.has_organization_permission(organization.uuid, GlobalPermission.ADMIN):
            return
        if project is None:
            raise insufficient_privileges()
        self.user_session.check_component_uuid_permission(GlobalPermission.ADMIN, project.uuid)

    @staticmethod
    def _validate_permission(permission: str, project: Optional[Component]) -> None:
        if project is None:
            check_argument(
                permission in GLOBAL_PERMISSIONS,
                "The 'permission' parameter for global permissions must be one of %s. '%s' was passed.",
                ", ".join(GLOBAL_PERMISSIONS), permission,
            )
        else:
            check_argument(
                permission in PROJECT_PERMISSIONS,
                "The 'permission' parameter for project permissions must be one of %s. '%s' was passed.",
                ", ".join(PROJECT_PERMISSIONS), permission,
            )

    @staticmethod
    def _scope_label(organization: Organization, project: Optional[Component]) -> str:
        if project is not None:
            return f" on project {project.kee}"
        return f" on organization {organization.kee}"
