"""QualityHub - Permission Service

权限定义与权限查询

- 全局（组织级）权限：admin / profileadmin / gateadmin / scan / provisioning
- 项目级权限：user / admin / issueadmin / codeviewer / scan

用户的有效权限 = 直接授予的权限 ∪ 所属用户组的权限 ∪ Anyone 的权限
"""
from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from qualityhub.database.permission_models import GroupPermission, UserPermission
from qualityhub.database.user_models import UserGroup


class GlobalPermission(str, Enum):
    """全局权限"""
    ADMIN = "admin"
    QUALITY_PROFILE_ADMIN = "profileadmin"
    QUALITY_GATE_ADMIN = "gateadmin"
    SCAN = "scan"
    PROVISIONING = "provisioning"


class ProjectPermission(str, Enum):
    """项目权限"""
    USER = "user"
    ADMIN = "admin"
    ISSUE_ADMIN = "issueadmin"
    CODEVIEWER = "codeviewer"
    SCAN = "scan"


GLOBAL_PERMISSIONS: list[str] = [p.value for p in GlobalPermission]
PROJECT_PERMISSIONS: list[str] = [p.value for p in ProjectPermission]

# Anyone 用户组的显示名
ANYONE = "Anyone"


def _value(permission) -> str:
    return permission.value if isinstance(permission, Enum) else permission


class PermissionService:
    """权限查询服务"""

    @staticmethod
    def select_global_permissions(
        db: Session,
        organization_uuid: str,
        user_id: Optional[int] = None,
        group_ids: Optional[Iterable[int]] = None,
    ) -> set[str]:
        """查询用户在组织上的全局权限

        Args:
            db: 数据库会话
            organization_uuid: 组织 UUID
            user_id: 用户 ID，None 表示匿名用户（只有 Anyone 的权限）
            group_ids: 用户所属的用户组 ID，None 表示按当前成员关系查询

        Returns:
            权限集合
        """
        return PermissionService._select_permissions(db, organization_uuid, None, user_id, group_ids)

    @staticmethod
    def select_project_permissions(
        db: Session,
        organization_uuid: str,
        project_id: int,
        user_id: Optional[int] = None,
        group_ids: Optional[Iterable[int]] = None,
    ) -> set[str]:
        """查询用户在项目上的权限"""
        return PermissionService._select_permissions(db, organization_uuid, project_id, user_id, group_ids)

    @staticmethod
    def _select_permissions(
        db: Session,
        organization_uuid: str,
        resource_id: Optional[int],
        user_id: Optional[int],
        group_ids: Optional[Iterable[int]],
    ) -> set[str]:
        resource_filter = (
            GroupPermission.resource_id.is_(None)
            if resource_id is None
            else GroupPermission.resource_id == resource_id
        )

        group_filter = GroupPermission.group_id.is_(None)
        if user_id is not None:
            if group_ids is None:
                user_groups = select(UserGroup.group_id).where(UserGroup.user_id == user_id)
                group_filter = or_(group_filter, GroupPermission.group_id.in_(user_groups))
            else:
                ids = list(group_ids)
                if ids:
                    group_filter = or_(group_filter, GroupPermission.group_id.in_(ids))

        rows = db.query(GroupPermission.role).filter(
            GroupPermission.organization_uuid == organization_uuid,
            resource_filter,
            group_filter,
        ).all()
        permissions = {row.role for row in rows}

        if user_id is not None:
            user_resource_filter = (
                UserPermission.resource_id.is_(None)
                if resource_id is None
                else UserPermission.resource_id == resource_id
            )
            rows = db.query(UserPermission.role).filter(
                UserPermission.organization_uuid == organization_uuid,
                UserPermission.user_id == user_id,
                user_resource_filter,
            ).all()
            permissions.update(row.role for row in rows)

        return permissions

    @staticmethod
    def count_users_with_global_permission(
        db: Session,
        organization_uuid: str,
        permission: str,
        excluded_user_id: Optional[int] = None,
    ) -> int:
        """统计直接拥有某全局权限的用户数"""
        query = db.query(func.count(UserPermission.id)).filter(
            UserPermission.organization_uuid == organization_uuid,
            UserPermission.resource_id.is_(None),
            UserPermission.role == _value(permission),
        )
        if excluded_user_id is not None:
            query = query.filter(UserPermission.user_id != excluded_user_id)
        return query.scalar() or 0

    @staticmethod
    def count_groups_with_global_permission(
        db: Session,
        organization_uuid: str,
        permission: str,
        excluded_group_ids: Iterable[int] = (),
    ) -> int:
        """统计拥有某全局权限、且至少有一个成员的用户组数"""
        excluded = list(excluded_group_ids)
        query = db.query(func.count(func.distinct(GroupPermission.group_id))).join(
            UserGroup, UserGroup.group_id == GroupPermission.group_id
        ).filter(
            GroupPermission.organization_uuid == organization_uuid,
            GroupPermission.resource_id.is_(None),
            GroupPermission.role == _value(permission),
        )
        if excluded:
            query = query.filter(GroupPermission.group_id.notin_(excluded))
        return query.scalar() or 0

    @staticmethod
    def count_admins(
        db: Session,
        organization_uuid: str,
        excluded_user_id: Optional[int] = None,
        excluded_group_ids: Iterable[int] = (),
    ) -> int:
        """统计组织管理员来源（用户 + 用户组）数量，用于"最后一个管理员"检查"""
        return (
            PermissionService.count_users_with_global_permission(
                db, organization_uuid, GlobalPermission.ADMIN, excluded_user_id
            )
            + PermissionService.count_groups_with_global_permission(
                db, organization_uuid, GlobalPermission.ADMIN, excluded_group_ids
            )
        )

    @staticmethod
    def delete_project_permissions(db: Session, project_ids: Iterable[int]) -> None:
        """删除项目相关的所有权限（不提交事务）"""
        ids = list(project_ids)
        if not ids:
            return
        db.query(UserPermission).filter(UserPermission.resource_id.in_(ids)).delete(synchronize_session=False)
        db.query(GroupPermission).filter(GroupPermission.resource_id.in_(ids)).delete(synchronize_session=False)

    @staticmethod
    def has_user_permission(
        db: Session,
        organization_uuid: str,
        user_id: int,
        permission: str,
        resource_id: Optional[int] = None,
    ) -> bool:
        query = db.query(UserPermission).filter(
            UserPermission.organization_uuid == organization_uuid,
            UserPermission.user_id == user_id,
            UserPermission.role == _value(permission),
        )
        if resource_id is None:
            query = query.filter(UserPermission.resource_id.is_(None))
        else:
            query = query.filter(UserPermission.resource_id == resource_id)
        return db.query(query.exists()).scalar()

    @staticmethod
    def has_group_permission(
        db: Session,
        organization_uuid: str,
        group_id: Optional[int],
        permission: str,
        resource_id: Optional[int] = None,
    ) -> bool:
        query = db.query(GroupPermission).filter(
            GroupPermission.organization_uuid == organization_uuid,
            GroupPermission.role == _value(permission),
            and_(
                GroupPermission.group_id.is_(None) if group_id is None else GroupPermission.group_id == group_id,
                GroupPermission.resource_id.is_(None) if resource_id is None else GroupPermission.resource_id == resource_id,
            ),
        )
        return db.query(query.exists()).scalar()
