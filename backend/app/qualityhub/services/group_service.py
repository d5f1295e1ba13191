"""QualityHub - Group Service

用户组管理

用户组属于组织，组名在组织内唯一。
Anyone 是保留名称，代表所有用户（包括匿名用户），不能作为真实用户组创建。
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from qualityhub.core.config import settings
from qualityhub.core.exceptions import check_argument, check_found
from qualityhub.database.organization_models import PermTemplateGroup
from qualityhub.database.permission_models import GroupPermission
from qualityhub.database.user_models import Group, User, UserGroup
from qualityhub.services.default_organization import DefaultOrganizationProvider
from qualityhub.services.organization_service import OrganizationService
from qualityhub.services.permission_service import ANYONE, GlobalPermission, PermissionService
from qualityhub.services.user_session import AbstractUserSession

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 200


class GroupService:
    """用户组服务"""

    # ========== 查询 ==========

    @staticmethod
    def find_group(
        db: Session,
        group_id: Optional[int] = None,
        name: Optional[str] = None,
        organization_key: Optional[str] = None,
        default_organization_provider: Optional[DefaultOrganizationProvider] = None,
    ) -> Group:
        """按 id 或（组织 + 组名）查找用户组

        组织 key 为空时使用默认组织。
        """
        if group_id is not None:
            group = db.query(Group).filter(Group.id == group_id).first()
            return check_found(group, "No group with id '%s'", group_id)

        check_argument(name, "Group name or group id must be provided")
        organization = OrganizationService.get_by_key_or_default(
            db, organization_key, default_organization_provider
        )
        group = db.query(Group).filter(
            Group.organization_uuid == organization.uuid,
            Group.name == name,
        ).first()
        return check_found(group, "No group with name '%s' in organization '%s'", name, organization.kee)

    @staticmethod
    def is_default_group(
        db: Session,
        group: Group,
        default_organization_provider: Optional[DefaultOrganizationProvider] = None,
    ) -> bool:
        """默认用户组只存在于默认组织中"""
        provider = default_organization_provider or DefaultOrganizationProvider()
        return group.name == settings.DEFAULT_GROUP and provider.is_default(db, group.organization_uuid)

    # ========== 创建 ==========

    @staticmethod
    def create(
        db: Session,
        user_session: AbstractUserSession,
        name: Optional[str],
        description: Optional[str] = None,
        organization_key: Optional[str] = None,
        default_organization_provider: Optional[DefaultOrganizationProvider] = None,
    ) -> Group:
        organization = OrganizationService.get_by_key_or_default(
            db, organization_key, default_organization_provider
        )
        user_session.check_logged_in()
        user_session.check_organization_permission(organization.uuid, GlobalPermission.ADMIN)

        GroupService._validate_name(name)
        if description is not None:
            check_argument(
                len(description) <= DESCRIPTION_MAX_LENGTH,
                "Description cannot be longer than %s characters", DESCRIPTION_MAX_LENGTH,
            )
        existing = db.query(Group).filter(
            Group.organization_uuid == organization.uuid,
            Group.name == name,
        ).first()
        check_argument(existing is None, "Group '%s' already exists", name)

        group = Group(organization_uuid=organization.uuid, name=name, description=description)
        db.add(group)
        db.commit()
        db.refresh(group)

        logger.info(f"Group created: {name} in organization {organization.kee}")
        return group

    @staticmethod
    def _validate_name(name: Optional[str]) -> None:
        check_argument(name, "Group name cannot be empty")
        check_argument(
            len(name) <= NAME_MAX_LENGTH,
            "Group name cannot be longer than %s characters", NAME_MAX_LENGTH,
        )
        check_argument(name.lower() != ANYONE.lower(), "Anyone group cannot be used")

    # ========== 删除 ==========

    @staticmethod
    def delete(
        db: Session,
        user_session: AbstractUserSession,
        group_id: Optional[int] = None,
        name: Optional[str] = None,
        organization_key: Optional[str] = None,
        default_organization_provider: Optional[DefaultOrganizationProvider] = None,
    ) -> None:
        """删除用户组及其成员关系、权限和权限模板引用"""
        group = GroupService.find_group(db, group_id, name, organization_key, default_organization_provider)
        user_session.check_logged_in()
        user_session.check_organization_permission(group.organization_uuid, GlobalPermission.ADMIN)

        check_argument(
            not GroupService.is_default_group(db, group, default_organization_provider),
            "Default group '%s' cannot be deleted", group.name,
        )
        GroupService._check_not_last_admin_group(db, group)

        group_name = group.name

        db.query(PermTemplateGroup).filter(PermTemplateGroup.group_id == group.id).delete(synchronize_session=False)
        db.query(UserGroup).filter(UserGroup.group_id == group.id).delete(synchronize_session=False)
        db.query(GroupPermission).filter(GroupPermission.group_id == group.id).delete(synchronize_session=False)
        db.delete(group)
        db.commit()

        logger.info(f"Group deleted: {group_name} by {user_session.login}")

    @staticmethod
    def _check_not_last_admin_group(db: Session, group: Group) -> None:
        if not PermissionService.has_group_permission(db, group.organization_uuid, group.id, GlobalPermission.ADMIN):
            return
        remaining = PermissionService.count_admins(
            db, group.organization_uuid, excluded_group_ids=[group.id]
        )
        check_argument(remaining > 0, "The last system admin group cannot be deleted")

    # ========== 成员 ==========

    @staticmethod
    def add_user(
        db: Session,
        user_session: AbstractUserSession,
        login: str,
        group_id: Optional[int] = None,
        name: Optional[str] = None,
        organization_key: Optional[str] = None,
    ) -> None:
        group = GroupService.find_group(db, group_id, name, organization_key)
        user_session.check_logged_in()
        user_session.check_organization_permission(group.organization_uuid, GlobalPermission.ADMIN)
        user = GroupService._get_user(db, login)

        if not GroupService.is_member(db, user.id, group.id):
            db.add(UserGroup(user_id=user.id, group_id=group.id))
            db.commit()
            logger.info(f"User {login} added to group {group.name}")

    @staticmethod
    def remove_user(
        db: Session,
        user_session: AbstractUserSession,
        login: str,
        group_id: Optional[int] = None,
        name: Optional[str] = None,
        organization_key: Optional[str] = None,
    ) -> None:
        group = GroupService.find_group(db, group_id, name, organization_key)
        user_session.check_logged_in()
        user_session.check_organization_permission(group.organization_uuid, GlobalPermission.ADMIN)
        user = GroupService._get_user(db, login)

        deleted = db.query(UserGroup).filter(
            UserGroup.user_id == user.id,
            UserGroup.group_id == group.id,
        ).delete(synchronize_session=False)
        db.commit()
        if deleted:
            logger.info(f"User {login} removed from group {group.name}")

    @staticmethod
    def is_member(db: Session, user_id: int, group_id: int) -> bool:
        query = db.query(UserGroup).filter(UserGroup.user_id == user_id, UserGroup.group_id == group_id)
        return db.query(query.exists()).scalar()

    @staticmethod
    def count_members(db: Session, group_id: int) -> int:
        return db.query(UserGroup).filter(UserGroup.group_id == group_id).count()

    @staticmethod
    def _get_user(db: Session, login: str) -> User:
        user = db.query(User).filter(User.login == login, User.active.is_(True)).first()
        return check_found(user, "Could not find a user with login '%s'", login)

