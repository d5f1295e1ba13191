"""QualityHub - Organization Service

组织服务 - 提供组织创建、更新、删除、查询

创建组织时会同时创建：
- Owners 用户组（拥有所有全局权限），创建者自动加入
- 默认权限模板（Owners: admin/issueadmin，Anyone: user/codeviewer）
"""
from __future__ import annotations

import logging
import re
import unicodedata
from typing import List, Optional

from sqlalchemy.orm import Session

from qualityhub.core.config import settings
from qualityhub.core.exceptions import BadRequestException, check_argument, check_found, check_state
from qualityhub.database.component_models import Component, ROOT_QUALIFIERS
from qualityhub.database.organization_models import (
    Organization,
    PermTemplateGroup,
    PermissionTemplate,
    new_uuid,
)
from qualityhub.database.permission_models import GroupPermission, UserPermission
from qualityhub.database.user_models import Group, User, UserGroup
from qualityhub.services.component_service import ComponentCleanerService
from qualityhub.services.default_organization import DefaultOrganizationProvider
from qualityhub.services.organization_feature import OrganizationFeature
from qualityhub.services.permission_service import GLOBAL_PERMISSIONS, GlobalPermission, ProjectPermission
from qualityhub.services.user_session import AbstractUserSession

logger = logging.getLogger(__name__)

KEY_MIN_LENGTH = 2
KEY_MAX_LENGTH = 32
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 64
DESCRIPTION_MAX_LENGTH = 256
URL_MAX_LENGTH = 256

OWNERS_GROUP_NAME = "Owners"
OWNERS_GROUP_DESCRIPTION_PATTERN = "Owners of organization %s"
DEFAULT_TEMPLATE_NAME = "Default template"
PERM_TEMPLATE_DESCRIPTION_PATTERN = "Default permission template of organization %s"

SEARCH_MAX_PAGE_SIZE = 500

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """转换为 key 格式：小写字母、数字和中划线，首尾不能是中划线"""
    normalized = unicodedata.normalize("NFD", value)
    ascii_only = normalized.encode("ascii", "ignore").decode("ascii")
    return _NON_SLUG_CHARS.sub("-", ascii_only.lower()).strip("-")


# ========== 参数校验 ==========

def check_name(name: Optional[str]) -> str:
    check_argument(name, "Name can't be empty")
    check_argument(len(name) >= NAME_MIN_LENGTH, "Name '%s' must be at least %s chars long", name, NAME_MIN_LENGTH)
    check_argument(len(name) <= NAME_MAX_LENGTH, "Name '%s' must be at most %s chars long", name, NAME_MAX_LENGTH)
    return name


def check_key(key: Optional[str]) -> Optional[str]:
    if key is not None:
        check_argument(len(key) >= KEY_MIN_LENGTH, "Key '%s' must be at least %s chars long", key, KEY_MIN_LENGTH)
        check_argument(len(key) <= KEY_MAX_LENGTH, "Key '%s' must be at most %s chars long", key, KEY_MAX_LENGTH)
        check_argument(slugify(key) == key, "Key '%s' contains at least one invalid char", key)
    return key


def check_optional_length(label: str, value: Optional[str], max_length: int) -> Optional[str]:
    if value is not None:
        check_argument(
            len(value) <= max_length,
            "%s '%s' must be at most %s chars long", label, value, max_length,
        )
    return value


def use_or_generate_key(key: Optional[str], name: str) -> str:
    if key is None:
        return slugify(name[:KEY_MAX_LENGTH])
    return key


class OrganizationService:
    """组织服务"""

    # ========== 查询 ==========

    @staticmethod
    def get_by_key(db: Session, key: str) -> Optional[Organization]:
        return db.query(Organization).filter(Organization.kee == key).first()

    @staticmethod
    def get_by_uuid(db: Session, uuid: str) -> Optional[Organization]:
        return db.query(Organization).filter(Organization.uuid == uuid).first()

    @staticmethod
    def get_by_key_or_fail(db: Session, key: str) -> Organization:
        return check_found(OrganizationService.get_by_key(db, key), "No organization with key '%s'", key)

    @staticmethod
    def get_by_key_or_default(
        db: Session,
        key: Optional[str],
        default_organization_provider: Optional[DefaultOrganizationProvider] = None,
    ) -> Organization:
        """key 为空时返回默认组织"""
        if key is None:
            provider = default_organization_provider or DefaultOrganizationProvider()
            return OrganizationService.get_by_uuid(db, provider.get(db).uuid)
        return OrganizationService.get_by_key_or_fail(db, key)

    @staticmethod
    def search(
        db: Session,
        keys: Optional[List[str]] = None,
        page: int = 1,
        page_size: int = 25,
    ) -> tuple[List[Organization], int]:
        """分页查询组织，按创建时间倒序

        Returns:
            (当前页组织列表, 总数)
        """
        check_argument(page >= 1, "Page index must be strictly positive")
        check_argument(
            1 <= page_size <= SEARCH_MAX_PAGE_SIZE,
            "Page size must be between 1 and %s", SEARCH_MAX_PAGE_SIZE,
        )
        query = db.query(Organization)
        if keys:
            query = query.filter(Organization.kee.in_(keys))
        total = query.count()
        items = (
            query.order_by(Organization.created_at.desc(), Organization.kee)
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return items, total

    # ========== 创建 ==========

    @staticmethod
    def create(
        db: Session,
        user_session: AbstractUserSession,
        organization_feature: OrganizationFeature,
        name: Optional[str],
        key: Optional[str] = None,
        description: Optional[str] = None,
        url: Optional[str] = None,
        avatar: Optional[str] = None,
    ) -> Organization:
        """创建组织

        Raises:
            UnauthorizedException / ForbiddenException: 调用者无权创建
            IllegalStateError: 组织功能未开启
            BadRequestException: 参数校验失败或 key 已被使用
        """
        if settings.ORGANIZATIONS_ANYONE_CAN_CREATE:
            user_session.check_logged_in()
        else:
            user_session.check_is_root()

        organization_feature.check_enabled(db)

        name = check_name(name)
        request_key = check_key(key)
        key = use_or_generate_key(request_key, name)
        check_optional_length("Description", description, DESCRIPTION_MAX_LENGTH)
        check_optional_length("Url", url, URL_MAX_LENGTH)
        check_optional_length("Avatar", avatar, URL_MAX_LENGTH)
        OrganizationService._check_key_is_not_used(db, key, request_key, name)

        organization = Organization(
            uuid=new_uuid(),
            kee=key,
            name=name,
            description=description,
            url=url,
            avatar_url=avatar,
            guarded=False,
        )
        db.add(organization)
        db.flush()

        group = OrganizationService._create_owners_group(db, organization)
        OrganizationService._create_default_template(db, organization, group)
        if user_session.user_id is not None:
            db.add(UserGroup(user_id=user_session.user_id, group_id=group.id))

        db.commit()
        db.refresh(organization)

        logger.info(f"Organization created: {organization.kee} by {user_session.login}")
        return organization

    @staticmethod
    def _check_key_is_not_used(db: Session, key: str, request_key: Optional[str], name: str) -> None:
        is_used = OrganizationService.get_by_key(db, key) is not None
        check_argument(
            request_key is None or not is_used,
            "Key '%s' is already used. Specify another one.", key,
        )
        check_argument(
            request_key is not None or not is_used,
            "Key '%s' generated from name '%s' is already used. Specify one.", key, name,
        )

    @staticmethod
    def _create_owners_group(db: Session, organization: Organization) -> Group:
        """Owners 用户组：固定名称，拥有所有全局权限"""
        group = Group(
            organization_uuid=organization.uuid,
            name=OWNERS_GROUP_NAME,
            description=OWNERS_GROUP_DESCRIPTION_PATTERN % organization.name,
        )
        db.add(group)
        db.flush()
        for permission in GLOBAL_PERMISSIONS:
            db.add(GroupPermission(
                organization_uuid=organization.uuid,
                group_id=group.id,
                role=permission,
            ))
        return group

    @staticmethod
    def _create_default_template(db: Session, organization: Organization, group: Group) -> PermissionTemplate:
        template = PermissionTemplate(
            organization_uuid=organization.uuid,
            kee=new_uuid(),
            name=DEFAULT_TEMPLATE_NAME,
            description=PERM_TEMPLATE_DESCRIPTION_PATTERN % organization.name,
        )
        db.add(template)
        db.flush()

        grants = [
            (ProjectPermission.ADMIN, group.id),
            (ProjectPermission.ISSUE_ADMIN, group.id),
            (ProjectPermission.USER, None),
            (ProjectPermission.CODEVIEWER, None),
        ]
        for permission, group_id in grants:
            db.add(PermTemplateGroup(
                template_id=template.id,
                group_id=group_id,
                permission_reference=permission.value,
            ))

        organization.default_perm_template_project = template.kee
        return template

    # ========== 组织功能 ==========

    @staticmethod
    def enable_feature(
        db: Session,
        user_session: AbstractUserSession,
        organization_feature: OrganizationFeature,
    ) -> None:
        """开启组织功能，并将调用者设为 root（其他用户不受影响）"""
        user_session.check_logged_in()
        user_session.check_is_system_administrator()
        if organization_feature.is_enabled(db):
            raise BadRequestException("Organizations are already enabled")

        organization_feature.enable(db)
        user = db.query(User).filter(User.id == user_session.user_id).first()
        check_state(user is not None, "User with id %s does not exist", user_session.user_id)
        user.is_root = True
        db.commit()
        logger.info(f"Organizations enabled by {user_session.login}")

    # ========== 更新 ==========

    @staticmethod
    def update(
        db: Session,
        user_session: AbstractUserSession,
        organization_feature: OrganizationFeature,
        key: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        url: Optional[str] = None,
        avatar: Optional[str] = None,
    ) -> Organization:
        """更新组织信息（只更新非 None 的字段）"""
        user_session.check_logged_in()
        organization_feature.check_enabled(db)

        organization = OrganizationService.get_by_key_or_fail(db, key)
        user_session.check_organization_permission(organization.uuid, GlobalPermission.ADMIN)

        if name is not None:
            organization.name = check_name(name)
        if description is not None:
            organization.description = check_optional_length("Description", description, DESCRIPTION_MAX_LENGTH)
        if url is not None:
            organization.url = check_optional_length("Url", url, URL_MAX_LENGTH)
        if avatar is not None:
            organization.avatar_url = check_optional_length("Avatar", avatar, URL_MAX_LENGTH)

        db.commit()
        db.refresh(organization)
        logger.info(f"Organization updated: {organization.kee}")
        return organization

    # ========== 删除 ==========

    @staticmethod
    def delete(
        db: Session,
        user_session: AbstractUserSession,
        organization_feature: OrganizationFeature,
        key: str,
        default_organization_provider: Optional[DefaultOrganizationProvider] = None,
    ) -> None:
        """删除组织及其项目、用户组、权限和权限模板"""
        user_session.check_logged_in()
        organization_feature.check_enabled(db)

        provider = default_organization_provider or DefaultOrganizationProvider()
        if provider.get(db).key == key:
            raise BadRequestException("Default Organization can't be deleted")

        organization = OrganizationService.get_by_key_or_fail(db, key)
        if organization.guarded:
            user_session.check_is_root()
        else:
            user_session.check_organization_permission(organization.uuid, GlobalPermission.ADMIN)

        projects = db.query(Component).filter(
            Component.organization_uuid == organization.uuid,
            Component.qualifier.in_(ROOT_QUALIFIERS),
        ).all()
        for project in projects:
            ComponentCleanerService.delete(db, project)

        group_ids = [g.id for g in db.query(Group.id).filter(Group.organization_uuid == organization.uuid)]
        if group_ids:
            db.query(UserGroup).filter(UserGroup.group_id.in_(group_ids)).delete(synchronize_session=False)
            db.query(PermTemplateGroup).filter(PermTemplateGroup.group_id.in_(group_ids)).delete(
                synchronize_session=False
            )

        template_ids = [
            t.id for t in db.query(PermissionTemplate.id).filter(
                PermissionTemplate.organization_uuid == organization.uuid
            )
        ]
        if template_ids:
            db.query(PermTemplateGroup).filter(PermTemplateGroup.template_id.in_(template_ids)).delete(
                synchronize_session=False
            )

        db.query(GroupPermission).filter(GroupPermission.organization_uuid == organization.uuid).delete(
            synchronize_session=False
        )
        db.query(UserPermission).filter(UserPermission.organization_uuid == organization.uuid).delete(
            synchronize_session=False
        )
        db.query(PermissionTemplate).filter(PermissionTemplate.organization_uuid == organization.uuid).delete(
            synchronize_session=False
        )
        db.query(Group).filter(Group.organization_uuid == organization.uuid).delete(synchronize_session=False)
        db.delete(organization)
        db.commit()

        logger.info(f"Organization deleted: {key} by {user_session.login}")
