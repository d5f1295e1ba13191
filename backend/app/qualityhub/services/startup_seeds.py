"""QualityHub - Startup Seeding

启动时自动 seed 默认数据：默认组织、默认用户组、管理员用户组。
空库时权限判断依赖这些数据。
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from qualityhub.core.config import settings
from qualityhub.database.organization_models import Organization, PermissionTemplate, PermTemplateGroup, new_uuid
from qualityhub.database.permission_models import GroupPermission
from qualityhub.database.property_models import InternalPropertyKey
from qualityhub.database.user_models import Group, User, UserGroup
from qualityhub.services.auth_service import AuthService
from qualityhub.services.default_organization import DEFAULT_ORGANIZATION_KEY, DEFAULT_ORGANIZATION_NAME
from qualityhub.services.permission_service import GlobalPermission, ProjectPermission
from qualityhub.services.property_service import InternalPropertyService

logger = logging.getLogger(__name__)

ADMINISTRATORS_GROUP = "qualityhub-administrators"

# 管理员用户组拥有的全局权限
ADMINISTRATORS_PERMISSIONS = [
    GlobalPermission.ADMIN,
    GlobalPermission.QUALITY_PROFILE_ADMIN,
    GlobalPermission.QUALITY_GATE_ADMIN,
    GlobalPermission.PROVISIONING,
]


def seed_default_organization(db: Session) -> Organization:
    """若默认组织不存在，创建默认组织并登记到内部属性"""
    uuid = InternalPropertyService.select_by_key(db, InternalPropertyKey.DEFAULT_ORGANIZATION)
    if uuid:
        existing = db.query(Organization).filter(Organization.uuid == uuid).first()
        if existing:
            return existing

    organization = db.query(Organization).filter(Organization.kee == DEFAULT_ORGANIZATION_KEY).first()
    if organization is None:
        organization = Organization(
            uuid=new_uuid(),
            kee=DEFAULT_ORGANIZATION_KEY,
            name=DEFAULT_ORGANIZATION_NAME,
            guarded=True,
        )
        db.add(organization)
        db.flush()
    InternalPropertyService.save(db, InternalPropertyKey.DEFAULT_ORGANIZATION, organization.uuid)
    db.commit()
    logger.info(f"Default organization registered: {organization.uuid}")
    return organization


def _get_or_create_group(db: Session, organization: Organization, name: str, description: str) -> Group:
    group = db.query(Group).filter(Group.organization_uuid == organization.uuid, Group.name == name).first()
    if group is None:
        group = Group(organization_uuid=organization.uuid, name=name, description=description)
        db.add(group)
        db.flush()
    return group


def seed_default_groups(db: Session, organization: Organization) -> None:
    """默认用户组（新用户自动加入）和管理员用户组"""
    _get_or_create_group(db, organization, settings.DEFAULT_GROUP, "Any new users created will automatically join this group")

    administrators = _get_or_create_group(
        db, organization, ADMINISTRATORS_GROUP, "System administrators"
    )
    has_permissions = db.query(GroupPermission).filter(GroupPermission.group_id == administrators.id).first()
    if has_permissions is None:
        for permission in ADMINISTRATORS_PERMISSIONS:
            db.add(GroupPermission(
                organization_uuid=organization.uuid,
                group_id=administrators.id,
                role=permission.value,
            ))

    if not organization.default_perm_template_project:
        template = PermissionTemplate(
            organization_uuid=organization.uuid,
            kee=new_uuid(),
            name="Default template",
            description="This permission template will be used as default when no other permission configuration is available",
        )
        db.add(template)
        db.flush()
        grants = [
            (ProjectPermission.ADMIN, administrators.id),
            (ProjectPermission.ISSUE_ADMIN, administrators.id),
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

    db.commit()


def seed_admin_user(db: Session, organization: Organization, login: str, password: str) -> Optional[User]:
    """创建 root 管理员用户（已存在则跳过）"""
    if db.query(User).filter(User.login == login).first():
        return None

    user = User(
        login=login,
        name="Administrator",
        password_hash=AuthService.hash_password(password),
        is_root=True,
        active=True,
    )
    db.add(user)
    db.flush()

    for name in (settings.DEFAULT_GROUP, ADMINISTRATORS_GROUP):
        group = db.query(Group).filter(Group.organization_uuid == organization.uuid, Group.name == name).first()
        if group is not None:
            db.add(UserGroup(user_id=user.id, group_id=group.id))
    db.commit()
    logger.info(f"Administrator user created: {login}")
    return user


def run_startup_seeds(db: Session) -> Organization:
    """运行所有启动时 seed 逻辑，返回默认组织"""
    organization = seed_default_organization(db)
    seed_default_groups(db, organization)
    return organization
