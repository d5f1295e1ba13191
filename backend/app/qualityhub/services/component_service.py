"""QualityHub - Component Service

组件查找、项目创建与删除
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from sqlalchemy.orm import Session

from qualityhub.core.exceptions import BadRequestException, NotFoundException, check_argument
from qualityhub.database.component_models import Component, Qualifier, ROOT_QUALIFIERS, Snapshot
from qualityhub.database.organization_models import Organization, PermTemplateGroup, PermissionTemplate, new_uuid
from qualityhub.database.permission_models import GroupPermission
from qualityhub.services.permission_service import GlobalPermission, PermissionService, ProjectPermission
from qualityhub.services.property_service import PropertyService
from qualityhub.services.user_session import AbstractUserSession

logger = logging.getLogger(__name__)

PROJECT_KEY_PATTERN = re.compile(r"^[\w\-.:]*[a-zA-Z\-_.:]+[\w\-.:]*$", re.ASCII)
KEY_MAX_LENGTH = 400


class ComponentFinder:
    """组件查找"""

    @staticmethod
    def get_by_uuid(db: Session, uuid: str) -> Component:
        component = db.query(Component).filter(Component.uuid == uuid).first()
        if component is None:
            raise NotFoundException(f"Component id '{uuid}' not found")
        return component

    @staticmethod
    def get_by_key(db: Session, key: str) -> Component:
        component = db.query(Component).filter(Component.kee == key).first()
        if component is None:
            raise NotFoundException(f"Component key '{key}' not found")
        return component

    @staticmethod
    def get_by_uuid_or_key(db: Session, uuid: Optional[str], key: Optional[str]) -> Component:
        """按 id 或 key 查找，两者必须且只能提供一个"""
        check_argument(
            (uuid is None) != (key is None),
            "Either 'id' or 'key' must be provided, not both",
        )
        if uuid is not None:
            return ComponentFinder.get_by_uuid(db, uuid)
        return ComponentFinder.get_by_key(db, key)

    @staticmethod
    def get_root_component(db: Session, uuid: Optional[str], key: Optional[str]) -> Component:
        """查找可授予权限的根组件（项目或视图）"""
        component = ComponentFinder.get_by_uuid_or_key(db, uuid, key)
        if component.qualifier not in ROOT_QUALIFIERS:
            raise BadRequestException(
                f"Component '{component.kee}' (id: {component.uuid}) must be a project or a view."
            )
        return component


class ComponentCleanerService:
    """组件删除"""

    @staticmethod
    def delete(db: Session, project: Component) -> None:
        """删除项目及其所有子组件、快照、权限和属性（不提交事务）"""
        check_argument(project.is_root, "Only projects and views can be deleted")

        components = db.query(Component).filter(Component.project_uuid == project.uuid).all()
        if project not in components:
            components.append(project)
        component_ids = [c.id for c in components]
        component_uuids = [c.uuid for c in components]

        db.query(Snapshot).filter(Snapshot.component_uuid.in_(component_uuids)).delete(synchronize_session=False)
        PermissionService.delete_project_permissions(db, component_ids)
        PropertyService.delete_properties_of_projects(db, component_ids)
        db.query(Component).filter(Component.id.in_(component_ids)).delete(synchronize_session=False)
        db.flush()

        logger.info(f"Project deleted: {project.kee} ({len(components)} components)")


class ProjectProvisioner:
    """项目创建（尚未分析的项目）"""

    @staticmethod
    def create(db: Session, organization: Organization, key: str, name: str) -> Component:
        """创建项目并应用组织的默认权限模板（不提交事务）"""
        check_argument(len(key) <= KEY_MAX_LENGTH, "Key '%s' must be at most %s chars long", key, KEY_MAX_LENGTH)
        check_argument(
            PROJECT_KEY_PATTERN.match(key),
            "Malformed key for Project: %s. Allowed characters are alphanumeric, '-', '_', '.' and ':', "
            "with at least one non-digit.",
            key,
        )
        existing = db.query(Component).filter(Component.kee == key).first()
        check_argument(existing is None, "Could not create Project, key already exists: %s", key)

        uuid = new_uuid()
        project = Component(
            uuid=uuid,
            organization_uuid=organization.uuid,
            kee=key,
            name=name,
            qualifier=Qualifier.PROJECT.value,
            scope="PRJ",
            project_uuid=uuid,
        )
        db.add(project)
        db.flush()

        ProjectProvisioner.apply_default_template(db, organization, project)
        logger.info(f"Project provisioned: {key} in organization {organization.kee}")
        return project

    @staticmethod
    def apply_default_template(db: Session, organization: Organization, project: Component) -> None:
        if not organization.default_perm_template_project:
            return
        template = db.query(PermissionTemplate).filter(
            PermissionTemplate.kee == organization.default_perm_template_project
        ).first()
        if template is None:
            return

        for template_group in db.query(PermTemplateGroup).filter(PermTemplateGroup.template_id == template.id):
            db.add(GroupPermission(
                organization_uuid=organization.uuid,
                group_id=template_group.group_id,
                resource_id=project.id,
                role=template_group.permission_reference,
            ))
        db.flush()


class ProjectService:
    """项目创建与删除（含权限检查，提交事务）"""

    @staticmethod
    def create(
        db: Session,
        user_session: AbstractUserSession,
        organization: Organization,
        key: str,
        name: str,
    ) -> Component:
        user_session.check_logged_in()
        user_session.check_organization_permission(organization.uuid, GlobalPermission.PROVISIONING)
        project = ProjectProvisioner.create(db, organization, key, name)
        db.commit()
        db.refresh(project)
        return project

    @staticmethod
    def delete(
        db: Session,
        user_session: AbstractUserSession,
        uuid: Optional[str] = None,
        key: Optional[str] = None,
    ) -> None:
        """删除项目：组织管理员，或项目管理员"""
        user_session.check_logged_in()
        project = ComponentFinder.get_by_uuid_or_key(db, uuid, key)
        if not user_session.has_organization_permission(project.organization_uuid, GlobalPermission.ADMIN):
            user_session.check_component_uuid_permission(ProjectPermission.ADMIN, project.project_uuid)
        ComponentCleanerService.delete(db, project)
        db.commit()
