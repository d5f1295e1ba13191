"""QualityHub - Permission Routes

权限授予 / 撤销 API 路由
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from qualityhub.api.deps.auth_deps import get_default_organization_provider, get_user_session
from qualityhub.database.config import get_db
from qualityhub.models.permission_schemas import GroupPermissionRequest, UserPermissionRequest
from qualityhub.services.default_organization import DefaultOrganizationProvider
from qualityhub.services.permission_updater import PermissionUpdater
from qualityhub.services.user_session import AbstractUserSession

router = APIRouter(prefix="/permissions", tags=["permissions"])


def get_permission_updater(
    db: Session = Depends(get_db),
    user_session: AbstractUserSession = Depends(get_user_session),
    default_organization_provider: DefaultOrganizationProvider = Depends(get_default_organization_provider),
) -> PermissionUpdater:
    return PermissionUpdater(db, user_session, default_organization_provider)


@router.post("/add_user", status_code=status.HTTP_204_NO_CONTENT)
def add_user(data: UserPermissionRequest, updater: PermissionUpdater = Depends(get_permission_updater)):
    """授予用户权限（组织级或项目级）"""
    updater.add_user_permission(
        login=data.login,
        permission=data.permission,
        organization_key=data.organization,
        project_id=data.project_id,
        project_key=data.project_key,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/remove_user", status_code=status.HTTP_204_NO_CONTENT)
def remove_user(data: UserPermissionRequest, updater: PermissionUpdater = Depends(get_permission_updater)):
    updater.remove_user_permission(
        login=data.login,
        permission=data.permission,
        organization_key=data.organization,
        project_id=data.project_id,
        project_key=data.project_key,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/add_group", status_code=status.HTTP_204_NO_CONTENT)
def add_group(data: GroupPermissionRequest, updater: PermissionUpdater = Depends(get_permission_updater)):
    """授予用户组权限，组名 Anyone 表示所有用户"""
    updater.add_group_permission(
        permission=data.permission,
        group_id=data.group_id,
        group_name=data.group_name,
        organization_key=data.organization,
        project_id=data.project_id,
        project_key=data.project_key,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/remove_group", status_code=status.HTTP_204_NO_CONTENT)
def remove_group(data: GroupPermissionRequest, updater: PermissionUpdater = Depends(get_permission_updater)):
    updater.remove_group_permission(
        permission=data.permission,
        group_id=data.group_id,
        group_name=data.group_name,
        organization_key=data.organization,
        project_id=data.project_id,
        project_key=data.project_key,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
