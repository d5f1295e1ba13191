"""QualityHub - User Group Routes

用户组管理 API 路由
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from qualityhub.api.deps.auth_deps import get_default_organization_provider, get_user_session
from qualityhub.database.config import get_db
from qualityhub.models.group_schemas import GroupCreate, GroupMembership, GroupRef, GroupResponse, GroupWrapper
from qualityhub.services.default_organization import DefaultOrganizationProvider
from qualityhub.services.group_service import GroupService
from qualityhub.services.user_session import AbstractUserSession

router = APIRouter(prefix="/user_groups", tags=["user_groups"])


@router.post("/create", response_model=GroupWrapper)
def create_group(
    data: GroupCreate,
    db: Session = Depends(get_db),
    user_session: AbstractUserSession = Depends(get_user_session),
    default_organization_provider: DefaultOrganizationProvider = Depends(get_default_organization_provider),
):
    """创建用户组"""
    group = GroupService.create(
        db,
        user_session,
        name=data.name,
        description=data.description,
        organization_key=data.organization,
        default_organization_provider=default_organization_provider,
    )
    return GroupWrapper(group=GroupResponse.model_validate(group))


@router.post("/delete", status_code=status.HTTP_204_NO_CONTENT)
def delete_group(
    data: GroupRef,
    db: Session = Depends(get_db),
    user_session: AbstractUserSession = Depends(get_user_session),
    default_organization_provider: DefaultOrganizationProvider = Depends(get_default_organization_provider),
):
    """删除用户组

    默认用户组和最后一个管理员用户组不能删除。
    """
    GroupService.delete(
        db,
        user_session,
        group_id=data.id,
        name=data.name,
        organization_key=data.organization,
        default_organization_provider=default_organization_provider,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/add_user", status_code=status.HTTP_204_NO_CONTENT)
def add_user(
    data: GroupMembership,
    db: Session = Depends(get_db),
    user_session: AbstractUserSession = Depends(get_user_session),
):
    GroupService.add_user(db, user_session, data.login, group_id=data.id, name=data.name,
                          organization_key=data.organization)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/remove_user", status_code=status.HTTP_204_NO_CONTENT)
def remove_user(
    data: GroupMembership,
    db: Session = Depends(get_db),
    user_session: AbstractUserSession = Depends(get_user_session),
):
    GroupService.remove_user(db, user_session, data.login, group_id=data.id, name=data.name,
                             organization_key=data.organization)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
