"""QualityHub - Organization Routes

组织管理 API 路由
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from qualityhub.api.deps.auth_deps import (
    get_default_organization_provider,
    get_organization_feature,
    get_user_session,
)
from qualityhub.database.config import get_db
from qualityhub.models.organization_schemas import (
    OrganizationCreate,
    OrganizationDelete,
    OrganizationResponse,
    OrganizationSearchResponse,
    OrganizationUpdate,
    OrganizationWrapper,
    Paging,
)
from qualityhub.services.default_organization import DefaultOrganizationProvider
from qualityhub.services.organization_feature import OrganizationFeature
from qualityhub.services.organization_service import OrganizationService
from qualityhub.services.user_session import AbstractUserSession

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.post("/create", response_model=OrganizationWrapper)
def create_organization(
    data: OrganizationCreate,
    db: Session = Depends(get_db),
    user_session: AbstractUserSession = Depends(get_user_session),
    organization_feature: OrganizationFeature = Depends(get_organization_feature),
):
    """创建组织

    当前用户自动加入组织的 Owners 用户组。
    """
    organization = OrganizationService.create(
        db,
        user_session,
        organization_feature,
        name=data.name,
        key=data.key,
        description=data.description,
        url=data.url,
        avatar=data.avatar,
    )
    return OrganizationWrapper(organization=OrganizationResponse.model_validate(organization))


@router.post("/enable_feature", status_code=status.HTTP_204_NO_CONTENT)
def enable_feature(
    db: Session = Depends(get_db),
    user_session: AbstractUserSession = Depends(get_user_session),
    organization_feature: OrganizationFeature = Depends(get_organization_feature),
):
    """开启组织功能，调用者成为 root"""
    OrganizationService.enable_feature(db, user_session, organization_feature)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/update", response_model=OrganizationWrapper)
def update_organization(
    data: OrganizationUpdate,
    db: Session = Depends(get_db),
    user_session: AbstractUserSession = Depends(get_user_session),
    organization_feature: OrganizationFeature = Depends(get_organization_feature),
):
    """更新组织信息"""
    organization = OrganizationService.update(
        db,
        user_session,
        organization_feature,
        key=data.key,
        name=data.name,
        description=data.description,
        url=data.url,
        avatar=data.avatar,
    )
    return OrganizationWrapper(organization=OrganizationResponse.model_validate(organization))


@router.post("/delete", status_code=status.HTTP_204_NO_CONTENT)
def delete_organization(
    data: OrganizationDelete,
    db: Session = Depends(get_db),
    user_session: AbstractUserSession = Depends(get_user_session),
    organization_feature: OrganizationFeature = Depends(get_organization_feature),
    default_organization_provider: DefaultOrganizationProvider = Depends(get_default_organization_provider),
):
    """删除组织及其项目、用户组和权限"""
    OrganizationService.delete(db, user_session, organization_feature, data.key, default_organization_provider)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/search", response_model=OrganizationSearchResponse)
def search_organizations(
    organizations: Optional[str] = Query(None, description="逗号分隔的组织 key"),
    p: int = Query(1),
    ps: int = Query(25),
    db: Session = Depends(get_db),
):
    """分页查询组织（按创建时间倒序）"""
    keys = [k.strip() for k in organizations.split(",") if k.strip()] if organizations else None
    items, total = OrganizationService.search(db, keys=keys, page=p, page_size=ps)
    return OrganizationSearchResponse(
        paging=Paging(pageIndex=p, pageSize=ps, total=total),
        organizations=[OrganizationResponse.model_validate(o) for o in items],
    )
