"""QualityHub - Project Routes

项目管理 API 路由
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from qualityhub.api.deps.auth_deps import get_default_organization_provider, get_user_session
from qualityhub.database.config import get_db
from qualityhub.models.project_schemas import ProjectCreate, ProjectDelete, ProjectResponse, ProjectWrapper
from qualityhub.services.component_service import ProjectService
from qualityhub.services.default_organization import DefaultOrganizationProvider
from qualityhub.services.organization_service import OrganizationService
from qualityhub.services.user_session import AbstractUserSession

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("/create", response_model=ProjectWrapper)
def create_project(
    data: ProjectCreate,
    db: Session = Depends(get_db),
    user_session: AbstractUserSession = Depends(get_user_session),
    default_organization_provider: DefaultOrganizationProvider = Depends(get_default_organization_provider),
):
    """创建项目并应用组织默认权限模板"""
    organization = OrganizationService.get_by_key_or_default(db, data.organization, default_organization_provider)
    project = ProjectService.create(db, user_session, organization, data.key, data.name)
    return ProjectWrapper(project=ProjectResponse.model_validate(project))


@router.post("/delete", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    data: ProjectDelete,
    db: Session = Depends(get_db),
    user_session: AbstractUserSession = Depends(get_user_session),
):
    """删除项目（id 与 key 二选一）"""
    ProjectService.delete(db, user_session, uuid=data.id, key=data.key)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
