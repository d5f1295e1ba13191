"""QualityHub - User Routes

用户管理 API 路由
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from qualityhub.api.deps.auth_deps import get_default_organization_provider, get_user_session
from qualityhub.database.config import get_db
from qualityhub.models.user_schemas import UserCreate, UserResponse
from qualityhub.services.default_organization import DefaultOrganizationProvider
from qualityhub.services.user_service import UserService
from qualityhub.services.user_session import AbstractUserSession

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/create", response_model=UserResponse, status_code=201)
def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    user_session: AbstractUserSession = Depends(get_user_session),
    default_organization_provider: DefaultOrganizationProvider = Depends(get_default_organization_provider),
):
    """创建用户（仅系统管理员），新用户自动加入默认用户组"""
    return UserService.create(
        db,
        user_session,
        login=data.login,
        name=data.name,
        password=data.password,
        email=data.email,
        default_organization_provider=default_organization_provider,
    )
