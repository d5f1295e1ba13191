"""QualityHub - Auth Routes

认证 API 路由
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from qualityhub.api.deps.auth_deps import get_current_user
from qualityhub.core.exceptions import UnauthorizedException
from qualityhub.database.config import get_db
from qualityhub.database.user_models import User
from qualityhub.models.user_schemas import LoginRequest, LoginResponse, UserResponse
from qualityhub.services.auth_service import AuthService

router = APIRouter(prefix="/authentication", tags=["authentication"])


@router.post("/login", response_model=LoginResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """用户登录，返回 JWT 令牌"""
    user = AuthService.authenticate_user(db, data.login, data.password)
    if not user:
        raise UnauthorizedException("Incorrect login or password")
    token = AuthService.create_jwt_token(user)
    return LoginResponse(access_token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    """当前登录用户"""
    return current_user
