"""QualityHub - 认证依赖

提供 get_current_user 和 get_user_session 依赖
"""
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from qualityhub.core.exceptions import UnauthorizedException
from qualityhub.database.config import get_db
from qualityhub.database.user_models import User
from qualityhub.services.auth_service import AuthService
from qualityhub.services.default_organization import DefaultOrganizationProvider
from qualityhub.services.organization_feature import OrganizationFeature
from qualityhub.services.user_session import AbstractUserSession, ServerUserSession


def _extract_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization.removeprefix("Bearer ").strip() or None


def get_organization_feature() -> OrganizationFeature:
    return OrganizationFeature()


def get_default_organization_provider() -> DefaultOrganizationProvider:
    return DefaultOrganizationProvider()


async def get_current_user_optional(
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """解析 Authorization header，无效或缺失时返回 None"""
    token = _extract_token(authorization)
    if token is None:
        return None
    return AuthService.verify_jwt_token(db, token)


async def get_current_user(
    user: Optional[User] = Depends(get_current_user_optional),
) -> User:
    """必须登录

    Raises:
        UnauthorizedException: 401 如果认证失败
    """
    if user is None:
        raise UnauthorizedException()
    return user


async def get_user_session(
    user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
    organization_feature: OrganizationFeature = Depends(get_organization_feature),
    default_organization_provider: DefaultOrganizationProvider = Depends(get_default_organization_provider),
) -> AbstractUserSession:
    """当前请求的用户会话（未登录时为匿名会话）"""
    return ServerUserSession(
        db,
        user,
        organization_feature=organization_feature,
        default_organization_provider=default_organization_provider,
    )
