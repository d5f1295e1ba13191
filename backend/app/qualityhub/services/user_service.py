"""QualityHub - User Service

用户创建
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from qualityhub.core.config import settings
from qualityhub.core.exceptions import check_argument, check_state
from qualityhub.database.user_models import Group, User, UserGroup
from qualityhub.services.auth_service import AuthService
from qualityhub.services.default_organization import DefaultOrganizationProvider
from qualityhub.services.user_session import AbstractUserSession

logger = logging.getLogger(__name__)

LOGIN_MIN_LENGTH = 2
LOGIN_MAX_LENGTH = 255


class UserService:
    """用户服务"""

    @staticmethod
    def create(
        db: Session,
        user_session: AbstractUserSession,
        login: str,
        name: str,
        password: str,
        email: Optional[str] = None,
        default_organization_provider: Optional[DefaultOrganizationProvider] = None,
    ) -> User:
        """创建用户并加入默认用户组（仅系统管理员）"""
        user_session.check_logged_in().check_is_system_administrator()

        check_argument(
            LOGIN_MIN_LENGTH <= len(login) <= LOGIN_MAX_LENGTH,
            "Login should contain between %s and %s characters", LOGIN_MIN_LENGTH, LOGIN_MAX_LENGTH,
        )
        existing = db.query(User).filter(User.login == login).first()
        check_argument(existing is None, "A user with login '%s' already exists", login)

        user = User(
            login=login,
            name=name,
            email=email,
            password_hash=AuthService.hash_password(password),
            is_root=False,
            active=True,
        )
        db.add(user)
        db.flush()

        default_group = UserService.get_default_group(db, default_organization_provider)
        db.add(UserGroup(user_id=user.id, group_id=default_group.id))
        db.commit()
        db.refresh(user)

        logger.info(f"User created: {login} by {user_session.login}")
        return user

    @staticmethod
    def get_default_group(
        db: Session,
        default_organization_provider: Optional[DefaultOrganizationProvider] = None,
    ) -> Group:
        provider = default_organization_provider or DefaultOrganizationProvider()
        organization_uuid = provider.get(db).uuid
        group = db.query(Group).filter(
            Group.organization_uuid == organization_uuid,
            Group.name == settings.DEFAULT_GROUP,
        ).first()
        check_state(group is not None, "Default group '%s' does not exist", settings.DEFAULT_GROUP)
        return group
