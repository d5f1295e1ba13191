"""QualityHub - Root Service

root 用户管理

API 与 CLI 共用同一套 "最后一个 root" 检查，只统计活跃用户。
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from qualityhub.core.exceptions import check_argument, check_found
from qualityhub.database.user_models import User
from qualityhub.services.user_session import AbstractUserSession

logger = logging.getLogger(__name__)

LAST_ROOT_MESSAGE = "Last root can't be unset"


class RootService:
    """root 用户管理，只有 root 可以调用"""

    @staticmethod
    def search(db: Session, user_session: AbstractUserSession) -> List[User]:
        user_session.check_is_root()
        return db.query(User).filter(User.is_root.is_(True), User.active.is_(True)).order_by(User.login).all()

    @staticmethod
    def set_root(db: Session, user_session: AbstractUserSession, login: str) -> User:
        user_session.check_is_root()
        user = RootService._get_user(db, login)
        if not user.is_root:
            user.is_root = True
            db.commit()
            logger.info(f"Root flag set on user {login} by {user_session.login}")
        return user

    @staticmethod
    def unset_root(db: Session, user_session: AbstractUserSession, login: str) -> User:
        user_session.check_is_root()
        user = RootService._get_user(db, login)
        if user.is_root:
            check_argument(RootService.can_unset_root(db, user), LAST_ROOT_MESSAGE)
            user.is_root = False
            db.commit()
            logger.info(f"Root flag unset on user {login} by {user_session.login}")
        return user

    @staticmethod
    def find_active_user(db: Session, login: str) -> Optional[User]:
        return db.query(User).filter(User.login == login, User.active.is_(True)).first()

    @staticmethod
    def can_unset_root(db: Session, user: User) -> bool:
        """取消后是否还剩至少一个活跃 root"""
        remaining = db.query(User).filter(
            User.is_root.is_(True),
            User.active.is_(True),
            User.id != user.id,
        ).count()
        return remaining > 0

    @staticmethod
    def _get_user(db: Session, login: str) -> User:
        return check_found(RootService.find_active_user(db, login), "User with login '%s' not found", login)
