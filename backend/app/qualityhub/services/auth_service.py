"""QualityHub - Auth Service

登录认证与 JWT 令牌

- 密码以 "<salt>$<sha256(salt + password)>" 形式保存
- 令牌 sub 为用户 id，login 声明必须与用户当前登录名一致
"""
import hashlib
import hmac
import logging
import secrets
import uuid as uuid_module
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from jwt.exceptions import InvalidTokenError
from sqlalchemy.orm import Session

from qualityhub.core.config import settings
from qualityhub.database.user_models import User

logger = logging.getLogger(__name__)

SALT_BYTES = 8


class AuthService:
    """认证服务"""

    @staticmethod
    def hash_password(password: str, salt: Optional[str] = None) -> str:
        salt = salt or secrets.token_hex(SALT_BYTES)
        digest = hashlib.sha256((salt + password).encode("utf-8")).hexdigest()
        return f"{salt}${digest}"

    @staticmethod
    def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
        if not hashed_password or "$" not in hashed_password:
            return False
        salt = hashed_password.split("$", 1)[0]
        return hmac.compare_digest(AuthService.hash_password(plain_password, salt), hashed_password)

    @staticmethod
    def authenticate_user(db: Session, login: str, password: str) -> Optional[User]:
        """校验登录名与密码，失败返回 None"""
        user = db.query(User).filter(User.login == login, User.active.is_(True)).first()
        if user is None or not AuthService.verify_password(password, user.password_hash):
            logger.info(f"Authentication failed for login {login}")
            return None
        return user

    # ========== JWT ==========

    @staticmethod
    def create_jwt_token(user: User) -> str:
        issued_at = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "sub": str(user.id),
            "login": user.login,
            "iat": issued_at,
            "exp": issued_at + timedelta(hours=settings.JWT_EXPIRE_HOURS),
            "jti": uuid_module.uuid4().hex,
        }
        return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    @staticmethod
    def decode_jwt_token(token: str) -> Optional[Dict[str, Any]]:
        """签名无效或已过期时返回 None"""
        try:
            return jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[settings.JWT_ALGORITHM],
                options={"require": ["sub", "exp"]},
            )
        except InvalidTokenError as e:
            logger.debug(f"Rejected token: {e}")
            return None

    @staticmethod
    def verify_jwt_token(db: Session, token: str) -> Optional[User]:
        """令牌对应的活跃用户，否则返回 None

        用户改名后旧令牌失效。
        """
        payload = AuthService.decode_jwt_token(token)
        if payload is None:
            return None

        try:
            user_id = int(payload["sub"])
        except ValueError:
            logger.warning(f"Invalid subject in token: {payload['sub']}")
            return None

        user = db.query(User).filter(User.id == user_id, User.active.is_(True)).first()
        if user is None:
            return None
        if payload.get("login") is not None and payload["login"] != user.login:
            return None
        return user
