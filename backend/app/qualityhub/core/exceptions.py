"""QualityHub - Exceptions

服务端异常体系

所有 ServerException 都是 FastAPI HTTPException，路由层无需再做转换，
服务层直接抛出即可得到对应的 HTTP 状态码。
"""
from __future__ import annotations

from typing import Any, Iterable, Optional, TypeVar

from fastapi import status
from fastapi import HTTPException

T = TypeVar("T")

INSUFFICIENT_PRIVILEGES_MESSAGE = "Insufficient privileges"
AUTHENTICATION_IS_REQUIRED_MESSAGE = "Authentication is required"


class ServerException(HTTPException):
    """服务端业务异常基类"""

    def __init__(self, status_code: int, message: str, headers: Optional[dict[str, str]] = None):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message = message

    def __str__(self) -> str:
        return self.message


class BadRequestException(ServerException):
    """400 - 参数或业务校验失败

    可以一次携带多条错误信息。
    """

    def __init__(self, errors: str | Iterable[str]):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        if not self.errors:
            raise ValueError("At least one error message is required")
        super().__init__(status.HTTP_400_BAD_REQUEST, self.errors[0])
        if len(self.errors) > 1:
            self.detail = self.errors


class UnauthorizedException(ServerException):
    """401 - 需要认证"""

    def __init__(self, message: str = AUTHENTICATION_IS_REQUIRED_MESSAGE):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            message,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenException(ServerException):
    """403 - 权限不足"""

    def __init__(self, message: str = INSUFFICIENT_PRIVILEGES_MESSAGE):
        super().__init__(status.HTTP_403_FORBIDDEN, message)


class NotFoundException(ServerException):
    """404 - 资源不存在"""

    def __init__(self, message: str):
        super().__init__(status.HTTP_404_NOT_FOUND, message)


class IllegalStateError(RuntimeError):
    """服务端状态不一致（例如功能未开启、引用的数据缺失）"""


def insufficient_privileges() -> ForbiddenException:
    return ForbiddenException(INSUFFICIENT_PRIVILEGES_MESSAGE)


def check_argument(condition: Any, message: str, *args: Any) -> None:
    """条件不满足时抛出 400"""
    if not condition:
        raise BadRequestException(message % args if args else message)


def check_found(obj: Optional[T], message: str, *args: Any) -> T:
    """对象为空时抛出 404，否则原样返回"""
    if obj is None:
        raise NotFoundException(message % args if args else message)
    return obj


def check_state(condition: Any, message: str, *args: Any) -> None:
    if not condition:
        raise IllegalStateError(message % args if args else message)


class Errors:
    """收集多条校验错误，统一以 BadRequestException 抛出"""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def add(self, message: str) -> "Errors":
        self.messages.append(message)
        return self

    def check(self, condition: bool, message: str) -> bool:
        if not condition:
            self.add(message)
        return condition

    def is_empty(self) -> bool:
        return not self.messages

    def raise_if_any(self) -> None:
        if self.messages:
            raise BadRequestException(self.messages)
