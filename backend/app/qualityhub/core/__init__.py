"""Core package"""
from qualityhub.core.exceptions import (
    BadRequestException,
    ForbiddenException,
    IllegalStateError,
    NotFoundException,
    ServerException,
    UnauthorizedException,
)

__all__ = [
    "BadRequestException",
    "ForbiddenException",
    "IllegalStateError",
    "NotFoundException",
    "ServerException",
    "UnauthorizedException",
]
