"""QualityHub - User Schemas"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr


class UserCreate(BaseModel):
    """创建用户"""
    login: str
    name: str
    password: str
    email: Optional[EmailStr] = None


class UserResponse(BaseModel):
    """用户响应"""
    id: int
    login: str
    name: Optional[str] = None
    email: Optional[str] = None
    is_root: bool
    active: bool

    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    """登录请求"""
    login: str
    password: str


class LoginResponse(BaseModel):
    """登录响应"""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
