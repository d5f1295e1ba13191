"""QualityHub - Permission Schemas

权限授予 / 撤销请求
"""
from typing import Optional
from pydantic import BaseModel


class ProjectRef(BaseModel):
    """可选的项目引用（id 与 key 二选一）"""
    project_id: Optional[str] = None
    project_key: Optional[str] = None


class UserPermissionRequest(ProjectRef):
    """用户权限"""
    login: str
    permission: str
    organization: Optional[str] = None


class GroupPermissionRequest(ProjectRef):
    """用户组权限（group_id 与 group_name 二选一，group_name 可以是 Anyone）"""
    permission: str
    group_id: Optional[int] = None
    group_name: Optional[str] = None
    organization: Optional[str] = None
