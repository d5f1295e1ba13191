"""QualityHub - Organization Schemas

组织相关 Pydantic 模型

长度与格式校验在服务层完成，以返回统一的错误信息。
"""
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field


class OrganizationCreate(BaseModel):
    """创建组织"""
    name: Optional[str] = None
    key: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    avatar: Optional[str] = None


class OrganizationUpdate(BaseModel):
    """更新组织"""
    key: str
    name: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    avatar: Optional[str] = None


class OrganizationDelete(BaseModel):
    """删除组织"""
    key: str


class OrganizationResponse(BaseModel):
    """组织响应"""
    key: str = Field(validation_alias="kee")
    name: str
    description: Optional[str] = None
    url: Optional[str] = None
    avatar: Optional[str] = Field(default=None, validation_alias="avatar_url")
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class OrganizationWrapper(BaseModel):
    """单个组织响应 {"organization": {...}}"""
    organization: OrganizationResponse


class Paging(BaseModel):
    pageIndex: int
    pageSize: int
    total: int


class OrganizationSearchResponse(BaseModel):
    """组织列表响应"""
    paging: Paging
    organizations: List[OrganizationResponse]
