"""QualityHub - User Group Schemas"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class GroupCreate(BaseModel):
    """创建用户组"""
    name: Optional[str] = None
    description: Optional[str] = None
    organization: Optional[str] = None


class GroupRef(BaseModel):
    """用户组引用：id，或 name + 可选的组织 key"""
    id: Optional[int] = None
    name: Optional[str] = None
    organization: Optional[str] = None


class GroupMembership(GroupRef):
    login: str


class GroupResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    organization_uuid: str = Field(serialization_alias="organization")
    members_count: int = Field(default=0, serialization_alias="membersCount")

    model_config = ConfigDict(from_attributes=True)


class GroupWrapper(BaseModel):
    group: GroupResponse
