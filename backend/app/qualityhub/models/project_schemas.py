"""QualityHub - Project Schemas"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ProjectCreate(BaseModel):
    """创建项目"""
    key: str
    name: str
    organization: Optional[str] = None


class ProjectDelete(BaseModel):
    """删除项目（id 与 key 二选一）"""
    id: Optional[str] = None
    key: Optional[str] = None


class ProjectResponse(BaseModel):
    id: str = Field(validation_alias="uuid")
    key: str = Field(validation_alias="kee")
    name: Optional[str] = None
    qualifier: str

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class ProjectWrapper(BaseModel):
    project: ProjectResponse
