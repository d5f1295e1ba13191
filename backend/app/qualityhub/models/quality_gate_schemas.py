"""QualityHub - Quality Gate Schemas

质量门相关 Pydantic 模型
"""
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field


class QualityGateName(BaseModel):
    """创建质量门"""
    name: Optional[str] = None


class QualityGateRename(BaseModel):
    id: int
    name: Optional[str] = None


class QualityGateId(BaseModel):
    id: int


class ConditionCreate(BaseModel):
    """创建条件"""
    gateId: int
    metric: str
    op: str
    warning: Optional[str] = None
    error: Optional[str] = None
    period: Optional[int] = None


class ConditionUpdate(BaseModel):
    """更新条件"""
    id: int
    metric: str
    op: str
    warning: Optional[str] = None
    error: Optional[str] = None
    period: Optional[int] = None


class ConditionId(BaseModel):
    id: int


class ProjectSelection(BaseModel):
    """关联 / 解除关联项目"""
    gateId: int
    projectId: Optional[str] = None
    projectKey: Optional[str] = None


class QualityGateResponse(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class ConditionResponse(BaseModel):
    id: int
    metric: Optional[str] = Field(default=None, validation_alias="metric_key")
    op: str = Field(validation_alias="operator")
    warning: Optional[str] = Field(default=None, validation_alias="value_warning")
    error: Optional[str] = Field(default=None, validation_alias="value_error")
    period: Optional[int] = None

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class QualityGateListResponse(BaseModel):
    qualitygates: List[QualityGateResponse]
    default: Optional[int] = None


class QualityGateShowResponse(BaseModel):
    id: int
    name: str
    conditions: List[ConditionResponse]
