"""QualityHub - Quality Gate Routes

质量门 API 路由
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from qualityhub.api.deps.auth_deps import get_default_organization_provider, get_user_session
from qualityhub.core.exceptions import check_argument
from qualityhub.database.config import get_db
from qualityhub.models.quality_gate_schemas import (
    ConditionCreate,
    ConditionId,
    ConditionResponse,
    ConditionUpdate,
    ProjectSelection,
    QualityGateId,
    QualityGateListResponse,
    QualityGateName,
    QualityGateRename,
    QualityGateResponse,
    QualityGateShowResponse,
)
from qualityhub.services.component_service import ComponentFinder
from qualityhub.services.default_organization import DefaultOrganizationProvider
from qualityhub.services.quality_gate_service import QualityGates
from qualityhub.services.user_session import AbstractUserSession

router = APIRouter(prefix="/qualitygates", tags=["qualitygates"])


def get_quality_gates(
    db: Session = Depends(get_db),
    user_session: AbstractUserSession = Depends(get_user_session),
    default_organization_provider: DefaultOrganizationProvider = Depends(get_default_organization_provider),
) -> QualityGates:
    return QualityGates(db, user_session, default_organization_provider)


@router.post("/create", response_model=QualityGateResponse)
def create(data: QualityGateName, quality_gates: QualityGates = Depends(get_quality_gates)):
    """创建质量门"""
    return quality_gates.create(data.name)


@router.post("/rename", response_model=QualityGateResponse)
def rename(data: QualityGateRename, quality_gates: QualityGates = Depends(get_quality_gates)):
    return quality_gates.rename(data.id, data.name)


@router.post("/copy", response_model=QualityGateResponse)
def copy(data: QualityGateRename, quality_gates: QualityGates = Depends(get_quality_gates)):
    """复制质量门及其条件"""
    return quality_gates.copy(data.id, data.name)


@router.post("/destroy", status_code=status.HTTP_204_NO_CONTENT)
def destroy(data: QualityGateId, quality_gates: QualityGates = Depends(get_quality_gates)):
    quality_gates.delete(data.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/list", response_model=QualityGateListResponse)
def list_quality_gates(quality_gates: QualityGates = Depends(get_quality_gates)):
    default = quality_gates.get_default()
    return QualityGateListResponse(
        qualitygates=[QualityGateResponse.model_validate(g) for g in quality_gates.list()],
        default=default.id if default else None,
    )


@router.get("/show", response_model=QualityGateShowResponse)
def show(
    id: Optional[int] = Query(None),
    name: Optional[str] = Query(None),
    quality_gates: QualityGates = Depends(get_quality_gates),
):
    """按 id 或名称查看质量门及其条件"""
    check_argument((id is None) != (name is None), "Either 'id' or 'name' must be set")
    gate = quality_gates.get(id) if id is not None else quality_gates.get_by_name(name)
    return QualityGateShowResponse(
        id=gate.id,
        name=gate.name,
        conditions=[ConditionResponse.model_validate(c) for c in quality_gates.list_conditions(gate.id)],
    )


@router.post("/set_as_default", status_code=status.HTTP_204_NO_CONTENT)
def set_as_default(data: QualityGateId, quality_gates: QualityGates = Depends(get_quality_gates)):
    quality_gates.set_default(data.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/unset_default", status_code=status.HTTP_204_NO_CONTENT)
def unset_default(quality_gates: QualityGates = Depends(get_quality_gates)):
    quality_gates.set_default(None)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/create_condition", response_model=ConditionResponse)
def create_condition(data: ConditionCreate, quality_gates: QualityGates = Depends(get_quality_gates)):
    condition = quality_gates.create_condition(
        data.gateId, data.metric, data.op, data.warning, data.error, data.period
    )
    return ConditionResponse.model_validate(condition)


@router.post("/update_condition", response_model=ConditionResponse)
def update_condition(data: ConditionUpdate, quality_gates: QualityGates = Depends(get_quality_gates)):
    condition = quality_gates.update_condition(
        data.id, data.metric, data.op, data.warning, data.error, data.period
    )
    return ConditionResponse.model_validate(condition)


@router.post("/delete_condition", status_code=status.HTTP_204_NO_CONTENT)
def delete_condition(data: ConditionId, quality_gates: QualityGates = Depends(get_quality_gates)):
    quality_gates.delete_condition(data.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/select", status_code=status.HTTP_204_NO_CONTENT)
def select(
    data: ProjectSelection,
    db: Session = Depends(get_db),
    quality_gates: QualityGates = Depends(get_quality_gates),
):
    """将项目关联到质量门"""
    project = ComponentFinder.get_by_uuid_or_key(db, data.projectId, data.projectKey)
    quality_gates.associate_project(data.gateId, project)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/deselect", status_code=status.HTTP_204_NO_CONTENT)
def deselect(
    data: ProjectSelection,
    db: Session = Depends(get_db),
    quality_gates: QualityGates = Depends(get_quality_gates),
):
    project = ComponentFinder.get_by_uuid_or_key(db, data.projectId, data.projectKey)
    quality_gates.dissociate_project(data.gateId, project)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
