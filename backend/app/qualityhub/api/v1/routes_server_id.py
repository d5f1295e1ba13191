"""QualityHub - Server ID Routes

服务器 ID API 路由
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from qualityhub.api.deps.auth_deps import get_user_session
from qualityhub.database.config import get_db
from qualityhub.models.server_id_schemas import (
    ServerIdGenerate,
    ServerIdGenerateResponse,
    ServerIdShowResponse,
)
from qualityhub.services.server_id_service import ServerIdGenerator, ServerIdService
from qualityhub.services.user_session import AbstractUserSession

CONTROLLER_PATH = "/server_id"
CONTROLLER_SINCE = "6.1"
CONTROLLER_DESCRIPTION = "Get server id information and generate server id."

router = APIRouter(prefix=CONTROLLER_PATH, tags=["server_id"])


def get_server_id_generator() -> ServerIdGenerator:
    return ServerIdGenerator()


def get_server_id_service(
    db: Session = Depends(get_db),
    user_session: AbstractUserSession = Depends(get_user_session),
    generator: ServerIdGenerator = Depends(get_server_id_generator),
) -> ServerIdService:
    return ServerIdService(db, user_session, generator)


@router.get("/show", response_model=ServerIdShowResponse)
def show(service: ServerIdService = Depends(get_server_id_service)):
    """查看服务器 ID 信息（仅系统管理员）"""
    info = service.show()
    return ServerIdShowResponse(
        serverId=info.server_id,
        organization=info.organization,
        ip=info.ip,
        validIpAddresses=info.valid_ip_addresses,
        invalidServerId=info.invalid_server_id,
    )


@router.post("/generate", response_model=ServerIdGenerateResponse)
def generate(data: ServerIdGenerate, service: ServerIdService = Depends(get_server_id_service)):
    """生成并保存服务器 ID（仅系统管理员）"""
    return ServerIdGenerateResponse(serverId=service.generate(data.organization, data.ip))
