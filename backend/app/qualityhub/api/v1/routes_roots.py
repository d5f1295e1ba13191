"""QualityHub - Root Routes

root 用户管理 API 路由
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from qualityhub.api.deps.auth_deps import get_user_session
from qualityhub.database.config import get_db
from qualityhub.models.root_schemas import RootLogin, RootResponse, RootSearchResponse
from qualityhub.services.root_service import RootService
from qualityhub.services.user_session import AbstractUserSession

router = APIRouter(prefix="/roots", tags=["roots"])


@router.get("/search", response_model=RootSearchResponse)
def search_roots(
    db: Session = Depends(get_db),
    user_session: AbstractUserSession = Depends(get_user_session),
):
    """列出所有 root 用户"""
    users = RootService.search(db, user_session)
    return RootSearchResponse(roots=[RootResponse.model_validate(u) for u in users])


@router.post("/set_root", status_code=status.HTTP_204_NO_CONTENT)
def set_root(
    data: RootLogin,
    db: Session = Depends(get_db),
    user_session: AbstractUserSession = Depends(get_user_session),
):
    RootService.set_root(db, user_session, data.login)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/unset_root", status_code=status.HTTP_204_NO_CONTENT)
def unset_root(
    data: RootLogin,
    db: Session = Depends(get_db),
    user_session: AbstractUserSession = Depends(get_user_session),
):
    """取消 root（不能取消最后一个 root）"""
    RootService.unset_root(db, user_session, data.login)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
