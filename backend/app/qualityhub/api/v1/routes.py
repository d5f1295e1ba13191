from fastapi import APIRouter

from qualityhub.api.v1.routes_auth import router as auth_router
from qualityhub.api.v1.routes_organizations import router as organizations_router
from qualityhub.api.v1.routes_permissions import router as permissions_router
from qualityhub.api.v1.routes_projects import router as projects_router
from qualityhub.api.v1.routes_qualitygates import router as qualitygates_router
from qualityhub.api.v1.routes_roots import router as roots_router
from qualityhub.api.v1.routes_server_id import router as server_id_router
from qualityhub.api.v1.routes_user_groups import router as user_groups_router
from qualityhub.api.v1.routes_users import router as users_router

# 统一入口：所有 Web Service 都从 /api 开始
router = APIRouter(prefix="/api")

router.include_router(auth_router)
router.include_router(organizations_router)
router.include_router(permissions_router)
router.include_router(projects_router)
router.include_router(qualitygates_router)
router.include_router(roots_router)
router.include_router(server_id_router)
router.include_router(user_groups_router)
router.include_router(users_router)
