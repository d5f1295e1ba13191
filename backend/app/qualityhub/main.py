"""QualityHub - Application

FastAPI 应用入口
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from qualityhub.api.v1.routes import router as api_router
from qualityhub.api.v1.routes_server_id import CONTROLLER_DESCRIPTION, CONTROLLER_SINCE
from qualityhub.core.exceptions import IllegalStateError
from qualityhub.database.config import session_scope
from qualityhub.logging_config import setup_logging
from qualityhub.services.startup_seeds import run_startup_seeds

logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "server_id", "description": f"{CONTROLLER_DESCRIPTION} Since {CONTROLLER_SINCE}."},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    with session_scope() as db:
        organization = run_startup_seeds(db)
        logger.info(f"QualityHub started, default organization {organization.kee}")
    yield


app = FastAPI(title="QualityHub", lifespan=lifespan, openapi_tags=OPENAPI_TAGS)
app.include_router(api_router)


@app.exception_handler(IllegalStateError)
async def illegal_state_handler(request: Request, exc: IllegalStateError):
    logger.error(f"Illegal state on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)})


@app.get("/healthz", include_in_schema=False)
def healthz():
    return {"ok": True}
