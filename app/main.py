from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from app.api.archives import router as archives_router
from app.api.certificates import router as certificates_router
from app.api.deps import require_user_auth
from app.api.dispositions import router as dispositions_router
from app.api.incoming_letters import router as incoming_letters_router
from app.api.letters import router as letters_router
from app.api.numbering import router as numbering_router
from app.api.outgoing_letters import router as outgoing_letters_router
from app.api.persons import router as people_router
from app.api.rbac import router as rbac_router
from app.api.templates import router as templates_router
from app.api.verify import router as verify_router
from app.config import settings
from app.db import SessionLocal
from app.errors import register_error_handlers
from app.logging import configure_logging
from app.observability import ObservabilityMiddleware
from app.services.rbac import permissions


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = SessionLocal()
    try:
        permissions.seed_defaults(db)
    finally:
        db.close()
    yield


app = FastAPI(title=f"{settings.brand_name} API", lifespan=lifespan)

configure_logging()
app.add_middleware(ObservabilityMiddleware)
register_error_handlers(app)


def _include_api_router(router, dependencies=None):
    app.include_router(router, dependencies=dependencies)
    app.include_router(router, prefix="/api/v1", dependencies=dependencies)


_include_api_router(rbac_router, dependencies=[Depends(require_user_auth)])
_include_api_router(people_router, dependencies=[Depends(require_user_auth)])
_include_api_router(numbering_router, dependencies=[Depends(require_user_auth)])
_include_api_router(templates_router, dependencies=[Depends(require_user_auth)])
_include_api_router(incoming_letters_router, dependencies=[Depends(require_user_auth)])
_include_api_router(dispositions_router, dependencies=[Depends(require_user_auth)])
_include_api_router(outgoing_letters_router, dependencies=[Depends(require_user_auth)])
_include_api_router(letters_router, dependencies=[Depends(require_user_auth)])
_include_api_router(certificates_router, dependencies=[Depends(require_user_auth)])
_include_api_router(archives_router, dependencies=[Depends(require_user_auth)])
_include_api_router(verify_router)


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
