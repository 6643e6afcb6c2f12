from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from product_api.core.deps import get_store
from product_api.repositories import ProductStore

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request):
    settings = request.app.state.settings
    return {
        "status": "ok",
        "service": settings.app_name,
        "env": settings.environment,
        "version": settings.app_version,
    }


@router.get("/health/ready", responses={503: {"description": "Database unreachable"}})
def ready(store: ProductStore = Depends(get_store)):
    try:
        store.ping()
    except SQLAlchemyError:
        # already logged by the store
        return JSONResponse(status_code=503, content={"status": "unavailable", "database": "unreachable"})
    return {"status": "ok", "database": "ok"}
