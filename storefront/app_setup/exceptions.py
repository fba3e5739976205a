"""
Gestionnaires d'exceptions.
- Erreurs métier (StorefrontError): JSON {"detail", "code"} avec le statut de la classe.
- HTTPException: JSON standard; 401/403 redirigés vers / pour un navigateur hors /api.
- Erreurs de validation Pydantic: 400 avec le détail des champs.
- Toute autre exception: 500 générique, trace complète uniquement dans les logs.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_303_SEE_OTHER

from storefront.errors import IntegrityGap, StorefrontError

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Erreur interne du serveur"

def _wants_html(request: Request) -> bool:
    accept = (request.headers.get("accept") or "").lower()
    return "text/html" in accept and not request.url.path.startswith("/api/")

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorefrontError)
    async def storefront_error(request: Request, exc: StorefrontError):
        if isinstance(exc, IntegrityGap):
            logger.critical("integrity_gap path=%s detail=%s", request.url.path, exc.detail)
        if exc.status_code in (401, 403) and _wants_html(request):
            return RedirectResponse(url="/", status_code=HTTP_303_SEE_OTHER)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "code": exc.code})

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (401, 403) and _wants_html(request):
            return RedirectResponse(url="/", status_code=HTTP_303_SEE_OTHER)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": jsonable_encoder(exc.errors()), "code": "validation_error"},
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("unhandled error %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": GENERIC_ERROR})
