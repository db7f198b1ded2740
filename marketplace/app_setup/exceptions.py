"""
Gestionnaires d'exceptions.
- HTTPException: JSON {"detail"}; 401/403 redirigés vers /auth pour un navigateur hors /api/*.
- Erreurs métier: ValidationError/GatewayError -> 400, PersistenceError -> 500, corps {"error", "details"?}.
"""
import logging
import urllib.parse

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.status import HTTP_303_SEE_OTHER

from marketplace.errors import GatewayError, MarketplaceError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (ValidationError, 400),
    (GatewayError, 400),
    (PersistenceError, 500),
)


def status_for(exc: MarketplaceError) -> int:
    for klass, status in STATUS_BY_ERROR:
        if isinstance(exc, klass):
            return status
    return 500


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def html_redirect_on_auth_errors(request: Request, exc: HTTPException):
        if exc.status_code in (401, 403):
            accept = (request.headers.get("accept") or "").lower()
            is_api = request.url.path.startswith("/api/")
            if "text/html" in accept and not is_api:
                detail = str(getattr(exc, "detail", "")) or (
                    "Veuillez vous connecter" if exc.status_code == 401 else "Accès interdit"
                )
                msg = urllib.parse.quote_plus(detail)
                return RedirectResponse(url=f"/auth?error={msg}", status_code=HTTP_303_SEE_OTHER)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))

    @app.exception_handler(MarketplaceError)
    async def marketplace_error(request: Request, exc: MarketplaceError):
        status = status_for(exc)
        if status >= 500:
            logger.error("app.error path=%s error=%s details=%s", request.url.path, exc.message, exc.details)
        else:
            logger.info("app.rejected path=%s status=%s error=%s", request.url.path, status, exc.message)
        return JSONResponse(status_code=status, content=exc.to_dict())
