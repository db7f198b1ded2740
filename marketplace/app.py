# module marketplace.app
from fastapi import FastAPI

from marketplace.app_setup.exceptions import register_exception_handlers
from marketplace.app_setup.lifespan import lifespan
from marketplace.app_setup.middlewares import (
    register_basic_middlewares,
    register_force_https_middleware,
    register_no_cache_middleware,
    register_security_middleware,
)
from marketplace.app_setup.routers import register_routers


def create_app() -> FastAPI:
    """
    Construit l'application.
    Ordre:
      1) middlewares de base (CORS, TrustedHost, ProxyHeaders)
      2) en-têtes de sécurité, puis no-cache
      3) gestionnaires d'exceptions et routers
      4) HTTPS forcé ajouté en dernier pour s'exécuter en premier
    """
    app = FastAPI(title="Marketplace API", lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_no_cache_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    register_force_https_middleware(app)
    return app


app = create_app()
