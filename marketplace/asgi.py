"""
ASGI entrypoint: expose `app` pour les process managers (uvicorn, gunicorn -k uvicorn.workers.UvicornWorker).
La configuration est centralisée dans marketplace.app.
"""
from marketplace.app import app

__all__ = ["app"]
