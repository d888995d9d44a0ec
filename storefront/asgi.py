"""
Entrypoint ASGI pour les process managers: `uvicorn storefront.asgi:app` ou `gunicorn -k uvicorn.workers.UvicornWorker storefront.asgi:app`.
Routes, middlewares et lifespan sont assemblés par storefront.app_setup.factory.
"""
from storefront.app import app

__all__ = ["app"]
