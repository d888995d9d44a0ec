"""
Gestionnaires d'exceptions utilisés par la factory.
- HTTPException: body JSON {"detail": ...} standard pour les clients API.
- CheckoutError: 400 {"error": <message>} avec CORS ouvert, contrat de la fonction de checkout.
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from storefront.checkout.errors import CheckoutError
from storefront.checkout.views import CORS_HEADERS

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def json_http_errors(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))

    @app.exception_handler(CheckoutError)
    async def checkout_errors(request: Request, exc: CheckoutError):
        logger.warning("CheckoutError on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=400, content={"error": str(exc)}, headers=CORS_HEADERS)
