"""
Middlewares transverses de la boutique.
- register_basic_middlewares: session signée (porte le panier), CORS, TrustedHost, en-têtes proxy.
- register_security_middleware: en-têtes de sécurité sur toutes les réponses.
- register_no_cache_middleware: le panier et les commandes ne sont jamais mis en cache.
- register_force_https_middleware: redirige vers HTTPS derrière un proxy.
L'ordre d'ajout compte: le dernier ajouté s'exécute en premier.
"""
from fastapi import Request, FastAPI
from fastapi.responses import RedirectResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from starlette.middleware.sessions import SessionMiddleware
try:
    from starlette.middleware.proxy_headers import ProxyHeadersMiddleware
except Exception:
    ProxyHeadersMiddleware = None

from storefront.config import COOKIE_SECURE, CORS_ORIGINS, ALLOWED_HOSTS, SESSION_SECRET_KEY

SESSION_COOKIE = "storefront_session"
SESSION_MAX_AGE = 14 * 24 * 60 * 60

NO_CACHE_PREFIXES = ("/api/v1/cart", "/api/v1/orders")
NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}
HSTS = "max-age=63072000; includeSubDomains; preload"

def register_basic_middlewares(app: FastAPI) -> None:
    """
    - SessionMiddleware: cookie signé (itsdangerous) contenant les lignes du panier.
    - CORSMiddleware: la fonction de checkout est appelable depuis les origines configurées ("*" par défaut).
    - TrustedHostMiddleware: hôtes acceptés (ALLOWED_HOSTS), indépendants des origines CORS.
    """
    app.add_middleware(
        SessionMiddleware,
        secret_key=SESSION_SECRET_KEY,
        session_cookie=SESSION_COOKIE,
        max_age=SESSION_MAX_AGE,
        same_site="lax",
        https_only=COOKIE_SECURE,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=ALLOWED_HOSTS)
    if ProxyHeadersMiddleware:
        app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

def register_security_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if COOKIE_SECURE:
            response.headers.setdefault("Strict-Transport-Security", HSTS)
        return response

def register_no_cache_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def no_cache_for_user_data(request: Request, call_next):
        response = await call_next(request)
        if request.method == "GET" and request.url.path.rstrip("/").startswith(NO_CACHE_PREFIXES):
            response.headers.update(NO_CACHE_HEADERS)
        return response

def register_force_https_middleware(app: FastAPI) -> None:
    """Redirige en 301 quand le proxy signale x-forwarded-proto=http."""
    @app.middleware("http")
    async def force_https(request: Request, call_next):
        if request.headers.get("x-forwarded-proto") == "http":
            return RedirectResponse(str(request.url.replace(scheme="https")), status_code=301)
        return await call_next(request)
