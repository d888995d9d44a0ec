"""
Déduplication des créations de session (double clic, rejeu réseau).
Clé -> session id, stockée dans Redis (même connexion que le rate limiting).
La clé est réservée (SET NX) avant l'appel à Stripe: une seule requête crée la session,
les suivantes attendent son identifiant.
Sans Redis, le store est inactif; la clé reste transmise à Stripe et l'enregistrement
de la commande est idempotent sur l'identifiant de session.
"""
from typing import Optional
import asyncio
import logging
import time

from fastapi import Request

from storefront.config import IDEMPOTENCY_TTL_SECONDS

logger = logging.getLogger(__name__)

KEY_PREFIX = "checkout:idem:"
PENDING = "__pending__"
# Réservation courte: une requête morte en cours de route ne bloque pas la clé longtemps
CLAIM_TTL_SECONDS = 60
WAIT_SECONDS = 5.0
WAIT_INTERVAL = 0.1

def _decode(value) -> Optional[str]:
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    return value or None

class IdempotencyStore:
    def __init__(self, redis=None, ttl: int = IDEMPOTENCY_TTL_SECONDS, claim_ttl: int = CLAIM_TTL_SECONDS, wait_seconds: float = WAIT_SECONDS):
        self.redis = redis
        self.ttl = ttl
        self.claim_ttl = claim_ttl
        self.wait_seconds = wait_seconds

    @property
    def enabled(self) -> bool:
        return self.redis is not None

    async def claim(self, key: Optional[str]) -> bool:
        """
        Réserve la clé avant de créer la session.
        True: l'appelant doit créer la session (aussi sans clé, sans Redis ou si Redis échoue).
        False: une autre requête a déjà la clé (en cours ou terminée).
        """
        if not key or not self.enabled:
            return True
        try:
            return bool(await self.redis.set(KEY_PREFIX + key, PENDING, ex=self.claim_ttl, nx=True))
        except Exception:
            logger.exception("idempotency.claim failed key=%s", key)
            return True

    async def recall(self, key: Optional[str]) -> Optional[str]:
        """Session mémorisée pour la clé; None si absente, en cours ou store inactif."""
        if not key or not self.enabled:
            return None
        try:
            value = _decode(await self.redis.get(KEY_PREFIX + key))
        except Exception:
            logger.exception("idempotency.recall failed key=%s", key)
            return None
        return None if value == PENDING else value

    async def wait_for_session(self, key: Optional[str], timeout: Optional[float] = None, interval: float = WAIT_INTERVAL) -> Optional[str]:
        """Attend que la requête qui détient la clé publie son identifiant de session."""
        deadline = time.monotonic() + (self.wait_seconds if timeout is None else timeout)
        while True:
            session_id = await self.recall(key)
            if session_id or time.monotonic() >= deadline:
                return session_id
            await asyncio.sleep(interval)

    async def remember(self, key: Optional[str], session_id: str) -> bool:
        """Publie la session créée pour la clé réservée (remplace la réservation)."""
        if not key or not session_id or not self.enabled:
            return False
        try:
            return bool(await self.redis.set(KEY_PREFIX + key, session_id, ex=self.ttl))
        except Exception:
            logger.exception("idempotency.remember failed key=%s", key)
            return False

    async def release(self, key: Optional[str]) -> None:
        """Libère une réservation après un échec, pour qu'un nouvel essai soit possible."""
        if not key or not self.enabled:
            return
        try:
            await self.redis.delete(KEY_PREFIX + key)
        except Exception:
            logger.exception("idempotency.release failed key=%s", key)

def get_idempotency_store(request: Request) -> IdempotencyStore:
    """Dépendance FastAPI: store adossé à app.state.redis (initialisé par le lifespan)."""
    return IdempotencyStore(getattr(request.app.state, "redis", None))
