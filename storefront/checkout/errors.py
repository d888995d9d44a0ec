"""Erreurs du parcours de checkout (fonction serveur et requester client)."""

class CheckoutError(Exception):
    """Échec de création de session: renvoyé au client en 400 {"error": <message>}."""

class RequestError(Exception):
    """Appel à la fonction de checkout impossible (transport ou statut non-2xx)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

class MalformedResponseError(Exception):
    """Réponse de la fonction de checkout sans sessionId exploitable."""

class EmptyCartError(ValueError):
    """Panier vide: rejeté avant tout appel réseau."""

class IncompleteProfileError(ValueError):
    """Profil sans email ou sans nom: rejeté avant tout appel réseau."""
