# storefront.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

"""
Configuration centrale de la boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe), sécurité cookies, CORS/hosts
- Expose les constantes du checkout (devise, frais de port, taux de taxe)
- Fournit l'URL de la fonction de checkout et l'origine des redirections Stripe
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

# Supabase: URL et clés (anon côté client, service-role côté serveur)
# - Les variables VITE_* du front sont acceptées en repli
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or os.getenv("VITE_SUPABASE_URL") or "")
SUPABASE_ANON_KEY = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("VITE_SUPABASE_ANON_KEY") or "")
SUPABASE_SERVICE_ROLE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Cookies / session navigateur (le panier vit dans la session signée)
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY", "replace_me_with_a_long_random_secret")

# CORS: la fonction de checkout accepte toutes les origines par défaut
# ALLOWED_HOSTS: en-tête Host accepté, réglé séparément ("*" seulement si explicitement demandé)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h.strip()]

# Stripe: clés publiques/privées, secret webhook et version d'API figée
STRIPE_PUBLISHABLE_KEY = _clean_env(os.getenv("STRIPE_PUBLISHABLE_KEY") or os.getenv("VITE_STRIPE_PUBLISHABLE_KEY") or "")
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
STRIPE_API_VERSION = _clean_env(os.getenv("STRIPE_API_VERSION") or "2023-10-16")

# Checkout: montants en unités majeures (roupies), convertis en paise pour Stripe
CHECKOUT_CURRENCY = _clean_env(os.getenv("CHECKOUT_CURRENCY") or "inr").lower()
SHIPPING_FEE = float(os.getenv("SHIPPING_FEE", "99"))
TAX_RATE = float(os.getenv("TAX_RATE", "0.18"))
DEFAULT_COUNTRY = os.getenv("DEFAULT_COUNTRY", "India")

# Origine publique de la boutique (URLs de succès/annulation)
BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:8000").rstrip("/")

# Endpoint appelé par le requester (par défaut: la fonction servie par cette app)
CHECKOUT_FUNCTION_URL = _clean_env(
    os.getenv("CHECKOUT_FUNCTION_URL") or f"{BASE_URL}/api/v1/checkout/create-checkout-session"
)
CHECKOUT_REQUEST_TIMEOUT = float(os.getenv("CHECKOUT_REQUEST_TIMEOUT", "10"))

# Déduplication des sessions de checkout (Idempotency-Key)
IDEMPOTENCY_TTL_SECONDS = int(os.getenv("IDEMPOTENCY_TTL_SECONDS", "86400"))
