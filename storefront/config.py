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
- Expose la politique de stock et les paramètres du paiement (devise, timeout)
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _float_env(name: str, default: float) -> float:
    try:
        return float(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        return default

# Supabase: URL et clés (anon/service)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Cookies / sécurité
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
# Hash bcrypt du code d'inscription admin (jamais le code en clair)
ADMIN_SECRET_HASH = _clean_env(os.getenv("ADMIN_SECRET_HASH", ""))

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

# Stripe: clés publique/privée
STRIPE_PUBLIC_KEY = _clean_env(os.getenv("STRIPE_PUBLIC_KEY") or "")
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
# Secret HMAC des callbacks de paiement (par défaut la clé secrète du fournisseur)
PAYMENT_SIGNING_SECRET = _clean_env(os.getenv("PAYMENT_SIGNING_SECRET") or "") or STRIPE_SECRET_KEY
PAYMENT_CURRENCY = _clean_env(os.getenv("PAYMENT_CURRENCY") or "inr").lower()
PAYMENT_TIMEOUT_SECONDS = _float_env("PAYMENT_TIMEOUT_SECONDS", 10.0)

# Politique de stock: "advisory" (vérifié au panier uniquement) ou "reserve"
# (revérifié au checkout et décrémenté une fois la commande enregistrée)
STOCK_POLICY_ADVISORY = "advisory"
STOCK_POLICY_RESERVE = "reserve"
STOCK_POLICY = _clean_env(os.getenv("STOCK_POLICY") or STOCK_POLICY_ADVISORY).lower()
if STOCK_POLICY not in (STOCK_POLICY_ADVISORY, STOCK_POLICY_RESERVE):
    STOCK_POLICY = STOCK_POLICY_ADVISORY

BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:8000")
