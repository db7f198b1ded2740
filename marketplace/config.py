# marketplace.config
"""
Configuration centrale du backend marketplace.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Paystack), sécurité cookies, CORS/hosts
- Fournit les paramètres du flux de paiement (plafond, devise, chemin de callback)
"""
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _int_env(name: str, default: int) -> int:
    try:
        return int(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        return default

# Supabase: URLs et clés (public/anon/service)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Cookies / sécurité
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

# Paystack: clé secrète et API
PAYSTACK_SECRET_KEY = _clean_env(os.getenv("PAYSTACK_SECRET_KEY") or "")
PAYSTACK_BASE_URL = (_clean_env(os.getenv("PAYSTACK_BASE_URL") or "") or "https://api.paystack.co").rstrip("/")
PAYSTACK_TIMEOUT_SECONDS = _int_env("PAYSTACK_TIMEOUT_SECONDS", 10)

# Nom écrit dans orders.payment_method pour une commande payée en ligne
PAYMENT_GATEWAY_NAME = _clean_env(os.getenv("PAYMENT_GATEWAY_NAME") or "") or "paystack"

# Montants en sous-unité (kobo): plafond d'initiation = 100 000 NGN
PAYMENT_MAX_AMOUNT = _int_env("PAYMENT_MAX_AMOUNT", 10_000_000)
CURRENCY_SUBUNIT = _int_env("CURRENCY_SUBUNIT", 100)

# Retour navigateur après la page hébergée de la passerelle
PAYMENT_CALLBACK_PATH = os.getenv("PAYMENT_CALLBACK_PATH", "/payment/callback")
CALLBACK_REDIRECT_DELAY_SECONDS = _int_env("CALLBACK_REDIRECT_DELAY_SECONDS", 3)

# Vendeur agrégé utilisé quand un panier couvre plusieurs vendeurs
MARKETPLACE_VENDOR_ID = _clean_env(os.getenv("MARKETPLACE_VENDOR_ID") or "") or "00000000-0000-0000-0000-000000000000"

BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:8000")
