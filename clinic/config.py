# clinic.config
from pathlib import Path
import os
import secrets
from typing import Dict, List
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale du backend de la clinique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, passerelle de paiement, SMTP)
- Sécurité: session, cookies, CORS/hosts, compte admin
- validate_environment(): liste des variables manquantes (utilisé au démarrage)
"""

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

def _session_secret() -> str:
    """
    Secret de signature du cookie de session.
    - Jamais de valeur par défaut en production (create_app refuse alors de démarrer)
    - En développement, secret aléatoire propre au processus si SESSION_SECRET est absent
    """
    value = _clean_env(os.getenv("SESSION_SECRET") or "")
    if value or IS_PRODUCTION:
        return value
    return secrets.token_urlsafe(32)

APP_ENV = _clean_env(os.getenv("APP_ENV") or os.getenv("NODE_ENV") or "development").lower()
IS_PRODUCTION = APP_ENV == "production"
PORT = _int_env("PORT", 8000)
LOG_LEVEL = _clean_env(os.getenv("LOG_LEVEL") or "info").lower()
APP_VERSION = "1.0.0"

# Session (panier + admin) : cookie signé par SessionMiddleware
SESSION_SECRET = _session_secret()
SESSION_MAX_AGE = _int_env("SESSION_MAX_AGE", 60 * 60 * 24 * 7)
SESSION_COOKIE_NAME = "clinic_session"
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")

# CORS / hosts
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

# Supabase: URL et clés (anon pour la lecture publique, service pour les écritures)
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON_KEY = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

PRODUCTS_TABLE = "products"
ORDERS_TABLE = "orders"

# Passerelle de paiement: "razorpay" (défaut) ou "stripe"
PAYMENT_GATEWAY = _clean_env(os.getenv("PAYMENT_GATEWAY") or "razorpay").lower()
CURRENCY = _clean_env(os.getenv("CURRENCY") or "INR").upper()
GATEWAY_TIMEOUT_SECONDS = _int_env("GATEWAY_TIMEOUT_SECONDS", 10)

RAZORPAY_KEY_ID = _clean_env(os.getenv("RAZORPAY_KEY_ID") or "")
RAZORPAY_KEY_SECRET = _clean_env(os.getenv("RAZORPAY_KEY_SECRET") or "")
RAZORPAY_API_URL = _clean_env(os.getenv("RAZORPAY_API_URL") or "https://api.razorpay.com/v1").rstrip("/")

STRIPE_PUBLIC_KEY = _clean_env(os.getenv("STRIPE_PUBLIC_KEY") or "")
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")

# Compte admin unique (dashboard)
ADMIN_USER = _clean_env(os.getenv("ADMIN_USER") or "")
ADMIN_PASS = _clean_env(os.getenv("ADMIN_PASS") or "")  # dev uniquement
ADMIN_PASS_HASH = _clean_env(os.getenv("ADMIN_PASS_HASH") or "")

# SMTP (formulaire de contact)
MAIL_HOST = _clean_env(os.getenv("MAIL_HOST") or "")
MAIL_PORT = _int_env("MAIL_PORT", 587)
MAIL_SECURE = MAIL_PORT == 465
MAIL_USER = _clean_env(os.getenv("MAIL_USER") or "")
MAIL_PASS = _clean_env(os.getenv("MAIL_PASS") or "")
MAIL_FROM_NAME = _clean_env(os.getenv("MAIL_FROM_NAME") or "Clinic Website")
MAIL_FROM_ADDRESS = _clean_env(os.getenv("MAIL_FROM_ADDRESS") or "")
MAIL_TO_ADDRESS = _clean_env(os.getenv("MAIL_TO_ADDRESS") or "")
MAIL_TIMEOUT_SECONDS = _int_env("MAIL_TIMEOUT_SECONDS", 10)

REQUIRED_VARS = [
    "SESSION_SECRET", "SUPABASE_URL", "SUPABASE_SERVICE_KEY",
    "ADMIN_USER",
]
GATEWAY_VARS = {
    "razorpay": ["RAZORPAY_KEY_ID", "RAZORPAY_KEY_SECRET"],
    "stripe": ["STRIPE_SECRET_KEY"],
}
MAIL_VARS = [
    "MAIL_HOST", "MAIL_PORT", "MAIL_USER", "MAIL_PASS",
    "MAIL_FROM_NAME", "MAIL_FROM_ADDRESS", "MAIL_TO_ADDRESS",
]
PLACEHOLDER_MARKERS = ("your_", "example", "change_me")


def _is_placeholder(value: str) -> bool:
    return any(marker in value for marker in PLACEHOLDER_MARKERS)


def mail_configured() -> bool:
    """Vrai si les paramètres SMTP minimaux sont présents et ne sont pas des valeurs d'exemple."""
    values = [MAIL_HOST, MAIL_USER, MAIL_PASS, MAIL_FROM_ADDRESS, MAIL_TO_ADDRESS]
    return all(values) and not any(_is_placeholder(v) for v in (MAIL_HOST, MAIL_USER))


def validate_environment() -> Dict[str, List[str]]:
    """
    Vérifie les variables d'environnement (lecture directe de os.environ).
    Retour:
      - missing: variables requises absentes (y compris celles de la passerelle choisie)
      - placeholders: variables requises encore à une valeur d'exemple
      - mail: variables SMTP absentes ou à une valeur d'exemple
      - warnings: remarques de sécurité (secret de session court, mot de passe admin en clair)
    """
    required = REQUIRED_VARS + GATEWAY_VARS.get(PAYMENT_GATEWAY, [])
    if not ADMIN_PASS_HASH:
        required = required + ["ADMIN_PASS"]

    report: Dict[str, List[str]] = {"missing": [], "placeholders": [], "mail": [], "warnings": []}
    for name in required:
        value = _clean_env(os.getenv(name) or "")
        if not value:
            report["missing"].append(name)
        elif _is_placeholder(value):
            report["placeholders"].append(name)

    for name in MAIL_VARS:
        value = _clean_env(os.getenv(name) or "")
        if not value or _is_placeholder(value):
            report["mail"].append(name)

    if PAYMENT_GATEWAY not in GATEWAY_VARS:
        report["warnings"].append(f"PAYMENT_GATEWAY inconnu: {PAYMENT_GATEWAY}")
    if len(SESSION_SECRET) < 32:
        report["warnings"].append("SESSION_SECRET trop court (32 caractères minimum)")
    if IS_PRODUCTION and ADMIN_PASS and not ADMIN_PASS_HASH:
        report["warnings"].append("ADMIN_PASS en clair en production: utiliser ADMIN_PASS_HASH")
    if IS_PRODUCTION and "*" in CORS_ORIGINS:
        report["warnings"].append("CORS_ORIGINS='*' en production")
    return report
