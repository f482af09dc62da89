"""
Configuração centralizada do dashboard.
Carrega variáveis de ambiente (.env local) ou st.secrets (Streamlit Cloud).
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Carrega .env a partir da raiz do projeto (apenas local)
PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(PROJECT_ROOT / ".env")


def _get_secret(key: str, default: str = None) -> str | None:
    """Busca config em st.secrets (Cloud) ou os.environ (.env local)."""
    try:
        import streamlit as st
        if hasattr(st, "secrets") and key in st.secrets:
            return st.secrets[key]
    except Exception:
        pass
    return os.getenv(key, default)


# ─── Logging ───

LOG_LEVEL = (_get_secret("LOG_LEVEL", "INFO") or "INFO").upper()
logging.basicConfig(level=LOG_LEVEL)

# ─── Firebase Auth (Identity Toolkit REST) ───

FIREBASE_API_KEY = _get_secret("FIREBASE_API_KEY")
AUTH_BASE_URL = "https://identitytoolkit.googleapis.com/v1"
AUTH_TIMEOUT = 15  # segundos

# Primeiro login deste e-mail recebe a função admin
BOOTSTRAP_ADMIN_EMAIL = _get_secret("BOOTSTRAP_ADMIN_EMAIL")

# ─── Firestore ───

FIRESTORE_PROJECT = _get_secret("FIRESTORE_PROJECT")
FIRESTORE_DATABASE = _get_secret("FIRESTORE_DATABASE")
NOTES_COLLECTION = _get_secret("NOTES_COLLECTION", "notas_fiscais")
USERS_COLLECTION = _get_secret("USERS_COLLECTION", "users")
ORDER_KEY = "createdAt"

# ─── API de Frota ───

FLEET_API_URL = _get_secret("FLEET_API_URL")  # vazio → inventário simulado
FLEET_API_TOKEN = _get_secret("FLEET_API_TOKEN")
FLEET_API_KEY = _get_secret("FLEET_API_KEY")
MIN_REQUEST_INTERVAL = 0.1  # 100ms entre requests
MAX_RETRIES = 3
RETRY_BACKOFF = 1.0  # segundos

# ─── Cache ───

CACHE_TTL = 300  # 5 minutos

# ─── Dashboard ───

TREND_MONTHS = 6
RECENT_NOTES = 5
REFRESH_SECONDS = 5  # intervalo de redesenho das views em tempo real
