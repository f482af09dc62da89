"""
Autenticação por e-mail/senha com Firebase Auth (Identity Toolkit REST).

Gerencia:
- Login e logout
- Notificação de mudança de estado (principal ou None)
- Criação de usuários pelo admin sem trocar a sessão atual
- Tradução dos códigos de erro do provedor em mensagens amigáveis
"""

import logging
from typing import Callable, Optional

import requests

from dashboard.config import AUTH_BASE_URL, AUTH_TIMEOUT, FIREBASE_API_KEY
from dashboard.errors import AuthError
from dashboard.models.user_models import Principal

logger = logging.getLogger(__name__)

AuthListener = Callable[[Optional[Principal]], None]


# ─── Mensagens amigáveis ───

INVALID_CREDENTIALS = "E-mail ou senha inválidos."
INVALID_EMAIL = "O formato do e-mail é inválido."
EMAIL_IN_USE = "Este e-mail já está em uso."
WEAK_PASSWORD = "A senha deve ter pelo menos 6 caracteres."
GENERIC_ERROR = "Ocorreu um erro. Tente novamente."

# Códigos REST e os equivalentes do SDK web
AUTH_ERROR_MESSAGES = {
    "EMAIL_NOT_FOUND": INVALID_CREDENTIALS,
    "INVALID_PASSWORD": INVALID_CREDENTIALS,
    "INVALID_LOGIN_CREDENTIALS": INVALID_CREDENTIALS,
    "auth/user-not-found": INVALID_CREDENTIALS,
    "auth/wrong-password": INVALID_CREDENTIALS,
    "auth/invalid-credential": INVALID_CREDENTIALS,
    "INVALID_EMAIL": INVALID_EMAIL,
    "auth/invalid-email": INVALID_EMAIL,
    "EMAIL_EXISTS": EMAIL_IN_USE,
    "auth/email-already-in-use": EMAIL_IN_USE,
    "WEAK_PASSWORD": WEAK_PASSWORD,
    "auth/weak-password": WEAK_PASSWORD,
}


def friendly_auth_message(code: str | None) -> str:
    return AUTH_ERROR_MESSAGES.get(code or "", GENERIC_ERROR)


def _error_code(response: requests.Response) -> str:
    """Extrai o código de {"error": {"message": "WEAK_PASSWORD : ..."}}."""
    try:
        payload = response.json()
    except ValueError:
        return ""
    message = (payload.get("error") or {}).get("message", "") if isinstance(payload, dict) else ""
    return message.split(":")[0].strip()


class FirebaseAuth:
    def __init__(self, api_key: str = None, session: requests.Session = None):
        self.api_key = api_key or FIREBASE_API_KEY
        if not self.api_key:
            raise ValueError(
                "api_key é obrigatória. "
                "Defina FIREBASE_API_KEY no .env ou st.secrets"
            )
        self.session = session or requests.Session()
        self.current_principal: Principal | None = None
        self._listeners: list[AuthListener] = []

    # ─── HTTP ───

    def _post(self, endpoint: str, payload: dict) -> dict:
        url = f"{AUTH_BASE_URL}/accounts:{endpoint}"
        try:
            resp = self.session.post(
                url, params={"key": self.api_key}, json=payload, timeout=AUTH_TIMEOUT
            )
        except requests.exceptions.RequestException as e:
            logger.error("Falha de rede no Firebase Auth (%s): %s", endpoint, e)
            raise AuthError(GENERIC_ERROR, code="network") from e

        if not resp.ok:
            code = _error_code(resp)
            logger.error("Firebase Auth %s recusou: %s", endpoint, code or resp.status_code)
            raise AuthError(friendly_auth_message(code), code=code)
        try:
            return resp.json()
        except ValueError as e:
            logger.error("Resposta inválida do Firebase Auth (%s): %s", endpoint, e)
            raise AuthError(GENERIC_ERROR, code="invalid_response") from e

    @staticmethod
    def _principal(data: dict, email: str) -> Principal:
        return Principal(
            uid=data["localId"],
            email=data.get("email", email),
            id_token=data.get("idToken", ""),
            refresh_token=data.get("refreshToken", ""),
        )

    # ─── Sessão ───

    def sign_in(self, email: str, password: str) -> Principal:
        data = self._post(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        principal = self._principal(data, email)
        self._set_principal(principal)
        return principal

    def sign_out(self) -> None:
        self._set_principal(None)

    def create_user(self, email: str, password: str) -> Principal:
        """Cria a conta no provedor; a sessão atual continua a mesma."""
        data = self._post(
            "signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._principal(data, email)

    # ─── Estado ───

    def on_auth_state_changed(self, callback: AuthListener) -> Callable[[], None]:
        """Registra o listener e o chama já com o estado atual."""
        self._listeners.append(callback)
        callback(self.current_principal)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _set_principal(self, principal: Principal | None) -> None:
        self.current_principal = principal
        for listener in list(self._listeners):
            listener(principal)
