"""
Sessão e autorização.

Responsabilidades:
- Resolver o principal autenticado em perfil + permissões
- Bootstrap do perfil no primeiro login (e-mail designado vira admin)
- Checagem de acesso por módulo
- Administração de usuários com proteção contra auto-alteração
"""

import logging
from typing import Callable, MutableMapping, Optional

from dashboard.api.auth import FirebaseAuth
from dashboard.api.store import DocumentStore
from dashboard.config import BOOTSTRAP_ADMIN_EMAIL, USERS_COLLECTION
from dashboard.errors import DashboardError, StoreError, ValidationError
from dashboard.models.user_models import (
    Module,
    Principal,
    Role,
    UserAccount,
    UserProfile,
)
from dashboard.services.permissions import (
    ensure_not_self,
    has_module_access,
    permissions_for,
    require_module,
)
from dashboard.services.sanitizer import sanitize_user

logger = logging.getLogger(__name__)


class SessionContext:
    """Estado de autenticação da aplicação, atualizado pelo provedor."""

    def __init__(
        self,
        auth: FirebaseAuth,
        store: DocumentStore,
        bootstrap_admin_email: str = None,
        collection: str = USERS_COLLECTION,
    ):
        self.auth = auth
        self.store = store
        self.bootstrap_admin_email = bootstrap_admin_email or BOOTSTRAP_ADMIN_EMAIL
        self.collection = collection

        self.principal: Principal | None = None
        self.profile: UserProfile | None = None
        self.loading = True
        self._unsubscribe = auth.on_auth_state_changed(self._on_auth_state)

    # ─── Estado ───

    def _on_auth_state(self, principal: Optional[Principal]) -> None:
        if principal is None:
            self.principal = None
            self.profile = None
        else:
            try:
                self.profile = self._resolve_profile(principal)
                self.principal = principal
            except Exception:
                logger.exception("Erro ao configurar o perfil do usuário %s", principal.uid)
                self.principal = None
                self.profile = None
        self.loading = False

    def _is_bootstrap_admin(self, email: str | None) -> bool:
        if not email or not self.bootstrap_admin_email:
            return False
        return email.strip().lower() == self.bootstrap_admin_email.strip().lower()

    def _resolve_profile(self, principal: Principal) -> Optional[UserProfile]:
        path = f"{self.collection}/{principal.uid}"
        account = sanitize_user(principal.uid, self.store.get(path))

        if account is None:
            role = Role.ADMIN if self._is_bootstrap_admin(principal.email) else Role.VIEWER
            new_account = UserAccount(uid=principal.uid, email=principal.email or "N/A", role=role)
            self.store.set(path, new_account.to_document())
            logger.info("Perfil criado para %s com função %s", principal.email, role.value)
            account = sanitize_user(principal.uid, self.store.get(path))

        if account is None:
            return None
        return UserProfile(
            uid=principal.uid,
            email=principal.email,
            role=account.role,
            permissions=permissions_for(account.role),
        )

    # ─── API ───

    @property
    def is_authenticated(self) -> bool:
        return self.principal is not None

    def has_module_access(self, module: Module | str) -> bool:
        return has_module_access(self.profile, module)

    def sign_in(self, email: str, password: str) -> Principal:
        return self.auth.sign_in(email, password)

    def sign_out(self) -> None:
        self.auth.sign_out()

    def close(self) -> None:
        self._unsubscribe()


# ─── Administração de usuários ───

class UserAdminService:
    """Operações do painel de usuários. Checks rodam antes de qualquer escrita."""

    def __init__(self, store: DocumentStore, auth: FirebaseAuth, collection: str = USERS_COLLECTION):
        self.store = store
        self.auth = auth
        self.collection = collection

    @staticmethod
    def _role(role: Role | str) -> Role:
        try:
            return Role(role)
        except ValueError:
            raise ValidationError("Função inválida.", field="role")

    def change_role(self, caller: Optional[UserProfile], uid: str, role: Role | str) -> None:
        ensure_not_self(caller, uid, "change_role")
        require_module(caller, Module.USERS)
        role = self._role(role)
        try:
            self.store.update(f"{self.collection}/{uid}", {"role": role.value})
        except Exception as e:
            logger.exception("Falha ao atualizar a função de %s", uid)
            raise StoreError("Erro ao atualizar a função.") from e

    def remove_user(self, caller: Optional[UserProfile], uid: str) -> None:
        """Remove o perfil do banco; a conta no provedor de auth continua existindo."""
        ensure_not_self(caller, uid, "remove")
        require_module(caller, Module.USERS)
        try:
            self.store.remove(f"{self.collection}/{uid}")
        except Exception as e:
            logger.exception("Falha ao remover usuário %s", uid)
            raise StoreError("Erro ao remover usuário.") from e

    def create_user(
        self,
        caller: Optional[UserProfile],
        email: str,
        password: str,
        role: Role | str = Role.VIEWER,
    ) -> UserAccount:
        require_module(caller, Module.USERS)
        if not email or not password:
            raise ValidationError("E-mail e senha são obrigatórios.")
        role = self._role(role)

        principal = self.auth.create_user(email, password)
        account = UserAccount(uid=principal.uid, email=principal.email or email, role=role)
        try:
            self.store.set(f"{self.collection}/{account.uid}", account.to_document())
        except Exception as e:
            logger.exception("Falha ao gravar perfil de %s", email)
            raise StoreError("Erro ao adicionar usuário.") from e
        return account


def role_change_callback(
    admin: UserAdminService,
    caller: Optional[UserProfile],
    user: UserAccount,
    state: MutableMapping,
    key: str,
    notify: Callable[[str, bool], None],
) -> Callable[[], None]:
    """
    Callback `on_change` do seletor de função: uma escrita por ação do usuário.

    Se a escrita falhar, o seletor volta para a função gravada, então
    nenhum rerun repete a tentativa.
    """
    def on_change() -> None:
        try:
            admin.change_role(caller, user.uid, state[key])
        except DashboardError as e:
            state[key] = user.role
            notify(e.user_message, False)
            return
        notify("Função do usuário atualizada!", True)

    return on_change
