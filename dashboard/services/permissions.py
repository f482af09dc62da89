"""
Modelo de funções e permissões.

Tabela estática função → capacidades, e os checks de autorização
usados pelos serviços antes de qualquer chamada ao banco.
"""

from types import MappingProxyType
from typing import Optional

from dashboard.errors import PermissionDeniedError
from dashboard.models.user_models import Module, Permissions, Role, UserProfile


ROLE_PERMISSIONS = MappingProxyType({
    Role.ADMIN: Permissions(
        can_edit=True,
        can_view=True,
        modules=frozenset({Module.DASHBOARD, Module.MANAGEMENT, Module.FLEET, Module.USERS}),
    ),
    Role.EDITOR: Permissions(
        can_edit=True,
        can_view=True,
        modules=frozenset({Module.DASHBOARD, Module.MANAGEMENT, Module.FLEET}),
    ),
    Role.VIEWER: Permissions(
        can_edit=False,
        can_view=True,
        modules=frozenset({Module.DASHBOARD}),
    ),
})


def permissions_for(role: Role | str | None) -> Permissions:
    """Permissões da função; qualquer valor desconhecido recebe as de viewer."""
    try:
        return ROLE_PERMISSIONS[Role(role)]
    except ValueError:
        return ROLE_PERMISSIONS[Role.VIEWER]


def has_module_access(profile: Optional[UserProfile], module: Module | str) -> bool:
    if profile is None:
        return False
    try:
        module = Module(module)
    except ValueError:
        return False
    return module in profile.permissions.modules


# ─── Guards ───

def require_module(profile: Optional[UserProfile], module: Module) -> None:
    if not has_module_access(profile, module):
        raise PermissionDeniedError()


def require_edit(profile: Optional[UserProfile]) -> None:
    if profile is None or not profile.permissions.can_edit:
        raise PermissionDeniedError("Sua função não permite editar registros.")


SELF_ACTION_MESSAGES = {
    "change_role": "Você não pode alterar sua própria função.",
    "remove": "Você não pode remover a si mesmo.",
}


def ensure_not_self(caller: Optional[UserProfile], target_uid: str, action: str) -> None:
    """Bloqueia alteração/remoção da própria conta, mesmo para admin."""
    if caller is not None and caller.uid == target_uid:
        raise PermissionDeniedError(SELF_ACTION_MESSAGES.get(action))
