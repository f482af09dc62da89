"""
Modelos de usuários, funções e permissões.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Role(str, Enum):
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class Module(str, Enum):
    """Áreas do dashboard controladas por permissão."""
    DASHBOARD = "dashboard"
    MANAGEMENT = "gerenciamento"
    FLEET = "frota"
    USERS = "users"


@dataclass(frozen=True)
class Permissions:
    can_edit: bool = False
    can_view: bool = False
    modules: frozenset = field(default_factory=frozenset)  # frozenset[Module]


@dataclass(frozen=True)
class UserAccount:
    """Registro em `users/{uid}`."""
    uid: str
    email: str
    role: Role = Role.VIEWER

    def to_document(self) -> dict:
        return {"uid": self.uid, "email": self.email, "role": self.role.value}


@dataclass(frozen=True)
class Principal:
    """Identidade autenticada devolvida pelo provedor."""
    uid: str
    email: Optional[str] = None
    id_token: str = ""
    refresh_token: str = ""


@dataclass(frozen=True)
class UserProfile:
    """Principal resolvido com função e permissões."""
    uid: str
    email: Optional[str]
    role: Role
    permissions: Permissions
