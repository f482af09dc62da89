"""
Hierarquia de erros do dashboard.

Toda exceção carrega uma mensagem amigável (pt-BR) pronta para a
notificação exibida ao usuário.
"""


class DashboardError(Exception):
    """Erro base. `user_message` é o texto mostrado na notificação."""

    default_message = "Ocorreu um erro. Tente novamente."

    def __init__(self, user_message: str = None, *args):
        self.user_message = user_message or self.default_message
        super().__init__(self.user_message, *args)


# ─── Autenticação ───

class AuthError(DashboardError):
    """Falha no provedor de autenticação, já traduzida."""

    def __init__(self, user_message: str = None, code: str = ""):
        super().__init__(user_message)
        self.code = code


# ─── Autorização ───

class PermissionDeniedError(DashboardError):
    default_message = "Você não tem permissão para esta ação."


# ─── Validação ───

class ValidationError(DashboardError):
    """Entrada manual inválida. `field` aponta o campo do formulário, se houver."""

    default_message = "Dados inválidos."

    def __init__(self, user_message: str = None, field: str = None):
        super().__init__(user_message)
        self.field = field


class NoValidRowsError(ValidationError):
    default_message = "Nenhuma linha válida encontrada no CSV."


# ─── Backend ───

class StoreError(DashboardError):
    """Escrita rejeitada pelo banco de dados (uma tentativa, sem retry)."""

    default_message = "Erro ao salvar o registro."


class FleetError(DashboardError):
    default_message = "Não foi possível carregar os dados da frota."
