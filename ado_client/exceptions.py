"""Exceções do cliente Azure DevOps."""


class AzureDevOpsError(Exception):
    """Erro base de todas as operações do cliente."""


class AuthenticationError(AzureDevOpsError):
    """A API respondeu 203: a chamada não foi autenticada."""


class RequestFailedError(AzureDevOpsError):
    """Status diferente de 200 ou falha de transporte (conexão, timeout)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class WorkItemNotFoundError(AzureDevOpsError):
    """A busca não retornou nenhum work item."""


class WorkItemNotUniqueError(AzureDevOpsError):
    """A busca retornou mais de um work item."""


class MappingError(AzureDevOpsError):
    """JSON inválido ou sem uma chave obrigatória."""
