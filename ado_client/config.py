"""Configurações do cliente usando Pydantic Settings."""
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_DIR = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_DIR / ".env"


def _is_pipeline_placeholder(v: object) -> bool:
    """Azure DevOps Pipeline envia o literal '$(VAR)' quando a variável não está definida."""
    return isinstance(v, str) and v.strip().startswith("$(") and v.strip().endswith(")")


class Settings(BaseSettings):
    """Configurações do cliente com validação automática."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Credenciais: usuário vazio => o segredo é enviado como Bearer token
    AZURE_DEVOPS_USERNAME: str = Field(
        default="",
        description="Usuário para Basic auth (vazio para usar o PAT/token como Bearer)",
    )
    AZURE_DEVOPS_PAT: str = Field(
        default="",
        description="Personal Access Token ou token OAuth (obrigatório via env var)",
    )

    # Endereços
    AZURE_DEVOPS_BASE_URL: str = Field(
        default="https://dev.azure.com/",
        description="URL base do serviço (termina com /)",
    )
    AZURE_DEVOPS_SEARCH_URL: str = Field(
        default="https://almsearch.dev.azure.com/",
        description="URL base da API de busca de work items",
    )
    AZURE_DEVOPS_ORG: str = Field(
        default="",
        description="Organização do Azure DevOps",
    )
    AZURE_DEVOPS_PROJECT: str = Field(
        default="",
        description="Nome do projeto no Azure DevOps",
    )
    AZURE_DEVOPS_API_VERSION: str = Field(
        default="7.1",
        description="Versão da REST API usada nas chamadas",
    )

    HTTP_TIMEOUT: float = Field(
        default=30,
        description="Timeout (segundos) de cada requisição",
    )

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Nível de log (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    @field_validator(
        "AZURE_DEVOPS_USERNAME",
        "AZURE_DEVOPS_PAT",
        "AZURE_DEVOPS_ORG",
        "AZURE_DEVOPS_PROJECT",
        mode="before",
    )
    @classmethod
    def parse_pipeline_placeholder(cls, v: object) -> object:
        """Trata variáveis não definidas do Azure DevOps Pipeline."""
        if v is None or _is_pipeline_placeholder(v):
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator("AZURE_DEVOPS_BASE_URL", "AZURE_DEVOPS_SEARCH_URL", mode="before")
    @classmethod
    def ensure_trailing_slash(cls, v: object) -> object:
        """As URLs são concatenadas diretamente com a organização."""
        if isinstance(v, str) and v and not v.endswith("/"):
            return v + "/"
        return v

    def validate_pat(self) -> None:
        """Valida que o PAT foi fornecido. Chame antes de usar."""
        if not self.AZURE_DEVOPS_PAT or self.AZURE_DEVOPS_PAT.strip() == "":
            raise ValueError("AZURE_DEVOPS_PAT deve ser configurado via variável de ambiente")


settings = Settings()
