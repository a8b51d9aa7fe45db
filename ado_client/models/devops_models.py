"""Modelos de valor da API Azure DevOps (times, projetos, anexos, tags)."""
from typing import Any, ClassVar, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ado_client.exceptions import MappingError


def require_mapping(data: Any, entity: str) -> Mapping[str, Any]:
    """Garante que o payload é um objeto JSON."""
    if not isinstance(data, Mapping):
        raise MappingError(f"{entity}: payload inválido ({type(data).__name__})")
    return data


def require_keys(data: Mapping[str, Any], entity: str, *keys: str) -> None:
    """Falha com MappingError se faltar alguma chave obrigatória."""
    missing = [k for k in keys if data.get(k) is None]
    if missing:
        raise MappingError(f"{entity}: chave(s) obrigatória(s) ausente(s): {', '.join(missing)}")


class _ApiModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    required_keys: ClassVar[tuple[str, ...]] = ()

    @classmethod
    def from_dict(cls, data: Any):
        """Constrói a entidade a partir do JSON da API."""
        data = require_mapping(data, cls.__name__)
        require_keys(data, cls.__name__, *cls.required_keys)
        try:
            return cls.model_validate(cls._normalize(data))
        except ValidationError as e:
            raise MappingError(f"{cls.__name__}: {e}") from e

    @classmethod
    def _normalize(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        return dict(data)


class Team(_ApiModel):
    """Time do projeto.

    Docs: https://learn.microsoft.com/en-us/rest/api/azure/devops/core/teams/get-all-teams
    """

    required_keys: ClassVar[tuple[str, ...]] = ("id", "description", "identityUrl", "name", "url")

    id: str
    description: str
    identity: dict[str, Any] = Field(default_factory=dict)
    identity_url: str = Field(alias="identityUrl")
    name: str
    project_id: str = Field(default="", alias="projectId")
    project_name: str = Field(default="", alias="projectName")
    url: str

    @classmethod
    def _normalize(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        out = dict(data)
        out["id"] = str(data["id"])
        out["identity"] = data.get("identity") or {}
        out["projectId"] = str(data.get("projectId") or "")
        out["projectName"] = data.get("projectName") or ""
        return out


class Project(_ApiModel):
    """Projeto da organização.

    Docs: https://learn.microsoft.com/en-us/rest/api/azure/devops/core/projects/list
    """

    required_keys: ClassVar[tuple[str, ...]] = ("id", "name", "url", "state")

    id: str
    name: str
    description: str = ""
    url: str
    state: str

    @classmethod
    def _normalize(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "id": str(data["id"]),
            "name": str(data["name"]),
            "description": data.get("description") or "",
            "url": str(data["url"]),
            "state": str(data["state"]),
        }


class AttachmentReference(_ApiModel):
    """Referência devolvida pelo servidor após o upload de um anexo."""

    required_keys: ClassVar[tuple[str, ...]] = ("id", "url")

    id: str
    url: str

    @classmethod
    def _normalize(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        return {"id": str(data["id"]), "url": str(data["url"])}


class Tag(_ApiModel):
    """Tag de work item.

    Docs: https://learn.microsoft.com/en-us/rest/api/azure/devops/wit/tags/list
    """

    required_keys: ClassVar[tuple[str, ...]] = ("id", "name", "url")

    id: str
    name: str
    url: str

    @classmethod
    def _normalize(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        return {"id": str(data["id"]), "name": str(data["name"]), "url": str(data["url"])}

    def __str__(self) -> str:
        return self.name
