"""Operações JSON-Patch usadas para criar e atualizar work items."""
from enum import Enum
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field

from ado_client.exceptions import MappingError

# Reference names dos campos no Azure DevOps
TITLE_FIELD = "System.Title"
DESCRIPTION_FIELD = "System.Description"
TAGS_FIELD = "System.Tags"
AREA_PATH_FIELD = "System.AreaPath"
ITERATION_PATH_FIELD = "System.IterationPath"
REPRO_STEPS_FIELD = "Microsoft.VSTS.TCM.ReproSteps"
ACCEPTANCE_CRITERIA_FIELD = "Microsoft.VSTS.Common.AcceptanceCriteria"
SYSTEM_INFO_FIELD = "Microsoft.VSTS.TCM.SystemInfo"
RESOLUTION_FIELD = "Microsoft.VSTS.Common.Resolution"

RELATIONS_PATH = "/relations/-"
ATTACHED_FILE_REL = "AttachedFile"
JSON_PATCH_CONTENT_TYPE = "application/json-patch+json"


def field_path(reference_name: str) -> str:
    """Caminho JSON-Patch de um campo: /fields/<reference name>."""
    return f"/fields/{reference_name}"


def wrap_rich_text(text: str) -> str:
    """O editor do Azure DevOps grava campos de texto rico envoltos em <div>."""
    return f"<div>{text}</div>"


def join_tags(tags: str | Iterable[Any]) -> str:
    """Aceita 'a;b' ou uma lista de nomes/Tag e devolve a string separada por ';'."""
    if isinstance(tags, str):
        return tags
    return ";".join(str(tag) for tag in tags)


class JsonPatchOperation(BaseModel):
    """Uma operação JSON-Patch ({op, path, from, value})."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    op: str = "add"
    path: str
    from_: str | None = Field(default=None, alias="from")
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class FieldSlot(Enum):
    """Campos que ocupam no máximo uma operação no corpo da requisição.

    A ordem de declaração é a ordem de emissão no corpo final.
    """

    TITLE = TITLE_FIELD
    DESCRIPTION = DESCRIPTION_FIELD
    REPRO_STEPS = REPRO_STEPS_FIELD
    ACCEPTANCE_CRITERIA = ACCEPTANCE_CRITERIA_FIELD
    SYSTEM_INFO = SYSTEM_INFO_FIELD
    RESOLUTION = RESOLUTION_FIELD
    TAGS = TAGS_FIELD
    AREA_PATH = AREA_PATH_FIELD
    ITERATION_PATH = ITERATION_PATH_FIELD

    @property
    def path(self) -> str:
        return field_path(self.value)

    def operation(self, value: Any) -> JsonPatchOperation:
        return JsonPatchOperation(path=self.path, value=value)


def attachment_url(attachment: Any) -> str:
    """URL de um anexo: AttachmentReference ou mapping com 'url' / 'azureDevOpsUrl'."""
    url = getattr(attachment, "url", None)
    if url is None and isinstance(attachment, Mapping):
        url = attachment.get("url") or attachment.get("azureDevOpsUrl")
    if not url:
        raise MappingError(f"Anexo sem URL: {attachment!r}")
    return str(url)


def attachment_operation(attachment: Any, comment: str | None = None) -> JsonPatchOperation:
    """Operação que adiciona uma relação AttachedFile ao work item."""
    value: dict[str, Any] = {"rel": ATTACHED_FILE_REL, "url": attachment_url(attachment)}
    if comment:
        value["attributes"] = {"comment": comment}
    return JsonPatchOperation(path=RELATIONS_PATH, value=value)
