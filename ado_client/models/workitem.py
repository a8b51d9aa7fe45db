"""Work item do Azure DevOps e o mapeamento a partir do JSON da API."""
import copy
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from pydantic import BaseModel, ConfigDict, PrivateAttr, ValidationError

from ado_client.exceptions import MappingError
from ado_client.models.devops_models import require_keys, require_mapping
from ado_client.models.patch import (
    ACCEPTANCE_CRITERIA_FIELD,
    AREA_PATH_FIELD,
    DESCRIPTION_FIELD,
    ITERATION_PATH_FIELD,
    REPRO_STEPS_FIELD,
    RESOLUTION_FIELD,
    SYSTEM_INFO_FIELD,
    TAGS_FIELD,
    TITLE_FIELD,
)
from ado_client.utils.html_images import embed_images

if TYPE_CHECKING:
    from ado_client.services.api_client import AzureDevOpsApiClient

# Reference name do campo -> atributo do Workitem. Campos ausentes viram "".
FIELD_MAP: dict[str, str] = {
    TITLE_FIELD: "title",
    "System.State": "state",
    "System.CreatedDate": "created_date",
    ITERATION_PATH_FIELD: "iteration_path",
    AREA_PATH_FIELD: "area_path",
    "System.WorkItemType": "work_item_type",
    TAGS_FIELD: "tags",
    DESCRIPTION_FIELD: "description",
    REPRO_STEPS_FIELD: "repro_steps",
    ACCEPTANCE_CRITERIA_FIELD: "acceptance_criteria",
    SYSTEM_INFO_FIELD: "system_info",
    RESOLUTION_FIELD: "resolution",
}

# Campos de texto rico, na ordem em que get_fields_with_text_area os devolve
TEXT_AREA_FIELDS: tuple[tuple[str, str, str], ...] = (
    (DESCRIPTION_FIELD, "description", "Description"),
    (REPRO_STEPS_FIELD, "repro_steps", "Repro Steps"),
    (SYSTEM_INFO_FIELD, "system_info", "System Info"),
    (ACCEPTANCE_CRITERIA_FIELD, "acceptance_criteria", "Acceptance Criteria"),
    (RESOLUTION_FIELD, "resolution", "Resolution"),
)

DONE_STATE = "Done"


@dataclass(frozen=True)
class TextAreaField:
    """Campo de texto rico: nome de exibição e conteúdo HTML."""

    display_name: str
    content: str


class WorkitemProject(BaseModel):
    """Projeto ao qual o work item pertence (nome e, quando presente, id)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = ""
    id: str | None = None


def _html_link_from_payload(data: Mapping[str, Any]) -> str | None:
    links = data.get("_links") or {}
    html = links.get("html") if isinstance(links, Mapping) else None
    href = html.get("href") if isinstance(html, Mapping) else None
    return str(href) if href else None


class Workitem(BaseModel):
    """Work item (Bug, PBI, User Story, ...).

    Guarda uma referência ao cliente que o criou para ``add_comment``,
    ``html_link`` e a expansão de imagens; essa referência não faz parte
    da serialização do modelo e não é levada no pickle.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    url: str
    project: WorkitemProject = WorkitemProject()
    title: str = ""
    state: str = ""
    created_date: str = ""
    iteration_path: str = ""
    area_path: str = ""
    work_item_type: str = ""
    tags: str = ""
    description: str = ""
    repro_steps: str = ""
    acceptance_criteria: str = ""
    system_info: str = ""
    resolution: str = ""

    _api_client: Any = PrivateAttr(default=None)
    _html_link: str | None = PrivateAttr(default=None)
    _html_link_lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)

    @classmethod
    def from_dict(cls, data: Any, api_client: "AzureDevOpsApiClient | None" = None) -> "Workitem":
        """
        Mapeia o JSON de um work item (GET, criação ou resultado de busca).

        Os campos são lidos pelo reference name exato (``System.Title``,
        ``System.State``, ...). Resultados da busca costumam trazer os nomes em
        minúsculas (``system.title``); nesse caso só o id é aproveitado, via
        ``system.id``, e os demais campos ficam vazios. Use
        ``get_work_item_from_api_url(workitem.url)`` para obter o item completo.
        """
        data = require_mapping(data, "Workitem")
        require_keys(data, "Workitem", "url")
        fields = data.get("fields") or {}
        if not isinstance(fields, Mapping):
            raise MappingError("Workitem: 'fields' não é um objeto")
        # Resultados da busca trazem o id apenas em fields (system.id)
        item_id = data.get("id")
        if item_id is None:
            item_id = fields.get("System.Id", fields.get("system.id"))
        if item_id is None:
            raise MappingError("Workitem: chave(s) obrigatória(s) ausente(s): id")

        values: dict[str, Any] = {"id": str(item_id), "url": str(data["url"])}
        for reference_name, attr in FIELD_MAP.items():
            raw = fields.get(reference_name)
            values[attr] = "" if raw is None else str(raw)

        project = data.get("project")
        if isinstance(project, Mapping):
            values["project"] = {
                "name": str(project.get("name") or ""),
                "id": str(project["id"]) if project.get("id") is not None else None,
            }
        else:
            # Resultados de busca não trazem "project"; o nome vem em System.TeamProject
            values["project"] = {"name": str(fields.get("System.TeamProject") or "")}

        try:
            workitem = cls.model_validate(values)
        except ValidationError as e:
            raise MappingError(f"Workitem: {e}") from e
        workitem._api_client = api_client
        workitem._html_link = _html_link_from_payload(data)
        return workitem

    def __deepcopy__(self, memo: dict[int, Any] | None = None) -> "Workitem":
        # A cópia ganha um lock novo e compartilha o cliente; o link já resolvido é mantido
        copied = self.__class__.model_construct(
            _fields_set=set(self.model_fields_set),
            **copy.deepcopy(dict(self.__dict__), memo),
        )
        copied._api_client = self._api_client
        copied._html_link = self._html_link
        return copied

    def __getstate__(self) -> dict[Any, Any]:
        state = super().__getstate__()
        private = dict(state.get("__pydantic_private__") or {})
        private.pop("_html_link_lock", None)
        private["_api_client"] = None
        state["__pydantic_private__"] = private
        return state

    def __setstate__(self, state: dict[Any, Any]) -> None:
        super().__setstate__(state)
        self._html_link_lock = threading.Lock()

    @property
    def project_name(self) -> str:
        return self.project.name

    def is_done(self) -> bool:
        """True somente para o estado exatamente igual a 'Done'."""
        return self.state == DONE_STATE

    def get_fields_with_text_area(self, expand_images: bool = False) -> dict[str, TextAreaField]:
        """
        Campos de texto rico não vazios, indexados pelo reference name.

        Ordem fixa: Description, Repro Steps, System Info, Acceptance Criteria,
        Resolution. Com expand_images=True, imagens hospedadas na organização
        são embutidas como data URI (uma requisição por imagem).
        """
        fields: dict[str, TextAreaField] = {}
        for reference_name, attr, display_name in TEXT_AREA_FIELDS:
            content = getattr(self, attr)
            if not content:
                continue
            if expand_images:
                content = self._expand_images(content)
            fields[reference_name] = TextAreaField(display_name=display_name, content=content)
        return fields

    def _expand_images(self, content: str) -> str:
        client = self._require_client()
        return embed_images(content, client.organization_base_url, client.download_attachment)

    @property
    def html_link(self) -> str:
        """Link para o work item na interface web (resolvido uma única vez)."""
        if self._html_link is not None:
            return self._html_link
        with self._html_link_lock:
            if self._html_link is None:
                resolved = self._require_client().get_work_item_from_api_url(self.url)
                link = resolved._html_link
                if not link:
                    raise MappingError(f"Work item {self.id} sem _links.html na resposta")
                self._html_link = link
        return self._html_link

    def add_comment(self, text: str) -> None:
        """Adiciona um comentário a este work item."""
        self._require_client().add_comment_to_workitem(self, text)

    def _require_client(self) -> "AzureDevOpsApiClient":
        if self._api_client is None:
            raise RuntimeError(f"Work item {self.id} não está associado a um cliente")
        return self._api_client
