"""Builder fluente para criar work items de qualquer tipo."""
import logging
from typing import TYPE_CHECKING, Any, Iterable
from urllib.parse import quote

from ado_client.models.devops_models import Team
from ado_client.models.patch import (
    JSON_PATCH_CONTENT_TYPE,
    FieldSlot,
    JsonPatchOperation,
    attachment_operation,
    join_tags,
    wrap_rich_text,
)
from ado_client.models.workitem import Workitem
from ado_client.services.workitem_repository import build_url, serialize_operations

if TYPE_CHECKING:
    from ado_client.services.api_client import AzureDevOpsApiClient

logger = logging.getLogger(__name__)


class WorkItemBuilder:
    """
    Acumula operações JSON-Patch e cria o work item com um único PATCH.

    Cada campo ocupa no máximo uma operação (a última chamada vence); anexos
    são acumulados. O builder não deve ser reutilizado depois de ``create()``.

    Exemplo:
        WorkItemBuilder.build_bug(client).title("T").repro_steps("R").create()
    """

    def __init__(self, api_client: "AzureDevOpsApiClient", work_item_type: str) -> None:
        self.api_client = api_client
        self.work_item_type = work_item_type
        self._slots: dict[FieldSlot, JsonPatchOperation] = {}
        self._attachments: list[JsonPatchOperation] = []

    @classmethod
    def build_bug(cls, api_client: "AzureDevOpsApiClient") -> "WorkItemBuilder":
        return cls(api_client, "Bug")

    @classmethod
    def build_pbi(cls, api_client: "AzureDevOpsApiClient") -> "WorkItemBuilder":
        return cls(api_client, "Product Backlog Item")

    @classmethod
    def build_issue(cls, api_client: "AzureDevOpsApiClient") -> "WorkItemBuilder":
        return cls(api_client, "Issue")

    @classmethod
    def build_user_story(cls, api_client: "AzureDevOpsApiClient") -> "WorkItemBuilder":
        return cls(api_client, "User Story")

    @classmethod
    def build_task(cls, api_client: "AzureDevOpsApiClient") -> "WorkItemBuilder":
        return cls(api_client, "Task")

    def _set(self, slot: FieldSlot, value: Any) -> "WorkItemBuilder":
        self._slots[slot] = slot.operation(value)
        return self

    def title(self, title: str) -> "WorkItemBuilder":
        return self._set(FieldSlot.TITLE, title)

    def description(self, description: str) -> "WorkItemBuilder":
        return self._set(FieldSlot.DESCRIPTION, wrap_rich_text(description))

    def repro_steps(self, repro_steps: str) -> "WorkItemBuilder":
        return self._set(FieldSlot.REPRO_STEPS, wrap_rich_text(repro_steps))

    def acceptance_criteria(self, criteria: str) -> "WorkItemBuilder":
        return self._set(FieldSlot.ACCEPTANCE_CRITERIA, wrap_rich_text(criteria))

    def system_info(self, system_info: str) -> "WorkItemBuilder":
        return self._set(FieldSlot.SYSTEM_INFO, wrap_rich_text(system_info))

    def resolution(self, resolution: str) -> "WorkItemBuilder":
        return self._set(FieldSlot.RESOLUTION, wrap_rich_text(resolution))

    def tags(self, tags: str | Iterable[Any]) -> "WorkItemBuilder":
        """Tags como 'a;b;c' ou lista de nomes / Tag."""
        return self._set(FieldSlot.TAGS, join_tags(tags))

    def area_path(self, area_path: str) -> "WorkItemBuilder":
        return self._set(FieldSlot.AREA_PATH, area_path)

    def in_iteration_path(self, iteration_path: str) -> "WorkItemBuilder":
        return self._set(FieldSlot.ITERATION_PATH, iteration_path)

    def in_current_iteration_path(self, team: Team | str) -> "WorkItemBuilder":
        """Usa a iteração atual do time (uma requisição extra)."""
        return self.in_iteration_path(self.api_client.get_current_iteration_path(team))

    def attachments(self, attachments: Iterable[Any], comment: str | None = None) -> "WorkItemBuilder":
        """Uma relação AttachedFile por item (AttachmentReference ou {'url': ...})."""
        for attachment in attachments:
            self._attachments.append(attachment_operation(attachment, comment=comment))
        return self

    def operations(self) -> list[JsonPatchOperation]:
        """Corpo final: campos na ordem de FieldSlot, depois os anexos."""
        named = [self._slots[slot] for slot in FieldSlot if slot in self._slots]
        return named + list(self._attachments)

    def create(self) -> Workitem:
        """Cria o work item no Azure DevOps e devolve o item criado."""
        path = f"wit/workitems/${quote(self.work_item_type)}"
        url = build_url(self.api_client.project_base_url, path, {"api-version": self.api_client.api_version})
        r = self.api_client.patch(
            url,
            serialize_operations(self.operations()),
            headers={"Content-Type": JSON_PATCH_CONTENT_TYPE},
        )
        workitem = Workitem.from_dict(self.api_client.http.decode_json(r), self.api_client)
        logger.info("%s %s criado", self.work_item_type, workitem.id)
        return workitem
