"""Operações de work item: criação, atualização, comentários, leitura e busca."""
import json
import logging
from typing import TYPE_CHECKING, Any, Iterable
from urllib.parse import urlencode

from ado_client.exceptions import MappingError, WorkItemNotFoundError, WorkItemNotUniqueError
from ado_client.models.patch import (
    JSON_PATCH_CONTENT_TYPE,
    FieldSlot,
    JsonPatchOperation,
    attachment_operation,
    join_tags,
    wrap_rich_text,
)
from ado_client.models.workitem import Workitem
from ado_client.services.http_client import AzureDevOpsHttpClient

if TYPE_CHECKING:
    from ado_client.services.api_client import AzureDevOpsApiClient

logger = logging.getLogger(__name__)

# A API de comentários só existe como preview
COMMENTS_API_VERSION = "7.1-preview.4"

# Comentário gravado nas relações de anexo criadas por create_bug / update
ATTACHMENT_COMMENT = "Added by ado-client"


def build_url(base: str, path: str, params: dict[str, Any] | None = None) -> str:
    """base + path + query string (',' e '$' são mantidos literais, como a API espera)."""
    query = urlencode(params or {}, safe=",$")
    return f"{base}{path}?{query}" if query else f"{base}{path}"


def serialize_operations(operations: Iterable[JsonPatchOperation]) -> str:
    return json.dumps([op.to_dict() for op in operations])


class WorkitemRepository:
    """Chamadas de work item sobre o gateway HTTP; as respostas viram ``Workitem``."""

    def __init__(
        self,
        http: AzureDevOpsHttpClient,
        project_base_url: str,
        search_url: str,
        api_client: "AzureDevOpsApiClient",
        api_version: str = "7.1",
    ) -> None:
        self.http = http
        self.project_base_url = project_base_url
        self.search_url = search_url
        self.api_client = api_client
        self.api_version = api_version

    def _project_url(self, path: str, params: dict[str, Any] | None = None) -> str:
        return build_url(self.project_base_url, path, {**(params or {}), "api-version": self.api_version})

    def _to_workitem(self, data: Any) -> Workitem:
        return Workitem.from_dict(data, self.api_client)

    def create_bug(
        self,
        title: str,
        description: str,
        attachments: Iterable[Any] = (),
        tags: str | Iterable[Any] = (),
    ) -> Workitem:
        """Cria um Bug com título, repro steps, anexos e tags (preferir WorkItemBuilder)."""
        operations = [
            FieldSlot.TITLE.operation(title),
            FieldSlot.REPRO_STEPS.operation(wrap_rich_text(description)),
        ]
        operations.extend(attachment_operation(a, comment=ATTACHMENT_COMMENT) for a in attachments)
        tag_value = join_tags(tags)
        if tag_value:
            operations.append(FieldSlot.TAGS.operation(tag_value))

        url = self._project_url("wit/workitems/$Bug")
        r = self.http.post(
            url,
            serialize_operations(operations),
            headers={"Content-Type": JSON_PATCH_CONTENT_TYPE},
        )
        workitem = self._to_workitem(self.http.decode_json(r))
        logger.info("Bug %s criado: %s", workitem.id, title)
        return workitem

    def update_workitem_repro_steps_and_attachments(
        self,
        workitem: Workitem,
        repro_steps_text: str,
        attachments: Iterable[Any] = (),
    ) -> None:
        """Substitui os repro steps e anexa os arquivos informados."""
        operations = [FieldSlot.REPRO_STEPS.operation(wrap_rich_text(repro_steps_text))]
        operations.extend(attachment_operation(a, comment=ATTACHMENT_COMMENT) for a in attachments)
        url = self._project_url(f"wit/workitems/{workitem.id}")
        self.http.patch(
            url,
            serialize_operations(operations),
            headers={"Content-Type": JSON_PATCH_CONTENT_TYPE},
        )

    def add_comment_to_workitem(self, workitem: Workitem, comment_text: str) -> None:
        url = build_url(
            self.project_base_url,
            f"wit/workitems/{workitem.id}/comments",
            {"api-version": COMMENTS_API_VERSION},
        )
        self.http.post(url, json.dumps({"text": comment_text}), headers={"Content-Type": "application/json"})

    def get_work_item_from_api_url(self, api_url: str) -> Workitem:
        """Obtém o work item pela URL da API (campo ``url`` do próprio work item)."""
        r = self.http.get(api_url)
        return self._to_workitem(self.http.decode_json(r))

    def search_workitem(self, search_text: str) -> Workitem:
        """
        Busca o primeiro work item (menor id) que contém o texto.

        Raises:
            WorkItemNotFoundError: nenhum resultado.
            WorkItemNotUniqueError: o servidor informou mais de um resultado.
        """
        body = {
            "searchText": search_text,
            "$skip": 0,
            "$top": 1,
            "filters": None,
            "$orderBy": [{"field": "system.id", "sortOrder": "ASC"}],
            "includeFacets": True,
        }
        url = build_url(self.search_url, "search/workitemsearchresults", {"api-version": self.api_version})
        r = self.http.post(url, json.dumps(body), headers={"Content-Type": "application/json"})
        data = self.http.decode_json(r)
        if not isinstance(data, dict) or "count" not in data:
            raise MappingError("Resposta da busca sem 'count'")
        count = data["count"]
        if count == 0:
            raise WorkItemNotFoundError(f"Nenhum work item encontrado para '{search_text}'")
        if count > 1:
            raise WorkItemNotUniqueError(f"Mais de um work item encontrado para '{search_text}'")
        results = data.get("results") or []
        if not results:
            raise MappingError(f"Busca por '{search_text}' informou count=1 sem resultados")
        return self._to_workitem(results[0])

    def get_workitems_by_id(self, ids: Iterable[int | str]) -> list[Workitem]:
        """Obtém work items por IDs, na ordem da resposta. Lista vazia não faz requisição."""
        ids = [str(i) for i in ids]
        if not ids:
            return []
        url = self._project_url("wit/workitems", {"ids": ",".join(ids)})
        r = self.http.get(url)
        return [self._to_workitem(item) for item in self.http.decode_list(r)]
