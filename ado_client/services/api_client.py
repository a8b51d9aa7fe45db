"""Cliente Azure DevOps REST API: work items, times, projetos, backlogs, consultas e anexos."""
import logging
import warnings
from typing import Any, Iterable
from urllib.parse import quote, unquote

import requests

from ado_client.config import Settings
from ado_client.config import settings as default_settings
from ado_client.exceptions import AzureDevOpsError, MappingError
from ado_client.models.devops_models import AttachmentReference, Project, Tag, Team
from ado_client.models.workitem import Workitem
from ado_client.services.http_client import AzureDevOpsHttpClient
from ado_client.services.workitem_repository import WorkitemRepository, build_url

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://dev.azure.com/"
DEFAULT_SEARCH_URL = "https://almsearch.dev.azure.com/"


def _encode_segment(segment: str) -> str:
    """Codifica um segmento de caminho (nomes de projeto/time podem ter espaços e acentos)."""
    seg = unquote(segment) if "%" in segment else segment
    return quote(seg, safe="", encoding="utf-8")


class AzureDevOpsApiClient:
    """
    Fachada da API: guarda organização, projeto e credenciais e monta as URLs
    de cada área da API.

    Usuário vazio faz o segredo ser enviado como Bearer token; caso contrário
    é usado Basic auth. Todas as operações falham com AuthenticationError
    (HTTP 203) ou RequestFailedError (qualquer outro status diferente de 200).
    """

    def __init__(
        self,
        username: str,
        secret: str,
        base_url: str = DEFAULT_BASE_URL,
        organization: str = "",
        project: str = "",
        session: requests.Session | None = None,
        api_version: str = "7.1",
        search_base_url: str = DEFAULT_SEARCH_URL,
        timeout: float = 30,
    ) -> None:
        if not organization:
            raise ValueError("Organização do Azure DevOps não informada")
        if not project:
            raise ValueError("Projeto do Azure DevOps não informado")
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.organization = organization
        self.project = project
        self.api_version = api_version
        self.search_base_url = search_base_url if search_base_url.endswith("/") else search_base_url + "/"
        self.http = AzureDevOpsHttpClient(username, secret, session=session, timeout=timeout)

        org = _encode_segment(organization)
        proj = _encode_segment(project)
        self.organization_base_url = f"{self.base_url}{org}/"
        self.organization_api_url = f"{self.organization_base_url}_apis/"
        self.project_base_url = f"{self.organization_base_url}{proj}/_apis/"
        self.repository = WorkitemRepository(
            self.http,
            self.project_base_url,
            f"{self.search_base_url}{org}/{proj}/_apis/",
            api_client=self,
            api_version=api_version,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        session: requests.Session | None = None,
    ) -> "AzureDevOpsApiClient":
        """Cria o cliente a partir das variáveis de ambiente / .env."""
        s = settings or default_settings
        s.validate_pat()
        return cls(
            s.AZURE_DEVOPS_USERNAME,
            s.AZURE_DEVOPS_PAT,
            base_url=s.AZURE_DEVOPS_BASE_URL,
            organization=s.AZURE_DEVOPS_ORG,
            project=s.AZURE_DEVOPS_PROJECT,
            session=session,
            api_version=s.AZURE_DEVOPS_API_VERSION,
            search_base_url=s.AZURE_DEVOPS_SEARCH_URL,
            timeout=s.HTTP_TIMEOUT,
        )

    # ----- URLs -----
    def _params(self, params: dict[str, Any] | None = None, api_version: str | None = None) -> dict[str, Any]:
        return {**(params or {}), "api-version": api_version or self.api_version}

    def _project_url(self, path: str, params: dict[str, Any] | None = None) -> str:
        return build_url(self.project_base_url, path, self._params(params))

    def _organization_url(self, path: str, params: dict[str, Any] | None = None) -> str:
        return build_url(self.organization_api_url, path, self._params(params))

    def _team_url(self, team: Team | str, path: str, params: dict[str, Any] | None = None) -> str:
        team_segment = team.id if isinstance(team, Team) else team
        base = f"{self.organization_base_url}{_encode_segment(self.project)}/{_encode_segment(team_segment)}/_apis/"
        return build_url(base, path, self._params(params))

    # ----- Requisições cruas -----
    def get(self, url: str, headers: dict[str, str] | None = None) -> requests.Response:
        return self.http.get(url, headers=headers)

    def post(self, url: str, body: str | bytes | None, headers: dict[str, str] | None = None) -> requests.Response:
        return self.http.post(url, body, headers=headers)

    def patch(self, url: str, body: str | bytes | None, headers: dict[str, str] | None = None) -> requests.Response:
        return self.http.patch(url, body, headers=headers)

    def _get_json(self, url: str, key: str = "") -> Any:
        return self.http.decode_json(self.get(url), key)

    def _get_list(self, url: str) -> list[dict[str, Any]]:
        return self.http.decode_list(self.get(url))

    # ----- Work items -----
    def create_bug(
        self,
        title: str,
        description: str,
        attachments: Iterable[Any] = (),
        tags: str | Iterable[Any] = (),
    ) -> Workitem:
        """Obsoleto: use ``WorkItemBuilder.build_bug``."""
        warnings.warn(
            "create_bug está obsoleto; use WorkItemBuilder.build_bug",
            DeprecationWarning,
            stacklevel=2,
        )
        return self.repository.create_bug(title, description, attachments, tags)

    def update_workitem_repro_steps_and_attachments(
        self,
        workitem: Workitem,
        repro_steps_text: str,
        attachments: Iterable[Any] = (),
    ) -> None:
        self.repository.update_workitem_repro_steps_and_attachments(workitem, repro_steps_text, attachments)

    def add_comment_to_workitem(self, workitem: Workitem, comment_text: str) -> None:
        self.repository.add_comment_to_workitem(workitem, comment_text)

    def get_work_item_from_api_url(self, api_url: str) -> Workitem:
        return self.repository.get_work_item_from_api_url(api_url)

    def get_workitems_by_id(self, ids: Iterable[int | str]) -> list[Workitem]:
        return self.repository.get_workitems_by_id(ids)

    def search_workitem(self, search_text: str) -> Workitem:
        return self.repository.search_workitem(search_text)

    def get_work_item_types(self) -> list[dict[str, Any]]:
        """Tipos de work item do projeto (Bug, Task, ...)."""
        return self._get_list(self._project_url("wit/workitemtypes"))

    def get_tags(self) -> list[Tag]:
        """Tags já usadas no projeto."""
        return [Tag.from_dict(t) for t in self._get_list(self._project_url("wit/tags"))]

    # ----- Anexos -----
    def upload_attachment(self, file_name: str, content: bytes | str) -> AttachmentReference:
        """Envia o conteúdo e devolve a referência (id, url) criada pelo servidor."""
        url = self._project_url("wit/attachments", {"fileName": file_name})
        r = self.post(url, content, headers={"Content-Type": "application/octet-stream"})
        reference = AttachmentReference.from_dict(self.http.decode_json(r))
        logger.info("Anexo '%s' enviado: %s", file_name, reference.id)
        return reference

    def download_attachment(self, url: str) -> requests.Response:
        """Baixa um anexo (ou imagem) hospedado na organização, com autenticação."""
        return self.get(url)

    # ----- Times -----
    def get_teams(self) -> list[Team]:
        """Times do projeto configurado."""
        url = self._organization_url(f"projects/{_encode_segment(self.project)}/teams")
        return [Team.from_dict(t) for t in self._get_list(url)]

    def get_all_teams(self) -> list[Team]:
        """Todos os times da organização."""
        return [Team.from_dict(t) for t in self._get_list(self._organization_url("teams"))]

    def get_team(self, team_id: str) -> Team:
        url = self._organization_url(f"projects/{_encode_segment(self.project)}/teams/{_encode_segment(team_id)}")
        return Team.from_dict(self._get_json(url))

    def get_team_id_by_name(self, team_name: str) -> str:
        """Id do time do projeto com exatamente esse nome."""
        matches = [t for t in self.get_teams() if t.name == team_name]
        if not matches:
            raise AzureDevOpsError(f"Time '{team_name}' não encontrado")
        if len(matches) > 1:
            raise AzureDevOpsError(f"Mais de um time encontrado com o nome '{team_name}'")
        return matches[0].id

    # ----- Projetos -----
    def get_projects(self) -> list[Project]:
        return [Project.from_dict(p) for p in self._get_list(self._organization_url("projects"))]

    def get_project(self, project_id: str) -> Project:
        return Project.from_dict(self._get_json(self._organization_url(f"projects/{_encode_segment(project_id)}")))

    # ----- Backlogs e iterações -----
    def get_backlogs(self, team: Team | str) -> list[dict[str, Any]]:
        """Níveis de backlog do time."""
        return self._get_list(self._team_url(team, "work/backlogs"))

    def get_backlog_work_items(self, team: Team | str, backlog_id: str) -> dict[str, Any]:
        """Work items de um nível de backlog (payload cru com ``workItems``)."""
        return self._get_json(self._team_url(team, f"work/backlogs/{_encode_segment(backlog_id)}/workitems"))

    def get_current_iteration_path(self, team: Team | str) -> str:
        """
        Caminho da iteração atual do time.

        Raises:
            AzureDevOpsError: nenhuma ou mais de uma iteração atual.
            MappingError: resposta fora do formato esperado.
        """
        url = self._team_url(team, "work/teamsettings/iterations", {"$timeframe": "current"})
        data = self._get_json(url)
        if not isinstance(data, dict):
            raise MappingError("Resposta de iterações não é um objeto")
        iterations = data.get("value") or []
        if not isinstance(iterations, list):
            raise MappingError("Resposta de iterações com 'value' que não é uma lista")
        count = data.get("count", len(iterations))
        where = f"{self.organization}/{self.project}/{team.id if isinstance(team, Team) else team}"
        if count == 0 or not iterations:
            raise AzureDevOpsError(f"Nenhuma iteração atual encontrada para {where}")
        if count > 1:
            raise AzureDevOpsError(f"Mais de uma iteração atual encontrada para {where}")
        first = iterations[0]
        path = first.get("path") if isinstance(first, dict) else None
        if not path:
            raise MappingError(f"Iteração atual de {where} sem 'path'")
        return str(path)

    # ----- Consultas -----
    def get_root_query_folders(self, depth: int = 0) -> list[dict[str, Any]]:
        """Pastas raiz de consultas (My Queries / Shared Queries) com ``depth`` níveis de filhos."""
        return self._get_list(self._project_url("wit/queries", {"$depth": depth}))

    def get_all_queries(self) -> list[dict[str, Any]]:
        """
        Consultas do primeiro nível: pastas com ``hasChildren`` são substituídas
        pelos seus filhos; as demais entradas são mantidas.
        """
        queries: list[dict[str, Any]] = []
        for folder in self.get_root_query_folders(1):
            if folder.get("hasChildren"):
                children = folder.get("children") or []
                if not isinstance(children, list):
                    raise MappingError(f"Pasta de consultas '{folder.get('name', '')}' com 'children' inválido")
                queries.extend(children)
            else:
                queries.append(folder)
        return queries

    def get_query_result_by_id(self, team: Team | str, query_id: str) -> dict[str, Any]:
        """Executa uma consulta salva no contexto do time (resultado WIQL cru)."""
        return self._get_json(self._team_url(team, f"wit/wiql/{_encode_segment(query_id)}"))

    def close(self) -> None:
        self.http.session.close()
