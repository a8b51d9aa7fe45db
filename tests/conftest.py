"""Configuração pytest e fixtures."""
import json
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

# Garante que a raiz do projeto está no path
_root = Path(__file__).resolve().parent.parent
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

from ado_client.services.api_client import AzureDevOpsApiClient  # noqa: E402


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: testes que exigem .env (Azure DevOps)")


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)


def build_response(
    status: int = 200,
    json_body=None,
    content: bytes | None = None,
    headers: dict | None = None,
) -> requests.Response:
    """Resposta real do requests com corpo e headers definidos pelo teste."""
    r = requests.Response()
    r.status_code = status
    if json_body is not None:
        content = json.dumps(json_body).encode("utf-8")
    r._content = content if content is not None else b""
    r.headers.update(headers or {})
    return r


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def session():
    """Session falsa: configure session.request.return_value / side_effect no teste."""
    s = MagicMock(spec=requests.Session)
    s.request.return_value = build_response(200, json_body={})
    return s


@pytest.fixture
def api_client(session):
    return AzureDevOpsApiClient("username", "secret", "http://fake/", "Aveyara", "project", session=session)


def workitem_payload(**overrides) -> dict:
    """JSON de um work item como devolvido por GET wit/workitems/{id}."""
    data = {
        "id": 297,
        "rev": 3,
        "url": "http://fake/Aveyara/_apis/wit/workItems/297",
        "project": {"id": "proj-1", "name": "project"},
        "fields": {
            "System.Title": "Login quebra com senha vazia",
            "System.State": "Active",
            "System.CreatedDate": "2024-01-01T10:00:00Z",
            "System.IterationPath": "project\\Sprint 1",
            "System.AreaPath": "project\\Web",
            "System.WorkItemType": "Bug",
            "System.Tags": "login; web",
            "System.Description": "<div>Descrição</div>",
            "Microsoft.VSTS.TCM.ReproSteps": "<div>Passos</div>",
            "Microsoft.VSTS.Common.AcceptanceCriteria": "<div>Critérios</div>",
            "Microsoft.VSTS.TCM.SystemInfo": "<div>Chrome 120</div>",
            "Microsoft.VSTS.Common.Resolution": "<div>Corrigido</div>",
        },
        "_links": {"html": {"href": "http://fake/Aveyara/project/_workitems/edit/297"}},
    }
    data.update(overrides)
    return data


@pytest.fixture
def workitem_json():
    return workitem_payload
