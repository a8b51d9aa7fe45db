"""Gateway HTTP autenticado para a REST API do Azure DevOps."""
import base64
import json
import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from ado_client.exceptions import AuthenticationError, MappingError, RequestFailedError

logger = logging.getLogger(__name__)

# O Azure DevOps responde 203 (página de login) quando a chamada não foi autenticada
STATUS_OK = 200
STATUS_NOT_AUTHENTICATED = 203

AUTH_FAILED_MESSAGE = "Chamada à API não autenticada (HTTP 203). Verifique o usuário e o PAT."


def build_auth_header(username: str, secret: str) -> dict[str, str]:
    """Basic auth com usuário; sem usuário o segredo é enviado como Bearer token."""
    if not username:
        return {"Authorization": f"Bearer {secret}"}
    token = base64.b64encode(f"{username}:{secret}".encode("utf-8")).decode("utf-8")
    return {"Authorization": f"Basic {token}"}


def new_session() -> requests.Session:
    """Session com pool de conexões (sem política de retry)."""
    session = requests.Session()
    adapter = HTTPAdapter(pool_connections=10, pool_maxsize=20, max_retries=0)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class AzureDevOpsHttpClient:
    """Envia GET/POST/PATCH com o header de autenticação e classifica o status da resposta."""

    def __init__(
        self,
        username: str,
        secret: str,
        session: requests.Session | None = None,
        timeout: float = 30,
    ) -> None:
        self.username = username or ""
        self._auth_header = build_auth_header(self.username, secret)
        self.session = session if session is not None else new_session()
        self.timeout = timeout

    @property
    def auth_header(self) -> dict[str, str]:
        return dict(self._auth_header)

    def get(self, url: str, headers: dict[str, str] | None = None) -> requests.Response:
        return self._send("GET", url, headers=headers)

    def post(
        self,
        url: str,
        body: str | bytes | None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        return self._send("POST", url, body=body, headers=headers)

    def patch(
        self,
        url: str,
        body: str | bytes | None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        return self._send("PATCH", url, body=body, headers=headers)

    def _send(
        self,
        method: str,
        url: str,
        body: str | bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        merged = {**(headers or {}), **self._auth_header}
        if isinstance(body, str):
            body = body.encode("utf-8")
        logger.debug("%s %s", method, url)
        try:
            r = self.session.request(method=method, url=url, data=body, headers=merged, timeout=self.timeout)
        except requests.RequestException as e:
            raise RequestFailedError(f"Falha na requisição ao Azure DevOps: {e}") from e
        return self._check_status(r)

    @staticmethod
    def _check_status(r: requests.Response) -> requests.Response:
        if r.status_code == STATUS_OK:
            return r
        if r.status_code == STATUS_NOT_AUTHENTICATED:
            raise AuthenticationError(AUTH_FAILED_MESSAGE)
        raise RequestFailedError(f"Falha na requisição ao Azure DevOps: {r.status_code}", status_code=r.status_code)

    @staticmethod
    def decode_json(r: requests.Response, key: str = "") -> Any:
        """JSON da resposta; com ``key`` devolve apenas esse membro (obrigatório)."""
        try:
            data = json.loads(r.content or b"null")
        except ValueError as e:
            raise MappingError(f"Falha ao decodificar JSON da resposta: {e}") from e
        if not key:
            return data
        if not isinstance(data, dict) or key not in data:
            raise MappingError(f"Resposta sem a chave '{key}'")
        return data[key]

    @staticmethod
    def decode_list(r: requests.Response, key: str = "value") -> list[Any]:
        """Lista de objetos em ``key`` (formato padrão das coleções da API)."""
        items = AzureDevOpsHttpClient.decode_json(r, key)
        if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
            raise MappingError(f"Resposta com '{key}' que não é uma lista de objetos")
        return items
