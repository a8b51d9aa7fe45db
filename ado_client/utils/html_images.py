"""Embute como data URI as imagens hospedadas no próprio Azure DevOps."""
import base64
import logging
from typing import Callable

import requests

logger = logging.getLogger(__name__)

IMG_SRC_PREFIX = '<img src="'
DEFAULT_MIME_TYPE = "image"


def mime_type_from_header(content_type: str | None) -> str:
    """'image/png; charset=...' -> 'image/png'. Sem header: 'image'."""
    if not content_type:
        return DEFAULT_MIME_TYPE
    return content_type.split(";")[0].strip() or DEFAULT_MIME_TYPE


def to_data_uri(response: requests.Response) -> str:
    """Converte o conteúdo baixado em data:{mime};base64,{...}."""
    mime = mime_type_from_header(response.headers.get("Content-Type"))
    encoded = base64.b64encode(response.content).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def embed_images(
    text: str,
    organization_base_url: str,
    download: Callable[[str], requests.Response],
) -> str:
    """
    Substitui o src de cada <img> que aponta para a organização por um data URI.

    O texto é dividido no marcador '<img src="{organization_base_url}'; em cada
    parte seguinte, o trecho até a próxima aspa é o sufixo do anexo, baixado
    com ``download(organization_base_url + sufixo)``. Uma parte sem aspa de
    fechamento (HTML malformado) é mantida como está.

    Args:
        text: Conteúdo HTML do campo.
        organization_base_url: Ex.: https://dev.azure.com/minha-org/
        download: Função autenticada que baixa a URL e devolve a resposta.

    Returns:
        O HTML com as imagens embutidas.
    """
    marker = IMG_SRC_PREFIX + organization_base_url
    parts = text.split(marker)
    if len(parts) == 1:
        return text

    out = [parts[0]]
    for part in parts[1:]:
        end = part.find('"')
        if end == -1:
            logger.warning("Imagem sem aspa de fechamento ignorada: %s...", part[:60])
            out.append(marker + part)
            continue
        url = organization_base_url + part[:end]
        logger.debug("Embutindo imagem %s", url)
        out.append(IMG_SRC_PREFIX + to_data_uri(download(url)) + part[end:])
    return "".join(out)
