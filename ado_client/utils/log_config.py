"""Configuração de logging para aplicações que usam o cliente."""
import logging

from ado_client.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def resolve_level(level: str | int | None = None) -> int:
    """Nível numérico a partir de 'DEBUG', 10 ou, se None, de settings.LOG_LEVEL."""
    if isinstance(level, int):
        return level
    name = (level or settings.LOG_LEVEL or "INFO").upper()
    return getattr(logging, name, logging.INFO)


def configure_logging(level: str | int | None = None) -> None:
    """Aplica logging.basicConfig com o formato padrão do projeto."""
    logging.basicConfig(level=resolve_level(level), format=LOG_FORMAT)
