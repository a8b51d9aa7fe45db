"""
Cliente Python para a REST API do Azure DevOps.

Work items (criação via WorkItemBuilder, atualização, comentários, busca),
times, projetos, backlogs, consultas e anexos.
"""
from ado_client.exceptions import (
    AuthenticationError,
    AzureDevOpsError,
    MappingError,
    RequestFailedError,
    WorkItemNotFoundError,
    WorkItemNotUniqueError,
)
from ado_client.models import AttachmentReference, Project, Tag, Team, TextAreaField, Workitem
from ado_client.services.api_client import AzureDevOpsApiClient
from ado_client.services.workitem_builder import WorkItemBuilder
from ado_client.utils.log_config import configure_logging

__all__ = [
    "AttachmentReference",
    "AuthenticationError",
    "AzureDevOpsApiClient",
    "AzureDevOpsError",
    "MappingError",
    "Project",
    "RequestFailedError",
    "Tag",
    "Team",
    "TextAreaField",
    "WorkItemBuilder",
    "WorkItemNotFoundError",
    "WorkItemNotUniqueError",
    "Workitem",
    "configure_logging",
]
