"""Modelos de domínio e operações JSON-Patch."""
from ado_client.models.devops_models import AttachmentReference, Project, Tag, Team
from ado_client.models.patch import FieldSlot, JsonPatchOperation
from ado_client.models.workitem import TextAreaField, Workitem, WorkitemProject

__all__ = [
    "AttachmentReference",
    "FieldSlot",
    "JsonPatchOperation",
    "Project",
    "Tag",
    "Team",
    "TextAreaField",
    "Workitem",
    "WorkitemProject",
]
