"""Serviços HTTP: gateway autenticado, repositório de work items, builder e fachada."""
