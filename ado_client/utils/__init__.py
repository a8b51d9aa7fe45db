"""Utilitários: embutir imagens em HTML e configuração de logging."""
