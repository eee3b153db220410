"""Infrastructure services."""

from .postgres import DatabaseUnavailableError, PostgresPool

__all__ = ["DatabaseUnavailableError", "PostgresPool"]
