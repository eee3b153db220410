"""Multi-tenant support ticket backend."""

__version__ = "0.1.0"
