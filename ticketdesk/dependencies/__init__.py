"""FastAPI dependencies: the access gate and service lookups."""
