"""
HTTP routers.

- crud: build_crud_router() exposes a CrudService as REST endpoints
- _common: shared router dependencies (pagination)
"""

from .crud import build_crud_router, render, service_errors

__all__ = [
    "build_crud_router",
    "render",
    "service_errors",
]
