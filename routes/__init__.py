"""
API route modules.
"""

from routes.reptile_import import router as reptile_import_router

__all__ = [
    "reptile_import_router",
]
