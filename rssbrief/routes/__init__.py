"""
API route modules.
"""

from .jobs import router as jobs_router
from .misc import router as misc_router
from .users import router as users_router

__all__ = [
    "jobs_router",
    "misc_router",
    "users_router",
]
