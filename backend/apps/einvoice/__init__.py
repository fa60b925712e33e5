"""E-invoice app module.

Provides the FastAPI router for XRechnung/ZUGFeRD format generation.
"""

from .api import router as formats_router  # re-export for app integration

__all__ = [
    "formats_router",
]
