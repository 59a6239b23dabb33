"""Expose commonly used ORM models at package level.

These re-exports are intentional so callers can import from
``models`` (e.g. `from models import Project`). The `F401` noqa suppresses
unused-import warnings for the explicit re-exports.
"""

from .messages import Message  # noqa: F401
from .projects import Project  # noqa: F401
