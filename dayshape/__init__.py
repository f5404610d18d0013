# dayshape - personal time planning engine
"""
Exports for the CLI and other consumers.
"""

from .errors import (
    ConfigurationError,
    IntegrityError,
    NotFoundError,
    PlannerError,
    ValidationError,
)

__version__ = "0.3.0"

__all__ = [
    "PlannerError",
    "ConfigurationError",
    "NotFoundError",
    "ValidationError",
    "IntegrityError",
]
