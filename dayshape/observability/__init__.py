"""
Observability module: structured logging with owner context.

Usage:
    from dayshape.observability import OwnerContext, configure_logging, get_logger

    configure_logging("INFO")
    logger = get_logger(__name__)

    with OwnerContext("alice"):
        logger.info("Resolving week")
"""

from .context import OwnerContext, get_owner_id, set_owner_id
from .logging import HumanFormatter, JSONFormatter, configure_logging, get_logger

__all__ = [
    "OwnerContext",
    "get_owner_id",
    "set_owner_id",
    "JSONFormatter",
    "HumanFormatter",
    "configure_logging",
    "get_logger",
]
