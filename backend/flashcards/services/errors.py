"""Errors raised by the scheduling services.

Routers translate these into HTTP responses. Malformed client hints are not
represented here: they are logged and dropped where they are parsed.
"""

import logging

from flashcards.config import settings

logger = logging.getLogger(__name__)


class InvalidFilter(ValueError):
    """Unknown domain or section requested."""


class EmptyPool(ValueError):
    """The filter is valid but matches no items."""


class InvalidAnswer(ValueError):
    """A self-assessed answer that is not a recognizable yes/no report."""


class ItemNotFound(LookupError):
    pass


class SessionNotFound(LookupError):
    pass


class InternalInconsistency(RuntimeError):
    """Stored attempts reference an item id that the catalog does not know."""


def report_inconsistency(message: str) -> None:
    """Fatal under strict_consistency (tests), logged otherwise."""
    if settings.strict_consistency:
        raise InternalInconsistency(message)
    logger.error(message)
