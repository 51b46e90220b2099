"""Core infrastructure modules."""

from .exceptions import (
    FeedClientException,
    FeedFetchError,
    InvalidQueryError,
    NotFoundError,
)
from .logging import setup_logging, get_logger

__all__ = [
    "FeedClientException",
    "FeedFetchError",
    "InvalidQueryError",
    "NotFoundError",
    "setup_logging",
    "get_logger",
]
