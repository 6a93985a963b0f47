"""Confluence client library for publishing.

This package provides a thin, typed abstraction over the Confluence Cloud REST
API: credentials, error translation, rate limit retries and the content,
attachment, label and user operations used by the publisher.
"""

from .errors import (
    SyncError,
    ConfluenceError,
    InvalidCredentialsError,
    PageNotFoundError,
    APIUnreachableError,
    APIAccessError,
    ConversionError,
)
from .auth import Authenticator, Credentials
from .api_wrapper import APIWrapper

__all__ = [
    "SyncError",
    "ConfluenceError",
    "InvalidCredentialsError",
    "PageNotFoundError",
    "APIUnreachableError",
    "APIAccessError",
    "ConversionError",
    "Authenticator",
    "Credentials",
    "APIWrapper",
]
