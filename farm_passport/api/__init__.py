"""
Backend API module: HTTP client, response models and error types.
"""

from .client import APIClient
from .errors import (
    APIError, AuthenticationError, ErrorKind, FormValidationError, NetworkError,
    NextAction, NotFoundError, Notice, to_notice,
)

__all__ = [
    'APIClient',
    'APIError',
    'AuthenticationError',
    'ErrorKind',
    'FormValidationError',
    'NetworkError',
    'NextAction',
    'NotFoundError',
    'Notice',
    'to_notice',
]
