"""Remote store client package."""

from .client import BoardApiClient
from .errors import (
    ApiError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    ServerError,
    ValidationError,
)
from .protocol import BoardApiProtocol

__all__ = [
    "ApiError",
    "BoardApiClient",
    "BoardApiProtocol",
    "NetworkError",
    "NotFoundError",
    "PermissionDeniedError",
    "ServerError",
    "ValidationError",
]
