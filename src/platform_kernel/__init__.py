"""HTTP client core for platform APIs: token injection, retry-on-expired-token,
traffic logging and response normalization."""

from ._access_token import AccessToken, BearerAccessToken
from ._config import Config, HttpConfig
from ._services import BaseClient
from ._utils import (
    BaseMiddleware,
    Collection,
    FormBody,
    HandlerStack,
    MessageFormatter,
    MultipartPart,
    RawBody,
    ResponseType,
    normalize_response,
    setup_logging,
)
from .models import (
    ApiError,
    CredentialRefreshError,
    MalformedResponseError,
    PlatformKernelError,
    TokenData,
)

__version__ = "0.1.0"

__all__ = [
    "AccessToken",
    "ApiError",
    "BaseClient",
    "BaseMiddleware",
    "BearerAccessToken",
    "Collection",
    "Config",
    "CredentialRefreshError",
    "FormBody",
    "HandlerStack",
    "HttpConfig",
    "MalformedResponseError",
    "MessageFormatter",
    "MultipartPart",
    "PlatformKernelError",
    "RawBody",
    "ResponseType",
    "TokenData",
    "normalize_response",
    "setup_logging",
]
