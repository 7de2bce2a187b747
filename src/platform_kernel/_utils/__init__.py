from ._collection import Collection
from ._logs import setup_logging
from ._message_formatter import MessageFormatter
from ._middlewares import (
    AccessTokenMiddleware,
    BaseMiddleware,
    Handler,
    HandlerStack,
    LogMiddleware,
    RetryMiddleware,
)
from ._request_spec import FormBody, MultipartPart, RawBody, RequestSpec, as_body
from ._response import ResponseType, normalize_response
from ._retry import extract_error_code, is_access_token_expired
from ._ssl_context import get_httpx_client_kwargs

__all__ = [
    "AccessTokenMiddleware",
    "BaseMiddleware",
    "Collection",
    "FormBody",
    "Handler",
    "HandlerStack",
    "LogMiddleware",
    "MessageFormatter",
    "MultipartPart",
    "RawBody",
    "RequestSpec",
    "ResponseType",
    "RetryMiddleware",
    "as_body",
    "extract_error_code",
    "get_httpx_client_kwargs",
    "is_access_token_expired",
    "normalize_response",
    "setup_logging",
]
