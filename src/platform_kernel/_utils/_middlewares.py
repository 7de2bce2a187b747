import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Union

from httpx import HTTPError, Request, Response
from tenacity import (
    Retrying,
    before_sleep_log,
    stop_after_attempt,
    wait_incrementing,
)

from ._message_formatter import MessageFormatter
from ._retry import retry_if_access_token_expired, return_last_response
from .constants import DEFAULT_RETRIES, DEFAULT_RETRY_DELAY_MS

if TYPE_CHECKING:
    from .._access_token import AccessToken

Handler = Callable[[Request, Mapping[str, Any]], Response]
Middleware = Callable[[Handler], Handler]


class BaseMiddleware(ABC):
    """Base class for request interceptors.

    An instance is a middleware factory: calling it with the next handler in
    the chain returns a handler with the same ``(request, options)``
    signature that runs ``intercept`` around it.
    """

    @abstractmethod
    def intercept(
        self, request: Request, options: Mapping[str, Any], handler: Handler
    ) -> Response:
        """Process the request and return the response produced by ``handler``."""

    def __call__(self, handler: Handler) -> Handler:
        def wrapped(request: Request, options: Mapping[str, Any]) -> Response:
            return self.intercept(request, options, handler)

        return wrapped


class HandlerStack:
    """Ordered, named chain of middleware around a transport handler.

    The first middleware pushed is the outermost one. The composed handler is
    built once and reused until the stack is modified.
    """

    def __init__(self, handler: Handler) -> None:
        self._handler = handler
        self._stack: list[tuple[str, Middleware]] = []
        self._cached: Optional[Handler] = None
        self._lock = threading.Lock()

    def push(self, middleware: Middleware, name: str) -> "HandlerStack":
        with self._lock:
            if name in self:
                raise ValueError(f"Middleware '{name}' is already registered")
            self._stack.append((name, middleware))
            self._cached = None
        return self

    def remove(self, name: str) -> "HandlerStack":
        with self._lock:
            index = self._index(name)
            del self._stack[index]
            self._cached = None
        return self

    def replace(self, name: str, middleware: Middleware) -> "HandlerStack":
        with self._lock:
            index = self._index(name)
            self._stack[index] = (name, middleware)
            self._cached = None
        return self

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self._stack]

    def resolve(self) -> Handler:
        with self._lock:
            if self._cached is None:
                handler = self._handler
                for _, middleware in reversed(self._stack):
                    handler = middleware(handler)
                self._cached = handler
            return self._cached

    def __call__(self, request: Request, options: Mapping[str, Any]) -> Response:
        return self.resolve()(request, options)

    def __contains__(self, name: object) -> bool:
        return any(registered == name for registered, _ in self._stack)

    def __len__(self) -> int:
        return len(self._stack)

    def _index(self, name: str) -> int:
        for index, (registered, _) in enumerate(self._stack):
            if registered == name:
                return index
        raise KeyError(f"Middleware '{name}' is not registered")


class AccessTokenMiddleware(BaseMiddleware):
    """Attaches the current access token to every outgoing request.

    The token is read through ``get_access_token`` on each call, so replacing
    the client's token affects the next request only.
    """

    def __init__(self, get_access_token: Callable[[], Optional["AccessToken"]]) -> None:
        self._get_access_token = get_access_token

    def intercept(
        self, request: Request, options: Mapping[str, Any], handler: Handler
    ) -> Response:
        access_token = self._get_access_token()
        if access_token is not None:
            request = access_token.apply_to_request(request, options)

        return handler(request, options)


class RetryMiddleware(BaseMiddleware):
    """Re-sends requests rejected because of an invalid or expired token.

    The delay before retry ``n`` is ``n * retry_delay`` milliseconds.
    """

    def __init__(
        self,
        get_access_token: Callable[[], Optional["AccessToken"]],
        *,
        max_retries: int = DEFAULT_RETRIES,
        retry_delay: Union[int, float] = DEFAULT_RETRY_DELAY_MS,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._get_access_token = get_access_token
        self.max_retries = max_retries
        self.retry_delay = abs(retry_delay)
        self._logger = logger or logging.getLogger(__name__)
        self._sleep = sleep

    def intercept(
        self, request: Request, options: Mapping[str, Any], handler: Handler
    ) -> Response:
        delay = self.retry_delay / 1000
        retrying = Retrying(
            retry=retry_if_access_token_expired(
                self.max_retries,
                refresh=self._refresh,
                can_refresh=lambda: self._get_access_token() is not None,
                logger=self._logger,
            ),
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_incrementing(start=delay, increment=delay),
            sleep=self._sleep,
            before_sleep=before_sleep_log(self._logger, logging.DEBUG),
            retry_error_callback=return_last_response,
        )
        return retrying(handler, request, options)

    def _refresh(self) -> None:
        access_token = self._get_access_token()
        if access_token is not None:
            access_token.refresh()


class LogMiddleware(BaseMiddleware):
    """Logs every request with its response, or with the error it raised."""

    def __init__(
        self,
        logger: logging.Logger,
        formatter: Optional[MessageFormatter] = None,
        level: int = logging.DEBUG,
    ) -> None:
        self._logger = logger
        self._formatter = formatter or MessageFormatter()
        self._level = level

    def intercept(
        self, request: Request, options: Mapping[str, Any], handler: Handler
    ) -> Response:
        try:
            response = handler(request, options)
        except HTTPError as e:
            self._logger.error(self._formatter.format(request, None, e))
            raise

        if self._logger.isEnabledFor(self._level):
            self._logger.log(self._level, self._formatter.format(request, response))
        return response
