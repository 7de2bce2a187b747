import json
import os
import threading
import time
from contextlib import ExitStack
from logging import Logger, getLogger
from typing import Any, Callable, Mapping, Optional, Union

from httpx import URL, Client, HTTPStatusError, Request, Response

from .._access_token import AccessToken
from .._config import Config
from .._utils import (
    AccessTokenMiddleware,
    FormBody,
    HandlerStack,
    LogMiddleware,
    MessageFormatter,
    MultipartPart,
    RawBody,
    RequestSpec,
    RetryMiddleware,
    as_body,
    get_httpx_client_kwargs,
    normalize_response,
)
from .._utils.constants import (
    LOGGER_NAME,
    MIDDLEWARE_ACCESS_TOKEN,
    MIDDLEWARE_LOG,
    MIDDLEWARE_RETRY,
)
from ..models.errors import ApiError


class BaseClient:
    """Base class for platform API clients.

    Every request goes through a middleware stack that retries requests
    rejected for an expired access token (refreshing it first), attaches the
    access token, and logs the traffic. Responses are then normalized
    according to ``config.response_type``.

    Subclasses targeting one API family usually only set ``base_uri`` and add
    endpoint methods built on ``http_get``/``http_post``/``http_post_json``/
    ``http_upload``.

    Examples:
        ```python
        class UserClient(BaseClient):
            base_uri = "https://api.example.com/cgi-bin/"

            def get(self, openid: str) -> dict:
                return self.http_get("user/info", {"openid": openid})
        ```
    """

    base_uri: Optional[str] = None

    def __init__(
        self,
        config: Optional[Config] = None,
        access_token: Optional[AccessToken] = None,
        *,
        http_client: Optional[Client] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        """Initialize a new client.

        Args:
            config (Optional[Config]): Client configuration; defaults apply when omitted.
            access_token (Optional[AccessToken]): Credential attached to every request.
            http_client (Optional[Client]): Transport to use in place of a client-owned one.
            logger (Optional[Logger]): Logger receiving request/response traffic.
        """
        self._logger = logger or getLogger(LOGGER_NAME)
        self._config = config or Config()
        self._access_token = access_token
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._http_client_lock = threading.Lock()

        self.middlewares = HandlerStack(self._send)
        self.register_http_middlewares()

    @property
    def config(self) -> Config:
        return self._config

    def http_get(self, url: Union[URL, str], query: Optional[Mapping[str, Any]] = None) -> Any:
        """Send a GET request with ``query`` as query string."""
        return self.request(url, "GET", {"query": query or {}})

    def http_post(
        self,
        url: Union[URL, str],
        data: Union[FormBody, RawBody, Mapping[str, Any], str, bytes, None] = None,
    ) -> Any:
        """Send a POST request.

        Mappings are sent url-encoded; strings and bytes are sent verbatim,
        the caller being responsible for their encoding.
        """
        body = as_body(data)
        if isinstance(body, FormBody):
            return self.request(url, "POST", {"form": body.fields})
        return self.request(url, "POST", {"body": body.content})

    def http_post_json(
        self,
        url: Union[URL, str],
        data: Any = None,
        query: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Send a POST request with ``data`` serialized as JSON."""
        return self.request(
            url, "POST", {"query": query or {}, "json": data if data is not None else {}}
        )

    def http_upload(
        self,
        url: Union[URL, str],
        files: Optional[Mapping[str, Union[str, "os.PathLike[str]"]]] = None,
        form: Optional[Mapping[str, Any]] = None,
        query: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Upload files as a multipart POST request.

        Args:
            url: The URL to send the request to.
            files: Part name to path of the file to upload.
            form: Part name to literal value, sent as inline parts.
            query: Query string parameters.

        Raises:
            OSError: If one of the files cannot be opened; nothing is sent.
        """
        with ExitStack() as stack:
            multipart = [
                MultipartPart(
                    name,
                    stack.enter_context(open(path, "rb")),
                    filename=os.path.basename(path),
                )
                for name, path in (files or {}).items()
            ]
            multipart.extend(
                MultipartPart(name, contents) for name, contents in (form or {}).items()
            )

            return self.request(
                url, "POST", {"query": query or {}, "multipart": multipart}
            )

    def get_access_token(self) -> Optional[AccessToken]:
        return self._access_token

    def set_access_token(self, access_token: Optional[AccessToken]) -> "BaseClient":
        self._access_token = access_token
        return self

    access_token = property(get_access_token, set_access_token)

    def request(
        self,
        url: Union[URL, str],
        method: str = "GET",
        options: Optional[Mapping[str, Any]] = None,
        return_raw: bool = False,
    ) -> Any:
        """Send a request through the middleware stack.

        Args:
            url (Union[URL, str]): The URL to send the request to, relative to ``base_uri`` if set.
            method (str): The HTTP method to use.
            options (Optional[Mapping[str, Any]]): Request options: ``query``, ``headers``,
                ``timeout`` and at most one of ``form``, ``body``, ``json``, ``multipart``.
            return_raw (bool): Return the ``httpx.Response`` without normalizing it.

        Returns:
            The raw response, or the body normalized per ``config.response_type``.

        Raises:
            httpx.TransportError: If no response was received.
            MalformedResponseError: If the body cannot be normalized.
            ApiError: For 4xx/5xx responses when ``http.http_errors`` is enabled.
        """
        response = self.perform_request(url, method, options or {})

        if return_raw:
            return response
        return normalize_response(response, self._config.response_type)

    def request_raw(
        self,
        url: Union[URL, str],
        method: str = "GET",
        options: Optional[Mapping[str, Any]] = None,
    ) -> Response:
        return self.request(url, method, options, return_raw=True)

    def perform_request(
        self, url: Union[URL, str], method: str, options: Mapping[str, Any]
    ) -> Response:
        spec = RequestSpec.from_options(method, self._resolve_url(url), options)
        request = self.get_http_client().build_request(**spec.build_kwargs())

        response = self.middlewares(request, options)

        if self._config.http.http_errors:
            self._raise_for_status(response)
        return response

    def get_http_client(self) -> Client:
        """Return the transport, creating it on first use."""
        if self._http_client is None:
            with self._http_client_lock:
                if self._http_client is None:
                    self._http_client = Client(**get_httpx_client_kwargs(self._config))
        return self._http_client

    def close(self) -> None:
        if self._owns_http_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def __enter__(self) -> "BaseClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def register_http_middlewares(self) -> None:
        self.middlewares.push(self.retry_middleware(), MIDDLEWARE_RETRY)
        self.middlewares.push(self.access_token_middleware(), MIDDLEWARE_ACCESS_TOKEN)
        self.middlewares.push(self.log_middleware(), MIDDLEWARE_LOG)

    def retry_middleware(
        self, sleep: Callable[[float], None] = time.sleep
    ) -> RetryMiddleware:
        return RetryMiddleware(
            self.get_access_token,
            max_retries=self._config.http.retries,
            retry_delay=self._config.http.retry_delay,
            logger=self._logger,
            sleep=sleep,
        )

    def access_token_middleware(self) -> AccessTokenMiddleware:
        return AccessTokenMiddleware(self.get_access_token)

    def log_middleware(self) -> LogMiddleware:
        formatter = MessageFormatter(self._config.http.log_template)
        return LogMiddleware(self._logger, formatter)

    def _send(self, request: Request, options: Mapping[str, Any]) -> Response:
        return self.get_http_client().send(request)

    def _resolve_url(self, url: Union[URL, str]) -> Union[URL, str]:
        if self.base_uri is None:
            return url
        return URL(self.base_uri).join(url)

    def _raise_for_status(self, response: Response) -> None:
        try:
            response.raise_for_status()
        except HTTPStatusError as e:
            try:
                error_body = response.json()
            except (json.JSONDecodeError, UnicodeDecodeError):
                error_body = response.text

            message: Optional[str] = None
            if isinstance(error_body, dict):
                message = (
                    error_body.get("errmsg")
                    or error_body.get("message")
                    or error_body.get("error")
                )
                error_body = json.dumps(error_body)

            raise ApiError(
                message or str(e), response.status_code, str(error_body)
            ) from e
