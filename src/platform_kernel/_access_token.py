import threading
from abc import ABC, abstractmethod
from logging import getLogger
from typing import Any, Mapping, Optional, Union

from httpx import Headers, Request
from pydantic import ValidationError

from ._utils._request_spec import rebuild_request
from ._utils.constants import HEADER_AUTHORIZATION, LOGGER_NAME, QUERY_ACCESS_TOKEN
from .models.auth import TokenData
from .models.errors import CredentialRefreshError


class AccessToken(ABC):
    """Holds the access token shared by every request of a client.

    Subclasses implement ``fetch_token`` against the platform's token
    endpoint; this class keeps the current token in memory, serializes
    fetches and refreshes, and attaches the token to outgoing requests as the
    ``access_token`` query parameter.

    Examples:
        ```python
        class ClientCredentialsToken(AccessToken):
            def __init__(self, app_id: str, secret: str) -> None:
                super().__init__()
                self._params = {"appid": app_id, "secret": secret}

            def fetch_token(self) -> TokenData:
                response = httpx.get(TOKEN_URL, params=self._params)
                return TokenData.model_validate(response.json())
        ```
    """

    query_name: str = QUERY_ACCESS_TOKEN

    def __init__(self) -> None:
        self._logger = getLogger(LOGGER_NAME)
        self._lock = threading.Lock()
        self._token: Optional[TokenData] = None

    @abstractmethod
    def fetch_token(self) -> Union[TokenData, Mapping[str, Any]]:
        """Request a new token from the platform."""

    def get_token(self, refresh: bool = False) -> TokenData:
        with self._lock:
            if refresh or self._token is None:
                self._token = self._request_token()
            return self._token

    def refresh(self) -> "AccessToken":
        """Replace the held token with a freshly fetched one.

        Concurrent refreshes are serialized; each one fetches a new token,
        and any of them is valid for the requests that follow.

        Raises:
            CredentialRefreshError: If the token could not be fetched.
        """
        self.get_token(refresh=True)
        return self

    def set_token(self, token: Union[TokenData, str]) -> "AccessToken":
        if isinstance(token, str):
            token = TokenData(access_token=token)
        with self._lock:
            self._token = token
        return self

    def apply_to_request(self, request: Request, options: Mapping[str, Any]) -> Request:
        url = request.url.copy_set_param(self.query_name, self.get_token().access_token)
        return rebuild_request(request, url=url)

    def _request_token(self) -> TokenData:
        self._logger.debug(f"Fetching access token with {type(self).__name__}")
        try:
            token = self.fetch_token()
        except CredentialRefreshError:
            raise
        except Exception as e:
            raise CredentialRefreshError(f"Unable to fetch access token: {e}") from e

        if isinstance(token, TokenData):
            return token
        try:
            return TokenData.model_validate(token)
        except ValidationError as e:
            raise CredentialRefreshError(
                f"Token response does not contain an access token: {token!r}"
            ) from e


class BearerAccessToken(AccessToken):
    """Access token sent as an ``Authorization: Bearer`` header."""

    def apply_to_request(self, request: Request, options: Mapping[str, Any]) -> Request:
        headers = Headers(request.headers)
        headers[HEADER_AUTHORIZATION] = f"Bearer {self.get_token().access_token}"
        return rebuild_request(request, headers=headers)
