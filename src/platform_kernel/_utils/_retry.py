import json
import logging
from typing import Any, Callable, Optional

from httpx import Response
from tenacity import RetryCallState, retry_base

from .constants import ACCESS_TOKEN_INVALID_CODES, ERROR_CODE_FIELD


def extract_error_code(response: Response) -> Optional[str]:
    """Return the platform error code carried by ``response``, if any.

    Returns ``None`` for empty bodies, bodies that are not a JSON object, and
    objects with a missing or falsy ``errcode``.
    """
    if not response.content:
        return None
    try:
        payload = json.loads(response.content)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict):
        return None

    code = payload.get(ERROR_CODE_FIELD)
    if not code:
        return None
    return str(code)


def is_access_token_expired(response: Response) -> bool:
    return extract_error_code(response) in ACCESS_TOKEN_INVALID_CODES


class retry_if_access_token_expired(retry_base):
    """Retry while the platform reports an invalid or expired access token.

    The credential is refreshed before returning ``True`` so the next attempt
    goes out with the new token. Nothing is retried once ``max_retries``
    retries have been made, when the attempt raised, or when there is no
    credential to refresh.
    """

    def __init__(
        self,
        max_retries: int,
        refresh: Callable[[], Any],
        can_refresh: Callable[[], bool] = lambda: True,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.max_retries = max_retries
        self.refresh = refresh
        self.can_refresh = can_refresh
        self.logger = logger or logging.getLogger(__name__)

    def __call__(self, retry_state: RetryCallState) -> bool:
        retries = retry_state.attempt_number - 1
        if retries >= self.max_retries:
            return False

        outcome = retry_state.outcome
        if outcome is None or outcome.failed:
            return False

        if not is_access_token_expired(outcome.result()):
            return False
        if not self.can_refresh():
            return False

        self.refresh()
        self.logger.debug("Retrying with refreshed access token.")
        return True


def return_last_response(retry_state: RetryCallState) -> Any:
    """``retry_error_callback`` handing back the final outcome unchanged."""
    assert retry_state.outcome is not None
    return retry_state.outcome.result()
