import json
from enum import Enum
from types import SimpleNamespace
from typing import Any, Union

from httpx import Response
from pydantic import BaseModel

from ..models.errors import MalformedResponseError
from ._collection import Collection


class ResponseType(str, Enum):
    """Shapes a response can be normalized into."""

    RAW = "raw"
    ARRAY = "array"
    COLLECTION = "collection"
    OBJECT = "object"
    STRING = "string"


ResponseTypeLike = Union[ResponseType, str, type[BaseModel]]


def _decode(response: Response, **kwargs: Any) -> Any:
    try:
        data = json.loads(response.content, **kwargs)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedResponseError(response) from e

    if not isinstance(data, (dict, list, SimpleNamespace)):
        raise MalformedResponseError(
            response,
            f"Expected a JSON object or array, got {type(data).__name__}.",
        )
    return data


def normalize_response(
    response: Response, response_type: ResponseTypeLike = ResponseType.ARRAY
) -> Any:
    """Convert a response into the configured representation.

    Args:
        response: The response returned by the middleware pipeline.
        response_type: One of the ``ResponseType`` modes, or a pydantic model
            class the decoded body is validated into.

    Returns:
        The response itself for ``raw``, the body text for ``string``, and the
        decoded body (``dict``/``list``, ``Collection``, ``SimpleNamespace``
        or model instance) otherwise.

    Raises:
        MalformedResponseError: If the body is not a JSON object or array.
        ValueError: If ``response_type`` is not a known mode.
    """
    if isinstance(response_type, type) and issubclass(response_type, BaseModel):
        return response_type.model_validate(_decode(response))

    mode = ResponseType(response_type)

    if mode is ResponseType.RAW:
        return response
    if mode is ResponseType.STRING:
        return response.text
    if mode is ResponseType.OBJECT:
        return _decode(response, object_hook=lambda d: SimpleNamespace(**d))
    if mode is ResponseType.COLLECTION:
        return Collection(_decode(response))
    return _decode(response)
