import os
from typing import Any, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ._utils._response import ResponseType
from ._utils.constants import (
    DEFAULT_RETRIES,
    DEFAULT_RETRY_DELAY_MS,
    ENV_HTTP_BASE_URI,
    ENV_HTTP_LOG_TEMPLATE,
    ENV_HTTP_RETRIES,
    ENV_HTTP_RETRY_DELAY,
    ENV_HTTP_TIMEOUT,
    ENV_PREFIX,
    ENV_RESPONSE_TYPE,
)


class HttpConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    base_uri: Optional[str] = None
    retries: int = Field(default=DEFAULT_RETRIES, ge=0)
    retry_delay: int = DEFAULT_RETRY_DELAY_MS
    log_template: Optional[str] = None
    timeout: Optional[float] = None
    http_errors: bool = False
    verify: bool = True

    @field_validator("retry_delay")
    @classmethod
    def _non_negative_delay(cls, value: int) -> int:
        return abs(value)


class Config(BaseModel):
    """Client configuration.

    ``response_type`` selects how responses are normalized; the ``http``
    section drives the transport, retry and logging middleware.
    """

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    response_type: Union[ResponseType, type[BaseModel]] = ResponseType.ARRAY
    http: HttpConfig = Field(default_factory=HttpConfig)

    def get(self, key: str, default: Any = None) -> Any:
        """Read a value by dotted key, e.g. ``config.get("http.retries", 1)``."""
        value: Any = self
        for segment in key.split("."):
            if isinstance(value, BaseModel):
                extra = value.model_extra or {}
                if segment in type(value).model_fields:
                    value = getattr(value, segment)
                elif segment in extra:
                    value = extra[segment]
                else:
                    return default
            elif isinstance(value, dict) and segment in value:
                value = value[segment]
            else:
                return default
        return default if value is None else value

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX, **overrides: Any) -> "Config":
        """Build a configuration from environment variables (and ``.env``).

        Args:
            prefix: Prefix of the variables to read, ``PLATFORM_KERNEL_`` by default.
            **overrides: Top-level values taking precedence over the environment.

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value.
        """
        load_dotenv()

        env_map = {
            ENV_HTTP_BASE_URI: "base_uri",
            ENV_HTTP_RETRIES: "retries",
            ENV_HTTP_RETRY_DELAY: "retry_delay",
            ENV_HTTP_LOG_TEMPLATE: "log_template",
            ENV_HTTP_TIMEOUT: "timeout",
        }
        http = {
            field: os.environ[f"{prefix}{name}"]
            for name, field in env_map.items()
            if f"{prefix}{name}" in os.environ
        }

        data: dict[str, Any] = {"http": http}
        response_type = os.getenv(f"{prefix}{ENV_RESPONSE_TYPE}")
        if response_type:
            data["response_type"] = response_type.lower()
        data.update(overrides)

        return cls.model_validate(data)
