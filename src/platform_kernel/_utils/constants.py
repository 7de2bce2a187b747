# Logging
LOGGER_NAME = "platform_kernel"

# Environment variables
ENV_PREFIX = "PLATFORM_KERNEL_"
ENV_RESPONSE_TYPE = "RESPONSE_TYPE"
ENV_HTTP_BASE_URI = "HTTP_BASE_URI"
ENV_HTTP_RETRIES = "HTTP_RETRIES"
ENV_HTTP_RETRY_DELAY = "HTTP_RETRY_DELAY"
ENV_HTTP_LOG_TEMPLATE = "HTTP_LOG_TEMPLATE"
ENV_HTTP_TIMEOUT = "HTTP_TIMEOUT"

# Retry defaults
DEFAULT_RETRIES = 1
DEFAULT_RETRY_DELAY_MS = 500

# Platform error codes that mean the access token is invalid (40001) or expired (42001)
ACCESS_TOKEN_INVALID_CODES = frozenset({"40001", "42001"})
ERROR_CODE_FIELD = "errcode"

# Headers and query parameters
HEADER_AUTHORIZATION = "Authorization"
QUERY_ACCESS_TOKEN = "access_token"

# Middleware names
MIDDLEWARE_RETRY = "retry"
MIDDLEWARE_ACCESS_TOKEN = "access_token"
MIDDLEWARE_LOG = "log"
