from .auth import TokenData
from .errors import (
    ApiError,
    CredentialRefreshError,
    MalformedResponseError,
    PlatformKernelError,
)

__all__ = [
    "ApiError",
    "CredentialRefreshError",
    "MalformedResponseError",
    "PlatformKernelError",
    "TokenData",
]
