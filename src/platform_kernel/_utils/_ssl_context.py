import os
import ssl
from typing import TYPE_CHECKING, Any

import certifi

if TYPE_CHECKING:
    from .._config import Config


def expand_path(path):
    """Expand environment variables and user home directory in path."""
    if not path:
        return path
    # Expand environment variables like $HOME
    path = os.path.expandvars(path)
    # Expand user home directory ~
    path = os.path.expanduser(path)
    return path


def create_ssl_context() -> ssl.SSLContext:
    ssl_cert_file = expand_path(os.environ.get("SSL_CERT_FILE"))
    requests_ca_bundle = expand_path(os.environ.get("REQUESTS_CA_BUNDLE"))
    ssl_cert_dir = expand_path(os.environ.get("SSL_CERT_DIR"))

    return ssl.create_default_context(
        cafile=ssl_cert_file or requests_ca_bundle or certifi.where(),
        capath=ssl_cert_dir,
    )


def get_httpx_client_kwargs(config: "Config") -> dict[str, Any]:
    """Keyword arguments for the ``httpx.Client`` a client creates for itself."""
    kwargs: dict[str, Any] = {
        "follow_redirects": True,
        "verify": create_ssl_context() if config.http.verify else False,
    }
    if config.http.timeout is not None:
        kwargs["timeout"] = config.http.timeout
    if config.http.base_uri:
        kwargs["base_url"] = config.http.base_uri
    return kwargs
