import sys
from pathlib import Path
from typing import Any, Callable, Generator, Iterable, Optional

import pytest

# Ensure local source package (src/platform_kernel) is importable before tests collect
_PROJECT_ROOT: Path = Path(__file__).resolve().parents[1]
_SRC_PATH: Path = _PROJECT_ROOT / "src"
if _SRC_PATH.exists():
    sys.path.insert(0, str(_SRC_PATH))

from platform_kernel import AccessToken, BaseClient, Config, HttpConfig  # noqa: E402


class FakeAccessToken(AccessToken):
    """Hands out ``tokens`` in order, one per fetch, and counts refreshes."""

    def __init__(self, tokens: Iterable[str] = ("token-1", "token-2", "token-3")):
        super().__init__()
        self.tokens = list(tokens)
        self.fetch_count = 0
        self.refresh_count = 0

    def fetch_token(self) -> dict[str, Any]:
        token = self.tokens[min(self.fetch_count, len(self.tokens) - 1)]
        self.fetch_count += 1
        return {"access_token": token, "expires_in": 7200}

    def refresh(self) -> AccessToken:
        self.refresh_count += 1
        return super().refresh()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clean environment variables before each test."""
    for name in (
        "RESPONSE_TYPE",
        "HTTP_BASE_URI",
        "HTTP_RETRIES",
        "HTTP_RETRY_DELAY",
        "HTTP_LOG_TEMPLATE",
        "HTTP_TIMEOUT",
    ):
        monkeypatch.delenv(f"PLATFORM_KERNEL_{name}", raising=False)


@pytest.fixture
def base_url() -> str:
    return "https://api.example.com"


@pytest.fixture
def config(base_url: str) -> Config:
    return Config(http=HttpConfig(base_uri=base_url))


@pytest.fixture
def access_token() -> FakeAccessToken:
    return FakeAccessToken()


@pytest.fixture
def sleeps() -> list[float]:
    """Delays requested by the retry middleware, in seconds."""
    return []


@pytest.fixture
def client_factory(
    sleeps: list[float],
) -> Generator[Callable[..., BaseClient], None, None]:
    clients: list[BaseClient] = []

    def factory(
        config: Config, access_token: Optional[AccessToken] = None, **kwargs: Any
    ) -> BaseClient:
        client = BaseClient(config, access_token, **kwargs)
        client.middlewares.replace("retry", client.retry_middleware(sleep=sleeps.append))
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()


@pytest.fixture
def client(
    client_factory: Callable[..., BaseClient],
    config: Config,
    access_token: FakeAccessToken,
) -> BaseClient:
    return client_factory(config, access_token)


@pytest.fixture
def anonymous_client(
    client_factory: Callable[..., BaseClient], config: Config
) -> BaseClient:
    return client_factory(config)


@pytest.fixture
def access_token_cls() -> type[FakeAccessToken]:
    return FakeAccessToken
