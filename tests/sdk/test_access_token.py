import threading
import time

import httpx
import pytest

from platform_kernel import (
    AccessToken,
    BearerAccessToken,
    CredentialRefreshError,
    TokenData,
)


class StaticToken(AccessToken):
    def __init__(self, payload) -> None:
        super().__init__()
        self.payload = payload

    def fetch_token(self):
        return self.payload


class TestAccessToken:
    def test_fetched_lazily_once(self, access_token):
        assert access_token.fetch_count == 0

        assert access_token.get_token().access_token == "token-1"
        assert access_token.get_token().access_token == "token-1"
        assert access_token.fetch_count == 1

    def test_refresh_replaces_token(self, access_token):
        access_token.get_token()

        assert access_token.refresh() is access_token
        assert access_token.get_token().access_token == "token-2"

    def test_token_data_is_validated(self, access_token):
        token = access_token.get_token()

        assert isinstance(token, TokenData)
        assert token.expires_in == 7200

    def test_fetch_token_may_return_model(self):
        token = StaticToken(TokenData(access_token="abc", token_type="bearer"))

        assert token.get_token().token_type == "bearer"

    def test_set_token(self, access_token):
        access_token.set_token("manual")

        assert access_token.get_token().access_token == "manual"
        assert access_token.fetch_count == 0

    def test_fetch_failure(self, access_token_cls):
        class Broken(access_token_cls):
            def fetch_token(self):
                raise httpx.ConnectError("token endpoint unreachable")

        with pytest.raises(CredentialRefreshError, match="token endpoint unreachable") as exc_info:
            Broken().refresh()

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_payload_without_access_token(self):
        with pytest.raises(CredentialRefreshError, match="does not contain an access token"):
            StaticToken({"errcode": 40013, "errmsg": "invalid appid"}).get_token()

    def test_concurrent_first_use_fetches_once(self, access_token_cls):
        class SlowToken(access_token_cls):
            def fetch_token(self):
                time.sleep(0.05)
                return super().fetch_token()

        token = SlowToken()
        results: list[str] = []

        def worker() -> None:
            results.append(token.get_token().access_token)

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert token.fetch_count == 1
        assert results == ["token-1"] * 5

    class TestApplyToRequest:
        def test_query_parameter(self, access_token):
            request = httpx.Request(
                "POST", "https://api.example.com/message/send?type=text", json={"a": 1}
            )

            applied = access_token.apply_to_request(request, {})

            assert applied is not request
            assert applied.url.params["access_token"] == "token-1"
            assert applied.url.params["type"] == "text"
            assert applied.content == request.content
            assert applied.headers["Content-Type"] == "application/json"
            assert "access_token" not in request.url.params

        def test_replaces_existing_parameter(self, access_token):
            request = httpx.Request(
                "GET", "https://api.example.com/user/get?access_token=stale"
            )

            applied = access_token.apply_to_request(request, {})

            assert applied.url.params.get_list("access_token") == ["token-1"]

        def test_custom_query_name(self, access_token_cls):
            class ComponentToken(access_token_cls):
                query_name = "component_access_token"

            request = httpx.Request("GET", "https://api.example.com/component")

            applied = ComponentToken().apply_to_request(request, {})

            assert applied.url.params["component_access_token"] == "token-1"

        def test_bearer_header(self):
            class Bearer(BearerAccessToken):
                def fetch_token(self):
                    return {"access_token": "b1"}

            request = httpx.Request("GET", "https://api.example.com/user/get")

            applied = Bearer().apply_to_request(request, {})

            assert applied.headers["Authorization"] == "Bearer b1"
            assert "Authorization" not in request.headers
            assert applied.url == request.url
