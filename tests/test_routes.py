from __future__ import annotations

from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from cafe24_bridge import dependencies
from cafe24_bridge.clients.cafe24_auth import Cafe24OAuthClient
from cafe24_bridge.core.config import AppSettings
from cafe24_bridge.core.errors import StorageUnavailableError, VendorApiError
from cafe24_bridge.main import app
from cafe24_bridge.services.token_store import TokenStore

pytestmark = pytest.mark.anyio

FRONTEND_URL = "https://admin.example.com/connect"


class TokenEndpoint:
    def __init__(self, status_code: int = 200, payload: Optional[dict] = None) -> None:
        self.status_code = status_code
        self.payload = payload or {
            "access_token": "AT1",
            "refresh_token": "RT1",
            "expires_in": 7200,
        }
        self.forms: list[dict[str, list[str]]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.forms.append(parse_qs(request.content.decode("utf-8")))
        return httpx.Response(self.status_code, json=self.payload)


class StubGateway:
    def __init__(self, result: Any = None, error: Optional[Exception] = None) -> None:
        self.result = result
        self.error = error
        self.calls: list[tuple] = []

    async def _answer(self, *call: Any) -> Any:
        self.calls.append(call)
        if self.error is not None:
            raise self.error
        return self.result

    async def get_shop(self) -> Any:
        return await self._answer("get_shop")

    async def api_request(self, path: str, *, method: str = "GET", json: Any = None) -> Any:
        return await self._answer("api_request", path, method, json)

    async def list_products(self, *, limit: int, offset: int, **filters: str) -> Any:
        return await self._answer("list_products", limit, offset, filters)

    async def create_board_article(self, board_no: str, payload: Any) -> Any:
        return await self._answer("create_board_article", board_no, payload)


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(FRONTEND_BASE_URL=FRONTEND_URL)


@pytest.fixture
def store(document_client, clock) -> TokenStore:
    return TokenStore(document_client, clock=clock)


@pytest.fixture
def token_endpoint() -> TokenEndpoint:
    return TokenEndpoint()


@pytest.fixture
def overrides(settings, store, token_endpoint):
    oauth_client = Cafe24OAuthClient(
        settings.cafe24, store, transport=httpx.MockTransport(token_endpoint)
    )
    gateway = StubGateway(result={"shop": {"mall_id": "testmall"}})
    app.dependency_overrides.update(
        {
            dependencies.get_app_settings: lambda: settings,
            dependencies.get_token_store: lambda: store,
            dependencies.get_cafe24_oauth_client: lambda: oauth_client,
            dependencies.get_cafe24_api_gateway: lambda: gateway,
        }
    )

    yield gateway

    app.dependency_overrides.clear()


@pytest.fixture
async def client(overrides):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as http_client:
        yield http_client


def _redirect_params(response: httpx.Response) -> dict[str, list[str]]:
    location = urlparse(response.headers["location"])
    assert f"{location.scheme}://{location.netloc}{location.path}" == FRONTEND_URL
    return parse_qs(location.query)


async def test_health(client) -> None:
    response = await client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["version"] == "1.0.0"
    assert body["services"]["authentication"] == "operational"


async def test_auth_url(client) -> None:
    response = await client.get("/api/auth/url")

    assert response.status_code == 200
    url = urlparse(response.json()["authUrl"])
    query = parse_qs(url.query)
    assert url.netloc == "testmall.cafe24api.com"
    assert query["response_type"] == ["code"]
    assert query["redirect_uri"] == ["https://bridge.example.com/api/auth/callback"]
    assert "mall.write_community" in query["scope"][0]


async def test_auth_url_reports_configuration_error(client, settings) -> None:
    settings.cafe24.redirect_uri = None

    response = await client.get("/api/auth/url")

    assert response.status_code == 500
    assert "CAFE24_REDIRECT_URI" in response.json()["error"]


async def test_callback_connects_the_mall(client, token_endpoint) -> None:
    response = await client.get(
        "/api/auth/callback", params={"code": "abc123", "state": "testmall"}
    )

    assert response.status_code == 302
    assert _redirect_params(response) == {"success": ["true"]}
    assert token_endpoint.forms[0]["code"] == ["abc123"]
    assert token_endpoint.forms[0]["grant_type"] == ["authorization_code"]

    status = (await client.get("/api/token/status")).json()
    assert status["valid"] is True
    assert 119 <= status["minutesLeft"] <= 120
    assert status["store"]["hasRefreshToken"] is True

    token = (await client.get("/api/token")).json()
    assert token["access_token"] == "AT1"
    assert token["minutes_left"] == 120


async def test_callback_accepts_post(client, store) -> None:
    response = await client.post("/api/auth/callback?code=abc123")

    assert response.status_code == 302
    assert await store.get_stored_refresh_token() == "RT1"


async def test_callback_without_code(client, token_endpoint) -> None:
    response = await client.get("/api/auth/callback", params={"state": "testmall"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Authorization code is missing."
    assert body["received_params"] == {"state": "testmall"}
    assert body["help"]
    assert token_endpoint.forms == []


async def test_callback_relays_vendor_error(client, token_endpoint) -> None:
    response = await client.get(
        "/api/auth/callback",
        params={"error": "access_denied", "error_description": "User denied"},
    )

    assert response.status_code == 302
    assert _redirect_params(response) == {"error": ["User denied"]}
    assert token_endpoint.forms == []


async def test_callback_exchange_failure_redirects_with_error(
    client, token_endpoint, document_client
) -> None:
    token_endpoint.status_code = 400
    token_endpoint.payload = {"error": "invalid_grant", "error_description": "code used"}

    response = await client.get("/api/auth/callback", params={"code": "stale"})

    assert response.status_code == 302
    assert "code used" in _redirect_params(response)["error"][0]
    assert document_client.writes == 0


async def test_manual_token_round_trip(client, clock) -> None:
    response = await client.post(
        "/api/token", json={"accessToken": "AT-manual", "expiresIn": 3600}
    )

    assert response.status_code == 200
    assert response.json()["success"] is True

    token = (await client.get("/api/token")).json()
    assert token["access_token"] == "AT-manual"
    assert token["minutes_left"] == 60


async def test_manual_token_requires_access_token(client) -> None:
    response = await client.post("/api/token", json={"expiresIn": 3600})

    assert response.status_code == 400
    assert response.json()["error"] == "accessToken is required."


async def test_manual_token_storage_failure(client, document_client) -> None:
    document_client.fail_with = StorageUnavailableError("table offline")

    response = await client.post("/api/token", json={"accessToken": "AT"})

    assert response.status_code == 500
    assert "table offline" in response.json()["error"]


async def test_manual_token_with_unusable_expiry_uses_default(client) -> None:
    response = await client.post(
        "/api/token", json={"accessToken": "AT-manual", "expiresIn": "abc"}
    )

    assert response.status_code == 200
    token = (await client.get("/api/token")).json()
    assert token["minutes_left"] == 120


async def test_read_token_when_absent(client) -> None:
    response = await client.get("/api/token")

    assert response.status_code == 404


async def test_status_when_absent(client) -> None:
    body = (await client.get("/api/token/status")).json()

    assert body["valid"] is False
    assert body["store"]["exists"] is False
    assert body["store"]["provider"] == "Amazon DynamoDB"


async def test_refresh_route(client, store, token_endpoint) -> None:
    await store.save_refresh_token("RT1")
    token_endpoint.payload = {"access_token": "AT2", "expires_in": 7200}

    response = await client.post("/api/token/refresh")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["expiresIn"] == 7200
    assert token_endpoint.forms[0]["refresh_token"] == ["RT1"]
    assert (await store.get_stored_access_token()).access_token == "AT2"


async def test_refresh_route_without_refresh_token(client, token_endpoint) -> None:
    response = await client.post("/api/token/refresh")

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert "refresh token" in body["error"].lower()
    assert token_endpoint.forms == []


async def test_shop_info_test_route(client, overrides) -> None:
    response = await client.get("/api/test")

    assert response.status_code == 200
    assert response.json()["data"] == {"shop": {"mall_id": "testmall"}}
    assert overrides.calls == [("get_shop",)]


async def test_custom_call_reports_vendor_error(client, overrides) -> None:
    overrides.error = VendorApiError(
        status_code=404,
        status_text="Not Found",
        body={"error": {"message": "No such resource"}},
        url="https://testmall.cafe24api.com/api/v2/admin/nope",
        method="POST",
    )

    response = await client.post(
        "/api/test", json={"endpoint": "/api/v2/admin/nope", "method": "post", "data": {"a": 1}}
    )

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["errorDetails"]["status"] == 404
    assert overrides.calls == [("api_request", "/api/v2/admin/nope", "POST", {"a": 1})]


async def test_product_listing_routes(client, overrides) -> None:
    overrides.result = {"products": [{"product_no": 1}, {"product_no": 2}]}

    default = (await client.get("/api/test/products")).json()
    filtered = (
        await client.post("/api/test/products", json={"limit": 3, "product_name": "mug"})
    ).json()

    assert default["productCount"] == 2
    assert default["queryParams"] == {"limit": 10, "offset": 0}
    assert filtered["queryParams"] == {"limit": 3, "offset": 0, "product_name": "mug"}
    assert overrides.calls[1] == ("list_products", 3, 0, {"product_name": "mug"})


async def test_board_test_route(client, overrides) -> None:
    missing = await client.post("/api/test/boards", json={"data": {}})
    assert missing.status_code == 400

    overrides.result = {"articles": []}
    response = await client.post(
        "/api/test/boards", json={"boardNo": 5, "data": {"requests": []}}
    )

    assert response.status_code == 200
    assert response.json()["endpoint"] == "/api/v2/admin/boards/5/articles"
    assert overrides.calls == [("create_board_article", "5", {"requests": []})]


async def test_refresh_failure_reports_vendor_message(client, store, token_endpoint) -> None:
    await store.save_refresh_token("RT-revoked")
    token_endpoint.status_code = 400
    token_endpoint.payload = {"error": "invalid_grant", "error_description": "revoked"}

    response = await client.post("/api/token/refresh")

    assert response.status_code == 500
    assert "revoked" in response.json()["error"]
    assert await store.get_stored_refresh_token() == "RT-revoked"

