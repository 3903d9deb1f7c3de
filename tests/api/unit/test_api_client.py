"""
Unit tests for api_client.py against a local aiohttp test server.

Tests cover:
- Status code mapping to the exception hierarchy
- Server error messages passed through verbatim
- Empty and non-JSON bodies
- Bearer token from the session context
- Envelope unwrapping
"""

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp import test_utils

from api_client import ApiClient, extract_error_message, get_api_client, unwrap_envelope
from enums.actor_role import ActorRole
from exceptions import (
    ApiNotFoundException,
    ApiUnavailableException,
    ApiValidationException,
)
from models.session import SessionContext


async def _echo_headers(request):
    return web.json_response({"authorization": request.headers.get("Authorization")})


async def _echo_body(request):
    return web.json_response({"method": request.method, "body": await request.json(),
                              "query": dict(request.query)})


async def _not_found(request):
    return web.json_response({"error": "Cart not found"}, status=404)


async def _unprocessable(request):
    return web.json_response({"message": "Item is out of stock"}, status=422)


async def _plain_bad_request(request):
    return web.Response(text="bad coordinates", status=400)


async def _server_error(request):
    return web.json_response({"error": "db down"}, status=500)


async def _no_content(request):
    return web.Response(status=204)


@pytest_asyncio.fixture
async def api_server():
    app = web.Application()
    app.router.add_get("/api/headers", _echo_headers)
    app.router.add_post("/api/echo", _echo_body)
    app.router.add_patch("/api/echo", _echo_body)
    app.router.add_put("/api/echo", _echo_body)
    app.router.add_get("/api/missing", _not_found)
    app.router.add_post("/api/unprocessable", _unprocessable)
    app.router.add_post("/api/plain", _plain_bad_request)
    app.router.add_get("/api/broken", _server_error)
    app.router.add_patch("/api/empty", _no_content)
    server = test_utils.TestServer(app)
    await server.start_server()
    yield server
    await server.close()


@pytest_asyncio.fixture
async def client(api_server):
    api_client = ApiClient(base_url=str(api_server.make_url("/api")))
    yield api_client
    await api_client.close()


class TestRequest:

    @pytest.mark.asyncio
    async def test_json_body_and_method(self, client):
        result = await client.patch("/echo", json={"latitude": 24.86})
        assert result == {"method": "PATCH", "body": {"latitude": 24.86}, "query": {}}

    @pytest.mark.asyncio
    async def test_query_params(self, client):
        result = await client.request("POST", "/echo", params={"customer_id": 42}, json={})
        assert result["query"] == {"customer_id": "42"}

    @pytest.mark.asyncio
    async def test_empty_body_is_empty_dict(self, client):
        assert await client.patch("/empty") == {}

    @pytest.mark.asyncio
    async def test_no_token_no_auth_header(self, client):
        assert await client.get("/headers") == {"authorization": None}

    @pytest.mark.asyncio
    async def test_bearer_token_from_session(self, api_server):
        session = SessionContext(user_id=1, role=ActorRole.RIDER, token="abc", rider_id=7)
        async with get_api_client(session, base_url=str(api_server.make_url("/api"))) as api_client:
            result = await api_client.get("/headers")
        assert result == {"authorization": "Bearer abc"}


class TestStatusMapping:

    @pytest.mark.asyncio
    async def test_404(self, client):
        with pytest.raises(ApiNotFoundException) as exc_info:
            await client.get("/missing")
        assert exc_info.value.message == "Cart not found"
        assert exc_info.value.status == 404
        assert exc_info.value.path == "/missing"

    @pytest.mark.asyncio
    async def test_422_message_verbatim(self, client):
        with pytest.raises(ApiValidationException) as exc_info:
            await client.post("/unprocessable")
        assert exc_info.value.message == "Item is out of stock"
        assert not isinstance(exc_info.value, ApiNotFoundException)

    @pytest.mark.asyncio
    async def test_plain_text_error_body(self, client):
        with pytest.raises(ApiValidationException) as exc_info:
            await client.post("/plain")
        assert exc_info.value.message == "bad coordinates"

    @pytest.mark.asyncio
    async def test_5xx_is_unavailable(self, client):
        with pytest.raises(ApiUnavailableException) as exc_info:
            await client.get("/broken")
        assert exc_info.value.status == 500

    @pytest.mark.asyncio
    async def test_connection_refused_is_unavailable(self):
        api_client = ApiClient(base_url="http://127.0.0.1:1")
        try:
            with pytest.raises(ApiUnavailableException):
                await api_client.get("/anything")
        finally:
            await api_client.close()


class TestEnvelope:

    def test_success_envelope_unwrapped(self):
        assert unwrap_envelope({"status": "success", "data": [1, 2]}) == [1, 2]

    def test_bare_data_unwrapped(self):
        assert unwrap_envelope({"data": {"id": 1}}) == {"id": 1}

    def test_plain_payload_unchanged(self):
        assert unwrap_envelope({"cart_id": 5}) == {"cart_id": 5}
        assert unwrap_envelope([1]) == [1]

    def test_failed_envelope_raises(self):
        with pytest.raises(ApiValidationException) as exc_info:
            unwrap_envelope({"status": "error", "data": None, "message": "Rider inactive"})
        assert exc_info.value.message == "Rider inactive"

    def test_extract_error_message_default(self):
        assert extract_error_message({"foo": "bar"}, "fallback") == "fallback"
        assert extract_error_message("not a dict", "fallback") == "fallback"
        assert extract_error_message({"detail": "nope"}, "fallback") == "nope"
