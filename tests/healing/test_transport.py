"""
AioHttpTransport against a local aiohttp test server.
"""

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from change_flow.healing.endpoint_resolver import EndpointResolver
from change_flow.healing.transport import AioHttpTransport, decode_body


def _app():
    app = web.Application()

    async def list_users(request):
        return web.json_response([{"id": 1}])

    async def create_user(request):
        body = await request.json()
        return web.json_response({**body, "id": 7}, status=201)

    async def delete_user(request):
        return web.Response(status=204)

    async def headers(request):
        return web.json_response({"accept": request.headers.get("Accept")})

    app.router.add_get("/api/users", list_users)
    app.router.add_post("/api/users", create_user)
    app.router.add_delete("/api/users/1", delete_user)
    app.router.add_get("/headers", headers)
    return app


@pytest_asyncio.fixture
async def server():
    test_server = test_utils.TestServer(_app())
    await test_server.start_server()
    yield test_server
    await test_server.close()


@pytest.mark.asyncio
async def test_requests_return_status_and_decoded_body(server):
    async with AioHttpTransport(str(server.make_url("/"))) as transport:
        listed = await transport.request("GET", "/api/users")
        created = await transport.request("POST", "/api/users", data={"name": "Ada"})
        deleted = await transport.request("DELETE", "/api/users/1")
        missing = await transport.request("GET", "/nope")

    assert (listed.status, listed.data) == (200, [{"id": 1}])
    assert (created.status, created.data) == (201, {"name": "Ada", "id": 7})
    assert (deleted.status, deleted.data) == (204, None)
    assert missing.status == 404


@pytest.mark.asyncio
async def test_default_and_explicit_headers(server):
    async with AioHttpTransport(str(server.make_url("/"))) as transport:
        default = await transport.request("GET", "/headers")
        bare = await transport.request("GET", "/headers", headers={})

    assert default.data == {"accept": "application/json"}
    assert bare.data["accept"] != "application/json"


@pytest.mark.asyncio
async def test_endpoint_resolver_heals_over_http(server):
    async with AioHttpTransport(str(server.make_url("/"))) as transport:
        resolution = await EndpointResolver(transport).resolve("/user")

    # 404 on the exact path is still a response, so tier 1 wins
    assert resolution.tier == 1
    assert resolution.response.status == 404


@pytest.mark.asyncio
async def test_network_failure_raises():
    transport = AioHttpTransport("http://127.0.0.1:1", timeout=2)
    try:
        with pytest.raises(aiohttp.ClientError):
            await transport.request("GET", "/anything")
    finally:
        await transport.close()


def test_decode_body():
    assert decode_body(b"") is None
    assert decode_body(b'{"a": 1}') == {"a": 1}
    assert decode_body(b"plain text") == "plain text"


def test_from_config_uses_api_base_url(config):
    config.api_base_url = "http://api.example.test/"

    transport = AioHttpTransport.from_config(config, timeout=3)

    assert transport.url_for("users") == "http://api.example.test/users"
    assert transport.timeout.total == 3
