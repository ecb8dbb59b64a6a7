"""Generic Dispatcher — calling convention, error mapping, encoding, headers.

Tests cover:
    - Handlers receive (request_map, username, authenticated)
    - Malformed bodies reach the handler as an empty map
    - ApiError → mapped status and {"error": ...}; other exceptions → opaque 500
    - Sync handlers, non-serializable results and timeouts
    - Registry: last registration wins, frozen after mount
"""

import asyncio
import logging

import pytest
from httpx import ASGITransport, AsyncClient

from forum.api.dispatch import HandlerRegistry
from forum.api.security_headers import SECURITY_HEADERS
from forum.core.errors import AuthorizationError, UpstreamError, ValidationError
from forum.infrastructure.sessions import get_session_store
from forum.main import create_app


async def echo(request, username, authenticated):
    return {"keys": sorted(request), "username": username, "authenticated": authenticated}


async def needs_name(request, username, authenticated):
    if not request.get_string("name"):
        raise ValidationError()
    return {"name": request.get_string("name")}


async def captcha_gate(request, username, authenticated):
    raise AuthorizationError("captcha")


async def leaky(request, username, authenticated):
    raise RuntimeError("dsn=postgresql://admin:hunter2@db")


async def upstream(request, username, authenticated):
    raise UpstreamError("database", internal_detail="relation users does not exist")


def sync_handler(request, username, authenticated):
    return {"sync": True, "n": request.get_int("n")}


async def not_serializable(request, username, authenticated):
    return {"value": object()}


async def slow(request, username, authenticated):
    await asyncio.sleep(5)
    return {"late": True}


@pytest.fixture
def registry():
    reg = HandlerRegistry()
    reg.register_all({
        "echo": echo,
        "needsname": needs_name,
        "captcha": captcha_gate,
        "leaky": leaky,
        "upstream": upstream,
        "sync": sync_handler,
        "badresult": not_serializable,
        "slow": slow,
    })
    return reg


@pytest.fixture
async def api(test_settings, registry):
    test_settings.handler_timeout_seconds = 0.2
    app = create_app(test_settings, registry)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c


async def test_handler_receives_decoded_map_and_identity(api):
    res = await api.post("/api/echo", json={"username": "bob", "x": 1})
    assert res.status_code == 200
    assert res.json() == {"keys": ["username", "x"], "username": "bob", "authenticated": False}


async def test_malformed_body_yields_empty_map(api):
    res = await api.post(
        "/api/echo", content=b"{not json", headers={"Content-Type": "application/json"},
    )
    assert res.status_code == 200
    assert res.json()["keys"] == []


async def test_get_is_dispatched_with_empty_map(api):
    res = await api.get("/api/echo")
    assert res.status_code == 200
    assert res.json()["keys"] == []


async def test_missing_required_field_is_400_not_500(api):
    res = await api.post("/api/needsname", json={})
    assert res.status_code == 400
    assert res.json() == {"error": "400"}


async def test_reason_reaches_client(api):
    res = await api.post("/api/captcha", json={})
    assert res.status_code == 403
    assert res.json() == {"error": "403 captcha"}


async def test_unexpected_exception_is_opaque_500(api, caplog):
    with caplog.at_level(logging.ERROR, logger="forum.api.dispatch"):
        res = await api.post("/api/leaky", json={})
    assert res.status_code == 500
    assert res.json() == {"error": "500"}
    assert "hunter2" not in res.text
    assert any("hunter2" in r.getMessage() for r in caplog.records)


async def test_upstream_error_hides_reason(api):
    res = await api.post("/api/upstream", json={})
    assert res.status_code == 500
    assert res.json() == {"error": "500"}


async def test_sync_handler_runs(api):
    res = await api.post("/api/sync", json={"n": 3})
    assert res.json() == {"sync": True, "n": 3}


async def test_unserializable_result_falls_back_to_500(api):
    res = await api.post("/api/badresult", json={})
    assert res.status_code == 500
    assert res.json() == {"error": "500"}


async def test_timeout_maps_to_500(api):
    res = await api.post("/api/slow", json={})
    assert res.status_code == 500
    assert res.json() == {"error": "500"}


async def test_security_headers_on_success_and_failure(api):
    for path in ("/api/echo", "/api/needsname"):
        res = await api.post(path, json={})
        for header, value in SECURITY_HEADERS.items():
            assert res.headers[header] == value
        assert "strict-transport-security" not in res.headers


async def test_hsts_on_https_requests(test_settings, registry):
    app = create_app(test_settings, registry)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="https://test",
    ) as c:
        res = await c.post("/api/echo", json={})
    assert res.headers["strict-transport-security"].startswith("max-age=")


async def test_unregistered_api_path_is_404(api):
    res = await api.post("/api/nope", json={})
    assert res.status_code == 404


async def test_authenticated_identity_from_session(api):
    token = get_session_store().create("carol")
    res = await api.post("/api/echo", json={"username": "carol", "token": token})
    assert res.json()["authenticated"] is True
    assert res.json()["username"] == "carol"


# ─── Registry ────────────────────────────────────────────────────

async def first(request, username, authenticated):
    return {"which": "first"}


async def second(request, username, authenticated):
    return {"which": "second"}


async def test_last_registration_wins(test_settings):
    reg = HandlerRegistry()
    reg.register("thing", first)
    reg.register("thing", second)
    assert len(reg) == 1
    app = create_app(test_settings, reg)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        res = await c.post("/api/thing", json={})
    assert res.json() == {"which": "second"}


def test_register_prefixes_api_path():
    reg = HandlerRegistry()
    reg.register("register", first)
    assert "/api/register" in reg
    assert list(reg.bindings) == ["/api/register"]


def test_registry_is_frozen_after_mount(test_settings):
    reg = HandlerRegistry()
    reg.register("a", first)
    app = create_app(test_settings, reg)
    assert reg.frozen
    assert app.state.registry is reg
    with pytest.raises(RuntimeError):
        reg.register("b", second)


def test_bindings_view_is_read_only():
    reg = HandlerRegistry()
    reg.register("a", first)
    with pytest.raises(TypeError):
        reg.bindings["/api/b"] = second
