"""Smoke tests for the HTTP surface.

Tests cover vanity page rendering, the root index, not-found handling, the
health and favicon endpoints, and swapping the resolver on reload.
"""

import json
import logging
from pathlib import Path
from typing import Callable

import pytest
from httpx import ASGITransport, AsyncClient, Response

from vanityurls import app as app_module
from vanityurls.app import app
from vanityurls.config import ConfigError


@pytest.fixture(autouse=True)
def _reset_app_state(
    make_config: Callable[..., str], monkeypatch: pytest.MonkeyPatch
) -> None:
    """Point the app to a test config and drop any cached resolver."""
    monkeypatch.setattr(app_module, "CONFIG_PATH", make_config())
    monkeypatch.setattr(app_module, "_resolver", None)


async def _request(method: str, path: str) -> Response:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.request(method, path)


async def _get(path: str) -> Response:
    return await _request("GET", path)


@pytest.mark.asyncio
async def test_vanity_page_for_exact_route() -> None:
    resp = await _get("/portmidi")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert resp.headers["cache-control"] == "public, max-age=60"
    assert (
        '<meta name="go-import" content="go.example.com/portmidi git '
        'https://github.com/rakyll/portmidi">'
    ) in resp.text
    assert "https://github.com/rakyll/portmidi/tree/master{/dir}" in resp.text


@pytest.mark.asyncio
async def test_vanity_page_for_subpackage() -> None:
    """A package below a route is served the route's import metadata."""
    resp = await _get("/portmidi/sub/internal/pkg")

    assert resp.status_code == 200
    assert (
        '<meta name="go-import" content="go.example.com/portmidi/sub git '
        'https://github.com/rakyll/portmidi-sub">'
    ) in resp.text


@pytest.mark.asyncio
async def test_vanity_page_uses_configured_vcs() -> None:
    resp = await _get("/hgrepo")

    assert resp.status_code == 200
    assert "go.example.com/hgrepo hg https://bitbucket.org/user/hgrepo" in resp.text
    assert "https://bitbucket.org/user/hgrepo/src/default{/dir}" in resp.text


@pytest.mark.asyncio
async def test_unmatched_root_serves_index() -> None:
    resp = await _get("/")

    assert resp.status_code == 200
    assert "<h1>go.example.com</h1>" in resp.text
    positions = [
        resp.text.index('href="https://go.example.com{}"'.format(p))
        for p in ("/hgrepo", "/portmidi", "/portmidi/sub")
    ]
    assert positions == sorted(positions)
    assert "cache-control" not in resp.headers


@pytest.mark.asyncio
async def test_unknown_path_is_not_found() -> None:
    resp = await _get("/nothing/here")

    assert resp.status_code == 404
    assert resp.text == "404 page not found\n"


@pytest.mark.asyncio
async def test_configured_root_route_wins_over_index(
    make_config: Callable[..., str], monkeypatch: pytest.MonkeyPatch
) -> None:
    """An explicit ``/`` route is served as a vanity page, not the index."""
    path = make_config(
        {"paths": {"/": {"repo": "https://github.com/example/root"}}}
    )
    monkeypatch.setattr(app_module, "CONFIG_PATH", path)

    resp = await _get("/")

    assert resp.status_code == 200
    assert (
        '<meta name="go-import" content="go.example.com git '
        'https://github.com/example/root">'
    ) in resp.text
    assert "<h1>" not in resp.text


@pytest.mark.asyncio
async def test_host_defaults_to_request_host(
    make_config: Callable[..., str], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(app_module, "CONFIG_PATH", make_config({"host": ""}))

    resp = await _get("/portmidi")

    assert resp.status_code == 200
    assert 'content="test/portmidi git https://github.com/rakyll/portmidi"' in resp.text


@pytest.mark.asyncio
async def test_healthz() -> None:
    resp = await _get("/healthz")

    assert resp.status_code == 200
    assert resp.text == "ok"


@pytest.mark.asyncio
async def test_favicon() -> None:
    resp = await _get("/favicon.ico")

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/x-icon"
    assert resp.content[:4] == b"\x00\x00\x01\x00"


@pytest.mark.asyncio
async def test_reload_swaps_resolver(tmp_path: Path) -> None:
    assert (await _get("/newpkg")).status_code == 404

    config_path = tmp_path / "reloaded.yaml"
    config_path.write_text(
        "host: go.example.com\n"
        "paths:\n"
        "  /newpkg:\n"
        "    repo: https://github.com/example/newpkg\n"
    )
    old = app_module.get_resolver()
    new = app_module.reload_resolver(config_path)

    assert new is not old
    assert app_module.get_resolver() is new
    assert (await _get("/newpkg")).status_code == 200
    assert (await _get("/portmidi")).status_code == 404


def test_failed_reload_keeps_previous_resolver(tmp_path: Path) -> None:
    current = app_module.get_resolver()
    bad = tmp_path / "bad.yaml"
    bad.write_text("cache_max_age: -5\n")

    with pytest.raises(ConfigError):
        app_module.reload_resolver(bad)
    with pytest.raises(FileNotFoundError):
        app_module.reload_resolver(tmp_path / "missing.yaml")

    assert app_module.get_resolver() is current


@pytest.mark.asyncio
async def test_requests_are_access_logged(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="vanityurls")

    await _get("/portmidi/sub/x")
    await _get("/missing")

    records = [
        json.loads(r.getMessage())
        for r in caplog.records
        if r.name == "vanityurls" and r.getMessage().startswith("{")
    ]
    assert [(r["path"], r["status"]) for r in records] == [
        ("/portmidi/sub/x", 200),
        ("/missing", 404),
    ]
    assert records[0]["route"] == "/portmidi/sub"
    assert "route" not in records[1]
    assert records[0]["method"] == "GET"


@pytest.mark.asyncio
async def test_head_request_served() -> None:
    resp = await _request("HEAD", "/portmidi/sub")

    assert resp.status_code == 200
    assert resp.headers["cache-control"] == "public, max-age=60"


@pytest.mark.asyncio
async def test_post_to_vanity_path_not_allowed() -> None:
    resp = await _request("POST", "/portmidi")

    assert resp.status_code == 405


@pytest.mark.asyncio
async def test_vanity_render_failure_returns_500(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def broken(page: object) -> str:
        raise KeyError("import_path")

    monkeypatch.setattr(app_module, "render_vanity", broken)

    resp = await _get("/portmidi")

    assert resp.status_code == 500
    assert resp.text == "cannot render the page\n"
    assert "cache-control" not in resp.headers


@pytest.mark.asyncio
async def test_index_render_failure_returns_500(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def broken(page: object) -> str:
        raise ValueError("bad page")

    monkeypatch.setattr(app_module, "render_index", broken)

    resp = await _get("/")

    assert resp.status_code == 500
    assert resp.text == "cannot render the page\n"
