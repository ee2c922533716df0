"""FastAPI application for the vanity URL server.

Every GET or HEAD path other than the health check and favicon is resolved
against the configured route table:

1. A matched route renders a go-import / go-source page for that route
2. An unmatched ``/`` renders an index of every configured import path
3. Anything else is a 404

The resolver is built from configuration on startup and swapped wholesale on
reload; requests only ever read it.
"""

import os
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Optional, Union

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from vanityurls.config import load_config
from vanityurls.models import IndexPage, VanityPage
from vanityurls.router import Resolver
from vanityurls.telemetry import log_request, logger, setup_logging
from vanityurls.templates import render_index, render_vanity

CONFIG_PATH = os.getenv("VANITY_CONFIG", "vanity.yaml")
LOG_FILE = os.getenv("VANITY_LOG_FILE") or None

FAVICON_PATH = Path(__file__).parent / "static" / "favicon.ico"

_resolver: Optional[Resolver] = None


def reload_resolver(path: Optional[Union[str, Path]] = None) -> Resolver:
    """Load configuration and swap in a freshly built resolver.

    The previous resolver stays in place if loading fails.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigError: If the configuration is invalid.
    """
    global _resolver
    config = load_config(path or CONFIG_PATH)
    resolver = config.build_resolver()
    _resolver = resolver
    logger.info("Loaded %d routes from %s", len(resolver.table), path or CONFIG_PATH)
    return resolver


def get_resolver() -> Resolver:
    """Return the active resolver (lazy-init from config)."""
    if _resolver is None:
        return reload_resolver()
    return _resolver


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Initialize logging and the route table on startup."""
    setup_logging(LOG_FILE)
    get_resolver()
    yield


app = FastAPI(title="Vanity URLs", version="0.1.0", lifespan=lifespan)


@app.middleware("http")
async def access_log(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Log one record per request with its outcome and latency."""
    started = time.perf_counter()
    response = await call_next(request)
    log_request(
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        duration_ms=(time.perf_counter() - started) * 1000,
        route=getattr(request.state, "route", None),
        remote=request.client.host if request.client else None,
    )
    return response


@app.get("/healthz", response_class=PlainTextResponse)
async def healthz() -> PlainTextResponse:
    return PlainTextResponse("ok")


@app.get("/favicon.ico", response_model=None)
async def favicon() -> Response:
    if not FAVICON_PATH.is_file():
        return PlainTextResponse("404 page not found\n", status_code=404)
    return Response(content=FAVICON_PATH.read_bytes(), media_type="image/x-icon")


def _render_error() -> PlainTextResponse:
    """Response for a page whose model or template substitution failed."""
    return PlainTextResponse("cannot render the page\n", status_code=500)


def serve_index(resolver: Resolver, host: str) -> Response:
    """Render the list of all configured import paths."""
    page = IndexPage(host=host, handlers=resolver.index_handlers(host))
    try:
        body = render_index(page)
    except (KeyError, ValueError) as exc:
        logger.error("Rendering index failed: %s", exc)
        return _render_error()
    return HTMLResponse(body)


@app.api_route("/{full_path:path}", methods=["GET", "HEAD"], response_model=None)
async def vanity(request: Request, full_path: str) -> Response:
    """Resolve the request path and render its vanity page."""
    resolver = get_resolver()
    current = request.url.path
    host = resolver.host_for(request.headers.get("host", ""))
    resolution = resolver.resolve(current)

    if not resolution.matched and current == "/":
        return serve_index(resolver, host)

    if not resolution.matched:
        return PlainTextResponse("404 page not found\n", status_code=404)

    entry = resolution.entry
    request.state.route = entry.path

    try:
        body = render_vanity(
            VanityPage(
                import_path=host + entry.path,
                subpath=resolution.subpath,
                repo=entry.repo_url,
                display=entry.display,
                vcs=entry.vcs.value,
            )
        )
    except (KeyError, ValueError) as exc:
        logger.error("Rendering %s failed: %s", current, exc)
        return _render_error()

    return HTMLResponse(body, headers={"Cache-Control": resolver.cache_control})
