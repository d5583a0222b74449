"""Web interface routes implementation."""

import functools
import os
from typing import AsyncIterator

import anyio
from fastapi.templating import Jinja2Templates
from starlette.requests import Request
from starlette.responses import PlainTextResponse, RedirectResponse, Response, StreamingResponse

from shortlinks.common.headers import build_base_url, extract_click_metadata
from shortlinks.common.url_builder import build_short_url
from shortlinks.common.validators import is_valid_short_code
from shortlinks.feed import LiveUpdateFeed
from ..router import Handler, RequestContext, Router

router = Router()

# Setup Jinja2 templates
template_dir = os.path.join(os.path.dirname(__file__), "..", "..", "ux", "web")
templates = Jinja2Templates(directory=template_dir)


def _base_url(ctx: RequestContext) -> str:
    request = ctx.request
    return build_base_url(
        headers=request.headers,
        fallback_base_url=request.app.state.config.base_url,
        request_scheme=request.url.scheme,
        request_host=request.headers.get("host"),
    )


def unauthorized_response(request: Request) -> Response:
    return templates.TemplateResponse(request, "unauthorized.html", {}, status_code=401)


def not_found_response(ctx: RequestContext, short_code: str) -> Response:
    return templates.TemplateResponse(
        ctx.request,
        "not_found.html",
        {"short_code": short_code},
        status_code=404,
    )


def login_required(handler: Handler) -> Handler:
    """Reject requests without an identity before the handler runs."""

    @functools.wraps(handler)
    async def wrapper(ctx: RequestContext) -> Response:
        ctx.require_user()
        return await handler(ctx)

    return wrapper


@router.get("/")
async def homepage(ctx: RequestContext) -> Response:
    return templates.TemplateResponse(ctx.request, "home.html", {"user": ctx.user})


@router.get("/health-check")
async def health_check(ctx: RequestContext) -> Response:
    """Liveness probe for load balancers."""
    return PlainTextResponse("OK")


@router.get("/links")
@login_required
async def list_links(ctx: RequestContext) -> Response:
    service = ctx.request.app.state.service
    links = await service.list_links(ctx.user.login)
    base_url = _base_url(ctx)

    rows = [
        {"link": link, "short_url": build_short_url(link.short_code, base_url)}
        for link in links
    ]
    return templates.TemplateResponse(
        ctx.request,
        "links.html",
        {"user": ctx.user, "rows": rows},
    )


@router.post("/links")
@login_required
async def create_link(ctx: RequestContext) -> Response:
    """Handle form submission to create a short link."""
    service = ctx.request.app.state.service

    form = await ctx.request.form()
    long_url = form.get("longUrl")

    if not long_url:
        return PlainTextResponse("Missing longUrl", status_code=400)

    # InvalidInputError is answered with a 400 by the router
    await service.create_link(long_url.strip(), ctx.user.login)

    # Redirect to the links list page after successful creation
    return RedirectResponse(url="/links", status_code=303)


@router.get("/links/new")
@login_required
async def new_link_form(ctx: RequestContext) -> Response:
    return templates.TemplateResponse(ctx.request, "link_new.html", {"user": ctx.user})


@router.get("/links/:id")
@login_required
async def link_detail(ctx: RequestContext) -> Response:
    short_code = ctx.params["id"]
    link = await ctx.request.app.state.service.get_link(short_code)

    if link is None:
        return not_found_response(ctx, short_code)

    return templates.TemplateResponse(
        ctx.request,
        "link_detail.html",
        {
            "user": ctx.user,
            "link": link,
            "short_url": build_short_url(link.short_code, _base_url(ctx)),
        },
    )


async def _stream_feed(feed: LiveUpdateFeed) -> AsyncIterator[str]:
    try:
        async for frame in feed:
            yield frame
    finally:
        # The client is gone or the server is stopping; release the watch
        with anyio.CancelScope(shield=True):
            await feed.aclose()


@router.get("/realtime/:id")
@login_required
async def realtime(ctx: RequestContext) -> Response:
    """Push {clickCount, clickAnalytics} on every click of one link."""
    short_code = ctx.params["id"]
    service = ctx.request.app.state.service

    if await service.get_link(short_code) is None:
        return not_found_response(ctx, short_code)

    feed = await service.open_feed(short_code)
    return StreamingResponse(
        _stream_feed(feed),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )


@router.get("/:id")
async def redirect_to_url(ctx: RequestContext) -> Response:
    """Redirect to the long URL, recording the click."""
    short_code = ctx.params["id"]

    is_valid, _ = is_valid_short_code(short_code)
    if not is_valid:
        return not_found_response(ctx, short_code)

    metadata = extract_click_metadata(ctx.request.headers)
    link = await ctx.request.app.state.service.resolve_and_track(short_code, metadata)

    if link is None:
        return not_found_response(ctx, short_code)

    return RedirectResponse(url=link.long_url, status_code=303)
