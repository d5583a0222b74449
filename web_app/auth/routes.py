"""Sign-in, OAuth callback and sign-out handlers."""

import secrets

from starlette.responses import PlainTextResponse, RedirectResponse, Response

from ..router import RequestContext, Router
from .session import session_id_from_request

STATE_COOKIE = "oauth_state"
STATE_MAX_AGE = 600

router = Router()


@router.get("/oauth/signin")
async def sign_in(ctx: RequestContext) -> Response:
    """Redirect to GitHub with a fresh state value."""
    oauth = ctx.request.app.state.oauth
    config = ctx.request.app.state.config
    
    state = secrets.token_urlsafe(16)
    response = RedirectResponse(url=oauth.authorization_url(state), status_code=302)
    response.set_cookie(
        STATE_COOKIE,
        state,
        max_age=STATE_MAX_AGE,
        httponly=True,
        secure=config.cookie_secure,
        samesite="lax",
    )
    return response


@router.get("/oauth/callback")
async def oauth_callback(ctx: RequestContext) -> Response:
    """Finish the OAuth exchange and start a session."""
    request = ctx.request
    oauth = request.app.state.oauth
    store = request.app.state.store
    config = request.app.state.config
    
    code = request.query_params.get("code")
    state = request.query_params.get("state")
    expected_state = request.cookies.get(STATE_COOKIE)
    
    if not code:
        return PlainTextResponse("Missing code", status_code=400)
    if not state or not expected_state or not secrets.compare_digest(state, expected_state):
        return PlainTextResponse("Invalid OAuth state", status_code=400)
    
    identity = await oauth.authenticate(code)
    
    session_id = secrets.token_urlsafe(32)
    await store.store_user(session_id, identity, ttl_seconds=config.session_ttl_seconds)
    
    response = RedirectResponse(url="/", status_code=303)
    response.set_cookie(
        config.session_cookie_name,
        session_id,
        max_age=config.session_ttl_seconds,
        httponly=True,
        secure=config.cookie_secure,
        samesite="lax",
    )
    response.delete_cookie(STATE_COOKIE)
    return response


@router.get("/oauth/signout")
async def sign_out(ctx: RequestContext) -> Response:
    """End the session and clear the cookie."""
    request = ctx.request
    config = request.app.state.config
    
    session_id = session_id_from_request(request)
    if session_id:
        await request.app.state.store.delete_user(session_id)
    
    response = RedirectResponse(url="/", status_code=303)
    response.delete_cookie(config.session_cookie_name)
    return response
