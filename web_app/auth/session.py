"""Session cookie to identity resolution."""

from typing import Optional

from starlette.requests import Request

from shortlinks.database.models import Identity


def session_id_from_request(request: Request) -> Optional[str]:
    config = request.app.state.config
    return request.cookies.get(config.session_cookie_name) or None


async def resolve_session_identity(request: Request) -> Optional[Identity]:
    """Look up the identity stored for the request's session cookie."""
    session_id = session_id_from_request(request)
    if not session_id:
        return None
    return await request.app.state.store.get_user(session_id)
