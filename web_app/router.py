"""Request router with per-request identity and a single failure boundary."""

import logging
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Pattern, Tuple

from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.routing import compile_path
from starlette.types import Receive, Scope, Send

from shortlinks.common.logging_config import get_logger
from shortlinks.database.models import Identity
from shortlinks.errors import InvalidInputError, Unauthorized

# "/links/:id" is accepted as an alias of "/links/{id}"
_COLON_PARAM = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


@dataclass(frozen=True)
class RequestContext:
    """Everything a handler gets for one request.

    Built fresh for every dispatch, so one caller's identity never reaches
    another request's handler.
    """

    request: Request
    params: Dict[str, str] = field(default_factory=dict)
    user: Optional[Identity] = None

    def require_user(self) -> Identity:
        if self.user is None:
            raise Unauthorized("Sign in required")
        return self.user


Handler = Callable[[RequestContext], Awaitable[Response]]
IdentityResolver = Callable[[Request], Awaitable[Optional[Identity]]]
UnauthorizedRenderer = Callable[[Request], Response]


@dataclass
class Route:
    method: str
    pattern: str
    regex: Pattern
    convertors: dict
    handler: Handler

    def match(self, method: str, path: str) -> Optional[Dict[str, str]]:
        if method != self.method:
            return None
        matched = self.regex.match(path)
        if matched is None:
            return None
        return {
            key: self.convertors[key].convert(value)
            for key, value in matched.groupdict().items()
        }


class Router:
    """Maps method + path patterns to handlers.

    Patterns are tried in registration order and the first match wins.
    Before a matched handler runs, the caller's identity is resolved and
    passed in the RequestContext. Exceptions raised while resolving the
    identity or running the handler stop at the router: Unauthorized becomes
    a 401 (rendered by ``unauthorized_renderer`` when given),
    InvalidInputError a 400, and anything else a 500. Error bodies carry the
    exception message.

    The router is an ASGI application and can be mounted in FastAPI.
    """

    def __init__(
        self,
        identity_resolver: Optional[IdentityResolver] = None,
        logger: Optional[logging.Logger] = None,
        unauthorized_renderer: Optional[UnauthorizedRenderer] = None,
    ):
        self.identity_resolver = identity_resolver
        self.unauthorized_renderer = unauthorized_renderer
        self.logger = logger or get_logger("router")
        self.routes: List[Route] = []

    def add_route(self, method: str, pattern: str, handler: Handler) -> None:
        path = _COLON_PARAM.sub(r"{\1}", pattern)
        regex, _, convertors = compile_path(path)
        self.routes.append(Route(method.upper(), pattern, regex, convertors, handler))

    def route(self, method: str, pattern: str) -> Callable[[Handler], Handler]:
        def decorator(handler: Handler) -> Handler:
            self.add_route(method, pattern, handler)
            return handler
        return decorator

    def get(self, pattern: str) -> Callable[[Handler], Handler]:
        return self.route("GET", pattern)

    def post(self, pattern: str) -> Callable[[Handler], Handler]:
        return self.route("POST", pattern)

    def put(self, pattern: str) -> Callable[[Handler], Handler]:
        return self.route("PUT", pattern)

    def delete(self, pattern: str) -> Callable[[Handler], Handler]:
        return self.route("DELETE", pattern)

    def include(self, other: "Router") -> None:
        """Append another router's routes, keeping their order."""
        self.routes.extend(other.routes)

    def match(self, method: str, path: str) -> Optional[Tuple[Route, Dict[str, str]]]:
        for route in self.routes:
            params = route.match(method, path)
            if params is not None:
                return route, params
        return None

    async def dispatch(self, request: Request) -> Response:
        matched = self.match(request.method, request.url.path)
        if matched is None:
            return PlainTextResponse("Not found", status_code=404)

        route, params = matched
        try:
            user = None
            if self.identity_resolver is not None:
                user = await self.identity_resolver(request)
            context = RequestContext(request=request, params=params, user=user)
            return await route.handler(context)
        except Unauthorized as e:
            self.logger.info(f"Unauthorized {request.method} {request.url.path}: {e}")
            if self.unauthorized_renderer is not None:
                return self.unauthorized_renderer(request)
            return PlainTextResponse(str(e), status_code=401)
        except InvalidInputError as e:
            self.logger.info(f"Rejected input on {request.method} {request.url.path}: {e}")
            return PlainTextResponse(str(e), status_code=400)
        except Exception as e:
            self.logger.error(
                f"Router error handling {request.method} {request.url.path}: {e}",
                exc_info=True,
            )
            return PlainTextResponse(str(e), status_code=500)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return
        request = Request(scope, receive)
        response = await self.dispatch(request)
        await response(scope, receive, send)
