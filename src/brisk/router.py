"""HTTP router/multiplexer for RSGI servers (granian).

    router = Router(log_requests)
    router.get("/", home)
    api = router.group("api", require_token)
    api.get("/users/:id", get_user)

    granian --interface rsgi app:router
"""

import asyncio

from brisk._base import BaseRouter, Middleware, compose, param
from brisk.rsgi import HTTPProtocol, HTTPScope, RSGIErrorHandler, RSGIHTTPHandler
from brisk.tree import http_route, path_params

__all__ = ["Middleware", "Router", "compose", "http_route", "param", "path_params"]


async def not_found(_scope: HTTPScope, proto: HTTPProtocol) -> None:
    """Default not found handler: empty 404 response."""
    proto.response_empty(404, [("x-content-type-options", "nosniff")])


class Router(BaseRouter[RSGIHTTPHandler, RSGIErrorHandler]):
    """RSGI router.

    Handlers are `async def handler(scope, proto) -> None`, error handlers
    `async def error_handler(scope, proto, exc) -> None`.
    """

    __slots__ = ()

    def _default_not_found_handler(self) -> RSGIHTTPHandler:
        return not_found

    def __rsgi_init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self.finalize()

    async def __rsgi__(self, scope: HTTPScope, proto: HTTPProtocol) -> None:
        await self._dispatch(scope.method, scope.path, scope, proto)
