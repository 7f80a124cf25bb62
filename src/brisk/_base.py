"""Server independent router core: registration, grouping, composition, dispatch.

The RSGI and ASGI routers only differ in how the server calls them and in what
a handler receives, so both are thin subclasses of `BaseRouter`.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from functools import reduce
from typing import Any, Literal, Self

from brisk.tree import NO_PARAMS, RouteTable, http_route, path_params

logger = logging.getLogger(__name__)

type Middleware[T] = Callable[[T], T]
type HTTPMethod = Literal[
    "CONNECT", "DELETE", "GET", "HEAD", "OPTIONS", "PATCH", "POST", "PUT", "TRACE"
]


def compose[T](handler: T, middleware: tuple[Middleware[T], ...]) -> T:
    """Wraps handler so that middleware[0] is outermost and runs first."""
    return reduce(lambda h, m: m(h), reversed(middleware), handler)


def param(name: str) -> str:
    """Returns the path parameter `name` of the request being dispatched.

    Returns "" when the matched route has no such parameter, or when called
    outside of a dispatch.
    """
    return path_params.get(NO_PARAMS).get(name, "")


class BaseRouter[
    H: Callable[..., Awaitable[None]], E: Callable[..., Awaitable[None]]
](ABC):
    """Route registry and dispatcher shared by the RSGI and ASGI routers.

    A router has a path prefix, a tuple of middleware and two fallback hooks.
    `group` derives a router that shares the same route table, extends the
    prefix and appends middleware. Hooks are copied into the group when it is
    created, later changes on either router are not seen by the other.

    Routes and hooks may only be changed until `finalize` is called on any
    router of the family; after that they raise `RuntimeError`.
    """

    __slots__ = (
        "_error_handler",
        "_middleware",
        "_not_found_handler",
        "_prefix",
        "_routes",
    )
    _routes: RouteTable[H]
    _prefix: str
    _middleware: tuple[Middleware[H], ...]
    _not_found_handler: H
    _error_handler: E | None

    def __init__(
        self,
        *middleware: Middleware[H],
        not_found_handler: H | None = None,
        error_handler: E | None = None,
    ) -> None:
        self._routes = RouteTable()
        self._prefix = ""
        self._middleware = middleware
        self._not_found_handler = (
            not_found_handler
            if not_found_handler is not None
            else self._default_not_found_handler()
        )
        self._error_handler = error_handler

    @abstractmethod
    def _default_not_found_handler(self) -> H:
        """Returns the not found handler used when none is given."""

    # --- configuration --------------------------------------------------------
    @property
    def prefix(self) -> str:
        """Path prefix without leading or trailing "/"."""
        return self._prefix

    @property
    def middleware(self) -> tuple[Middleware[H], ...]:
        """Middleware applied, outermost first, to every route of this router."""
        return self._middleware

    @property
    def not_found_handler(self) -> H:
        """Handler called when no route matches the request."""
        return self._not_found_handler

    @not_found_handler.setter
    def not_found_handler(self, handler: H) -> None:
        self._check_configurable("not_found_handler")
        self._not_found_handler = handler

    @property
    def error_handler(self) -> E | None:
        """Called with the exception when a handler raises. None drops errors."""
        return self._error_handler

    @error_handler.setter
    def error_handler(self, handler: E | None) -> None:
        self._check_configurable("error_handler")
        self._error_handler = handler

    @property
    def finalized(self) -> bool:
        return self._routes.finalized

    def finalize(self) -> None:
        """Freezes routes and hooks of this router and all routers sharing its routes.

        Idempotent. Called automatically when the server starts the app, can be
        called manually before forking workers.
        """
        if not self._routes.finalized:
            logger.debug("finalizing router /%s", self._prefix)
        self._routes.finalize()

    def _check_configurable(self, name: str) -> None:
        if self._routes.finalized:
            msg = f"cannot set {name}: router is finalized"
            raise RuntimeError(msg)

    # --- registration ---------------------------------------------------------
    def handle(
        self,
        method: HTTPMethod | str,
        pattern: str,
        handler: H,
        *middleware: Middleware[H],
    ) -> None:
        """Registers handler for method at pattern, with optional middleware.

        Route middleware runs after the router's own middleware, in the order
        given. Path parameters are segments prefixed with ":", a pattern ending
        in "..." matches its prefix and any path below it:

            router.handle("GET", "/users/:id", get_user)
            router.handle("GET", "/images...", images)

        Registering the same method and pattern again replaces the handler.
        """
        if not pattern.startswith("/"):
            msg = f"pattern must start with '/', provided {pattern=}"
            raise ValueError(msg)
        handler = compose(handler, middleware)
        handler = compose(handler, self._middleware)
        full_pattern = f"/{self._prefix}{pattern}" if self._prefix else pattern
        self._routes.add(method, full_pattern, handler)

    def connect(self, pattern: str, handler: H, *middleware: Middleware[H]) -> None:
        """Calls handle("CONNECT", pattern, handler, *middleware)."""
        self.handle("CONNECT", pattern, handler, *middleware)

    def delete(self, pattern: str, handler: H, *middleware: Middleware[H]) -> None:
        """Calls handle("DELETE", pattern, handler, *middleware)."""
        self.handle("DELETE", pattern, handler, *middleware)

    def get(self, pattern: str, handler: H, *middleware: Middleware[H]) -> None:
        """Calls handle("GET", pattern, handler, *middleware)."""
        self.handle("GET", pattern, handler, *middleware)

    def head(self, pattern: str, handler: H, *middleware: Middleware[H]) -> None:
        """Calls handle("HEAD", pattern, handler, *middleware)."""
        self.handle("HEAD", pattern, handler, *middleware)

    def options(self, pattern: str, handler: H, *middleware: Middleware[H]) -> None:
        """Calls handle("OPTIONS", pattern, handler, *middleware)."""
        self.handle("OPTIONS", pattern, handler, *middleware)

    def patch(self, pattern: str, handler: H, *middleware: Middleware[H]) -> None:
        """Calls handle("PATCH", pattern, handler, *middleware)."""
        self.handle("PATCH", pattern, handler, *middleware)

    def post(self, pattern: str, handler: H, *middleware: Middleware[H]) -> None:
        """Calls handle("POST", pattern, handler, *middleware)."""
        self.handle("POST", pattern, handler, *middleware)

    def put(self, pattern: str, handler: H, *middleware: Middleware[H]) -> None:
        """Calls handle("PUT", pattern, handler, *middleware)."""
        self.handle("PUT", pattern, handler, *middleware)

    def trace(self, pattern: str, handler: H, *middleware: Middleware[H]) -> None:
        """Calls handle("TRACE", pattern, handler, *middleware)."""
        self.handle("TRACE", pattern, handler, *middleware)

    def group(self, name: str, *middleware: Middleware[H]) -> Self:
        """Creates a sub-router whose routes are prefixed with name.

        The sub-router registers into the same route table. Its middleware is
        this router's middleware followed by `middleware`.
        """
        group = type(self).__new__(type(self))
        group._routes = self._routes
        group._prefix = "/".join(
            seg for seg in f"{self._prefix}/{name}".split("/") if seg
        )
        group._middleware = self._middleware + middleware
        group._not_found_handler = self._not_found_handler
        group._error_handler = self._error_handler
        return group

    # --- dispatch -------------------------------------------------------------
    async def _dispatch(self, method: str, path: str, *args: Any) -> None:
        """Runs the handler matching method and path with args.

        args are passed through untouched to the handler and, followed by the
        exception, to the error handler.
        """
        not_found_handler, error_handler = self._not_found_handler, self._error_handler

        match = self._routes.lookup(method, path)
        if match is None:
            handler, params, route = not_found_handler, NO_PARAMS, ""
        else:
            handler, params, route = match.handler, match.params, match.route

        with path_params.set(params), http_route.set(route):
            try:
                await handler(*args)
            except Exception as e:  # noqa: BLE001  - handed to error_handler
                if error_handler is None:
                    logger.debug(
                        "dropping error from %s %s", method, path, exc_info=e
                    )
                    return
                await error_handler(*args, e)
