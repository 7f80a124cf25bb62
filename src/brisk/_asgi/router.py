"""HTTP router/multiplexer for ASGI servers.

Same registration and grouping surface as the RSGI `brisk.Router`; handlers
take `(scope, receive, send)` instead of `(scope, proto)`.
"""

from typing import Any, overload

from brisk._base import BaseRouter

from .types import (
    ASGIErrorHandler,
    ASGIHTTPHandler,
    HTTPReceive,
    HTTPScope,
    HTTPSend,
    LifespanReceive,
    LifespanScope,
    LifespanSend,
    LifespanShutdownCompleteEvent,
    LifespanStartupCompleteEvent,
    LifespanStartupFailedEvent,
)


async def not_found(_scope: HTTPScope, _receive: HTTPReceive, send: HTTPSend) -> None:
    """Default not found handler: empty 404 response."""
    await send(
        {
            "type": "http.response.start",
            "status": 404,
            "headers": [(b"x-content-type-options", b"nosniff")],
        }
    )
    await send({"type": "http.response.body", "body": b""})


class Router(BaseRouter[ASGIHTTPHandler, ASGIErrorHandler]):
    """ASGI router.

    Handlers are `async def handler(scope, receive, send) -> None`, error
    handlers `async def error_handler(scope, receive, send, exc) -> None`.
    The router finalizes itself on the lifespan startup event.
    """

    __slots__ = ()

    def _default_not_found_handler(self) -> ASGIHTTPHandler:
        return not_found

    @overload
    async def __call__(
        self, scope: HTTPScope, receive: HTTPReceive, send: HTTPSend
    ) -> None: ...
    @overload
    async def __call__(
        self, scope: LifespanScope, receive: LifespanReceive, send: LifespanSend
    ) -> None: ...
    async def __call__(self, scope: Any, receive: Any, send: Any) -> None:
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
        elif scope["type"] == "http":
            await self._dispatch(scope["method"], scope["path"], scope, receive, send)
        else:
            msg = f"unsupported scope type {scope['type']!r}"
            raise ValueError(msg)

    async def _handle_lifespan(
        self, receive: LifespanReceive, send: LifespanSend
    ) -> None:
        """Handle ASGI lifespan events."""
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                try:
                    self.finalize()
                    await send(
                        LifespanStartupCompleteEvent(type="lifespan.startup.complete")
                    )
                except Exception as e:  # noqa: BLE001  - ASGI requires reporting any failure
                    await send(
                        LifespanStartupFailedEvent(
                            type="lifespan.startup.failed", message=str(e)
                        )
                    )
                    return
            elif message["type"] == "lifespan.shutdown":
                await send(
                    LifespanShutdownCompleteEvent(type="lifespan.shutdown.complete")
                )
                return
