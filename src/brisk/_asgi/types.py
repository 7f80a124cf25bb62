"""ASGI 3 interface types for the http and lifespan scopes.

See https://asgi.readthedocs.io/en/latest/specs/www.html
"""

from collections.abc import Awaitable, Callable, Iterable
from typing import Literal, NotRequired, TypedDict


class ASGIVersions(TypedDict):
    spec_version: str
    version: Literal["3.0"]


# --- http ---------------------------------------------------------------------
class HTTPScope(TypedDict):
    type: Literal["http"]
    asgi: ASGIVersions
    http_version: str
    method: str
    scheme: str
    path: str
    raw_path: NotRequired[bytes | None]
    query_string: bytes
    root_path: str
    headers: Iterable[tuple[bytes, bytes]]
    client: tuple[str, int] | None
    server: tuple[str, int | None] | None


class HTTPRequestEvent(TypedDict):
    type: Literal["http.request"]
    body: bytes
    more_body: bool


class HTTPDisconnectEvent(TypedDict):
    type: Literal["http.disconnect"]


class HTTPResponseStartEvent(TypedDict):
    type: Literal["http.response.start"]
    status: int
    headers: NotRequired[Iterable[tuple[bytes, bytes]]]
    trailers: NotRequired[bool]


class HTTPResponseBodyEvent(TypedDict):
    type: Literal["http.response.body"]
    body: bytes
    more_body: NotRequired[bool]


type HTTPReceive = Callable[[], Awaitable[HTTPRequestEvent | HTTPDisconnectEvent]]
type HTTPSend = Callable[
    [HTTPResponseStartEvent | HTTPResponseBodyEvent], Awaitable[None]
]


# --- lifespan -----------------------------------------------------------------
class LifespanScope(TypedDict):
    type: Literal["lifespan"]
    asgi: ASGIVersions


class LifespanStartupEvent(TypedDict):
    type: Literal["lifespan.startup"]


class LifespanShutdownEvent(TypedDict):
    type: Literal["lifespan.shutdown"]


class LifespanStartupCompleteEvent(TypedDict):
    type: Literal["lifespan.startup.complete"]


class LifespanStartupFailedEvent(TypedDict):
    type: Literal["lifespan.startup.failed"]
    message: str


class LifespanShutdownCompleteEvent(TypedDict):
    type: Literal["lifespan.shutdown.complete"]


type LifespanReceive = Callable[
    [], Awaitable[LifespanStartupEvent | LifespanShutdownEvent]
]
type LifespanSend = Callable[
    [
        LifespanStartupCompleteEvent
        | LifespanStartupFailedEvent
        | LifespanShutdownCompleteEvent
    ],
    Awaitable[None],
]


# --- handlers -----------------------------------------------------------------
type ASGIHTTPHandler = Callable[[HTTPScope, HTTPReceive, HTTPSend], Awaitable[None]]
type ASGIErrorHandler = Callable[
    [HTTPScope, HTTPReceive, HTTPSend, Exception], Awaitable[None]
]
