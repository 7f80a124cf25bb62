"""RSGI interface types, as implemented by granian.

See https://github.com/emmett-framework/granian/blob/master/docs/spec/RSGI.md
"""

from collections.abc import Awaitable, Callable, Mapping
from typing import Literal, Protocol


class HTTPScope(Protocol):
    @property
    def proto(self) -> Literal["http"]: ...
    @property
    def http_version(self) -> Literal["1", "1.1", "2"]: ...
    @property
    def rsgi_version(self) -> str: ...
    @property
    def server(self) -> str: ...
    @property
    def client(self) -> str: ...
    @property
    def scheme(self) -> str: ...
    @property
    def method(self) -> str: ...
    @property
    def path(self) -> str: ...
    @property
    def query_string(self) -> str: ...
    @property
    def headers(self) -> Mapping[str, str]: ...
    @property
    def authority(self) -> str | None: ...


class HTTPStreamTransport(Protocol):
    async def send_bytes(self, data: bytes) -> None: ...
    async def send_str(self, data: str) -> None: ...


class HTTPProtocol(Protocol):
    async def __call__(self) -> bytes: ...
    def __aiter__(self) -> bytes: ...
    async def client_disconnect(self) -> None: ...
    def response_empty(self, status: int, headers: list[tuple[str, str]]) -> None: ...
    def response_str(
        self, status: int, headers: list[tuple[str, str]], body: str
    ) -> None: ...
    def response_bytes(
        self, status: int, headers: list[tuple[str, str]], body: bytes
    ) -> None: ...
    def response_file(
        self, status: int, headers: list[tuple[str, str]], file: str
    ) -> None: ...
    def response_file_range(
        self,
        status: int,
        headers: list[tuple[str, str]],
        file: str,
        start: int,
        end: int,
    ) -> None: ...
    def response_stream(
        self, status: int, headers: list[tuple[str, str]]
    ) -> HTTPStreamTransport: ...


type RSGIHTTPHandler = Callable[[HTTPScope, HTTPProtocol], Awaitable[None]]
type RSGIErrorHandler = Callable[[HTTPScope, HTTPProtocol, Exception], Awaitable[None]]
