# /// script
# requires-python = ">=3.14"
# dependencies = [
#     "brisk @ file:///${PROJECT_ROOT}/../brisk",
#     "granian[uvloop]>=2.6.0,<3.0.0",
# ]
# ///
"""RSGI server demo.

Fully functional web server using Granian + brisk Router, with route groups,
request logging middleware and an error handler.

    curl localhost:8000/
    curl localhost:8000/api/user/1
    curl -X POST localhost:8000/api/user -H 'content-type: application/json' -d '{"name": "ada"}'
    curl localhost:8000/static/css/site.css
"""

import asyncio
import json
import logging
import sqlite3
import time
from json.decoder import JSONDecodeError

from granian.server.embed import Server

from brisk import Router, http_route, param
from brisk.rsgi import HTTPProtocol, HTTPScope, RSGIHTTPHandler

ADDRESS = "127.0.0.1"
PORT = 8000

logger = logging.getLogger("server")

_db = sqlite3.connect(":memory:")
_db.cursor().executescript("""
CREATE TABLE IF NOT EXISTS user (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL
);
""")


class HTTPError(Exception):
    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status


async def main() -> None:
    logging.basicConfig(level=logging.INFO)

    router = Router(log_request, error_handler=on_error)
    router.get("/", home)
    router.get("/static/...", static)
    user_routes(router.group("api", require_json))

    server = Server(router, address=ADDRESS, port=PORT, log_access=False)
    try:
        await server.serve()
    except asyncio.CancelledError:
        pass


def log_request(handler: RSGIHTTPHandler) -> RSGIHTTPHandler:
    async def logged(s: HTTPScope, p: HTTPProtocol) -> None:
        start = time.perf_counter()
        try:
            await handler(s, p)
        finally:
            logger.info(
                "%s %s (route %s) %.2fms",
                s.method,
                s.path,
                http_route.get() or "-",
                (time.perf_counter() - start) * 1000,
            )

    return logged


def require_json(handler: RSGIHTTPHandler) -> RSGIHTTPHandler:
    async def checked(s: HTTPScope, p: HTTPProtocol) -> None:
        if s.method in {"POST", "PATCH"} and not s.headers.get(
            "content-type", ""
        ).startswith("application/json"):
            raise HTTPError(415, "Expected application/json")
        await handler(s, p)

    return checked


async def on_error(s: HTTPScope, p: HTTPProtocol, e: Exception) -> None:
    if isinstance(e, HTTPError):
        p.response_str(e.status, [("Content-Type", "text/plain")], str(e))
        return
    logger.exception("unhandled error on %s %s", s.method, s.path, exc_info=e)
    p.response_str(500, [("Content-Type", "text/plain")], "Internal server error")


async def home(s: HTTPScope, p: HTTPProtocol) -> None:
    p.response_str(200, [("Content-Type", "text/plain")], "Welcome home")


async def static(s: HTTPScope, p: HTTPProtocol) -> None:
    p.response_str(200, [("Content-Type", "text/plain")], f"static file {s.path}")


def user_routes(router: Router) -> None:
    router.get("/user", get_users(_db))
    router.get("/user/:id", get_user(_db))
    router.post("/user", create_user(_db))


# closure over handler to inject dependencies
def get_users(db: sqlite3.Connection) -> RSGIHTTPHandler:
    async def handler(s: HTTPScope, p: HTTPProtocol) -> None:
        cur = db.cursor()
        cur.execute("SELECT * FROM user")
        result = cur.fetchall()
        serialized = json.dumps([{"id": row[0], "name": row[1]} for row in result])
        p.response_str(200, [("Content-Type", "application/json")], serialized)

    return handler


def get_user(db: sqlite3.Connection) -> RSGIHTTPHandler:
    async def handler(s: HTTPScope, p: HTTPProtocol) -> None:
        try:
            user_id = int(param("id"))
        except ValueError:
            raise HTTPError(404, "Not found") from None
        cur = db.cursor()
        cur.execute("SELECT * FROM user WHERE id = ?", (user_id,))
        result = cur.fetchone()
        if result is None:
            raise HTTPError(404, "Not found")
        serialized = json.dumps({"id": result[0], "name": result[1]})
        p.response_str(200, [("Content-Type", "application/json")], serialized)

    return handler


def create_user(db: sqlite3.Connection) -> RSGIHTTPHandler:
    async def handler(s: HTTPScope, p: HTTPProtocol) -> None:
        body = await p()
        try:
            name = json.loads(body)["name"]
        except (JSONDecodeError, KeyError, TypeError):
            raise HTTPError(422, "Expected {\"name\": ...}") from None
        cur = db.cursor()
        cur.execute("INSERT INTO user (name) VALUES (?) RETURNING *", (name,))
        result = cur.fetchone()
        serialized = json.dumps({"id": result[0], "name": result[1]})
        p.response_str(201, [("Content-Type", "application/json")], serialized)

    return handler


if __name__ == "__main__":
    asyncio.run(main())
