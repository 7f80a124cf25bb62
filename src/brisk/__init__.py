from importlib.metadata import version

from ._asgi.router import Router as ASGIRouter
from .router import Middleware, Router, compose, http_route, param, path_params

__all__ = [
    "ASGIRouter",
    "Middleware",
    "Router",
    "__version__",
    "compose",
    "http_route",
    "param",
    "path_params",
]

__version__ = version("brisk")
