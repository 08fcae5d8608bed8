import logging
import time
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import event
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/"


# ---------------------------------------------------------------------------
# Per-request bookkeeping
# ---------------------------------------------------------------------------

@dataclass
class RequestStats:
    """What one request did: SQL statements run and the error kind, if any."""

    resource: str
    queries: int = 0
    error_kind: Optional[str] = None


# The middleware installs a fresh RequestStats per request.  Everything else
# mutates that object in place, so the values survive context copies made by
# the database driver and the exception handlers.
_request_stats: ContextVar[Optional[RequestStats]] = ContextVar("request_stats", default=None)


def current_request_stats() -> Optional[RequestStats]:
    return _request_stats.get()


def record_error_kind(kind: str) -> None:
    """Remember which service error ended the current request."""
    stats = _request_stats.get()
    if stats is not None:
        stats.error_kind = kind


def install_query_counter(engine) -> None:
    """
    Count every SQL statement *engine* executes against the current request.

    Statements run outside a request (seeding, migrations, service tests)
    are not counted.  Call once per engine.
    """

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def _count_query(conn, cursor, statement, parameters, context, executemany):
        stats = _request_stats.get()
        if stats is not None:
            stats.queries += 1


def resource_for_path(path: str) -> str:
    """
    Map a request path to the blog resource it addresses.

    >>> resource_for_path("/api/v1/posts/slug/hello-world")
    'posts'
    >>> resource_for_path("/health")
    'health'
    """
    if path.startswith(API_PREFIX):
        head = path[len(API_PREFIX):].split("/", 1)[0]
        return head or "api"
    return path.strip("/").split("/", 1)[0] or "root"


# ---------------------------------------------------------------------------
# Middleware (pure ASGI, so handlers share the request's context)
# ---------------------------------------------------------------------------

class TimingMiddleware:
    """
    Stamp each HTTP response with ``X-Response-Time-Ms`` and
    ``X-Query-Count``, plus ``X-Error-Kind`` when a service error or a
    request validation failure produced the response.

    Successful requests are logged at DEBUG; failed ones at INFO together
    with the resource and the error kind.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        stats = RequestStats(resource=resource_for_path(scope["path"]))
        token = _request_stats.set(stats)
        start = time.perf_counter()

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                headers = list(message.get("headers", []))
                headers.append((b"x-response-time-ms", str(duration_ms).encode()))
                headers.append((b"x-query-count", str(stats.queries).encode()))
                if stats.error_kind is not None:
                    headers.append((b"x-error-kind", stats.error_kind.encode()))
                message["headers"] = headers
                self._log(scope, message["status"], duration_ms, stats)
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            _request_stats.reset(token)

    @staticmethod
    def _log(scope: Scope, status: int, duration_ms: float, stats: RequestStats) -> None:
        if stats.error_kind is None:
            logger.debug(
                "%s %s [%s] -> %s in %.2fms (%d queries)",
                scope["method"], scope["path"], stats.resource,
                status, duration_ms, stats.queries,
            )
        else:
            logger.info(
                "%s %s [%s] -> %s %s in %.2fms (%d queries)",
                scope["method"], scope["path"], stats.resource,
                status, stats.error_kind, duration_ms, stats.queries,
            )
