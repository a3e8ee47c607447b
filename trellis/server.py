"""
HTTP server - the top-level request handler.

Whatever happens inside dispatch, every request ends with exactly one
response: errors that escape the router are logged and mapped to a status
(``Fault.status`` or 500) here.
"""

from typing import Optional, TYPE_CHECKING
import logging
import time

from .faults import Fault, Severity

if TYPE_CHECKING:
    from .http import ServerRequest, ServerResponse
    from .routing import Router

_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.FATAL: logging.CRITICAL,
}


class HTTPServer:
    """
    Transport-independent request handler.

    Transports (see :class:`trellis.asgi.ASGIAdapter`) build a request and
    response pair and call :meth:`handle`.
    """

    def __init__(self, router: Optional["Router"] = None):
        self.router = router
        self.logger = logging.getLogger("trellis.server")

    def set_router(self, router: "Router") -> None:
        self.router = router

    async def handle(self, request: "ServerRequest", response: "ServerResponse") -> None:
        """Dispatch one request and guarantee the response is ended."""
        started = time.perf_counter()
        try:
            await self.router.dispatch(request, response)
        except Exception as exc:
            status = self._log_failure(request, exc)
            if not response.ended:
                response.discard_body()
                await response.end(status)
        else:
            if not response.ended:
                self.logger.error(
                    "%s %s: action returned without ending the response",
                    request.method,
                    request.path,
                )
                response.discard_body()
                await response.end(500)
        finally:
            self.logger.info(
                "%s %s -> %s (%.1fms)",
                request.method,
                request.path,
                response.status,
                (time.perf_counter() - started) * 1000,
            )

    def _log_failure(self, request: "ServerRequest", exc: Exception) -> int:
        if isinstance(exc, Fault):
            level = _LOG_LEVELS.get(exc.severity, logging.ERROR)
            self.logger.log(
                level,
                "%s %s failed: %s",
                request.method,
                request.path,
                exc,
                exc_info=exc if level >= logging.ERROR else None,
            )
            return exc.status

        self.logger.error(
            "Unhandled error for %s %s: %s",
            request.method,
            request.path,
            exc,
            exc_info=exc,
        )
        return 500
