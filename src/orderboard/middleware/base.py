"""
=============================================================================
MIDDLEWARE PIPELINE
=============================================================================

Wraps the router in layers that see every request on the way in and
every response on the way out.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         REQUEST FLOW                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Request ──────────────────────────────────────►                   │
    │                                                                      │
    │   ┌──────────┐    ┌──────────┐    ┌──────────────┐                  │
    │   │ Logging  │───►│  (more)  │───►│ router.handle│                  │
    │   │   MW     │    │          │    │              │                  │
    │   └──────────┘    └──────────┘    └──────────────┘                  │
    │                                                                      │
    │   ◄────────────────────────────────────── Response                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A middleware must never change the fixed response header block. The board
ships with one layer, access logging, which only observes.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# The next middleware, or the router itself at the bottom of the stack
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Base class for middleware.

        class Timing(Middleware):
            def __call__(self, request, next):
                start = time.perf_counter()
                response = next(request)
                ...
                return response

    Call next(request) to continue the chain. Returning without calling
    it short-circuits the request.
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """Process the request and return a response."""

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    An ordered stack of middleware around a final handler.

    First added is outermost:

        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware())
        handler = pipeline.wrap(router.handle)

        handler(request)   # LoggingMiddleware → router.handle
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append a layer. Returns self for chaining."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the chain around handler.

        Given [MW1, MW2] the result calls MW1 → MW2 → handler. Wrapping
        happens in reverse so the first-added layer ends up outermost.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._bind(middleware, current)
        return current

    @staticmethod
    def _bind(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)
        return wrapped
