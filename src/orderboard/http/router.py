"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) pairs to handler functions.

=============================================================================
THE ORDER BOARD'S ROUTING TABLE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Incoming: DELETE /order/9f2c...                                    │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌─────────────────────────────────────────────────────────────┐   │
    │   │  Registered Routes (first match wins):                      │   │
    │   │                                                              │   │
    │   │  OPTIONS *             → preflight                          │   │
    │   │  GET     /orders       → list_orders                        │   │
    │   │  POST    /order        → create_order                       │   │
    │   │  DELETE  /order/*id    → delete_order     ← MATCH!          │   │
    │   │                                                              │   │
    │   │  path_params = {"id": "9f2c..."}                            │   │
    │   └─────────────────────────────────────────────────────────────┘   │
    │        │                                                             │
    │        ▼                                                             │
    │   no match → 404 {"error": "Endpoint not found"}                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ROUTE PATTERNS
=============================================================================

1. STATIC: exact string match
       /orders       matches /orders only (not /orders/, not /orders?x=1)

2. WILDCARD (*name): everything after the prefix, slashes included
       /order/*id    matches /order/a/b → {"id": "a/b"}
                     matches /order/    → {"id": ""}

3. CATCH-ALL ("*"): any request target at all, including the bare "*"
   that OPTIONS requests may use.

Paths are matched exactly as the client sent them. There is no
trailing-slash normalization and no query-string stripping: the
request target is opaque text to the board.

There is no 405 Method Not Allowed either. A known path with the wrong
method is simply an unknown endpoint.

=============================================================================
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from .request import HTTPRequest
from .response import HTTPResponse, not_found


logger = logging.getLogger(__name__)

# Handler: takes a request, returns a response
Handler = Callable[[HTTPRequest], HTTPResponse]

CATCH_ALL = "*"


@dataclass
class Route:
    """
    A registered route.

        Route(
            path="/order/*id",        # URL pattern
            method="DELETE",
            handler=delete_order,
            _pattern=<compiled>,      # ^/order/(?P<id>.*)$
            _param_names=["id"],
        )
    """

    path: str
    method: str
    handler: Handler

    _pattern: Optional[re.Pattern] = field(default=None, repr=False)
    _param_names: List[str] = field(default_factory=list, repr=False)


@dataclass
class RouteMatch:
    """A matched route plus the parameters pulled out of the path."""
    route: Route
    params: Dict[str, str]


class Router:
    """
    HTTP request router.

        router = Router()
        router.add_route("/orders", list_orders, method="GET")
        router.add_route("/order/*id", delete_order, method="DELETE")

        response = router.handle(request)

    Anything unmatched gets a 404 with {"error": "Endpoint not found"}.
    """

    NOT_FOUND_MESSAGE = "Endpoint not found"

    def __init__(self):
        self._routes: List[Route] = []

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(self, path: str, handler: Handler, method: str) -> Route:
        """
        Register a route.

        Args:
            path: URL pattern ("/orders", "/order/*id", "*")
            handler: Function taking a request, returning a response
            method: HTTP method

        Returns:
            The registered Route
        """
        pattern, param_names = self._compile_pattern(path)

        route = Route(
            path=path,
            method=method.upper(),
            handler=handler,
            _pattern=pattern,
            _param_names=param_names,
        )
        self._routes.append(route)

        logger.debug(f"Registered route {route.method} {path}")
        return route

    def _compile_pattern(self, path: str) -> Tuple[re.Pattern, List[str]]:
        """
        Compile a path pattern into an anchored regex.

            "/orders"      → ^/orders$
            "/order/*id"   → ^/order/(?P<id>.*)$
            "*"            → ^(?P<target>.*)$

        Returns:
            (compiled regex, parameter names in order)
        """
        if path == CATCH_ALL:
            return re.compile(r"^(?P<target>.*)$", re.DOTALL), ["target"]

        param_names: List[str] = []
        regex_parts = ["^"]

        for segment in path.split("/"):
            if not segment:
                continue

            regex_parts.append("/")

            if segment.startswith("*"):
                # Wildcard swallows the rest of the path, so it must be last
                param_name = segment[1:] or "wildcard"
                param_names.append(param_name)
                regex_parts.append(f"(?P<{param_name}>.*)")
                break

            regex_parts.append(re.escape(segment))

        if len(regex_parts) == 1:
            regex_parts.append("/")  # the root path "/"

        regex_parts.append("$")
        return re.compile("".join(regex_parts), re.DOTALL), param_names

    # =========================================================================
    # ROUTE MATCHING
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """
        First registered route whose method and pattern both match.

        Method comparison is exact: "get" is not "GET".
        """
        for route in self._routes:
            if route.method != method:
                continue

            found = route._pattern.fullmatch(path) if route._pattern else None
            if found:
                return RouteMatch(route=route, params=found.groupdict())

        return None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request.

        1. Find the matching route
        2. Put its captured parameters on request.path_params
        3. Call the handler
        4. No match → 404
        """
        found = self.match(request.method, request.path)

        if found:
            request.path_params = found.params
            return found.route.handler(request)

        return not_found(self.NOT_FOUND_MESSAGE)

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def routes(self) -> List[Route]:
        """All registered routes, in match order."""
        return list(self._routes)

    def print_routes(self) -> None:
        """
        Print the routing table.

            Registered Routes:
            ------------------------------------------------------------
              OPTIONS  *
              GET      /orders
              POST     /order
              DELETE   /order/*id
            ------------------------------------------------------------
        """
        print("\nRegistered Routes:")
        print("-" * 60)
        for route in self.routes():
            print(f"  {route.method:8} {route.path}")
        print("-" * 60)
