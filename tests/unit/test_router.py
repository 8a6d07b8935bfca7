"""
Unit tests for URL router.
"""

import json

import pytest

from orderboard.http.router import Router, Route, RouteMatch, CATCH_ALL
from orderboard.http.request import HTTPRequest
from orderboard.http.response import HTTPResponse, ok
from orderboard.http.status_codes import HTTPStatus


def make_request(method: str, path: str) -> HTTPRequest:
    """Helper to create a request for testing."""
    return HTTPRequest(method=method, path=path)


def dummy_handler(request: HTTPRequest) -> HTTPResponse:
    """Dummy handler for testing."""
    return ok(json.dumps({"path": request.path, "params": request.path_params}))


@pytest.fixture
def board_router() -> Router:
    """Router laid out like the order board's."""
    router = Router()
    router.add_route(CATCH_ALL, dummy_handler, method="OPTIONS")
    router.add_route("/orders", dummy_handler, method="GET")
    router.add_route("/order", dummy_handler, method="POST")
    router.add_route("/order/*id", dummy_handler, method="DELETE")
    return router


class TestRouter:
    """Tests for Router class."""

    def test_add_route(self):
        router = Router()
        route = router.add_route("/orders", dummy_handler, method="get")

        assert isinstance(route, Route)
        assert router.routes() == [route]
        assert route.method == "GET"

    def test_match_static_path(self, board_router: Router):
        match = board_router.match("GET", "/orders")

        assert isinstance(match, RouteMatch)
        assert match.route.path == "/orders"
        assert match.params == {}

    def test_static_path_is_exact(self, board_router: Router):
        assert board_router.match("GET", "/orders/") is None
        assert board_router.match("GET", "/orders?limit=1") is None
        assert board_router.match("GET", "/order") is None

    def test_method_is_exact(self, board_router: Router):
        assert board_router.match("get", "/orders") is None
        assert board_router.match("POST", "/orders") is None

    def test_wildcard_captures_rest(self, board_router: Router):
        match = board_router.match("DELETE", "/order/a/b?c")

        assert match.params == {"id": "a/b?c"}

    def test_wildcard_allows_empty(self, board_router: Router):
        match = board_router.match("DELETE", "/order/")

        assert match is not None
        assert match.params == {"id": ""}

    def test_wildcard_needs_slash(self, board_router: Router):
        assert board_router.match("DELETE", "/order") is None
        assert board_router.match("DELETE", "/orders/x") is None

    @pytest.mark.parametrize("path", ["*", "/", "/orders", "/nowhere/at/all"])
    def test_catch_all_options(self, board_router: Router, path: str):
        match = board_router.match("OPTIONS", path)

        assert match is not None
        assert match.route.path == CATCH_ALL

    def test_first_match_wins(self):
        router = Router()
        first = router.add_route("/orders", dummy_handler, method="GET")
        router.add_route("/orders", dummy_handler, method="GET")

        assert router.match("GET", "/orders").route is first

    def test_root_path(self):
        router = Router()
        router.add_route("/", dummy_handler, method="GET")

        assert router.match("GET", "/") is not None
        assert router.match("GET", "") is None


class TestRouterHandle:
    """Tests for Router.handle dispatch."""

    def test_handle_success(self, board_router: Router):
        response = board_router.handle(make_request("GET", "/orders"))

        assert response.status == HTTPStatus.OK
        assert json.loads(response.text)["path"] == "/orders"

    def test_path_params_in_request(self, board_router: Router):
        request = make_request("DELETE", "/order/deadbeef")
        response = board_router.handle(request)

        assert request.path_params == {"id": "deadbeef"}
        assert json.loads(response.text)["params"] == {"id": "deadbeef"}

    def test_handle_not_found(self, board_router: Router):
        response = board_router.handle(make_request("PUT", "/orders"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert json.loads(response.text) == {"error": "Endpoint not found"}
