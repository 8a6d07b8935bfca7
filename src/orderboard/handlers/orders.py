"""
=============================================================================
ORDER HANDLERS
=============================================================================

The four behaviors of the board, bound to a shared OrderStore.

    ┌──────────┬──────────────┬────────────┬─────────┬────────────────────┐
    │ method   │ path         │ handler    │ success │ failures           │
    ├──────────┼──────────────┼────────────┼─────────┼────────────────────┤
    │ OPTIONS  │ *            │ preflight  │ 204     │ -                  │
    │ GET      │ /orders      │ list       │ 200     │ 500                │
    │ POST     │ /order       │ create     │ 201     │ 400, 500           │
    │ DELETE   │ /order/*id   │ delete     │ 200     │ 404, 500           │
    │ other    │ -            │ (router)   │ -       │ 404                │
    └──────────┴──────────────┴────────────┴─────────┴────────────────────┘

Every failure leaves here as a JSON error response. Nothing raised by the
store or the decoder reaches the connection worker.

=============================================================================
"""

import logging

from ..http.request import HTTPRequest
from ..http.response import (
    HTTPResponse,
    HTTPStatus,
    bad_request,
    created,
    internal_error,
    message_response,
    not_found,
    ok,
    preflight_response,
)
from ..http.router import Router, CATCH_ALL
from ..models import DecodeError, OrderRequest, encode_compact, generate_order_id
from ..store import OrderStore, StorageError


logger = logging.getLogger(__name__)


class OrderHandlers:
    """
    Request handlers for the order endpoints.

    The store is injected, never looked up globally, so tests can hand in
    an in-memory store and every connection worker shares the one the
    server was built with.

    Usage:
        handlers = OrderHandlers(store)
        handlers.register(router)
    """

    def __init__(self, store: OrderStore):
        self.store = store

    def register(self, router: Router) -> Router:
        """
        Install the routes. Order matters: OPTIONS is checked first so a
        preflight on any path, known or not, gets its 204.
        """
        router.add_route(CATCH_ALL, self.preflight, method="OPTIONS")
        router.add_route("/orders", self.list_orders, method="GET")
        router.add_route("/order", self.create_order, method="POST")
        router.add_route("/order/*id", self.delete_order, method="DELETE")
        return router

    # =========================================================================
    # OPTIONS *
    # =========================================================================

    def preflight(self, request: HTTPRequest) -> HTTPResponse:
        """CORS preflight. Never touches the store."""
        return preflight_response()

    # =========================================================================
    # GET /orders
    # =========================================================================

    def list_orders(self, request: HTTPRequest) -> HTTPResponse:
        """
        Every order as a JSON array. An empty board is "[]", not an error.
        """
        try:
            orders = self.store.list_all()
        except StorageError as e:
            logger.error(f"Listing orders failed: {e}")
            return internal_error(f"Database error: {e}")

        try:
            body = encode_compact([order.to_dict() for order in orders])
        except (TypeError, ValueError) as e:
            logger.error(f"Encoding order list failed: {e}")
            return internal_error(f"JSON serialization error: {e}")

        return ok(body)

    # =========================================================================
    # POST /order
    # =========================================================================

    def create_order(self, request: HTTPRequest) -> HTTPResponse:
        """
        Create an order from the JSON body.

        ┌─────────────────────────────────────────────────────────────────┐
        │   no blank line in request       → 400 Missing request body     │
        │   body doesn't decode            → 400 Invalid JSON: <why>      │
        │   decoded → new id → insert                                      │
        │       insert fails               → 500 Database error: <why>    │
        │       insert ok                  → 201 + the stored order       │
        └─────────────────────────────────────────────────────────────────┘

        The id comes from the server. An "id" key in the body is ignored
        like any other unknown key.
        """
        if request.body is None:
            return bad_request("Missing request body")

        try:
            order_request = OrderRequest.from_json(request.body)
        except DecodeError as e:
            return bad_request(f"Invalid JSON: {e}")

        order = order_request.to_order(generate_order_id())

        try:
            self.store.insert(order)
        except StorageError as e:
            logger.error(f"Inserting order {order.id} failed: {e}")
            return internal_error(f"Database error: {e}")

        logger.info(
            f"Created order {order.id}: {order.kind.value} "
            f"{order.make_amount} {order.make_denomination.value} for "
            f"{order.take_amount} {order.take_denomination.value}"
        )
        return created(order.to_json())

    # =========================================================================
    # DELETE /order/{id}
    # =========================================================================

    def delete_order(self, request: HTTPRequest) -> HTTPResponse:
        """
        Delete by id.

        The id is the raw text after "/order/", slashes and all. An id
        that matches nothing is a 404, and asking twice gives the same
        404 twice.
        """
        order_id = request.path_params.get("id", request.path[len("/order/"):])

        try:
            deleted = self.store.delete_by_id(order_id)
        except StorageError as e:
            logger.error(f"Deleting order {order_id} failed: {e}")
            return internal_error(f"Database error: {e}")

        if not deleted:
            return not_found(f"Order {order_id} not found")

        logger.info(f"Deleted order {order_id}")
        return message_response(HTTPStatus.OK, f"Order {order_id} deleted successfully")
