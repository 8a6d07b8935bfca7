"""
=============================================================================
ORDERBOARD
=============================================================================

A small peer-to-peer order board over raw HTTP/1.1.

Clients post buy/sell orders ("make 0.001 SAT, take 50 BRL"), list every
order on the board, and delete orders by id. Orders live in a SQLite file
so the board survives restarts. Every response carries permissive CORS
headers, since the board is read and written by a browser app on another
origin.

    GET     /orders        → 200, JSON array of orders
    POST    /order         → 201, the created order (server-assigned id)
    DELETE  /order/{id}    → 200 / 404
    OPTIONS (anything)     → 204, CORS preflight
    anything else          → 404 {"error": "Endpoint not found"}

=============================================================================
PACKAGE LAYOUT
=============================================================================

    orderboard/
    ├── models.py        Order, OrderRequest, enums, JSON decode/encode
    ├── store.py         OrderStore (SQLite), sample seeding
    ├── config.py        ServerConfig (defaults, environment, validation)
    ├── server.py        OrderBoardServer: accept → thread → handle → close
    ├── core/            listening socket, single-read connections
    ├── http/            request parser, router, response encoder
    ├── middleware/      pipeline + access logging
    └── handlers/        the four endpoint handlers

=============================================================================
"""

__version__ = "0.1.0"

from .config import ServerConfig
from .models import Currency, Order, OrderRequest, OrderType
from .server import OrderBoardServer
from .store import OrderStore, StorageError, seed_sample_orders

__all__ = [
    "OrderBoardServer",
    "ServerConfig",
    "OrderStore",
    "StorageError",
    "seed_sample_orders",
    "Order",
    "OrderRequest",
    "OrderType",
    "Currency",
    "__version__",
]
