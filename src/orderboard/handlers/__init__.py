"""
Request handlers for the order board.

    handlers = OrderHandlers(store)
    handlers.register(router)
"""

from .orders import OrderHandlers

__all__ = ["OrderHandlers"]
