from stockledger.api.errors import register_exception_handlers
from stockledger.api.routes import inventory_router, reconciliation_router

__all__ = ["inventory_router", "reconciliation_router", "register_exception_handlers"]
