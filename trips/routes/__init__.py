"""Trip API routes."""

from trips.routes import crud, query

__all__ = ["crud", "query"]
