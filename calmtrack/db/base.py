from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request
from sqlalchemy.orm import DeclarativeBase

from calmtrack.core.errors import StorageUnavailable

if TYPE_CHECKING:
    from calmtrack.db.store import Store


class Base(DeclarativeBase):
    pass


def get_store(request: Request) -> "Store":
    """FastAPI dependency: the store handle opened by the app lifespan."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise StorageUnavailable("Local store is not open.")
    return store
