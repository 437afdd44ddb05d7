from fastapi import Request
from sqlalchemy.ext.asyncio import create_async_engine

from waitlist.core.config import settings
from waitlist.services.store import SqlSubscriberStore, SubscriberStore


def init_store(database_url: str | None = None) -> SqlSubscriberStore:
    """Create the process-wide subscriber store handle."""
    url = database_url or settings.database_url
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    engine = create_async_engine(url, future=True, echo=False, connect_args=connect_args)
    return SqlSubscriberStore(engine)


def get_store(request: Request) -> SubscriberStore:
    """FastAPI dependency returning the store created at startup."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise RuntimeError("Subscriber store is not initialized")
    return store
