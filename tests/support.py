from datetime import datetime, timedelta, timezone

from stockledger.adapters.persistence import DocumentStore
from stockledger.database import Base, build_engine, build_session_factory
from stockledger.models import import_all_models
from stockledger.schemas.user import CurrentUser

ADMIN = CurrentUser(id=1, name="Admin User", email="admin@stocksavvy.com", role="admin")
WORKER = CurrentUser(id=2, name="Worker User", email="worker@stocksavvy.com", role="worker")

IPHONE = {
    "product_id": "iph13",
    "name": "iPhone 13",
    "category": "Mobile Phones",
    "purchase_date": "2024-01-01",
    "stock": 5,
    "price": 500,
}


def memory_engine():
    import_all_models()
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    return engine


class TickingClock:
    """Returns a strictly increasing UTC datetime on every call."""

    def __init__(self, start=None, step_seconds=1):
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.step = timedelta(seconds=step_seconds)

    def __call__(self):
        self.current = self.current + self.step
        return self.current


def memory_store(engine, clock=None):
    if clock is None:
        return DocumentStore(build_session_factory(engine))
    return DocumentStore(build_session_factory(engine), clock=clock)
