from streamshare_core.stores.interfaces import (
    DocumentStore,
    EventPublisher,
    Filter,
    ObjectStore,
)

__all__ = [
    "DocumentStore",
    "EventPublisher",
    "Filter",
    "ObjectStore",
]
