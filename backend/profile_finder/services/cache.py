from enum import Enum
from typing import Any, Dict, Tuple


class ResourceKind(str, Enum):
    PROFILE = "profile"
    REPOSITORIES = "repositories"


class ResourceCache:
    """Per-key cache of fetched resources.

    Entries live as long as the cache itself: no expiry, no eviction.
    ``inflight`` holds the upstream calls still running for a (kind, key) so
    that concurrent lookups sharing this cache join them instead of repeating
    them.
    """

    def __init__(self):
        self.store: Dict[Tuple[ResourceKind, str], Any] = {}
        self.inflight: Dict[Tuple[ResourceKind, str], Any] = {}

    def get(self, kind: ResourceKind, key: str):
        return self.store.get((kind, key))

    def set(self, kind: ResourceKind, key: str, value: Any):
        self.store[(kind, key)] = value

    def has(self, kind: ResourceKind, key: str) -> bool:
        return (kind, key) in self.store

    def clear(self):
        self.store.clear()

    def __len__(self) -> int:
        return len(self.store)
