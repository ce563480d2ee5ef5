"""Persistent set of blocked applications."""
import logging
import threading
from typing import FrozenSet, Optional

from ..database.store import KeyValueStore
from ..errors import StorageError
from .resolver import AppIdentityResolver

logger = logging.getLogger(__name__)

BLOCKED_APPS_KEY = "blocked_apps"


class BlockListStore:
    """
    Blocked-app membership, cached in memory and written through to storage.

    Entries may be raw package ids or display names; ``contains`` checks both
    forms. Readers always see an immutable snapshot, writers swap it under a
    lock after storage accepted the new set.
    """

    def __init__(self, store: KeyValueStore, resolver: AppIdentityResolver):
        self.store = store
        self.resolver = resolver
        self._lock = threading.Lock()
        self._apps: Optional[FrozenSet[str]] = None

    def _load(self) -> FrozenSet[str]:
        apps = self._apps
        if apps is not None:
            return apps
        with self._lock:
            if self._apps is None:
                stored = self.store.get_json(BLOCKED_APPS_KEY, default=[])
                if not isinstance(stored, list):
                    raise StorageError(f"Unexpected value under '{BLOCKED_APPS_KEY}'")
                self._apps = frozenset(str(app) for app in stored)
                logger.debug("Loaded %d blocked apps", len(self._apps))
            return self._apps

    def _replace(self, apps: FrozenSet[str]) -> None:
        # Caller holds the lock; the cache only changes once storage succeeded.
        self.store.set_json(BLOCKED_APPS_KEY, sorted(apps))
        self._apps = apps

    def add(self, app_id: str) -> None:
        self._load()
        with self._lock:
            if app_id in self._apps:
                return
            self._replace(self._apps | {app_id})
        logger.info("🚫 Blocked app: %s", app_id)

    def remove(self, app_id: str) -> None:
        self._load()
        with self._lock:
            if app_id not in self._apps:
                return
            self._replace(self._apps - {app_id})
        logger.info("✅ Unblocked app: %s", app_id)

    def contains(self, app_id: str) -> bool:
        apps = self._load()
        return app_id in apps or self.resolver.resolve(app_id) in apps

    def list(self) -> FrozenSet[str]:
        return self._load()
