"""Process-local reactive mirror of the store's collections.

A ``DataMirror`` keeps an in-memory copy of the mirrored collections, fed by
Firestore snapshot listeners. Readers filter it down to what the caller may
see. Mirrors belong to an
authenticated session: ``MirrorRegistry.open`` builds a fresh one on login
and ``MirrorRegistry.close`` cancels its listeners and clears its data on
logout.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Callable

from teambuilder.core.constants import (
    DEFAULT_SKILLS,
    MIRRORED_COLLECTIONS,
    SKILLS_COLLECTION,
)

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

Listener = Callable[[list[dict[str, Any]]], None]


def documents_to_list(documents: Any) -> list[dict[str, Any]]:
    """Flatten document snapshots into dicts carrying their ids."""
    items = []
    for doc in documents:
        if not getattr(doc, "exists", True):
            continue
        data = doc.to_dict() or {}
        data["id"] = doc.id
        items.append(data)
    return items


class Subscription:
    """A snapshot listener on one collection."""

    def __init__(self, db: Client, collection: str, on_change: Listener) -> None:
        self.collection = collection
        self._db = db
        self._on_change = on_change
        self._watch: Any = None

    @property
    def active(self) -> bool:
        return self._watch is not None

    def start(self) -> None:
        if self._watch is None:
            self._watch = self._db.collection(self.collection).on_snapshot(
                self._handle_snapshot
            )

    def cancel(self) -> None:
        watch, self._watch = self._watch, None
        if watch is not None:
            watch.unsubscribe()

    def _handle_snapshot(self, documents: Any, changes: Any, read_time: Any) -> None:
        self._on_change(documents_to_list(documents))


class DataMirror:
    """In-memory mirror of the mirrored collections and skill vocabulary."""

    def __init__(self, db: Client) -> None:
        self._db = db
        self._lock = threading.Lock()
        self._data: dict[str, list[dict[str, Any]]] = {
            name: [] for name in MIRRORED_COLLECTIONS
        }
        self._skills: set[str] = set(DEFAULT_SKILLS)
        self._listeners: dict[str, list[Listener]] = {}
        self._subscriptions: list[Subscription] = []

    @property
    def active(self) -> bool:
        return bool(self._subscriptions)

    def start(self) -> None:
        """Open one listener per mirrored collection plus the skills one."""
        if self.active:
            return
        for name in MIRRORED_COLLECTIONS:
            self._subscriptions.append(
                Subscription(self._db, name, self._updater(name))
            )
        self._subscriptions.append(
            Subscription(self._db, SKILLS_COLLECTION, self._update_skills)
        )
        for subscription in self._subscriptions:
            subscription.start()
        logger.info("Mirror started with %d listeners", len(self._subscriptions))

    def stop(self) -> None:
        """Cancel every listener and drop all mirrored data."""
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.cancel()
        with self._lock:
            for name in self._data:
                self._data[name] = []
            self._skills = set(DEFAULT_SKILLS)
            self._listeners.clear()
        if subscriptions:
            logger.info("Mirror stopped")

    def subscribe(self, collection: str, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for updates of ``collection``.

        Returns a callable that removes the listener again.
        """
        if collection not in self._data and collection != SKILLS_COLLECTION:
            raise ValueError(f"Unknown collection: {collection}")
        with self._lock:
            self._listeners.setdefault(collection, []).append(listener)

        def unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(collection, [])
                if listener in listeners:
                    listeners.remove(listener)

        return unsubscribe

    def items(self, collection: str) -> list[dict[str, Any]]:
        with self._lock:
            return [dict(item) for item in self._data[collection]]

    @property
    def skills(self) -> list[str]:
        with self._lock:
            return sorted(self._skills)

    def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        with self._lock:
            for item in self._data[collection]:
                if item.get("id") == document_id:
                    return dict(item)
        return None

    def snapshot(self) -> dict[str, Any]:
        """Return a copy of everything currently mirrored."""
        with self._lock:
            state: dict[str, Any] = {
                name: [dict(item) for item in items]
                for name, items in self._data.items()
            }
            state[SKILLS_COLLECTION] = sorted(self._skills)
        return state

    def _updater(self, collection: str) -> Listener:
        def update(items: list[dict[str, Any]]) -> None:
            with self._lock:
                self._data[collection] = items
                listeners = list(self._listeners.get(collection, []))
            self._notify(collection, listeners, items)

        return update

    def _update_skills(self, items: list[dict[str, Any]]) -> None:
        names = [item["name"] for item in items if item.get("name")]
        with self._lock:
            self._skills = set(DEFAULT_SKILLS) | set(names)
            skills = sorted(self._skills)
            listeners = list(self._listeners.get(SKILLS_COLLECTION, []))
        self._notify(SKILLS_COLLECTION, listeners, skills)

    @staticmethod
    def _notify(collection: str, listeners: list[Listener], payload: Any) -> None:
        for listener in listeners:
            try:
                listener(payload)
            except Exception:
                logger.exception("Mirror listener for %s failed", collection)


class MirrorRegistry:
    """Tracks one mirror per authenticated session, keyed by a session token.

    A user signed in from two browsers holds two independent mirrors.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._mirrors: dict[str, DataMirror] = {}

    def open(self, session_key: str, db: Client) -> DataMirror:
        """Start a fresh mirror for ``session_key``, replacing any previous one."""
        mirror = DataMirror(db)
        with self._lock:
            previous = self._mirrors.pop(session_key, None)
            self._mirrors[session_key] = mirror
        if previous is not None:
            previous.stop()
        mirror.start()
        return mirror

    def close(self, session_key: str) -> None:
        with self._lock:
            mirror = self._mirrors.pop(session_key, None)
        if mirror is not None:
            mirror.stop()

    def get(self, session_key: str) -> DataMirror | None:
        with self._lock:
            return self._mirrors.get(session_key)

    def close_all(self) -> None:
        with self._lock:
            mirrors = list(self._mirrors.values())
            self._mirrors.clear()
        for mirror in mirrors:
            mirror.stop()

    def __len__(self) -> int:
        with self._lock:
            return len(self._mirrors)
