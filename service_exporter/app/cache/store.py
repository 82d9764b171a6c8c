"""
Thread-safe in-memory mirror of Kubernetes services.
"""

import threading
from typing import Dict, Iterable, List, Optional

from .models import ServiceEntity


class ServiceMirror:
    """Maps service uid to the latest known state of that service.

    Every access goes through a single lock. Entities are immutable, so a
    reader holding a list returned by :meth:`list` sees a consistent
    point-in-time view even while the synchronizer keeps writing.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entities: Dict[str, ServiceEntity] = {}

    def upsert(self, entity: ServiceEntity):
        """Store ``entity``, replacing any previous state for its uid."""
        with self._lock:
            self._entities[entity.uid] = entity

    def delete(self, uid: str) -> Optional[ServiceEntity]:
        """Remove the entity with ``uid``; returns the removed state if present."""
        with self._lock:
            return self._entities.pop(uid, None)

    def replace(self, entities: Iterable[ServiceEntity]) -> Dict[str, int]:
        """Reconcile the mirror to exactly ``entities``.

        Returns counts of added, updated and pruned entries.
        """
        fresh = {entity.uid: entity for entity in entities}
        with self._lock:
            previous = self._entities
            self._entities = fresh

        added = len(fresh.keys() - previous.keys())
        pruned = len(previous.keys() - fresh.keys())
        updated = sum(
            1 for uid, entity in fresh.items()
            if uid in previous and previous[uid] != entity
        )
        return {"added": added, "updated": updated, "pruned": pruned}

    def get(self, uid: str) -> Optional[ServiceEntity]:
        with self._lock:
            return self._entities.get(uid)

    def list(self) -> List[ServiceEntity]:
        """Return a copy of all cached entities."""
        with self._lock:
            return list(self._entities.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entities)
