"""ObjectRegistry: ordered store of live canvas objects.

Insertion order is render order. Every mutation goes through one private
path (``_commit``) so listeners, the revision counter and logging stay in
sync. Records are immutable ``CanvasObject`` snapshots; ``update`` swaps a
whole record in place or changes nothing.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from core.outcomes import NotFound, RegistryConflict, RegistryResult, RegistryStatus
from world.canvas_object import CanvasObject, patch_fields

logger = logging.getLogger(__name__)

Listener = Callable[[str, CanvasObject], None]


class ObjectRegistry:
    def __init__(self) -> None:
        self._order: List[str] = []
        self._objects: Dict[str, CanvasObject] = {}
        self._listeners: List[Listener] = []
        self.revision = 0

    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, object_id: object) -> bool:
        return object_id in self._objects

    def __iter__(self) -> Iterator[CanvasObject]:
        return iter(self.list())

    def get(self, object_id: str) -> Optional[CanvasObject]:
        return self._objects.get(object_id)

    def require(self, object_id: str) -> CanvasObject:
        obj = self._objects.get(object_id)
        if obj is None:
            raise NotFound(f"object {object_id} not found")
        return obj

    def list(self) -> Tuple[CanvasObject, ...]:
        """Snapshot of all live objects in insertion order."""
        return tuple(self._objects[i] for i in self._order)

    def ids(self) -> Tuple[str, ...]:
        return tuple(self._order)

    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener(event, obj)``; returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _commit(self, event: str, obj: CanvasObject) -> None:
        self.revision += 1
        logger.debug("registry %s %s (%s) rev=%d", event, obj.id, obj.kind.value, self.revision)
        for fn in list(self._listeners):
            try:
                fn(event, obj)
            except Exception:
                logger.exception("registry listener failed on %s %s", event, obj.id)

    # ------------------------------------------------------------------
    def insert(self, obj: CanvasObject) -> RegistryResult:
        if obj.id in self._objects:
            logger.info("insert rejected, id %s already live", obj.id)
            return RegistryResult(RegistryStatus.CONFLICT, obj.id, "id already exists")
        self._objects[obj.id] = obj
        self._order.append(obj.id)
        self._commit("insert", obj)
        return RegistryResult(RegistryStatus.OK, obj.id)

    def add(self, obj: CanvasObject) -> CanvasObject:
        """Raising form of ``insert``: returns ``obj`` or raises ``RegistryConflict``."""
        result = self.insert(obj)
        if result.status is RegistryStatus.CONFLICT:
            raise RegistryConflict(f"object {obj.id} already exists")
        return obj

    def remove(self, object_id: str) -> RegistryResult:
        obj = self._objects.pop(object_id, None)
        if obj is None:
            return RegistryResult(RegistryStatus.NOT_FOUND, object_id)
        self._order.remove(object_id)
        self._commit("remove", obj)
        return RegistryResult(RegistryStatus.OK, object_id)

    def update(self, object_id: str, patch: Mapping[str, Any]) -> RegistryResult:
        """Atomically replace ``object_id`` with the patched record.

        ``patch`` may be a ``CanvasObject`` (full replacement) or a loose
        mapping (see ``patch_fields``). The id is fixed for the record's life.
        """
        current = self._objects.get(object_id)
        if current is None:
            return RegistryResult(RegistryStatus.NOT_FOUND, object_id)
        try:
            if isinstance(patch, CanvasObject):
                updated = patch
            else:
                updated = current.replace(**patch_fields(patch))
        except (TypeError, ValueError) as e:
            logger.warning("update of %s rejected: %s", object_id, e)
            return RegistryResult(RegistryStatus.INVALID, object_id, str(e))
        if updated.id != object_id:
            return RegistryResult(RegistryStatus.INVALID, object_id, "id cannot change")
        self._objects[object_id] = updated
        self._commit("update", updated)
        return RegistryResult(RegistryStatus.OK, object_id)

    def clear(self) -> None:
        for object_id in list(self._order):
            self.remove(object_id)


__all__ = ["ObjectRegistry"]
