"""Capability context handed to running behaviors.

A context is built fresh for each tool invocation and each object-behavior
mount. It exposes a read-only snapshot of the scene plus three operations
that write straight through to the live registry; changes show up on the
next frame. There is no rollback: a behavior that mutates the registry and
then raises leaves its mutations in place.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Tuple

from world.canvas_object import CanvasObject, Origin, Provenance
from world.registry import ObjectRegistry

logger = logging.getLogger(__name__)


class CapabilityContext:
    __slots__ = ("_registry", "_objects", "_origin", "added", "updated", "deleted")

    def __init__(self, registry: ObjectRegistry, *, origin: Optional[Origin] = None) -> None:
        self._registry = registry
        self._objects = registry.list()
        self._origin = origin or Origin(Provenance.TOOL_GENERATED)
        self.added: list[str] = []
        self.updated: list[str] = []
        self.deleted: list[str] = []

    @property
    def objects(self) -> Tuple[CanvasObject, ...]:
        """Scene snapshot taken when the context was built."""
        return self._objects

    # Behavior-facing surface. camelCase names are what prompts ask for;
    # snake_case aliases keep hand-written behaviors idiomatic.
    def addObject(self, record: Mapping[str, Any]) -> Optional[str]:
        try:
            obj = CanvasObject.from_mapping(record, origin=self._origin)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("addObject rejected invalid record: %s", e)
            return None
        result = self._registry.insert(obj)
        if not result:
            return None
        self.added.append(obj.id)
        return obj.id

    def updateObject(self, object_id: str, patch: Mapping[str, Any]) -> bool:
        result = self._registry.update(object_id, patch)
        if result:
            self.updated.append(object_id)
        return result.ok

    def deleteObject(self, object_id: str) -> bool:
        result = self._registry.remove(object_id)
        if result:
            self.deleted.append(object_id)
        return result.ok

    add_object = addObject
    update_object = updateObject
    delete_object = deleteObject
