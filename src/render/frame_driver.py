"""Frame driver: per-tick pass over the object registry.

Each tick walks a snapshot of the registry in insertion order and dispatches
on ``ObjectKind``:

- builtin kinds go straight to the painter's static shape calls,
- synthesized records are compiled and mounted once (cached by id, source
  and entry point), their fragment's ``on_frame`` callback runs, then the
  fragment is drawn.

A mount that fails to compile or build falls back to the placeholder
fragment. An exception while animating or drawing one record is logged
once, counted, and the pass moves on to the next record. Callbacks belong
to their record: removing it from the registry drops the mount and its
callback before the next tick can run it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from behavior.compiler import BehaviorCompiler
from behavior.primitives import FrameCallback, Fragment, placeholder_fragment
from core.drawable import ShapePainter
from world.canvas_object import CanvasObject, ObjectKind
from world.registry import ObjectRegistry

logger = logging.getLogger(__name__)


@dataclass
class Mount:
    object_id: str
    source: Optional[str]
    entry_point: Optional[str]
    fragment: Fragment
    placeholder: bool = False
    error: Optional[str] = None


@dataclass
class FrameStats:
    tick: int = 0
    drawn: int = 0
    placeholders: int = 0
    faults: int = 0
    skipped: list = field(default_factory=list)


class FrameDriver:
    def __init__(
        self,
        registry: ObjectRegistry,
        compiler: Optional[BehaviorCompiler] = None,
        painter: Optional[ShapePainter] = None,
    ) -> None:
        self.registry = registry
        self.compiler = compiler or BehaviorCompiler()
        self.painter = painter
        self.elapsed = 0.0
        self.tick_count = 0
        self.last_stats = FrameStats()
        self.faults: Dict[str, str] = {}
        self._mounts: Dict[str, Mount] = {}
        self._callbacks: Dict[str, FrameCallback] = {}
        self._unsubscribe = registry.subscribe(self._on_registry_event)

    # ------------------------------------------------------------------
    @property
    def mounted_ids(self):
        return tuple(self._mounts)

    @property
    def callback_ids(self):
        return tuple(self._callbacks)

    def mount_for(self, object_id: str) -> Optional[Mount]:
        return self._mounts.get(object_id)

    def close(self) -> None:
        self._unsubscribe()
        self._mounts.clear()
        self._callbacks.clear()

    @staticmethod
    def _stale(mount: Mount, obj: CanvasObject) -> bool:
        return mount.source != obj.source or mount.entry_point != obj.entry_point

    def _on_registry_event(self, event: str, obj: CanvasObject) -> None:
        if event == "remove":
            self.unmount(obj.id)
        elif event == "update":
            mount = self._mounts.get(obj.id)
            if mount is not None and (not obj.synthesized or self._stale(mount, obj)):
                self.unmount(obj.id)

    # ------------------------------------------------------------------
    def mount(self, obj: CanvasObject) -> Mount:
        """Compile and build ``obj``'s fragment, registering its frame callback."""
        self.unmount(obj.id)
        compiled = self.compiler.compile_object(obj.source or "", entry_point=obj.entry_point)
        if not compiled.ok:
            mount = self._placeholder(obj, str(compiled))
        else:
            try:
                fragment = compiled()
            except Exception as e:
                mount = self._placeholder(obj, f"factory raised {type(e).__name__}: {e}")
            else:
                if isinstance(fragment, Fragment):
                    mount = Mount(obj.id, obj.source, obj.entry_point, fragment)
                else:
                    mount = self._placeholder(obj, f"factory returned {type(fragment).__name__}, not a Fragment")
        self._mounts[obj.id] = mount
        if not mount.placeholder and callable(mount.fragment.on_frame):
            self._callbacks[obj.id] = mount.fragment.on_frame
        return mount

    def _placeholder(self, obj: CanvasObject, error: str) -> Mount:
        logger.warning("object %s mounted as placeholder: %s", obj.id, error)
        self.faults[obj.id] = error
        return Mount(obj.id, obj.source, obj.entry_point, placeholder_fragment(), placeholder=True, error=error)

    def unmount(self, object_id: str) -> None:
        self._mounts.pop(object_id, None)
        self._callbacks.pop(object_id, None)
        self.faults.pop(object_id, None)

    # ------------------------------------------------------------------
    def tick(self, dt: float) -> FrameStats:
        self.tick_count += 1
        self.elapsed += dt
        stats = FrameStats(tick=self.tick_count)
        snapshot = self.registry.list()

        live = {obj.id for obj in snapshot}
        for stale in [i for i in self._mounts if i not in live]:
            self.unmount(stale)

        for obj in snapshot:
            try:
                self._render(obj, dt, stats)
            except Exception as e:
                stats.faults += 1
                stats.skipped.append(obj.id)
                message = f"{type(e).__name__}: {e}"
                if self.faults.get(obj.id) != message:
                    logger.warning("object %s skipped this frame: %s", obj.id, message)
                self.faults[obj.id] = message

        self.last_stats = stats
        return stats

    def _render(self, obj: CanvasObject, dt: float, stats: FrameStats) -> None:
        painter = self.painter
        kind = obj.kind
        if kind is ObjectKind.CUBE:
            if painter is not None:
                painter.draw_cube(obj.position, obj.properties)
        elif kind is ObjectKind.SPHERE:
            if painter is not None:
                painter.draw_sphere(obj.position, obj.properties)
        elif kind is ObjectKind.TEXT:
            if painter is not None:
                painter.draw_text(obj.position, obj.properties)
        elif kind is ObjectKind.SYNTHESIZED:
            mount = self._mounts.get(obj.id)
            if mount is None or self._stale(mount, obj):
                mount = self.mount(obj)
            if mount.placeholder:
                stats.placeholders += 1
            callback = self._callbacks.get(obj.id)
            if callback is not None:
                callback(mount.fragment, dt, self.elapsed)
            if painter is not None:
                painter.draw_fragment(obj.position, mount.fragment)
        else:  # pragma: no cover - ObjectKind is closed
            raise AssertionError(f"unhandled object kind {kind!r}")
        stats.drawn += 1
