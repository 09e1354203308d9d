"""World package: re-export the scene model for simpler imports.

Callers can import public types from `world` directly, e.g.:

    from world import ObjectRegistry, CanvasObject, SceneCoordinator

The GL-backed ``CanvasScene`` is imported from ``world.canvas_scene`` so
that the model stays importable without a display.
"""

from .canvas_object import CanvasObject, ObjectKind, Origin, Provenance, new_object_id
from .context import CapabilityContext
from .coordinator import PendingRequest, SceneCoordinator, SynthesisResult
from .registry import ObjectRegistry

__all__ = [
    "CanvasObject",
    "ObjectKind",
    "Origin",
    "Provenance",
    "new_object_id",
    "CapabilityContext",
    "PendingRequest",
    "SceneCoordinator",
    "SynthesisResult",
    "ObjectRegistry",
]
