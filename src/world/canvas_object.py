"""Canvas object records.

A ``CanvasObject`` is an immutable snapshot of one live scene entity. Changes
go through ``ObjectRegistry.update`` which swaps the whole record, so a
behavior holding an old reference can never corrupt registry state.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field, replace as _dc_replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

Position = Tuple[float, float, float]

_PRIMITIVES = (str, int, float, bool, type(None))


class ObjectKind(Enum):
    CUBE = "cube"
    SPHERE = "sphere"
    TEXT = "text"
    SYNTHESIZED = "synthesized"

    @property
    def builtin(self) -> bool:
        return self is not ObjectKind.SYNTHESIZED

    @classmethod
    def parse(cls, value: Any) -> "ObjectKind":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        # loose aliases seen in generated payloads
        aliases = {
            "box": "cube",
            "ball": "sphere",
            "label": "text",
            "custom": "synthesized",
            "ai_generated": "synthesized",
        }
        key = aliases.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"unknown object kind: {value!r}") from None


class Provenance(Enum):
    MANUAL = "manual"
    SYNTHESIZED = "synthesized"
    TOOL_GENERATED = "tool-generated"


@dataclass(frozen=True)
class Origin:
    provenance: Provenance = Provenance.MANUAL
    prompt: Optional[str] = None
    tags: Tuple[str, ...] = ()


def new_object_id(prefix: str = "obj") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def _coerce_position(value: Any) -> Position:
    try:
        x, y, z = (float(c) for c in value)
    except (TypeError, ValueError):
        raise ValueError(f"position must be three numbers, got {value!r}") from None
    if not all(math.isfinite(c) for c in (x, y, z)):
        raise ValueError(f"position must be finite, got {(x, y, z)!r}")
    return (x, y, z)


def _freeze_properties(props: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    clean: dict[str, Any] = {}
    for key, val in (props or {}).items():
        if isinstance(val, (list, tuple)) and all(isinstance(v, _PRIMITIVES) for v in val):
            val = tuple(val)
        elif not isinstance(val, _PRIMITIVES):
            raise ValueError(f"property {key!r} is not a primitive value: {val!r}")
        clean[str(key)] = val
    return MappingProxyType(clean)


@dataclass(frozen=True)
class CanvasObject:
    id: str
    kind: ObjectKind
    position: Position = (0.0, 0.0, 0.0)
    properties: Mapping[str, Any] = field(default_factory=dict)
    source: Optional[str] = None
    origin: Optional[Origin] = None
    entry_point: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id or not isinstance(self.id, str):
            raise ValueError("object id must be a non-empty string")
        object.__setattr__(self, "kind", ObjectKind.parse(self.kind))
        object.__setattr__(self, "position", _coerce_position(self.position))
        object.__setattr__(self, "properties", _freeze_properties(self.properties))
        if self.origin is not None and not isinstance(self.origin, Origin):
            raise ValueError(f"origin must be an Origin, got {self.origin!r}")
        if self.entry_point is not None and not isinstance(self.entry_point, str):
            raise ValueError(f"entry_point must be a name, got {self.entry_point!r}")
        if self.kind is ObjectKind.SYNTHESIZED and not (self.source or "").strip():
            raise ValueError("synthesized objects need non-empty source text")

    @property
    def synthesized(self) -> bool:
        return self.kind is ObjectKind.SYNTHESIZED

    def replace(self, **changes: Any) -> "CanvasObject":
        """Return a new validated record with ``changes`` applied."""
        if "properties" in changes and changes["properties"] is not None:
            merged = dict(self.properties)
            merged.update(changes["properties"])
            changes["properties"] = merged
        return _dc_replace(self, **changes)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, origin: Optional[Origin] = None) -> "CanvasObject":
        """Build a record from the loose dicts behaviors pass to ``addObject``."""
        if isinstance(data, CanvasObject):
            return data
        kind = ObjectKind.parse(data.get("kind", data.get("type", "cube")))
        props = data.get("properties", data.get("props")) or {}
        source = data.get("source", data.get("code")) or None
        prefix = "ai_obj" if kind is ObjectKind.SYNTHESIZED else "obj"
        return cls(
            id=str(data.get("id") or new_object_id(prefix)),
            kind=kind,
            position=data.get("position", (0.0, 0.0, 0.0)),
            properties=props,
            source=source,
            origin=origin or (data.get("origin") if isinstance(data.get("origin"), Origin) else None),
            entry_point=data.get("entry_point"),
        )


def patch_fields(patch: Mapping[str, Any]) -> dict[str, Any]:
    """Translate a loose update patch into ``CanvasObject.replace`` kwargs."""
    changes: dict[str, Any] = {}
    props: dict[str, Any] = {}
    for key, val in patch.items():
        if key in ("props", "properties"):
            props.update(dict(val or {}))
        elif key in ("type", "kind"):
            changes["kind"] = ObjectKind.parse(val)
        elif key in ("code", "source"):
            changes["source"] = val
        elif key in ("position", "entry_point"):
            changes[key] = val
        elif key == "id":
            changes["id"] = val
        elif key == "origin":
            # provenance is fixed when the record is created
            raise ValueError("origin cannot be patched")
        else:
            # bare keys patch the property map (e.g. {"color": "#fff"})
            props[key] = val
    if props:
        changes["properties"] = props
    return changes
