from world.canvas_object import CanvasObject, ObjectKind, Origin, Provenance
from world.context import CapabilityContext


def test_add_object_inserts_with_context_origin(registry):
    origin = Origin(Provenance.TOOL_GENERATED, "scatter", ("scatter",))
    ctx = CapabilityContext(registry, origin=origin)
    new_id = ctx.addObject({"kind": "sphere", "position": [1, 2, 3], "properties": {"color": "#ff0"}})
    assert new_id is not None
    obj = registry.get(new_id)
    assert obj.kind is ObjectKind.SPHERE
    assert obj.position == (1.0, 2.0, 3.0)
    assert obj.origin is origin
    assert ctx.added == [new_id]


def test_default_origin_is_tool_generated(registry):
    ctx = CapabilityContext(registry)
    new_id = ctx.add_object({"kind": "cube"})
    assert registry.get(new_id).origin.provenance is Provenance.TOOL_GENERATED


def test_invalid_records_are_rejected_without_raising(registry):
    ctx = CapabilityContext(registry)
    assert ctx.addObject({"kind": "dragon"}) is None
    assert ctx.addObject({"kind": "cube", "position": "up"}) is None
    assert ctx.addObject({"kind": "synthesized"}) is None
    assert len(registry) == 0
    assert ctx.added == []


def test_duplicate_id_returns_none(registry):
    registry.insert(CanvasObject(id="taken", kind="cube"))
    ctx = CapabilityContext(registry)
    assert ctx.addObject({"id": "taken", "kind": "sphere"}) is None
    assert registry.get("taken").kind is ObjectKind.CUBE


def test_objects_is_snapshot_at_build_time(registry):
    registry.insert(CanvasObject(id="a", kind="cube"))
    ctx = CapabilityContext(registry)
    ctx.addObject({"kind": "cube"})
    assert [o.id for o in ctx.objects] == ["a"]
    assert len(registry) == 2


def test_update_and_delete_write_through(registry):
    registry.insert(CanvasObject(id="a", kind="cube", properties={"color": "#000"}))
    ctx = CapabilityContext(registry)
    assert ctx.updateObject("a", {"color": "#fff"})
    assert registry.get("a").properties["color"] == "#fff"
    assert not ctx.update_object("ghost", {"color": "#fff"})
    assert ctx.deleteObject("a")
    assert not ctx.delete_object("a")
    assert ctx.updated == ["a"]
    assert ctx.deleted == ["a"]
    assert len(registry) == 0


def test_context_exposes_no_registry_attribute(registry):
    ctx = CapabilityContext(registry)
    assert not hasattr(ctx, "registry")
    assert not hasattr(ctx, "__dict__")


def test_behaviors_cannot_rewrite_origin(registry):
    ctx = CapabilityContext(registry)
    object_id = ctx.addObject({"kind": "cube"})
    assert not ctx.updateObject(object_id, {"origin": None})
    assert registry.get(object_id).origin.provenance is Provenance.TOOL_GENERATED
    assert ctx.updated == []
