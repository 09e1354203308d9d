"""SceneCoordinator: assembles the canvas runtime and runs generation requests.

The coordinator owns the registries, the compiler and the gateway; nothing
here is a module-level singleton. Gateway calls run on a worker pool and
touch no shared state. ``poll()`` is called once per tick on the frame
thread and is the only place finished generations are applied to the
registries, one atomic insert or update each.

Requests are neither cancelled nor de-duplicated: a slow request issued
before a newer one is still applied when it finally completes.
"""

from __future__ import annotations

import logging
import random
from collections import deque
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, List, Mapping, Optional

from behavior.compiler import BehaviorCompiler
from config import BUILTIN_COLORS, GENERATION_WORKERS, HUD_REPORTS, PLACEHOLDER_COLOR, SPAWN_RANGE, TEXT_DEFAULT
from core.outcomes import FailureKind, RegistryResult, RegistryStatus, Report
from generation.gateway import (
    GenerationGateway,
    GenerationKind,
    GenerationOutcome,
    GenerationRequest,
    safe_generate,
)
from generation.prompts import modify_prompt, object_prompt, self_modify_prompt, tool_prompt, ui_prompt
from tools.registry import ToolCreation, ToolExecution, ToolRegistry
from world.canvas_object import CanvasObject, ObjectKind, Origin, Provenance, new_object_id
from world.context import CapabilityContext
from world.registry import ObjectRegistry

logger = logging.getLogger(__name__)


@dataclass
class PendingRequest:
    request: GenerationRequest
    future: Future
    apply: Callable[[GenerationOutcome], Any]
    label: str
    result: Any = None
    applied: bool = False

    @property
    def done(self) -> bool:
        return self.future.done()


@dataclass
class SynthesisResult:
    object_id: str
    placeholder: bool
    error: Optional[str] = None


@dataclass
class CoordinatorState:
    reports: Deque[Report] = field(default_factory=lambda: deque(maxlen=HUD_REPORTS))
    ui_panels: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


def random_position(rng: random.Random, spread: float = SPAWN_RANGE):
    return tuple(rng.uniform(-spread, spread) for _ in range(3))


def feature_tags(metadata: Mapping[str, Any]) -> tuple:
    """Origin tags from gateway metadata; anything but a list of features is ignored."""
    features = metadata.get("features")
    if isinstance(features, str):
        return (features,)
    if not isinstance(features, (list, tuple)):
        return ()
    return tuple(str(t) for t in features)


class SceneCoordinator:
    def __init__(
        self,
        gateway: GenerationGateway,
        *,
        registry: Optional[ObjectRegistry] = None,
        tools: Optional[ToolRegistry] = None,
        compiler: Optional[BehaviorCompiler] = None,
        executor: Optional[Executor] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.gateway = gateway
        self.compiler = compiler or BehaviorCompiler()
        self.registry = registry if registry is not None else ObjectRegistry()
        self.tools = tools if tools is not None else ToolRegistry(self.compiler)
        self._executor = executor or ThreadPoolExecutor(
            max_workers=GENERATION_WORKERS, thread_name_prefix="generation"
        )
        self._owns_executor = executor is None
        self._rng = rng or random.Random()
        self._pending: List[PendingRequest] = []
        self.state = CoordinatorState()

    # --------------------------- reporting -------------------------------
    @property
    def reports(self) -> Deque[Report]:
        return self.state.reports

    def report(self, level: str, message: str, failure: Optional[FailureKind] = None) -> None:
        self.state.reports.append(Report(level, message, failure))
        log = logger.warning if level != "info" else logger.info
        log(message)

    @property
    def pending(self) -> int:
        return sum(1 for p in self._pending if not p.applied)

    # --------------------------- manual insertion -------------------------
    def add_builtin(
        self,
        kind: ObjectKind,
        position=None,
        properties: Optional[Mapping[str, Any]] = None,
    ) -> RegistryResult:
        kind = ObjectKind.parse(kind)
        if not kind.builtin:
            raise ValueError("add_builtin takes cube, sphere or text")
        props = {"color": self._rng.choice(BUILTIN_COLORS)}
        if kind is ObjectKind.TEXT:
            props["text"] = TEXT_DEFAULT
        props.update(properties or {})
        obj = CanvasObject(
            id=new_object_id(),
            kind=kind,
            position=position if position is not None else random_position(self._rng),
            properties=props,
            origin=Origin(Provenance.MANUAL),
        )
        return self.registry.insert(obj)

    def delete_object(self, object_id: str) -> RegistryResult:
        result = self.registry.remove(object_id)
        if result.status is RegistryStatus.NOT_FOUND:
            self.report("warning", f"object {object_id} not found", FailureKind.NOT_FOUND)
        return result

    # --------------------------- generation -------------------------------
    def _submit(self, request: GenerationRequest, apply, label: str) -> PendingRequest:
        future = self._executor.submit(safe_generate, self.gateway, request)
        pending = PendingRequest(request, future, apply, label)
        self._pending.append(pending)
        logger.info("generation requested: %s", label)
        return pending

    def request_object(self, prompt: str, position=None) -> PendingRequest:
        request = GenerationRequest(GenerationKind.OBJECT, object_prompt(prompt))
        pos = position if position is not None else random_position(self._rng)
        return self._submit(
            request,
            lambda outcome: self.install_object(prompt, outcome, pos),
            f"object: {prompt}",
        )

    def request_tool(self, name: str, description: str) -> PendingRequest:
        request = GenerationRequest(GenerationKind.CODE, tool_prompt(description))
        return self._submit(
            request,
            lambda outcome: self._install_tool(name, description, outcome),
            f"tool: {name}",
        )

    def request_modification(self, object_id: str, instruction: str) -> Optional[PendingRequest]:
        obj = self.registry.get(object_id)
        if obj is None or not obj.synthesized:
            self.report("warning", f"object {object_id} has no behavior to modify", FailureKind.NOT_FOUND)
            return None
        request = GenerationRequest(
            GenerationKind.CODE,
            modify_prompt(instruction, obj.source),
            current_source=obj.source,
        )
        return self._submit(
            request,
            lambda outcome: self._apply_modification(object_id, instruction, outcome),
            f"modify {object_id}: {instruction}",
        )

    def request_ui(self, description: str) -> PendingRequest:
        request = GenerationRequest(GenerationKind.UI, ui_prompt(description))
        return self._submit(request, self._apply_ui, f"ui: {description}")

    def request_self_improvement(self, note: str = "") -> PendingRequest:
        request = GenerationRequest(GenerationKind.SELF_MODIFY, self_modify_prompt(note))
        return self._submit(request, self._apply_suggestions, "self-improvement")

    def poll(self) -> int:
        """Apply every finished request; returns how many were applied."""
        applied = 0
        still_pending: List[PendingRequest] = []
        for pending in self._pending:
            if not pending.done:
                still_pending.append(pending)
                continue
            try:
                outcome = pending.future.result()
            except Exception as e:  # safe_generate already contains gateway errors
                outcome = GenerationOutcome.failure(f"{type(e).__name__}: {e}")
            # consumed even if applying fails, so it never runs twice
            pending.applied = True
            applied += 1
            try:
                pending.result = pending.apply(outcome)
            except Exception as e:
                logger.exception("applying %s failed", pending.label)
                self.report("error", f"{pending.label}: {type(e).__name__}: {e}", FailureKind.GENERATION)
        self._pending = still_pending
        return applied

    # --------------------------- appliers ---------------------------------
    def install_object(self, prompt: str, outcome: GenerationOutcome, position=None) -> SynthesisResult:
        """Insert a synthesized object, or a placeholder if the text is unusable."""
        pos = position if position is not None else random_position(self._rng)
        tags = feature_tags(outcome.metadata)
        if not outcome.usable:
            self.report("error", f"generation failed for '{prompt}': {outcome.reason}", FailureKind.GENERATION)
            return self._insert_placeholder(prompt, pos, outcome.reason, tags)

        entry = outcome.metadata.get("entry_point")
        compiled = self.compiler.compile_object(outcome.source_text or "", entry_point=entry)
        if not compiled.ok:
            self.report("error", f"behavior for '{prompt}' did not compile: {compiled}", FailureKind.COMPILE)
            return self._insert_placeholder(prompt, pos, str(compiled), tags)

        obj = CanvasObject(
            id=new_object_id("ai_obj"),
            kind=ObjectKind.SYNTHESIZED,
            position=pos,
            properties={"prompt": prompt},
            source=outcome.source_text,
            origin=Origin(Provenance.SYNTHESIZED, prompt, tags),
            entry_point=compiled.entry_point,
        )
        self.registry.add(obj)
        self.report("info", f"created {compiled.entry_point} for '{prompt}'")
        return SynthesisResult(obj.id, placeholder=False)

    def _insert_placeholder(self, prompt: str, pos, error: str, tags=()) -> SynthesisResult:
        obj = CanvasObject(
            id=new_object_id("ai_obj"),
            kind=ObjectKind.CUBE,
            position=pos,
            properties={"color": PLACEHOLDER_COLOR, "prompt": prompt, "error": error[:200]},
            origin=Origin(Provenance.SYNTHESIZED, prompt, tags + ("placeholder",)),
        )
        self.registry.add(obj)
        return SynthesisResult(obj.id, placeholder=True, error=error)

    def _install_tool(self, name: str, description: str, outcome: GenerationOutcome) -> ToolCreation:
        creation = self.tools.install(name, description, outcome)
        if creation.ok:
            self.report("info", f"tool '{name}' ready")
        else:
            self.report("error", f"tool '{name}': {creation.error}", FailureKind.GENERATION)
        return creation

    def _apply_modification(self, object_id: str, instruction: str, outcome: GenerationOutcome) -> RegistryResult:
        if not outcome.usable:
            self.report("error", f"modification of {object_id} failed: {outcome.reason}", FailureKind.GENERATION)
            return RegistryResult(RegistryStatus.INVALID, object_id, outcome.reason)
        entry = outcome.metadata.get("entry_point")
        compiled = self.compiler.compile_object(outcome.source_text or "", entry_point=entry)
        if not compiled.ok:
            self.report("error", f"modified behavior did not compile: {compiled}", FailureKind.COMPILE)
            return RegistryResult(RegistryStatus.INVALID, object_id, str(compiled))
        result = self.registry.update(
            object_id,
            {"source": outcome.source_text, "entry_point": compiled.entry_point},
        )
        if result.status is RegistryStatus.NOT_FOUND:
            # deleted while the request was in flight
            self.report("warning", f"object {object_id} was removed before its update arrived", FailureKind.NOT_FOUND)
        elif result:
            self.report("info", f"modified {object_id}: {instruction}")
        return result

    def _apply_ui(self, outcome: GenerationOutcome) -> Optional[str]:
        if not outcome.usable:
            self.report("error", f"ui generation failed: {outcome.reason}", FailureKind.GENERATION)
            return None
        self.state.ui_panels.append(outcome.source_text or "")
        return outcome.source_text

    def _apply_suggestions(self, outcome: GenerationOutcome) -> List[str]:
        if not outcome.usable:
            self.report("error", f"self-improvement failed: {outcome.reason}", FailureKind.GENERATION)
            return []
        items = outcome.metadata.get("improvements")
        if not isinstance(items, (list, tuple)) or not items:
            items = [
                line.lstrip("-* ").strip() for line in (outcome.source_text or "").splitlines() if line.strip()
            ]
        self.state.suggestions = [str(item) for item in items]
        return self.state.suggestions

    # --------------------------- tools ------------------------------------
    def execute_tool(self, tool_id: str, parameters: Optional[Mapping[str, Any]] = None) -> ToolExecution:
        tool = self.tools.get(tool_id)
        origin = Origin(Provenance.TOOL_GENERATED, tool.description if tool else None, (tool.name,) if tool else ())
        context = CapabilityContext(self.registry, origin=origin)
        execution = self.tools.execute_tool(tool_id, context, parameters)
        if execution.ok:
            self.report("info", f"tool {tool.name if tool else tool_id} ran: +{len(context.added)} objects")
        else:
            self.report("error", f"tool {tool_id}: {execution.error}", execution.failure)
        return execution

    def delete_tool(self, tool_id: str) -> bool:
        return self.tools.delete_tool(tool_id)

    def shutdown(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
