"""ToolRegistry: named, reusable behaviors invoked on demand.

Tools are immutable. "Modifying" a tool derives a new record with a new id
and leaves the original alone. Invocation failures are caught here and
reported as ``ToolExecution`` results; they never reach the caller as
exceptions.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple

from behavior.compiler import BehaviorCompiler
from core.outcomes import FailureKind
from generation.gateway import (
    GenerationGateway,
    GenerationKind,
    GenerationOutcome,
    GenerationRequest,
    safe_generate,
)
from generation.prompts import modify_prompt, tool_prompt

if TYPE_CHECKING:
    from world.context import CapabilityContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tool:
    id: str
    name: str
    description: str
    source: str
    created_at: float
    parameters: Mapping[str, Any] = field(default_factory=dict)
    entry_point: Optional[str] = None
    derived_from: Optional[str] = None


@dataclass(frozen=True)
class ToolCreation:
    tool: Optional[Tool] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.tool is not None


class ExecutionStatus(Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    COMPILE_FAILED = "compile_failed"
    INVOCATION_FAILED = "invocation_failed"


@dataclass(frozen=True)
class ToolExecution:
    status: ExecutionStatus
    tool_id: str
    result: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is ExecutionStatus.OK

    @property
    def failure(self) -> Optional[FailureKind]:
        return {
            ExecutionStatus.NOT_FOUND: FailureKind.NOT_FOUND,
            ExecutionStatus.COMPILE_FAILED: FailureKind.COMPILE,
            ExecutionStatus.INVOCATION_FAILED: FailureKind.INVOCATION,
        }.get(self.status)


def new_tool_id() -> str:
    return f"tool_{uuid.uuid4().hex[:12]}"


class ToolRegistry:
    def __init__(self, compiler: Optional[BehaviorCompiler] = None) -> None:
        self.compiler = compiler or BehaviorCompiler()
        self._tools: Dict[str, Tool] = {}

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._tools

    def get(self, tool_id: str) -> Optional[Tool]:
        return self._tools.get(tool_id)

    def list(self) -> Tuple[Tool, ...]:
        return tuple(self._tools.values())

    def find(self, name: str) -> List[Tool]:
        return [t for t in self._tools.values() if t.name == name]

    # ------------------------------------------------------------------
    def create_tool(self, name: str, description: str, gateway: GenerationGateway) -> ToolCreation:
        """Generate source for ``description`` and install it as a new tool."""
        logger.info("Creating tool: %s - %s", name, description)
        request = GenerationRequest(GenerationKind.CODE, tool_prompt(description))
        outcome = safe_generate(gateway, request)
        return self.install(name, description, outcome)

    def derive_tool(self, tool_id: str, instruction: str, gateway: GenerationGateway) -> ToolCreation:
        """Create a new tool from an existing one's source plus ``instruction``."""
        base = self._tools.get(tool_id)
        if base is None:
            return ToolCreation(error=f"tool {tool_id} not found")
        request = GenerationRequest(
            GenerationKind.CODE,
            modify_prompt(instruction, base.source),
            current_source=base.source,
        )
        outcome = safe_generate(gateway, request)
        description = f"{base.description} ({instruction.strip()})"
        return self.install(base.name, description, outcome, derived_from=base.id)

    def install(
        self,
        name: str,
        description: str,
        outcome: GenerationOutcome,
        *,
        derived_from: Optional[str] = None,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> ToolCreation:
        if not outcome.usable:
            logger.warning("Tool %s not created: %s", name, outcome.reason)
            return ToolCreation(error=f"failed to create tool: {outcome.reason}")
        tool = Tool(
            id=new_tool_id(),
            name=name,
            description=description,
            source=outcome.source_text or "",
            created_at=time.time(),
            parameters=dict(parameters or {}),
            entry_point=outcome.metadata.get("entry_point"),
            derived_from=derived_from,
        )
        self._tools[tool.id] = tool
        logger.info("Tool created: %s (%s)", tool.name, tool.id)
        return ToolCreation(tool=tool)

    def execute_tool(
        self,
        tool_id: str,
        context: CapabilityContext,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> ToolExecution:
        tool = self._tools.get(tool_id)
        if tool is None:
            return ToolExecution(ExecutionStatus.NOT_FOUND, tool_id, error=f"tool {tool_id} not found")

        compiled = self.compiler.compile_tool(tool.source, entry_point=tool.entry_point)
        if not compiled.ok:
            logger.warning("Tool %s failed to compile: %s", tool.name, compiled)
            return ToolExecution(ExecutionStatus.COMPILE_FAILED, tool_id, error=str(compiled))

        params = dict(tool.parameters)
        params.update(parameters or {})
        try:
            result = compiled(context, params)
        except Exception as e:
            # mutations made before the failure stay in the registry
            logger.warning("Tool execution error in %s: %s: %s", tool.name, type(e).__name__, e)
            return ToolExecution(
                ExecutionStatus.INVOCATION_FAILED,
                tool_id,
                error=f"{type(e).__name__}: {e}",
            )
        logger.info("Tool %s executed: %r", tool.name, result)
        return ToolExecution(ExecutionStatus.OK, tool_id, result=result)

    def delete_tool(self, tool_id: str) -> bool:
        removed = self._tools.pop(tool_id, None)
        if removed is not None:
            logger.info("Tool deleted: %s (%s)", removed.name, tool_id)
        return removed is not None

