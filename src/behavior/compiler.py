"""BehaviorCompiler: turn generated source text into a callable or a failure.

Entry-point discovery, in order:

1. an explicit name supplied by the generation service (``entry_point``),
2. a function definition (``def Name(``), preferring well-known names for
   the requested behavior kind,
3. a callable-value assignment (``Name = lambda ...``).

The text is then validated and evaluated in an isolated namespace (see
``behavior.sandbox``) and the bound name is looked up. Every problem is
reported as a ``CompileFailure``; ``compile_*`` never raises on bad input.

Nothing is cached here. The frame driver keeps the resolved callable next to
the record it belongs to.
"""

from __future__ import annotations

import ast
import inspect
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Sequence, Union

from behavior.sandbox import SandboxViolation, build_namespace, validate

logger = logging.getLogger(__name__)

_IDENT = r"[A-Za-z_][A-Za-z0-9_]*"
_DEF_PATTERN = re.compile(rf"^def\s+({_IDENT})\s*\(", re.M)
_LAMBDA_PATTERN = re.compile(rf"^({_IDENT})\s*=\s*lambda\b", re.M)
_ASSIGN_PATTERN = re.compile(rf"^({_IDENT})\s*(?::[^=\n]+)?=(?!=)\s*\S", re.M)
_FENCE_PATTERN = re.compile(r"```[A-Za-z0-9_+-]*[ \t]*\n(.*?)```", re.S)
_ENTRY_MARKER = re.compile(rf"^#\s*entry\s*:\s*({_IDENT})\s*$", re.M | re.I)

TOOL_ENTRY_NAMES = ("executeTool", "execute_tool", "run_tool")


class BehaviorKind(Enum):
    OBJECT = "object"  # () -> Fragment
    TOOL = "tool"  # (context, parameters) -> result


class FailureReason(Enum):
    EMPTY = "empty"
    NO_ENTRY_POINT = "no_entry_point"
    SYNTAX = "syntax"
    FORBIDDEN = "forbidden"
    EVALUATION = "evaluation"
    NOT_CALLABLE = "not_callable"
    SIGNATURE = "signature"


@dataclass(frozen=True)
class CompileFailure:
    reason: FailureReason
    message: str
    entry_point: Optional[str] = None
    ok = False

    def __str__(self) -> str:
        where = f" ({self.entry_point})" if self.entry_point else ""
        return f"{self.reason.value}{where}: {self.message}"


@dataclass(frozen=True)
class CompiledBehavior:
    entry_point: str
    kind: BehaviorKind
    fn: Callable[..., Any]
    ok = True

    def __call__(self, *args: Any) -> Any:
        return self.fn(*args)


CompileResult = Union[CompiledBehavior, CompileFailure]


def strip_code_fences(text: str) -> str:
    """Return the body of the first fenced block, or ``text`` unchanged."""
    m = _FENCE_PATTERN.search(text)
    return m.group(1) if m else text


def find_entry_point(source: str, preferred: Sequence[str] = ()) -> Optional[str]:
    """Locate the callable a source text resolves to, by pattern alone."""
    marker = _ENTRY_MARKER.search(source)
    if marker:
        return marker.group(1)
    defs = _DEF_PATTERN.findall(source)
    for name in preferred:
        if name in defs:
            return name
    if defs:
        return defs[0]
    assigns = _LAMBDA_PATTERN.findall(source) + _ASSIGN_PATTERN.findall(source)
    for name in preferred:
        if name in assigns:
            return name
    if assigns:
        return assigns[0]
    return None


def _accepts(fn: Callable[..., Any], argc: int) -> bool:
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        # builtins without introspectable signatures; let the call decide
        return True
    try:
        sig.bind(*([None] * argc))
    except TypeError:
        return False
    return True


class BehaviorCompiler:
    def compile_object(self, source: str, entry_point: Optional[str] = None) -> CompileResult:
        return self.compile(source, BehaviorKind.OBJECT, entry_point=entry_point)

    def compile_tool(self, source: str, entry_point: Optional[str] = None) -> CompileResult:
        return self.compile(source, BehaviorKind.TOOL, entry_point=entry_point)

    def compile(
        self,
        source: Optional[str],
        kind: BehaviorKind,
        *,
        entry_point: Optional[str] = None,
    ) -> CompileResult:
        text = strip_code_fences(source or "")
        if not text.strip():
            return CompileFailure(FailureReason.EMPTY, "source text is empty")

        preferred = TOOL_ENTRY_NAMES if kind is BehaviorKind.TOOL else ()
        name = entry_point or find_entry_point(text, preferred)
        if not name:
            return self._fail(FailureReason.NO_ENTRY_POINT, "no function definition or callable assignment found")

        try:
            tree = ast.parse(text, filename=f"<behavior:{name}>", mode="exec")
        except SyntaxError as e:
            return self._fail(FailureReason.SYNTAX, f"line {e.lineno}: {e.msg}", name)

        try:
            validate(tree)
        except SandboxViolation as e:
            where = f"line {e.lineno}: " if e.lineno else ""
            return self._fail(FailureReason.FORBIDDEN, f"{where}{e}", name)

        namespace = build_namespace()
        try:
            exec(compile(tree, f"<behavior:{name}>", "exec"), namespace)
        except Exception as e:
            return self._fail(FailureReason.EVALUATION, f"{type(e).__name__}: {e}", name)

        if name not in namespace:
            return self._fail(FailureReason.NO_ENTRY_POINT, f"{name} is not bound after evaluation", name)
        fn = namespace[name]
        if not callable(fn):
            return self._fail(FailureReason.NOT_CALLABLE, f"{name} is a {type(fn).__name__}", name)

        argc = 2 if kind is BehaviorKind.TOOL else 0
        if not _accepts(fn, argc):
            expected = "(context, parameters)" if argc == 2 else "()"
            return self._fail(FailureReason.SIGNATURE, f"{name} must accept {expected}", name)

        logger.debug("compiled %s behavior %s", kind.value, name)
        return CompiledBehavior(entry_point=name, kind=kind, fn=fn)

    @staticmethod
    def _fail(reason: FailureReason, message: str, name: Optional[str] = None) -> CompileFailure:
        failure = CompileFailure(reason, message, name)
        logger.info("compile failed: %s", failure)
        return failure
