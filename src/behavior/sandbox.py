"""Capability-restricted evaluation for generated behavior text.

Generated source is parsed, checked against a small set of AST rules and
executed with a whitelisted ``__builtins__`` plus the primitive vocabulary.
The only way a behavior can touch the scene is through the arguments it is
handed (a ``CapabilityContext`` for tools, its own ``Fragment`` for
objects). This keeps honest-but-sloppy generated code inside a narrow
surface; it is not hardened against a determined attacker.
"""

from __future__ import annotations

import ast
import logging
import math
import random
from typing import Any, Dict

from pygame.math import Vector3

from behavior.primitives import Cube, Fragment, Sphere, Text, parse_color

logger = logging.getLogger("behavior.generated")

FORBIDDEN_NAMES = frozenset(
    {
        "eval",
        "exec",
        "compile",
        "open",
        "getattr",
        "setattr",
        "delattr",
        "globals",
        "locals",
        "vars",
        "input",
        "breakpoint",
        "help",
        "memoryview",
        "type",
        "object",
        "super",
    }
)


# frame, code and traceback introspection reaches the host's real globals
FORBIDDEN_ATTRIBUTES = frozenset(
    {
        "gi_frame",
        "gi_code",
        "gi_yieldfrom",
        "cr_frame",
        "cr_code",
        "cr_await",
        "ag_frame",
        "ag_code",
        "f_back",
        "f_globals",
        "f_locals",
        "f_builtins",
        "f_code",
        "tb_frame",
        "tb_next",
        "co_consts",
    }
)


class SandboxViolation(Exception):
    def __init__(self, message: str, lineno: int | None = None):
        super().__init__(message)
        self.lineno = lineno


class _Validator(ast.NodeVisitor):
    def _reject(self, node: ast.AST, what: str) -> None:
        raise SandboxViolation(what, getattr(node, "lineno", None))

    def visit_Import(self, node: ast.Import) -> None:
        self._reject(node, "import statements are not available")

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        self._reject(node, "import statements are not available")

    def visit_Global(self, node: ast.Global) -> None:
        self._reject(node, "global declarations are not available")

    def visit_Nonlocal(self, node: ast.Nonlocal) -> None:
        self._reject(node, "nonlocal declarations are not available")

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self._reject(node, "class definitions are not available")

    def visit_Attribute(self, node: ast.Attribute) -> None:
        if node.attr.startswith("_"):
            self._reject(node, f"private attribute access: .{node.attr}")
        if node.attr in FORBIDDEN_ATTRIBUTES:
            self._reject(node, f"introspection attribute: .{node.attr}")
        self.generic_visit(node)

    def visit_Subscript(self, node: ast.Subscript) -> None:
        key = node.slice
        if isinstance(key, ast.Constant) and isinstance(key.value, str) and key.value.startswith("__"):
            self._reject(node, f"dunder key lookup: [{key.value!r}]")
        self.generic_visit(node)

    def visit_Name(self, node: ast.Name) -> None:
        if node.id.startswith("__"):
            self._reject(node, f"dunder name: {node.id}")
        if node.id in FORBIDDEN_NAMES:
            self._reject(node, f"forbidden name: {node.id}")

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        if node.name.startswith("__"):
            self._reject(node, f"dunder function: {node.name}")
        self.generic_visit(node)

    visit_AsyncFunctionDef = visit_FunctionDef  # type: ignore[assignment]


def validate(tree: ast.AST) -> None:
    """Raise ``SandboxViolation`` if ``tree`` steps outside the allowed subset."""
    _Validator().visit(tree)


def _behavior_print(*args: Any, **_kw: Any) -> None:
    logger.info(" ".join(str(a) for a in args))


SAFE_BUILTINS: Dict[str, Any] = {
    "abs": abs,
    "all": all,
    "any": any,
    "bool": bool,
    "dict": dict,
    "divmod": divmod,
    "enumerate": enumerate,
    "filter": filter,
    "float": float,
    "int": int,
    "isinstance": isinstance,
    "len": len,
    "list": list,
    "map": map,
    "max": max,
    "min": min,
    "pow": pow,
    "range": range,
    "reversed": reversed,
    "round": round,
    "set": set,
    "sorted": sorted,
    "str": str,
    "sum": sum,
    "tuple": tuple,
    "zip": zip,
    "print": _behavior_print,
    "Exception": Exception,
    "ValueError": ValueError,
    "TypeError": TypeError,
    "KeyError": KeyError,
    "IndexError": IndexError,
}


def build_namespace() -> Dict[str, Any]:
    """Fresh globals for one evaluation; nothing is shared between compiles."""
    return {
        "__builtins__": dict(SAFE_BUILTINS),
        "__name__": "behavior",
        "math": math,
        "random": random,
        "Vector3": Vector3,
        "Cube": Cube,
        "Sphere": Sphere,
        "Text": Text,
        "Fragment": Fragment,
        "color": parse_color,
    }
