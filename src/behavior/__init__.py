"""Behavior package: compiling generated text into scene behavior.

    from behavior import BehaviorCompiler, Fragment, Cube
"""

from .compiler import (
    BehaviorCompiler,
    BehaviorKind,
    CompiledBehavior,
    CompileFailure,
    FailureReason,
    find_entry_point,
)
from .primitives import Cube, Fragment, Shape, Sphere, Text, parse_color, placeholder_fragment

__all__ = [
    "BehaviorCompiler",
    "BehaviorKind",
    "CompiledBehavior",
    "CompileFailure",
    "FailureReason",
    "find_entry_point",
    "Cube",
    "Fragment",
    "Shape",
    "Sphere",
    "Text",
    "parse_color",
    "placeholder_fragment",
]
