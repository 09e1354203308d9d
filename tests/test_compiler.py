import pytest

from behavior.compiler import (
    BehaviorCompiler,
    BehaviorKind,
    FailureReason,
    find_entry_point,
    strip_code_fences,
)
from behavior.primitives import Cube, Fragment

from conftest import GLOW_SOURCE, SPHERE_TOOL_SOURCE


@pytest.fixture
def compiler():
    return BehaviorCompiler()


def test_compiles_object_factory(compiler):
    compiled = compiler.compile_object(GLOW_SOURCE)
    assert compiled.ok
    assert compiled.entry_point == "Glow"
    assert compiled.kind is BehaviorKind.OBJECT
    fragment = compiled()
    assert isinstance(fragment, Fragment)
    assert isinstance(fragment.shapes[0], Cube)
    assert callable(fragment.on_frame)


def test_source_without_declaration_fails(compiler):
    result = compiler.compile_object("x + 1\n")
    assert not result.ok
    assert result.reason is FailureReason.NO_ENTRY_POINT


def test_empty_source_fails(compiler):
    assert compiler.compile_object("   \n").reason is FailureReason.EMPTY
    assert compiler.compile_object(None).reason is FailureReason.EMPTY


def test_constant_assignment_is_not_callable(compiler):
    result = compiler.compile_object("speed = 3\n")
    assert result.reason is FailureReason.NOT_CALLABLE
    assert result.entry_point == "speed"


def test_lambda_assignment_preferred_over_constants():
    source = "speed = 2\nGlow = lambda: Fragment()\n"
    assert find_entry_point(source) == "Glow"
    assert BehaviorCompiler().compile_object(source).ok


def test_code_fences_are_stripped(compiler):
    text = "Here you go:\n```python\ndef A():\n    return Fragment()\n```\nEnjoy!"
    assert strip_code_fences(text).startswith("def A()")
    compiled = compiler.compile_object(text)
    assert compiled.ok
    assert compiled.entry_point == "A"


def test_entry_marker_wins_over_first_def(compiler):
    source = "# entry: Main\ndef helper():\n    return 1\n\ndef Main():\n    return Fragment()\n"
    compiled = compiler.compile_object(source)
    assert compiled.entry_point == "Main"


def test_explicit_entry_point_overrides_patterns(compiler):
    source = "def First():\n    return Fragment()\n\ndef Second():\n    return Fragment(Cube())\n"
    compiled = compiler.compile_object(source, entry_point="Second")
    assert compiled.entry_point == "Second"
    assert len(compiled().shapes) == 1


def test_tool_entry_names_are_preferred(compiler):
    source = "def helper(a, b):\n    return a\n\n" + SPHERE_TOOL_SOURCE
    compiled = compiler.compile_tool(source)
    assert compiled.ok
    assert compiled.entry_point == "executeTool"


@pytest.mark.parametrize(
    "source",
    [
        "import os\ndef A():\n    return Fragment()\n",
        "from os import path\ndef A():\n    return Fragment()\n",
        "def A():\n    return open('secrets.txt')\n",
        "def A():\n    return ().__class__\n",
        "def A():\n    return __import__('os')\n",
        "class Thing:\n    pass\n\ndef A():\n    return Fragment()\n",
        "def A():\n    return eval('1')\n",
        (
            "def A():\n"
            "    def walk():\n"
            "        yield gen.gi_frame.f_back.f_back.f_globals\n"
            "    gen = walk()\n"
            "    g = next(gen)\n"
            "    return g['__builtins__']['__import__']('os')\n"
        ),
        "def A(ns={}):\n    return ns['__builtins__']\n",
    ],
)
def test_sandbox_rejects_escapes(compiler, source):
    result = compiler.compile_object(source)
    assert not result.ok
    assert result.reason is FailureReason.FORBIDDEN


def test_tool_cannot_walk_generator_frames(compiler):
    source = (
        "def executeTool(context, parameters):\n"
        "    def frames():\n"
        "        yield gen.gi_frame\n"
        "    gen = frames()\n"
        "    outer = next(gen).f_back\n"
        "    return outer.f_globals\n"
    )
    result = compiler.compile_tool(source)
    assert result.reason is FailureReason.FORBIDDEN
    assert "gi_frame" in result.message


def test_syntax_error_reported(compiler):
    result = compiler.compile_object("def A(:\n    pass\n")
    assert result.reason is FailureReason.SYNTAX
    assert "line" in result.message


def test_module_level_error_reported(compiler):
    result = compiler.compile_object("raise ValueError('boom')\n\ndef A():\n    return Fragment()\n")
    assert result.reason is FailureReason.EVALUATION
    assert "boom" in str(result)


def test_signature_checked_per_kind(compiler):
    assert compiler.compile_object("def A(x):\n    return x\n").reason is FailureReason.SIGNATURE
    assert compiler.compile_tool("def executeTool(context):\n    return 1\n").reason is FailureReason.SIGNATURE


def test_compiles_are_isolated(compiler):
    first = compiler.compile_object("counter = [0]\ndef A():\n    counter[0] += 1\n    return Fragment()\n", entry_point="A")
    second = compiler.compile_object("def B():\n    return counter\n")
    assert first.ok and second.ok
    first()
    with pytest.raises(NameError):
        second()


def test_builtins_are_whitelisted(compiler):
    compiled = compiler.compile_object("def A():\n    return hasattr(1, 'real')\n")
    assert compiled.ok
    with pytest.raises(NameError):
        compiled()


def test_failure_string_names_reason(compiler):
    result = compiler.compile_object("import os\ndef A():\n    pass\n")
    assert str(result).startswith("forbidden (A)")
