"""Prompt templates for the generation service.

Generated text is Python evaluated by ``behavior.sandbox``; the prompts
describe exactly that subset so the model has a fair chance of staying
inside it.
"""

from __future__ import annotations

from typing import Optional

SYSTEM_PROMPT = """You write small Python behaviors for a live 3D canvas.

Rules for every answer:
- Reply with ONE fenced ```python block and nothing else.
- The first line of the block is a comment naming the entry point: # entry: Name
- No import statements, no classes, no names or attributes starting with "_".
- Available names: math, random, Vector3, Cube, Sphere, Text, Fragment, color.
  Cube(size=1.0, position=(x, y, z), rotation=(rx, ry, rz), color="#rrggbb")
  Sphere(radius=0.5, position=..., color=...)
  Text(text="...", font_size=0.5, position=..., color=...)
  Fragment(*shapes, on_frame=callback) groups shapes; fragment.rotate(dx, dy, dz),
  fragment.move(dx, dy, dz), fragment.position / .rotation / .scale are mutable.
- Angles are radians. Units are roughly one meter; keep objects within 3 units of
  the origin of the fragment.
"""

OBJECT_PROMPT = """Create a 3D object for this request: {prompt}

Define a zero-argument function that builds and returns a Fragment. If the object
animates, give the Fragment an on_frame(fragment, dt, elapsed) callback that
updates it incrementally each frame (dt and elapsed are seconds).

Example:
```python
# entry: SpinningCube
def SpinningCube():
    def spin(fragment, dt, elapsed):
        fragment.rotate(dt * 0.6, dt * 1.2, 0)
        fragment.position.y = math.sin(elapsed) * 0.5
    return Fragment(Cube(size=1.0, color="#33ccff"), on_frame=spin)
```
"""

TOOL_PROMPT = """Create a reusable tool that {description}

Define `def executeTool(context, parameters):`.
- context.objects is a read-only tuple of the current scene objects; each has
  .id, .kind.value ("cube", "sphere", "text", "synthesized"), .position (x, y, z)
  and .properties (a mapping).
- context.addObject({{"kind": "cube"|"sphere"|"text", "position": [x, y, z],
  "properties": {{"color": "#rrggbb", "text": "...", "size": 1.0}}}}) returns the new id.
- context.updateObject(id, {{"position": [x, y, z], "color": "#rrggbb"}}) returns True/False.
- context.deleteObject(id) returns True/False.
- parameters is a dict (possibly empty).
Return a dict such as {{"success": True, "message": "..."}}.
"""

MODIFY_PROMPT = """Here is the current behavior source:

```python
{current_source}
```

Rewrite it so that: {prompt}
Keep the same kind of entry point (object factory or executeTool).
"""

UI_PROMPT = """Describe a small control panel for: {prompt}
Reply with a short plain-text list of labelled actions, one per line."""

SELF_MODIFY_PROMPT = """You are improving a live 3D canvas that grows new objects and tools
from natural language. Suggest up to five concrete improvements as a plain-text list.
{prompt}"""


def object_prompt(prompt: str) -> str:
    return OBJECT_PROMPT.format(prompt=prompt.strip())


def tool_prompt(description: str) -> str:
    return TOOL_PROMPT.format(description=description.strip())


def modify_prompt(prompt: str, current_source: Optional[str]) -> str:
    return MODIFY_PROMPT.format(prompt=prompt.strip(), current_source=(current_source or "").strip())


def ui_prompt(prompt: str) -> str:
    return UI_PROMPT.format(prompt=prompt.strip())


def self_modify_prompt(prompt: str = "") -> str:
    return SELF_MODIFY_PROMPT.format(prompt=prompt.strip())
