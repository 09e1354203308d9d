"""Generation gateway: the boundary to the external text-generation service.

``GenerationGateway`` is the only interface the rest of the program needs:
``generate(request) -> GenerationOutcome``. Transport problems never escape
as exceptions; they come back as ``success=False`` outcomes.

Two implementations ship:

- ``AnthropicGateway`` talks to the Anthropic Messages API with exponential
  backoff on rate limits and timeouts.
- ``OfflineGateway`` returns canned behaviors so the canvas runs without
  credentials or network.
"""

from __future__ import annotations

import logging
import random
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol

import anthropic

from behavior.compiler import strip_code_fences
from config import (
    GENERATION_BASE_DELAY,
    GENERATION_MAX_RETRIES,
    GENERATION_MAX_TOKENS,
    GENERATION_MODEL,
)
from generation.prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)

_ENTRY_MARKER = re.compile(r"^#\s*entry\s*:\s*([A-Za-z_][A-Za-z0-9_]*)\s*$", re.M | re.I)

PLAIN_SYSTEM_PROMPT = "You help design a live 3D canvas application. Answer briefly in plain text."


class GenerationKind(Enum):
    OBJECT = "object"
    CODE = "code"
    UI = "ui"
    SELF_MODIFY = "self-modify"


@dataclass(frozen=True)
class GenerationRequest:
    kind: GenerationKind
    prompt: str
    current_source: Optional[str] = None


@dataclass(frozen=True)
class GenerationOutcome:
    success: bool
    source_text: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def usable(self) -> bool:
        """A success with blank text counts as a failure."""
        return self.success and bool((self.source_text or "").strip())

    @property
    def reason(self) -> str:
        if self.usable:
            return "ok"
        if self.success:
            return "service returned empty text"
        return self.error or "generation failed"

    @classmethod
    def failure(cls, error: str, **metadata: Any) -> "GenerationOutcome":
        return cls(success=False, error=error, metadata=dict(metadata))


class GenerationGateway(Protocol):
    def generate(self, request: GenerationRequest) -> GenerationOutcome: ...  # noqa: D401


def safe_generate(gateway: GenerationGateway, request: GenerationRequest) -> GenerationOutcome:
    """Call ``gateway`` and turn any exception into a failure outcome."""
    try:
        return gateway.generate(request)
    except Exception as e:
        logger.exception("generation gateway raised")
        return GenerationOutcome.failure(f"{type(e).__name__}: {e}", kind=request.kind.value)


def extract_entry_point(text: str) -> Optional[str]:
    m = _ENTRY_MARKER.search(text or "")
    return m.group(1) if m else None


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------
class AnthropicGateway:
    def __init__(
        self,
        api_key: str,
        *,
        model: str = GENERATION_MODEL,
        max_tokens: int = GENERATION_MAX_TOKENS,
        max_retries: int = GENERATION_MAX_RETRIES,
        base_delay: float = GENERATION_BASE_DELAY,
        client: Optional[Any] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.max_retries = max_retries
        self.base_delay = base_delay
        # SDK retries are disabled; backoff is handled here so it is logged
        self.client = client or anthropic.Anthropic(api_key=api_key, max_retries=0)
        self._sleep = sleep

    def generate(self, request: GenerationRequest) -> GenerationOutcome:
        code_kind = request.kind in (GenerationKind.OBJECT, GenerationKind.CODE)
        system = SYSTEM_PROMPT if code_kind else PLAIN_SYSTEM_PROMPT
        messages = [{"role": "user", "content": request.prompt}]
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries):
            try:
                logger.debug(
                    "generation call (attempt %d): kind=%s, prompt %d chars",
                    attempt + 1,
                    request.kind.value,
                    len(request.prompt),
                )
                response = self.client.messages.create(
                    model=self.model,
                    max_tokens=self.max_tokens,
                    system=system,
                    messages=messages,
                )
                text = "".join(
                    getattr(block, "text", "") for block in response.content if getattr(block, "type", "text") == "text"
                )
                logger.debug("generation response: %d chars", len(text))
                if code_kind:
                    text = strip_code_fences(text)
                metadata: Dict[str, Any] = {"kind": request.kind.value, "model": self.model}
                entry = extract_entry_point(text)
                if entry:
                    metadata["entry_point"] = entry
                return GenerationOutcome(success=True, source_text=text, metadata=metadata)

            except anthropic.RateLimitError as e:
                last_error = e
                delay = self.base_delay * (2**attempt)
                logger.warning("Rate limited, retrying in %.1fs (attempt %d)", delay, attempt + 1)
                self._sleep(delay)

            except (anthropic.APITimeoutError, anthropic.APIConnectionError) as e:
                last_error = e
                delay = self.base_delay * (2**attempt)
                logger.warning("Generation transport error, retrying in %.1fs (attempt %d)", delay, attempt + 1)
                self._sleep(delay)

            except anthropic.APIError as e:
                last_error = e
                logger.error("Generation API error: %s", e)
                break

        return GenerationOutcome.failure(
            f"generation failed after {self.max_retries} attempts: {last_error}",
            kind=request.kind.value,
        )


# ---------------------------------------------------------------------------
# Offline
# ---------------------------------------------------------------------------
_REWRITE_LINE = re.compile(r"^Rewrite it so that:\s*(.+)$", re.M)

_OFFLINE_OBJECT = '''# entry: {name}
def {name}():
    def animate(fragment, dt, elapsed):
        fragment.rotate({rx} * dt, {ry} * dt, 0)
        fragment.position.y = math.sin(elapsed * 0.6) * 0.5
    return Fragment(
        Cube(size=1.0, color="{color}"),
        Sphere(radius=0.25, position=(0, 0.9, 0), color="#ffffff"),
        on_frame=animate,
    )
'''

_OFFLINE_TOOL = '''# entry: executeTool
def executeTool(context, parameters):
    count = int(parameters.get("count", 1))
    for i in range(count):
        context.addObject({
            "kind": "sphere",
            "position": [random.uniform(-8, 8), random.uniform(-3, 3), random.uniform(-8, 8)],
            "properties": {"color": parameters.get("color", "#ffff00")},
        })
    return {"success": True, "message": "added %d sphere(s)" % count}
'''


def _instruction(prompt: str) -> str:
    """Single-line instruction out of a modify prompt."""
    m = _REWRITE_LINE.search(prompt)
    text = m.group(1) if m else prompt
    return " ".join(text.split())[:80]


class OfflineGateway:
    """Canned generator used when no credentials are configured."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)
        self._counter = 0

    def generate(self, request: GenerationRequest) -> GenerationOutcome:
        logger.info("offline generation for %s: %.60s", request.kind.value, request.prompt)
        meta: Dict[str, Any] = {"kind": request.kind.value, "model": "offline"}

        if request.kind is GenerationKind.OBJECT:
            self._counter += 1
            name = f"AnimatedCube{self._counter}"
            color = "#%06x" % self._rng.randrange(0x1000000)
            text = _OFFLINE_OBJECT.format(
                name=name,
                color=color,
                rx=round(self._rng.uniform(0.2, 1.0), 2),
                ry=round(self._rng.uniform(0.4, 2.0), 2),
            )
            meta.update(
                entry_point=name,
                type="animated_cube",
                complexity="medium",
                features=["animation", "random_color", "floating"],
            )
            return GenerationOutcome(success=True, source_text=text, metadata=meta)

        if request.kind is GenerationKind.CODE:
            if request.current_source:
                note = _instruction(request.prompt)
                text = request.current_source.rstrip() + f"\n# modified: {note}\n"
                meta.update(modifications=[note], timestamp=time.time())
                entry = extract_entry_point(text)
                if entry:
                    meta["entry_point"] = entry
            else:
                text = _OFFLINE_TOOL
                meta["entry_point"] = "executeTool"
            return GenerationOutcome(success=True, source_text=text, metadata=meta)

        if request.kind is GenerationKind.UI:
            text = f"[{request.prompt.strip()}]\n- AI Action"
            meta.update(component="GeneratedPanel")
            return GenerationOutcome(success=True, source_text=text, metadata=meta)

        improvements = [
            "Optimize rendering performance",
            "Add new object types",
            "Improve user interface",
            "Enhance AI capabilities",
        ]
        meta.update(improvements=improvements, confidence=0.85)
        return GenerationOutcome(success=True, source_text="\n".join(f"- {i}" for i in improvements), metadata=meta)
