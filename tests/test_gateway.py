from types import SimpleNamespace

import anthropic
import httpx
import pytest

from behavior.compiler import BehaviorCompiler
from generation.gateway import (
    AnthropicGateway,
    GenerationKind,
    GenerationOutcome,
    GenerationRequest,
    OfflineGateway,
    safe_generate,
)
from generation.prompts import SYSTEM_PROMPT, modify_prompt

REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")

FENCED = "Sure!\n```python\n# entry: Orb\ndef Orb():\n    return Fragment(Sphere())\n```\n"


def response(text):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


class FakeMessages:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def make_gateway(*results, **kw):
    messages = FakeMessages(*results)
    delays = []
    gateway = AnthropicGateway(
        "test-key",
        client=SimpleNamespace(messages=messages),
        sleep=delays.append,
        base_delay=kw.pop("base_delay", 1.0),
        **kw,
    )
    return gateway, messages, delays


def test_object_generation_strips_fences_and_reads_entry_marker():
    gateway, messages, _ = make_gateway(response(FENCED))
    outcome = gateway.generate(GenerationRequest(GenerationKind.OBJECT, "an orb"))
    assert outcome.usable
    assert outcome.source_text.startswith("# entry: Orb")
    assert "```" not in outcome.source_text
    assert outcome.metadata["entry_point"] == "Orb"
    assert outcome.metadata["model"] == gateway.model
    call = messages.calls[0]
    assert call["system"] == SYSTEM_PROMPT
    assert call["messages"] == [{"role": "user", "content": "an orb"}]


def test_plain_kinds_keep_text():
    gateway, messages, _ = make_gateway(response("- Add lights\n- Add sound"))
    outcome = gateway.generate(GenerationRequest(GenerationKind.SELF_MODIFY, "ideas"))
    assert outcome.source_text == "- Add lights\n- Add sound"
    assert messages.calls[0]["system"] != SYSTEM_PROMPT


def test_connection_errors_retry_with_backoff():
    gateway, messages, delays = make_gateway(
        anthropic.APIConnectionError(request=REQUEST),
        anthropic.APIConnectionError(request=REQUEST),
        response(FENCED),
    )
    outcome = gateway.generate(GenerationRequest(GenerationKind.OBJECT, "an orb"))
    assert outcome.success
    assert delays == [1.0, 2.0]
    assert len(messages.calls) == 3


def test_rate_limit_exhausts_retries():
    limited = httpx.Response(429, request=REQUEST)
    gateway, messages, delays = make_gateway(
        *[anthropic.RateLimitError("slow down", response=limited, body=None) for _ in range(3)],
        base_delay=0.5,
    )
    outcome = gateway.generate(GenerationRequest(GenerationKind.CODE, "a tool"))
    assert not outcome.success
    assert "3 attempts" in outcome.error
    assert delays == [0.5, 1.0, 2.0]


def test_api_error_is_not_retried():
    gateway, messages, delays = make_gateway(anthropic.APIError("bad request", REQUEST, body=None))
    outcome = gateway.generate(GenerationRequest(GenerationKind.CODE, "a tool"))
    assert not outcome.success
    assert "bad request" in outcome.error
    assert delays == []
    assert len(messages.calls) == 1


def test_safe_generate_contains_exceptions():
    class Exploding:
        def generate(self, request):
            raise RuntimeError("kaboom")

    outcome = safe_generate(Exploding(), GenerationRequest(GenerationKind.OBJECT, "x"))
    assert not outcome.success
    assert "kaboom" in outcome.error
    assert outcome.metadata["kind"] == "object"


def test_outcome_usability():
    assert GenerationOutcome(success=True, source_text="def A(): pass").usable
    blank = GenerationOutcome(success=True, source_text="  \n")
    assert not blank.usable
    assert blank.reason == "service returned empty text"
    assert GenerationOutcome.failure("nope").reason == "nope"


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_offline_object_compiles(seed):
    outcome = OfflineGateway(seed=seed).generate(GenerationRequest(GenerationKind.OBJECT, "x"))
    compiled = BehaviorCompiler().compile_object(outcome.source_text, entry_point=outcome.metadata["entry_point"])
    assert compiled.ok
    assert compiled().on_frame is not None


def test_offline_tool_and_modification_compile():
    offline = OfflineGateway(seed=3)
    tool = offline.generate(GenerationRequest(GenerationKind.CODE, "scatter spheres"))
    assert BehaviorCompiler().compile_tool(tool.source_text).ok

    prompt = modify_prompt("make it\nfaster", tool.source_text)
    modified = offline.generate(GenerationRequest(GenerationKind.CODE, prompt, current_source=tool.source_text))
    assert modified.source_text.rstrip().endswith("# modified: make it")
    assert BehaviorCompiler().compile_tool(modified.source_text).ok
