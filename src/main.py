"""Entry point: parse options, configure logging, build the canvas and run it.

1. Pick a generation gateway (Anthropic when a key is stored, else offline)
2. Create the SceneCoordinator and queue any tools / prompts from the command line
3. Open the window and hand control to Engine
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Sequence, Tuple

from generation.credentials import FileCredentialStore, default_store
from generation.gateway import AnthropicGateway, GenerationGateway, OfflineGateway

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure structured logging."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        handlers=handlers,
    )


def parse_tool_spec(spec: str) -> Tuple[str, str]:
    """Split ``NAME=DESCRIPTION``; raises argparse.ArgumentTypeError when malformed."""
    name, sep, description = spec.partition("=")
    if not sep or not name.strip() or not description.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=DESCRIPTION, got {spec!r}")
    return name.strip(), description.strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="genesis-canvas",
        description="Live 3D canvas whose objects and tools are generated at runtime",
    )
    parser.add_argument("--offline", action="store_true", help="Use canned generations; no network or API key")
    parser.add_argument(
        "--prompt",
        action="append",
        default=[],
        metavar="TEXT",
        help="Object prompt to generate at startup (repeatable); also cycled by the G key",
    )
    parser.add_argument(
        "--tool",
        action="append",
        default=[],
        type=parse_tool_spec,
        metavar="NAME=DESCRIPTION",
        help="Tool to generate at startup (repeatable); run with keys 1-9",
    )
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    parser.add_argument("--save-key", default=None, metavar="KEY", help="Store an API key in the credentials file and exit")
    return parser


def build_gateway(offline: bool) -> GenerationGateway:
    if offline:
        logger.info("offline mode: using canned generations")
        return OfflineGateway()
    api_key = default_store().get()
    if not api_key:
        logger.warning("no API key found; falling back to offline generations")
        return OfflineGateway()
    return AnthropicGateway(api_key)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    if args.save_key:
        store = FileCredentialStore()
        store.set(args.save_key)
        print(f"API key saved to {store.path}")
        return 0

    # imported late so --help and --save-key work without a display
    from core.engine import Engine
    from world.canvas_scene import CanvasScene
    from world.coordinator import SceneCoordinator

    coordinator = SceneCoordinator(build_gateway(args.offline))
    for name, description in args.tool:
        coordinator.request_tool(name, description)
    for prompt in args.prompt:
        coordinator.request_object(prompt)

    engine = Engine(lambda text: CanvasScene(coordinator, text, prompts=args.prompt))
    engine.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
