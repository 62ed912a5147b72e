"""
Shotwright Main Entry Point

Command line access to the orchestrator. Results are printed as JSON on stdout; logs go
to stderr.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel

from shotwright.core.config import load_config, set_config
from shotwright.core.exceptions import ShotwrightError
from shotwright.core.logging_config import LogLevel, create_session_log, get_logger, setup_logging
from shotwright.llm import ProviderOrchestrator, encode_image
from shotwright.models import ChatMessage, DirectorVision


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    return value


def _print_json(value: Any) -> None:
    print(json.dumps(_to_jsonable(value), indent=2, ensure_ascii=False))


def _print_progress(stage: str, progress: Optional[float]) -> None:
    suffix = f" ({progress:.0%})" if progress is not None else ""
    print(f"  {stage}{suffix}", file=sys.stderr)


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shotwright",
        description="Shotwright - shot lists, styles and chat from a hosted or local model"
    )
    parser.add_argument("--config", "-c", type=str, help="Path to configuration file")
    parser.add_argument(
        "--provider", "-p",
        choices=["hosted", "local", "auto"],
        help="Provider preference for this run"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-dir", type=str, help="Also write a session log under this directory")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("providers", help="Show provider availability and readiness")
    sub.add_parser("test-connection", help="Check the resolved provider end to end")
    sub.add_parser("probe-models", help="Test every hosted model candidate")

    shots = sub.add_parser("shots", help="Generate a shot list from a script file ('-' for stdin)")
    shots.add_argument("script", help="Script file")
    shots.add_argument("--instructions", default="", help="Director's instructions")
    shots.add_argument("--vision", type=str, help="JSON file with a director's vision")

    styles = sub.add_parser("styles", help="Suggest visual styles for a script file")
    styles.add_argument("script", help="Script file")

    image = sub.add_parser("analyze-image", help="Derive a visual style from a reference image")
    image.add_argument("image", help="Image file (jpg, png, webp)")

    chat = sub.add_parser("chat", help="Ask the filmmaking assistant a question")
    chat.add_argument("message", help="Message text")

    enrich = sub.add_parser("enrich", help="Enrich a description with Google Search details (hosted only)")
    enrich.add_argument("subject", help="What the description is about")
    enrich.add_argument("--description", default="", help="Existing description to build on")

    return parser


async def run_command(args: argparse.Namespace, orchestrator: ProviderOrchestrator) -> Any:
    """Execute one subcommand and return its JSON-serializable result."""
    if args.command == "providers":
        return orchestrator.get_provider_info()

    if args.command == "test-connection":
        return (await orchestrator.test_connection(_print_progress)).to_dict()

    if args.command == "probe-models":
        return await orchestrator.hosted.probe_models()

    if args.command == "shots":
        vision = None
        if args.vision:
            vision = DirectorVision.model_validate_json(Path(args.vision).read_text(encoding="utf-8"))
        return await orchestrator.generate_shots_from_script(
            _read_text(args.script), args.instructions, vision, on_progress=_print_progress
        )

    if args.command == "styles":
        return await orchestrator.suggest_styles_from_script(_read_text(args.script), _print_progress)

    if args.command == "analyze-image":
        data, mime_type = encode_image(Path(args.image))
        return await orchestrator.analyze_image_style(data, mime_type)

    if args.command == "chat":
        history = [ChatMessage(sender="user", text=args.message)]
        return {"reply": await orchestrator.generate_chat_response(history, _print_progress)}

    if args.command == "enrich":
        return {"description": await orchestrator.enrich_with_search(args.subject, args.description)}

    raise ValueError(f"Unknown command: {args.command}")


def main(argv=None) -> int:
    """Main entry point for the Shotwright CLI."""
    args = build_parser().parse_args(argv)

    log_file = create_session_log(Path(args.log_dir)) if args.log_dir else None
    setup_logging(
        level=LogLevel.DEBUG if args.debug else LogLevel.WARNING,
        log_file=log_file,
        verbose=args.debug
    )
    logger = get_logger("main")

    try:
        config = load_config(Path(args.config) if args.config else None)
        set_config(config)
        orchestrator = ProviderOrchestrator(config)
        if args.provider:
            orchestrator.set_preference(args.provider)
        result = asyncio.run(run_command(args, orchestrator))
    except ShotwrightError as e:
        logger.error(str(e))
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    _print_json(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
