"""CLI entry point for Trace."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from .config import AppConfig, _get_config_path, load_config

logger = logging.getLogger("trace_agent")


def _print_setup_guide(config_path: Path) -> None:
    print(
        f"\nTo get started, create {config_path} with:\n\n"
        "ai:\n"
        '  base_url: "https://your-ai-endpoint/v1"\n'
        '  api_key: "your-api-key"\n'
        '  model: "gpt-4o"\n'
        "\nOr set environment variables:\n"
        "  PROVIDER_BASE_URL=https://your-ai-endpoint/v1\n"
        "  PROVIDER_API_KEY=your-api-key\n"
        "  PROVIDER_MODEL=gpt-4o\n",
        file=sys.stderr,
    )


def _load_config_or_exit(working_dir: Path) -> AppConfig:
    config_path = _get_config_path()
    try:
        return load_config(config_path, working_dir=working_dir)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        _print_setup_guide(config_path)
        sys.exit(1)


async def _test_connection(config: AppConfig) -> None:
    from .services.ai_service import AIService

    ai_service = AIService(config.ai)

    print("Config:")
    print(f"  Endpoint: {config.ai.base_url or '(default)'}")
    print(f"  Model:    {config.ai.model}")
    print(f"  SSL:      {'enabled' if config.ai.verify_ssl else 'disabled'}")

    try:
        print("\n1. Listing models...")
        valid, message, models = await ai_service.validate_connection()
        if valid:
            print(f"   OK - {len(models)} model(s) available")
            for m in models[:10]:
                print(f"     - {m}")
        else:
            print(f"   FAILED - {message}")
            sys.exit(1)

        print(f"\n2. Sending test prompt to {config.ai.model}...")
        try:
            response = await ai_service.complete([{"role": "user", "content": "Say hello in one sentence."}])
            reply = response.choices[0].message.content if response.choices else None
            print(f"   OK - Response: {(reply or '(empty response)').strip()}")
        except Exception as e:
            print(f"   FAILED - {e}")
            sys.exit(1)
    finally:
        await ai_service.close()

    print("\nAll checks passed.")


async def _run_chat(config: AppConfig, working_dir: Path, greeting: bool = True) -> Path | None:
    from .cli.app import TraceApp
    from .cli.dispatcher import EventDispatcher
    from .cli.state import ChatStateMachine
    from .services.ai_service import AIService
    from .services.process_runner import ProcessRunner
    from .tools import ToolRegistry, register_default_tools
    from .tools.list_files import list_project_files

    registry = ToolRegistry()
    register_default_tools(registry, working_dir=str(working_dir))
    files = await asyncio.to_thread(list_project_files, str(working_dir))
    logger.info("Indexed %d project files in %s", len(files), working_dir)

    machine = ChatStateMachine(
        system_prompt=config.ai.system_prompt,
        files=files,
        greeting=config.cli.greeting if greeting else "",
        autocomplete_limit=config.cli.autocomplete_limit,
    )
    ai_service = AIService(config.ai)
    dispatcher = EventDispatcher(
        machine,
        ai_service,
        registry,
        ProcessRunner(str(working_dir)),
        max_iterations=config.cli.max_tool_iterations,
        transcript_dir=config.cli.transcript_dir or working_dir,
    )
    app = TraceApp(machine, dispatcher, model=config.ai.model, tool_count=len(registry.list_tools()))
    try:
        await app.run()
    finally:
        await ai_service.close()
    return dispatcher.last_transcript


def main() -> None:
    parser = argparse.ArgumentParser(prog="trace-agent", description="Trace - an AI coding assistant for your terminal")
    parser.add_argument(
        "-p", "--path", dest="project_path",
        default=None, help="Project root directory (default: cwd)",
    )
    parser.add_argument("--test", action="store_true", help="Test connection settings and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--no-greeting", action="store_true", help="Do not send the startup greeting")

    args = parser.parse_args()

    working_dir = Path.cwd()
    if args.project_path:
        resolved = os.path.abspath(args.project_path)
        if not os.path.isdir(resolved):
            print(f"Error: {args.project_path} is not a directory", file=sys.stderr)
            sys.exit(1)
        os.chdir(resolved)
        working_dir = Path(resolved)

    config = _load_config_or_exit(working_dir)

    if args.test:
        asyncio.run(_test_connection(config))
        return

    from .logging import configure_logging

    configure_logging(working_dir / config.cli.log_file, verbose=args.verbose)
    logger.info("Starting Trace in %s (model=%s)", working_dir, config.ai.model)

    transcript = asyncio.run(_run_chat(config, working_dir, greeting=not args.no_greeting))
    if transcript is not None:
        print(f"Session saved to {transcript}")


if __name__ == "__main__":
    main()
