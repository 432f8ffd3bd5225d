"""Application entry point for the PromptHub client.

Updates:
  v0.2.0 - 2026-10-15 - Run command coroutines inside one event loop per invocation.
  v0.1.1 - 2026-10-12 - Default to the prompt listing when no command is given.
  v0.1.0 - 2026-10-09 - Wire settings, the PromptHub container, and CLI commands.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from cli.commands import COMMAND_SPECS, run_command
from cli.parser import parse_args
from cli.runtime import setup_logging
from cli.settings_summary import print_settings_summary
from config import SettingsError, load_settings
from core import build_prompt_hub

DEFAULT_CONFIG_PATH = Path("config/config.json")
CONFIG_TEMPLATE_PATH = Path("config/config.template.json")
DEFAULT_COMMAND = "list"


def main(argv: list[str] | None = None) -> int:
    """Entrypoint that wires settings, services, and CLI commands."""
    args = parse_args(argv)
    setup_logging(args.logging_config)

    logger = logging.getLogger("prompthub.main")
    try:
        settings = load_settings()
    except SettingsError as exc:
        cause = exc.__cause__
        detail = f"{exc}: {cause}" if cause is not None else str(exc)
        logger.error("Failed to load settings: %s", detail)
        if not os.getenv("PROMPTHUB_CONFIG_JSON") and not DEFAULT_CONFIG_PATH.exists():
            logger.info(
                "Optional settings can be placed in %s (see %s).",
                DEFAULT_CONFIG_PATH,
                CONFIG_TEMPLATE_PATH,
            )
        return 2

    if args.print_settings:
        print_settings_summary(settings)
        return 0

    command = getattr(args, "command", None) or DEFAULT_COMMAND
    spec = COMMAND_SPECS[command]
    hub = build_prompt_hub(settings)
    return asyncio.run(run_command(spec, hub, args, logger))


if __name__ == "__main__":
    raise SystemExit(main())
