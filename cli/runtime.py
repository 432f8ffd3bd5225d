"""Runtime boot helpers for the PromptHub CLI.

Updates:
  v0.1.1 - 2026-10-12 - Quieten HTTP client request logs below WARNING.
  v0.1.0 - 2026-10-09 - Logging configuration helpers.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path

_NOISY_LOGGERS = ("httpx", "httpcore", "hpack")


def setup_logging(logging_conf_path: Path | None) -> None:
    """Configure logging using *logging_conf_path* when available."""
    path = logging_conf_path or Path("config/logging.conf")
    if path.exists():
        try:
            logging.config.fileConfig(path, disable_existing_loggers=False)
            return
        except (OSError, ValueError, KeyError, RuntimeError):  # pragma: no cover - fallback
            logging.getLogger("prompthub.cli").warning(
                "Invalid logging configuration %s; using defaults", path
            )
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    quiet_http_logging()


def quiet_http_logging() -> None:
    """Limit transport libraries to warnings so CLI output stays readable."""
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
