"""
Logging setup for the API process and the CLI.

The handler layout lives in the packaged `logging.yaml`; only the level is
decided at runtime. Precedence: explicit `level` (the CLI `--log-level` flag),
then `app.log_level` from settings (which `POIPILOT_LOG_LEVEL` can override).
"""

from __future__ import annotations

import logging.config

from poipilot.config.settings import get_logging_config, get_settings


def configure_logging(level: str | None = None) -> None:
    """Apply the packaged logging config with one level for root and every handler."""
    config = get_logging_config()
    effective = (level or get_settings().app.log_level).upper()

    config.setdefault("root", {})["level"] = effective
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = effective

    logging.config.dictConfig(config)
