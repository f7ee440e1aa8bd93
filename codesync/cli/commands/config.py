# codesync/cli/commands/config.py
"""
Configuration command.

Usage:
    codesync config          # Show merged config
    codesync config --json   # Output as JSON
    codesync config --path   # Show config file path
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict

import typer
import yaml
from rich.syntax import Syntax

from codesync.cli.context import CLIContext
from codesync.cli.ui import console, ui
from codesync.config.loader import ConfigError

MASK = "***"


def _secret_status(config: Dict[str, Any]) -> Dict[str, str]:
    """Env var name -> masked presence, for every *_env key."""
    status: Dict[str, str] = {}
    for section in config.values():
        if not isinstance(section, dict):
            continue
        for key, value in section.items():
            if key.endswith("_env") and isinstance(value, str):
                status[value] = MASK if os.environ.get(value) else "(unset)"
    return status


def command(show_path: bool = False, as_json: bool = False) -> None:
    """Show the merged configuration. Secret values are never printed."""
    try:
        ctx = CLIContext.load()
    except ConfigError as e:
        ui.error(str(e))
        raise typer.Exit(1)

    if show_path:
        console.print(str(ctx.config_path))
        return

    data = ctx.config.model_dump(mode="json")
    secrets = _secret_status(data)

    if as_json:
        console.print_json(json.dumps({"config": data, "secrets": secrets}))
        return

    source = str(ctx.config_path) if ctx.has_user_config else "package defaults"
    ui.header("codesync config", source)
    console.print(Syntax(yaml.safe_dump(data, sort_keys=False), "yaml", theme="ansi_dark"))
    ui.section("Secrets")
    for name, state in secrets.items():
        ui.status(name, state == MASK, state)
