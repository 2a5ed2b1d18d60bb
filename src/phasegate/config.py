"""Configuration loading for the phasegate command line."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from phasegate.domain.exceptions import ConfigurationError
from phasegate.infrastructure.persistence import DEFAULT_STATE_PATH

WORKSPACE_ENV = "PHASEGATE_WORKSPACE"
CONFIG_PATH = Path(".phasegate") / "config.json"


class Settings(BaseModel):
    """Workspace settings, read from ``<workspace>/.phasegate/config.json``."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    state_file: str = str(DEFAULT_STATE_PATH)
    log_file: str | None = None
    code_host: Literal["none", "gh"] = "none"
    verbose: bool = False


def resolve_workspace(workspace: str | Path | None = None) -> Path:
    """Explicit workspace, else ``$PHASEGATE_WORKSPACE``, else the current directory."""
    if workspace is None:
        workspace = os.environ.get(WORKSPACE_ENV) or Path.cwd()
    return Path(workspace).resolve()


def load_settings(workspace: Path) -> Settings:
    """
    Load workspace settings, falling back to defaults when no file exists.

    Args:
        workspace: Workspace root

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If the file is unreadable or invalid
    """
    path = workspace / CONFIG_PATH
    if not path.exists():
        return Settings()

    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected dict in {path}, got {type(data).__name__}")

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid settings in {path}: {problems}") from e
