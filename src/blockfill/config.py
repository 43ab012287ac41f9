"""Configuration management for Blockfill."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from blockfill.exceptions import ConfigError

BLOCKFILL_DIR = ".blockfill"
CONFIG_FILE = "config.json"
DEFAULT_INPUT_FILE = "transactions.csv"


class BlockConfig(BaseModel):
    """Block template limits."""

    capacity: int = Field(default=10, gt=0)


class RunConfig(BaseModel):
    """Driving loop and input settings."""

    time_budget_ms: int = Field(default=1000, ge=0)
    input_file: str = DEFAULT_INPUT_FILE
    delimiter: str = Field(default=",", min_length=1, max_length=1)
    has_header: bool = True
    check_invariants: bool = False


class BlockfillConfig(BaseModel):
    """Full project configuration."""

    name: str = ""
    root_path: str = "."
    block: BlockConfig = Field(default_factory=BlockConfig)
    run: RunConfig = Field(default_factory=RunConfig)


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from `start` looking for a .blockfill directory."""
    current = (start or Path.cwd()).resolve()
    while current != current.parent:
        if (current / BLOCKFILL_DIR).is_dir():
            return current
        current = current.parent
    if (current / BLOCKFILL_DIR).is_dir():
        return current
    return None


def get_blockfill_dir(root: Path) -> Path:
    """Get the .blockfill directory for a project root."""
    return root / BLOCKFILL_DIR


def load_config(root: Path) -> BlockfillConfig:
    """Load configuration from .blockfill/config.json."""
    config_path = get_blockfill_dir(root) / CONFIG_FILE
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
            return BlockfillConfig(**data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise ConfigError(f"Invalid config file {config_path}: {e}") from e
    return BlockfillConfig(name=root.name, root_path=str(root))


def save_config(root: Path, config: BlockfillConfig) -> None:
    """Save configuration to .blockfill/config.json."""
    bf_dir = get_blockfill_dir(root)
    bf_dir.mkdir(parents=True, exist_ok=True)
    config_path = bf_dir / CONFIG_FILE
    config_path.write_text(json.dumps(config.model_dump(), indent=2))


def set_config_value(config: BlockfillConfig, key: str, value: Any) -> BlockfillConfig:
    """Set a nested config value using dot notation (e.g., 'block.capacity')."""
    parts = key.split(".")
    data = config.model_dump()
    target = data
    for part in parts[:-1]:
        if part not in target or not isinstance(target[part], dict):
            raise KeyError(f"Invalid config key: {key}")
        target = target[part]
    if parts[-1] not in target:
        raise KeyError(f"Invalid config key: {key}")
    target[parts[-1]] = value
    try:
        return BlockfillConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid value for '{key}': {value!r}") from e
