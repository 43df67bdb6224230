"""
Configuration management for rulekit.

Precedence: env vars > .env file > rulekit.yaml > defaults

Config file: ~/.claude/rulekit.yaml (override with RULEKIT_CONFIG)
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Rule sets copied by the installer, in copy order
DEFAULT_RULE_SETS = ["common", "php"]

# Common OS limit on symlink resolution (Linux MAXSYMLINKS)
DEFAULT_MAX_SYMLINK_HOPS = 40

# Keys writable with `rulekit config set`
CONFIG_KEYS = {
    "claude_rules_dir",
    "rulekit_source_root",
    "rule_sets",
    "max_symlink_hops",
    "log_level",
    "log_format",
}


def default_rules_dir() -> Path:
    """Per-user rules directory used when CLAUDE_RULES_DIR is unset."""
    return Path.home() / ".claude" / "rules"


def get_config_path() -> Path:
    """Get the rulekit.yaml path."""
    raw = os.environ.get("RULEKIT_CONFIG", "")
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".claude" / "rulekit.yaml"


def _load_yaml_config(config_file: Optional[Path] = None) -> dict[str, Any]:
    """Load rulekit.yaml, returning {} when missing or unusable."""
    config_file = config_file or get_config_path()
    if not config_file.exists():
        return {}
    try:
        with open(config_file) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            logger.warning(f"rulekit.yaml is not a dict, ignoring: {config_file}")
            return {}
        return data
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Error loading rulekit.yaml: {e}")
        return {}


def save_yaml_config(data: dict[str, Any], config_file: Optional[Path] = None) -> Path:
    """Write config values to rulekit.yaml."""
    config_file = config_file or get_config_path()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(config_file, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    return config_file


class Settings(BaseSettings):
    """rulekit configuration. Precedence: env vars > .env > rulekit.yaml > defaults."""

    # Installer
    claude_rules_dir: Optional[Path] = Field(
        default=None,
        description="Install destination (CLAUDE_RULES_DIR); defaults to ~/.claude/rules",
    )
    rulekit_source_root: Optional[Path] = Field(
        default=None,
        description="Directory holding rules/ (RULEKIT_SOURCE_ROOT); defaults to the script's directory",
    )
    rule_sets: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RULE_SETS),
        description="Rule set directories under rules/ to install, in order",
    )
    max_symlink_hops: int = Field(
        default=DEFAULT_MAX_SYMLINK_HOPS,
        description="Maximum symlinks followed when locating the installer",
    )

    # Logging
    log_level: str = Field(default="WARNING", description="Log level")
    log_format: str = Field(
        default="%(levelname)s %(name)s: %(message)s",
        description="Log format string",
    )

    model_config = {
        "env_prefix": "",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_ignore_empty": True,
        "extra": "ignore",
    }

    @model_validator(mode="before")
    @classmethod
    def _inject_yaml_config(cls, data: Any) -> Any:
        """Inject rulekit.yaml values as fallbacks below env vars and .env."""
        if not isinstance(data, dict):
            data = {}

        yaml_config = _load_yaml_config()

        # Inject YAML values only where not already set (env/explicit take priority)
        for key, value in yaml_config.items():
            if key not in data or data[key] is None:
                env_val = os.environ.get(key.upper()) or os.environ.get(key)
                if env_val is None:
                    data[key] = value

        return data

    @property
    def destination_root(self) -> Path:
        """Resolved install destination."""
        if self.claude_rules_dir:
            return self.claude_rules_dir.expanduser()
        return default_rules_dir()


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
