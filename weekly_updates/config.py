"""Configuration loader for weekly-updates.

Reads YAML configuration from ~/.config/weekly-updates/config.yaml (or a
custom path), then applies environment variable overrides.

Requires PyYAML (pip install pyyaml).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

import yaml

DEFAULT_CONFIG_PATH = os.path.expanduser("~/.config/weekly-updates/config.yaml")

DEFAULT_WEEKS_BACK = 2
MAX_WEEKS_BACK = 4

# Config file key -> environment variables, first match wins
_ENV_OVERRIDES: dict[str, tuple[str, ...]] = {
    "github_token": ("GITHUB_TOKEN",),
    "github_username": ("GITHUB_USERNAME",),
    "slack_bot_token": ("SLACK_BOT_TOKEN",),
    "slack_channel_id": ("SLACK_CHANNEL_ID",),
    "claude_api_key": ("CLAUDE_API_KEY", "ANTHROPIC_API_KEY"),
    "claude_model": ("CLAUDE_MODEL",),
    "default_weeks_back": ("DEFAULT_WEEKS_BACK",),
    "max_weeks_back": ("MAX_WEEKS_BACK",),
}


@dataclass
class Config:
    """Top-level application configuration."""

    github_token: str = ""
    github_username: str = ""
    slack_bot_token: str = ""
    slack_channel_id: str = ""
    claude_api_key: str = ""
    claude_model: str = ""
    default_weeks_back: int = DEFAULT_WEEKS_BACK
    max_weeks_back: int = MAX_WEEKS_BACK

    def missing(self, *names: str) -> list[str]:
        """Return the names among `names` that have no value."""
        return [name for name in names if not getattr(self, name)]


def _expand_path(path: str) -> str:
    """Expand ~ and environment variables in a path."""
    return os.path.expanduser(os.path.expandvars(path))


def _to_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _clamp_weeks(value: int) -> int:
    return max(1, min(MAX_WEEKS_BACK, value))


def validate_weeks_back(weeks: int, max_weeks: int = MAX_WEEKS_BACK) -> int:
    """Check that `weeks` lies within [1, max_weeks].

    Raises:
        ValueError: If `weeks` is out of range.
    """
    if weeks < 1 or weeks > max_weeks:
        raise ValueError(f"Weeks must be between 1 and {max_weeks}")
    return weeks


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from a YAML file plus environment overrides.

    Args:
        config_path: Path to the YAML config file. Defaults to
            ~/.config/weekly-updates/config.yaml.

    Returns:
        A Config instance. A missing or malformed file yields the defaults,
        still subject to environment overrides.
    """
    path = _expand_path(config_path) if config_path else DEFAULT_CONFIG_PATH

    data: dict = {}
    if os.path.isfile(path):
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
        if isinstance(loaded, dict):
            data = loaded

    for key, env_names in _ENV_OVERRIDES.items():
        for env_name in env_names:
            value = os.environ.get(env_name, "")
            if value:
                data[key] = value
                break

    max_weeks = _clamp_weeks(_to_int(data.get("max_weeks_back"), MAX_WEEKS_BACK))
    default_weeks = _to_int(data.get("default_weeks_back"), DEFAULT_WEEKS_BACK)
    if not 1 <= default_weeks <= max_weeks:
        default_weeks = min(DEFAULT_WEEKS_BACK, max_weeks)

    return Config(
        github_token=str(data.get("github_token") or ""),
        github_username=str(data.get("github_username") or ""),
        slack_bot_token=str(data.get("slack_bot_token") or ""),
        slack_channel_id=str(data.get("slack_channel_id") or ""),
        claude_api_key=str(data.get("claude_api_key") or ""),
        claude_model=str(data.get("claude_model") or ""),
        default_weeks_back=default_weeks,
        max_weeks_back=max_weeks,
    )


def write_config(cfg: Config, config_path: Optional[str] = None) -> str:
    """Write `cfg` as YAML, readable only by the owner. Returns the path written."""
    path = _expand_path(config_path) if config_path else DEFAULT_CONFIG_PATH
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    data = {
        "github_token": cfg.github_token,
        "github_username": cfg.github_username,
        "slack_bot_token": cfg.slack_bot_token,
        "slack_channel_id": cfg.slack_channel_id,
        "claude_api_key": cfg.claude_api_key,
        "default_weeks_back": cfg.default_weeks_back,
        "max_weeks_back": cfg.max_weeks_back,
    }
    if cfg.claude_model:
        data["claude_model"] = cfg.claude_model

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    # O_CREAT mode does not apply to a file that already existed
    os.chmod(path, 0o600)
    return path
