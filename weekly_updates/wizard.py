"""Interactive setup for weekly-updates: asks for credentials and writes the config file."""

from __future__ import annotations

import os
from typing import Callable, Optional

from weekly_updates.config import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_WEEKS_BACK,
    MAX_WEEKS_BACK,
    Config,
    _expand_path,
    _to_int,
    write_config,
)


def run_setup(
    config_path: Optional[str] = None,
    ask: Callable[[str], str] = input,
    say: Callable[[str], None] = print,
) -> Optional[str]:
    """Prompt for all settings and save them.

    Args:
        config_path: Destination file. Defaults to
            ~/.config/weekly-updates/config.yaml.
        ask: Prompt function returning the user's answer.
        say: Output function for guidance text.

    Returns:
        The path written, or None if the user declined to overwrite an
        existing file.
    """
    path = _expand_path(config_path) if config_path else DEFAULT_CONFIG_PATH

    say("\U0001f680 Welcome to Weekly Updates Setup!\n")
    say("This will help you configure your credentials.\n")

    if os.path.exists(path):
        overwrite = ask(f"\u26a0\ufe0f  {path} already exists. Overwrite? (y/N): ")
        if overwrite.strip().lower() not in ("y", "yes"):
            say("Setup cancelled.")
            return None

    say("\n\U0001f4cb GitHub Configuration:")
    say("1. Go to GitHub Settings \u2192 Developer settings \u2192 Personal access tokens")
    say('2. Generate a new token with "repo" and "read:user" scopes')
    say("3. Copy the token below\n")
    github_token = ask("GitHub Personal Access Token: ").strip()
    github_username = ask("GitHub Username: ").strip()

    say("\n\U0001f4cb Slack Configuration:")
    say("1. Create a Slack App at https://api.slack.com/apps")
    say('2. Add "chat:write" and "chat:write.public" OAuth scopes')
    say("3. Install the app to your workspace")
    say("4. Copy the Bot User OAuth Token (starts with xoxb-)")
    say("5. Get your channel ID (right-click channel \u2192 Copy link \u2192 extract ID)\n")
    slack_token = ask("Slack Bot Token (xoxb-...): ").strip()
    slack_channel = ask("Slack Channel ID (C... or G...): ").strip()

    say("\n\U0001f4cb Claude AI Configuration (Optional):")
    say("1. Get your Claude API key from https://console.anthropic.com/")
    say("2. This enables AI-powered executive summaries\n")
    claude_api_key = ask("Claude API Key (optional, press Enter to skip): ").strip()

    say("\n\U0001f4cb Optional Configuration:")
    max_weeks = _to_int(
        ask(f"Maximum weeks allowed (1-{MAX_WEEKS_BACK}, default: {MAX_WEEKS_BACK}): ").strip(),
        MAX_WEEKS_BACK,
    )
    max_weeks = max(1, min(MAX_WEEKS_BACK, max_weeks))
    default_weeks = _to_int(
        ask(f"Default weeks for merged PRs (1-{max_weeks}, default: "
            f"{min(DEFAULT_WEEKS_BACK, max_weeks)}): ").strip(),
        DEFAULT_WEEKS_BACK,
    )
    if not 1 <= default_weeks <= max_weeks:
        default_weeks = min(DEFAULT_WEEKS_BACK, max_weeks)

    cfg = Config(
        github_token=github_token,
        github_username=github_username,
        slack_bot_token=slack_token,
        slack_channel_id=slack_channel,
        claude_api_key=claude_api_key,
        default_weeks_back=default_weeks,
        max_weeks_back=max_weeks,
    )
    written = write_config(cfg, path)

    say(f"\n\u2705 Configuration saved to {written}")
    say("\nNext steps:")
    say("1. Preview your PRs without posting: weekly-updates preview")
    say("2. Post open PRs to Slack: weekly-updates open-prs")
    return written
