"""Tests for the command-line entry point (weekly_updates.__main__)."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
import yaml

from weekly_updates.__main__ import main
from weekly_updates.format_slack import DeliveryError
from weekly_updates.github_client import UpstreamUnavailable
from weekly_updates.report_data import PullRequestSummary
from weekly_updates.summary import SummarizationError

_ENV_VARS = (
    "GITHUB_TOKEN", "GITHUB_USERNAME", "SLACK_BOT_TOKEN", "SLACK_CHANNEL_ID",
    "CLAUDE_API_KEY", "ANTHROPIC_API_KEY", "CLAUDE_MODEL",
    "DEFAULT_WEEKS_BACK", "MAX_WEEKS_BACK",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    def _write(**overrides) -> str:
        data = {
            "github_username": "alice",
            "slack_bot_token": "xoxb-test",
            "slack_channel_id": "C123",
            "default_weeks_back": 2,
            "max_weeks_back": 4,
        }
        data.update(overrides)
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return str(path)
    return _write


def _pr(number, **kwargs) -> PullRequestSummary:
    return PullRequestSummary(
        title=f"PR {number}",
        description="d",
        url=f"https://github.com/org/a/pull/{number}",
        repo="org/a",
        number=number,
        **kwargs,
    )


class TestArguments:

    def test_no_command_prints_help(self, capsys):
        main([])
        assert "usage: weekly-updates" in capsys.readouterr().out

    def test_unknown_command_exits(self):
        with pytest.raises(SystemExit) as excinfo:
            main(["bogus"])
        assert excinfo.value.code == 2

    @pytest.mark.parametrize("weeks", ["0", "5"])
    @patch("weekly_updates.__main__.check_merged_prs")
    def test_weeks_out_of_range(self, mock_check, weeks, config_file, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["--config", config_file(), "merged-prs", "--weeks", weeks])
        assert excinfo.value.code == 1
        assert "Weeks must be between 1 and 4" in capsys.readouterr().err
        mock_check.assert_not_called()

    @patch("weekly_updates.__main__.check_merged_prs")
    def test_configured_max_applies(self, mock_check, config_file, capsys):
        path = config_file(max_weeks_back=2, default_weeks_back=1)
        with pytest.raises(SystemExit):
            main(["--config", path, "merged-prs", "-w", "3"])
        assert "between 1 and 2" in capsys.readouterr().err

    @patch("weekly_updates.__main__.check_open_prs")
    def test_missing_slack_settings(self, mock_check, config_file, capsys):
        path = config_file(slack_bot_token="")
        with pytest.raises(SystemExit) as excinfo:
            main(["--config", path, "open-prs"])
        assert excinfo.value.code == 1
        assert "slack_bot_token" in capsys.readouterr().err
        mock_check.assert_not_called()

    def test_missing_username(self, config_file, capsys):
        with pytest.raises(SystemExit):
            main(["--config", config_file(github_username=""), "open-prs"])
        assert "github_username" in capsys.readouterr().err


class TestRunModes:

    @patch("weekly_updates.__main__.check_open_prs")
    def test_open_prs(self, mock_check, config_file):
        main(["--config", config_file(), "open-prs"])
        github, notifier, username = mock_check.call_args[0]
        assert username == "alice"
        assert notifier.channel_id == "C123"

    @patch("weekly_updates.__main__.check_merged_prs")
    def test_merged_prs_uses_default_weeks(self, mock_check, config_file):
        main(["--config", config_file(default_weeks_back=3), "merged-prs"])
        assert mock_check.call_args[0][3] == 3

    @patch("weekly_updates.__main__.check_merged_prs")
    @patch("weekly_updates.__main__.check_open_prs")
    def test_all_runs_open_then_merged(self, mock_open, mock_merged, config_file):
        main(["--config", config_file(), "all", "-w", "1"])
        mock_open.assert_called_once()
        assert mock_merged.call_args[0][3] == 1

    @patch("weekly_updates.__main__.check_merged_prs")
    @patch("weekly_updates.__main__.check_open_prs")
    def test_delivery_error_stops_all(self, mock_open, mock_merged, config_file, capsys):
        mock_open.side_effect = DeliveryError("invalid_auth")
        with pytest.raises(SystemExit) as excinfo:
            main(["--config", config_file(), "all"])
        assert excinfo.value.code == 1
        assert "Error: Slack API error: invalid_auth" in capsys.readouterr().err
        mock_merged.assert_not_called()

    @patch("weekly_updates.__main__.check_open_prs")
    def test_upstream_unavailable_is_fatal(self, mock_check, config_file, capsys):
        mock_check.side_effect = UpstreamUnavailable("Could not list repositories: 401")
        with pytest.raises(SystemExit):
            main(["--config", config_file(), "open-prs"])
        assert "Could not list repositories" in capsys.readouterr().err

    @patch("weekly_updates.__main__.send_executive_summary")
    def test_summary_without_key_passes_no_summarizer(self, mock_send, config_file):
        main(["--config", config_file(), "summary"])
        github, notifier, summarizer, username, weeks = mock_send.call_args[0]
        assert summarizer is None
        assert weeks == 2

    @patch("weekly_updates.__main__.send_executive_summary")
    def test_summary_with_key_and_model(self, mock_send, config_file):
        path = config_file(claude_api_key="sk-1", claude_model="claude-sonnet-4-5")
        main(["--config", path, "summary"])
        summarizer = mock_send.call_args[0][2]
        assert summarizer.api_key == "sk-1"
        assert summarizer.model == "claude-sonnet-4-5"


class TestPreview:

    @patch("weekly_updates.__main__.collect_merged_prs")
    @patch("weekly_updates.__main__.collect_open_prs")
    def test_prints_lists_without_slack(self, mock_open, mock_merged, config_file, capsys):
        mock_open.return_value = [_pr(1)]
        mock_merged.return_value = [
            _pr(2, merged_at=datetime(2026, 2, 3, 14, 5, tzinfo=timezone.utc)),
        ]
        main(["--config", config_file(slack_bot_token=""), "preview"])
        out = capsys.readouterr().out
        assert "Found 1 open PR(s)" in out
        assert "Found 1 merged PR(s) in last 2 week(s)" in out
        assert "EXECUTIVE SUMMARY" not in out

    @patch("weekly_updates.summary.ClaudeSummarizer.summarize")
    @patch("weekly_updates.__main__.collect_merged_prs")
    @patch("weekly_updates.__main__.collect_open_prs")
    def test_summary_fallback_label(self, mock_open, mock_merged, mock_summarize, config_file, capsys):
        mock_open.return_value = [_pr(1)]
        mock_merged.return_value = []
        mock_summarize.side_effect = SummarizationError("boom")
        main(["--config", config_file(claude_api_key="sk-1"), "preview", "--summary"])
        out = capsys.readouterr().out
        assert "EXECUTIVE SUMMARY (fallback):" in out
        assert "Here are your open PRs." in out

    @patch("weekly_updates.summary.ClaudeSummarizer.summarize")
    @patch("weekly_updates.__main__.collect_merged_prs")
    @patch("weekly_updates.__main__.collect_open_prs")
    def test_summary_ai_label(self, mock_open, mock_merged, mock_summarize, config_file, capsys):
        mock_open.return_value = []
        mock_merged.return_value = []
        mock_summarize.return_value = "All quiet this week."
        main(["--config", config_file(claude_api_key="sk-1"), "preview", "--summary"])
        out = capsys.readouterr().out
        assert "EXECUTIVE SUMMARY:" in out
        assert "All quiet this week." in out

    @patch("weekly_updates.__main__.collect_open_prs")
    def test_upstream_failure(self, mock_open, config_file, capsys):
        mock_open.side_effect = UpstreamUnavailable("Could not list repositories: 502")
        with pytest.raises(SystemExit) as excinfo:
            main(["--config", config_file(), "preview"])
        assert excinfo.value.code == 1


class TestSetup:

    @patch("weekly_updates.wizard.run_setup")
    def test_dispatches_to_wizard(self, mock_setup, tmp_path):
        path = str(tmp_path / "c.yaml")
        main(["--config", path, "setup"])
        mock_setup.assert_called_once_with(path)
