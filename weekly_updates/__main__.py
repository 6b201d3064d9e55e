#!/usr/bin/env python3
"""Weekly GitHub PR updates posted to Slack.

Run modes:
  open-prs    open PRs waiting for reviews
  merged-prs  PRs merged in the last N weeks (1-4)
  all         open-prs, then merged-prs
  summary     executive summary of both (Claude, with a local fallback)
  preview     print both lists to the terminal without posting
  setup       interactive configuration wizard
"""

import argparse
import logging
import sys
import urllib.error

from weekly_updates.config import Config, load_config, validate_weeks_back
from weekly_updates.collect import collect_merged_prs, collect_open_prs
from weekly_updates.format_console import format_console
from weekly_updates.format_slack import DeliveryError, SlackNotifier
from weekly_updates.github_client import GitHubClient, UpstreamUnavailable
from weekly_updates.pipeline import (
    check_merged_prs,
    check_open_prs,
    send_executive_summary,
)
from weekly_updates.report_data import AISummary
from weekly_updates.summary import DEFAULT_MODEL, ClaudeSummarizer, generate_summary

# Failures that end a run with exit code 1
FATAL_ERRORS = (
    UpstreamUnavailable,
    DeliveryError,
    urllib.error.URLError,
    TimeoutError,
    ConnectionError,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="weekly-updates",
        description="Track GitHub PRs and send updates to Slack",
    )
    parser.add_argument("--config", dest="config_path", default=None, help="path to YAML config file (default: ~/.config/weekly-updates/config.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", default=False, help="enable debug logging (default: %(default)s)")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.add_parser("open-prs", help="check for open PRs waiting for reviews and send to Slack")

    weeks_help = "number of weeks to look back (default: configured default_weeks_back, max: 4)"
    merged = sub.add_parser("merged-prs", help="check for merged PRs from the last few weeks and send to Slack")
    merged.add_argument("-w", "--weeks", type=int, default=None, help=weeks_help)

    run_all = sub.add_parser("all", help="run both open PRs and merged PRs checks")
    run_all.add_argument("-w", "--weeks", type=int, default=None, help=weeks_help)

    summary = sub.add_parser("summary", help="send an executive summary (Claude AI, with a local fallback) to Slack")
    summary.add_argument("-w", "--weeks", type=int, default=None, help=weeks_help)

    preview = sub.add_parser("preview", help="print open and merged PRs without posting to Slack")
    preview.add_argument("-w", "--weeks", type=int, default=None, help=weeks_help)
    preview.add_argument("--summary", action="store_true", default=False, help="also print the executive summary (default: %(default)s)")

    sub.add_parser("setup", help="interactive configuration wizard")
    return parser


def _fail(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _resolve_weeks(args, cfg: Config) -> int:
    weeks = args.weeks if args.weeks is not None else cfg.default_weeks_back
    try:
        return validate_weeks_back(weeks, cfg.max_weeks_back)
    except ValueError as e:
        _fail(str(e))


def _require(cfg: Config, *names: str) -> None:
    missing = cfg.missing(*names)
    if missing:
        _fail(
            f"missing configuration: {', '.join(missing)}. "
            "Run 'weekly-updates setup' or set the matching environment variables."
        )


def _summarizer(cfg: Config):
    if not cfg.claude_api_key:
        return None
    return ClaudeSummarizer(cfg.claude_api_key, model=cfg.claude_model or DEFAULT_MODEL)


def main(argv=None):
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command is None:
        parser.print_help()
        return

    if args.command == "setup":
        from weekly_updates.wizard import run_setup
        run_setup(args.config_path)
        return

    cfg = load_config(args.config_path)
    weeks = None
    if args.command != "open-prs":
        weeks = _resolve_weeks(args, cfg)

    _require(cfg, "github_username")
    github = GitHubClient(token=cfg.github_token or None)
    username = cfg.github_username

    if args.command == "preview":
        try:
            open_prs = collect_open_prs(github, username)
            merged_prs = collect_merged_prs(github, username, weeks)
        except UpstreamUnavailable as e:
            _fail(str(e))
        print(format_console(open_prs, merged_prs, weeks))
        if args.summary:
            outcome = generate_summary(_summarizer(cfg), open_prs, merged_prs, weeks)
            label = "EXECUTIVE SUMMARY" if isinstance(outcome, AISummary) else "EXECUTIVE SUMMARY (fallback)"
            print(f"\U0001f4ca {label}:")
            print("=" * 50)
            print(outcome.text)
            print("=" * 50)
        return

    _require(cfg, "slack_bot_token", "slack_channel_id")
    notifier = SlackNotifier(cfg.slack_bot_token, cfg.slack_channel_id)

    try:
        if args.command in ("open-prs", "all"):
            print("\U0001f50d Checking for open PRs...", file=sys.stderr)
            check_open_prs(github, notifier, username)
            print("\u2705 Open PRs check completed!", file=sys.stderr)
        if args.command in ("merged-prs", "all"):
            print(f"\U0001f50d Checking merged PRs from the last {weeks} week(s)...", file=sys.stderr)
            check_merged_prs(github, notifier, username, weeks)
            print("\u2705 Merged PRs check completed!", file=sys.stderr)
        if args.command == "summary":
            print("\U0001f916 Generating executive summary...", file=sys.stderr)
            send_executive_summary(github, notifier, _summarizer(cfg), username, weeks)
            print("\u2705 Executive summary sent to Slack!", file=sys.stderr)
    except FATAL_ERRORS as e:
        _fail(str(e))


if __name__ == "__main__":
    main()
