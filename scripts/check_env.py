"""Pre-flight check for an Arnold deployment's environment file.

Loads ``AppSettings`` from the given file and reports what the running bridge
would get wrong with it:

* problems (always fatal): the Google redirect URI does not point at the
  bridge's OAuth callback, the analytics scope is missing, or the state TTL is
  not positive;
* warnings (fatal with ``--strict``): integrations that degrade silently when
  unset, such as Slack DMs, Slack request signing and the n8n relay.

``record`` stores a SHA256 baseline of a clean file and ``verify`` compares
against it, so edits made after a deploy are caught before a restart::

    python -m scripts.check_env record --env-file /opt/arnold/.env \
        --hash-file /opt/arnold/.env.sha256
    python -m scripts.check_env verify --env-file /opt/arnold/.env \
        --hash-file /opt/arnold/.env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from pydantic import ValidationError

from arnold.api.routes import OAUTH_CALLBACK_PATH
from arnold.core.config import AppSettings, _load_env_file

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_INCOMPLETE = 4
EXIT_RUNTIME_ERROR = 5

ANALYTICS_SCOPE = "https://www.googleapis.com/auth/analytics.readonly"


@dataclass
class ReadinessReport:
    problems: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def print(self) -> None:
        for line in self.problems:
            print(f"error: {line}", file=sys.stderr)
        for line in self.warnings:
            print(f"warning: {line}", file=sys.stderr)


def assess(settings: AppSettings) -> ReadinessReport:
    """Check the loaded settings against what the bridge relies on at runtime."""
    report = ReadinessReport()

    redirect_path = settings.google.redirect_uri.path or ""
    if redirect_path.rstrip("/") != OAUTH_CALLBACK_PATH:
        report.problems.append(
            f"GOOGLE_REDIRECT_URI path is {redirect_path!r}; Google would redirect "
            f"away from the callback at {OAUTH_CALLBACK_PATH}"
        )
    if ANALYTICS_SCOPE not in settings.oauth.scopes:
        report.problems.append(
            "OAUTH_SCOPES lacks analytics.readonly; property discovery would fail"
        )
    if settings.oauth.state_ttl_seconds <= 0:
        report.problems.append("OAUTH_STATE_TTL must be positive")

    if not settings.slack.bot_token:
        report.warnings.append(
            "SLACK_BOT_TOKEN unset: property menus and confirmations are not sent"
        )
    if not settings.slack.signing_secret:
        report.warnings.append(
            "SLACK_SIGNING_SECRET unset: Slack requests are not authenticated"
        )
    if not settings.automation.webhook_url:
        report.warnings.append("N8N_WEBHOOK_URL unset: Slack events are not relayed")
    if settings.credential_store.base_url.scheme != "https":
        report.warnings.append(
            "MCP_SERVER_URL is not https: the store API key travels in clear text"
        )
    return report


def _load(env_file: Path) -> AppSettings:
    if not env_file.exists():
        raise FileNotFoundError(f"Environment file {env_file} does not exist.")
    _load_env_file(str(env_file))
    return AppSettings()  # type: ignore[call-arg]


def _checksum(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _record(env_file: Path, hash_file: Path) -> int:
    checksum = _checksum(env_file)
    hash_file.write_text(f"{checksum}\n", encoding="utf-8")
    print(f"Recorded checksum to {hash_file} ({checksum})")
    return EXIT_OK


def _verify(env_file: Path, hash_file: Path) -> int:
    if not hash_file.exists():
        print(
            f"No baseline at {hash_file}; run 'record' after the next clean deploy.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    expected = hash_file.read_text(encoding="utf-8").strip()
    actual = _checksum(env_file)
    if expected != actual:
        print(
            f"{env_file} changed since the baseline was recorded "
            f"(expected {expected}, found {actual}).",
            file=sys.stderr,
        )
        return EXIT_CHECKSUM_ERROR
    print("Environment checksum OK.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--env-file", default=".env", type=Path)
    common.add_argument(
        "--strict",
        action="store_true",
        help="Treat warnings about optional integrations as failures.",
    )
    with_baseline = argparse.ArgumentParser(add_help=False, parents=[common])
    with_baseline.add_argument("--hash-file", required=True, type=Path)

    parser = argparse.ArgumentParser(description="Pre-flight check for Arnold's .env.")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("check", parents=[common], help="Report problems and warnings.")
    commands.add_parser(
        "record", parents=[with_baseline], help="Check, then store a checksum baseline."
    )
    commands.add_parser(
        "verify", parents=[with_baseline], help="Check, then compare with the baseline."
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        settings = _load(args.env_file)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except ValidationError as exc:
        print(f"Settings validation failed:\n{exc.json(indent=2)}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    report = assess(settings)
    report.print()
    if report.problems:
        return EXIT_VALIDATION_ERROR
    if args.strict and report.warnings:
        return EXIT_INCOMPLETE

    if args.command == "record":
        return _record(args.env_file, args.hash_file)
    if args.command == "verify":
        return _verify(args.env_file, args.hash_file)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
