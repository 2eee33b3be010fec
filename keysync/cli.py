"""Command-line entry point running one synchronisation mode."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import os

from keysync.config import ActionMode, SyncConfig
from keysync.errors import ConfigError, SyncFailure
from keysync.github import GitHubCommentClient, GitHubConfig, GitHubConfigError
from keysync.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)
from keysync.observability import SyncEventLogger
from keysync.sync import SyncService, SyncServiceDependencies
from keysync.weblate import WeblateClient, WeblateConfig, WeblateConfigError

logger = get_logger(__name__)

_REDACTED = "***"


def redacted(config: WeblateConfig | GitHubConfig) -> dict[str, object]:
    """Return client configuration as a dict with the token masked."""
    values = dataclasses.asdict(config)
    if values.get("token"):
        values["token"] = _REDACTED
    return values


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keysync",
        description="Synchronise Weblate categories with repository branches.",
    )
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ActionMode],
        default=None,
        help="Operating mode; overrides KEYSYNC_MODE",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="femtologging level; overrides KEYSYNC_LOG_LEVEL",
    )
    return parser


async def _run(
    config: SyncConfig,
    weblate_config: WeblateConfig,
    github_config: GitHubConfig | None,
) -> None:
    weblate = WeblateClient(weblate_config)
    commenter = GitHubCommentClient(github_config) if github_config else None
    try:
        service = SyncService(
            SyncServiceDependencies(weblate=weblate, commenter=commenter),
            config,
            event_logger=SyncEventLogger(),
        )
        await service.run()
    finally:
        await weblate.aclose()
        if commenter is not None:
            await commenter.aclose()


def main(argv: list[str] | None = None) -> int:
    """Run the configured synchronisation mode.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 when configuration is invalid or the run
        ended in a classified failure.

    """
    args = _build_parser().parse_args(argv)
    raw_level = args.log_level or os.environ.get("KEYSYNC_LOG_LEVEL")
    level, invalid = configure_logging(raw_level, force=True)
    if invalid and raw_level:
        log_warning(logger, "Invalid log level; falling back to %s", level)

    try:
        config = SyncConfig.from_env(mode=args.mode)
        weblate_config = WeblateConfig.from_env(main_language=config.main_language)
        github_config = (
            GitHubConfig.from_env()
            if config.mode is ActionMode.VALIDATE_PULL_REQUEST
            else None
        )
    except (ConfigError, WeblateConfigError, GitHubConfigError) as exc:
        log_error(logger, "Invalid configuration: %s", exc)
        return 1

    log_info(logger, "Configuration: %s", dataclasses.asdict(config))
    log_info(logger, "Weblate: %s", redacted(weblate_config))
    if github_config is not None:
        log_info(logger, "GitHub: %s", redacted(github_config))

    try:
        asyncio.run(_run(config, weblate_config, github_config))
    except SyncFailure as exc:
        log_error(logger, "Synchronisation failed: %s", exc.message)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
