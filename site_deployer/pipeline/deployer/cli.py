"""CLI entrypoint and logging/argument utilities for the site deployer.

This module is a thin orchestration layer: it parses arguments, configures
logging, loads :class:`WordPressConfig` from the environment and validates the
site file, then hands everything to :class:`SiteDeployer`. No deployment logic
lives here.

Two subcommands are available:

``deploy SITE_JSON``
    Publish a generated site. ``--dry-run`` forces every page to draft,
    ``--continue-on-error`` keeps publishing after a failed page,
    ``--update-navigation`` declares the menu and ``--rollback-on-failure``
    undoes a deployment that finished with errors. The outcome is rendered as
    a Rich table, or as JSON with ``--json``.
``check``
    Verify the URL and credentials by fetching the authenticated user.

Exit codes are 0 on success, 1 when the deployment (or check) failed and 2 on
configuration or input errors.

Examples
--------
>>> # In shell
>>> site-deployer deploy build/site.json --dry-run --update-navigation
>>> site-deployer check
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from site_deployer.config import LOG_DIR, LOG_FILENAME_DEPLOYER, LOG_FORMAT
from site_deployer.exceptions import AppError, ConfigurationError, RollbackError

from .client import WordPressClient
from .config import WordPressConfig
from .deploy import create_deployer_from_client
from .models import DeploymentOptions, DeploymentResult, GeneratedSite

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def configure_logging(level: str = "INFO", enable_file: bool = True) -> None:
    """Configure root logging for the CLI.

    Installs a stream handler and, unless disabled, a file handler appending
    to ``logs/deployer.log``. All previous root handlers are removed. A file
    handler that cannot be created is skipped so that read-only checkouts
    still run.

    Parameters
    ----------
    level : str, optional
        Logging level name; unknown names fall back to INFO.
    enable_file : bool, optional
        Whether to also log to the deployer log file.
    """
    for h in logging.root.handlers[:]:
        logging.root.removeHandler(h)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if enable_file:
        try:
            LOG_DIR.mkdir(exist_ok=True)
            handlers.insert(
                0, logging.FileHandler(LOG_DIR / LOG_FILENAME_DEPLOYER, mode="a")
            )
        except OSError as exc:
            logger.debug(f"File logging disabled: {exc}")
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments.

    Returns
    -------
    argparse.Namespace
        Always has ``command`` and ``log_level``; ``deploy`` adds ``site``,
        ``dry_run``, ``update_navigation``, ``continue_on_error``,
        ``rollback_on_failure`` and ``json``.
    """
    parser = argparse.ArgumentParser(
        prog="site-deployer", description="Deploy generated sites to WordPress."
    )
    parser.add_argument(
        "--log-level", type=str, default=os.environ.get("LOG_LEVEL", "INFO")
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    deploy = subparsers.add_parser("deploy", help="Publish a generated site.")
    deploy.add_argument("site", type=Path, help="Path to the generated site JSON file.")
    deploy.add_argument("--dry-run", action="store_true")
    deploy.add_argument("--update-navigation", action="store_true")
    deploy.add_argument("--continue-on-error", action="store_true")
    deploy.add_argument("--rollback-on-failure", action="store_true")
    deploy.add_argument("--json", action="store_true", help="Print the result as JSON.")

    subparsers.add_parser("check", help="Verify URL and credentials.")
    return parser.parse_args(argv)


def load_site(path: Path) -> GeneratedSite:
    """Read and validate a generated site file.

    Raises
    ------
    ConfigurationError
        If the file cannot be read, is not JSON or does not describe a site.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(
            f"Cannot read site file: {exc}", context={"path": str(path)}
        ) from exc
    try:
        return GeneratedSite.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Invalid site file: {exc.error_count()} validation error(s)",
            context={"path": str(path), "errors": exc.errors(include_url=False)},
        ) from exc


async def run_deploy(
    config: WordPressConfig,
    site: GeneratedSite,
    options: DeploymentOptions,
    *,
    rollback_on_failure: bool = False,
) -> DeploymentResult:
    """Deploy ``site`` and optionally roll back a failed deployment."""
    async with WordPressClient(config) as client:
        deployer = create_deployer_from_client(client)
        result = await deployer.deploy(site, options)
        if not result.success and rollback_on_failure:
            logger.warning(f"Rolling back failed deployment {result.deployment_id}")
            try:
                await deployer.rollback(result.deployment_id)
            except RollbackError as exc:
                logger.error(f"Rollback incomplete: {exc}")
        return result


async def run_check(config: WordPressConfig) -> str:
    """Return the display name of the authenticated user."""
    async with WordPressClient(config) as client:
        user = await client.check_connection()
    return user.name


def render_summary(result: DeploymentResult, console: Console | None = None) -> None:
    """Print a human-readable table of pages, media and errors."""
    console = console or Console()
    status = "[green]success[/green]" if result.success else "[red]failed[/red]"
    console.print(f"Deployment [bold]{result.deployment_id}[/bold]: {status} ({result.state.value})")

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Kind", style="bold")
    table.add_column("ID")
    table.add_column("Source")
    table.add_column("URL")
    for page in result.pages:
        table.add_row("page", str(page.id), page.slug, page.url)
    for media in result.media:
        table.add_row("media", str(media.id), media.original_url, media.wp_url)
    console.print(table)

    for error in result.errors:
        console.print(f"[red]error:[/red] {error}")
    if result.timing is not None:
        console.print(f"Duration: {result.timing.duration_ms} ms")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the site deployer CLI and return the process exit code."""
    args = parse_arguments(argv)
    configure_logging(args.log_level, enable_file=not os.environ.get("DISABLE_FILE_LOGS"))

    try:
        config = WordPressConfig.from_env()
        if args.command == "check":
            name = asyncio.run(run_check(config))
            Console().print(f"Connected to {config.base_url} as [bold]{name}[/bold]")
            return EXIT_OK
        site = load_site(args.site)
    except ConfigurationError as exc:
        logger.error(f"Configuration error: {exc}")
        return EXIT_CONFIG_ERROR
    except AppError as exc:
        logger.error(f"Connection check failed: {exc}")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return EXIT_FAILURE

    options = DeploymentOptions(
        dry_run=args.dry_run,
        update_navigation=args.update_navigation,
        continue_on_error=args.continue_on_error,
    )
    try:
        result = asyncio.run(
            run_deploy(config, site, options, rollback_on_failure=args.rollback_on_failure)
        )
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return EXIT_FAILURE

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        render_summary(result)
    return EXIT_OK if result.success else EXIT_FAILURE


__all__ = ["configure_logging", "load_site", "main", "parse_arguments", "render_summary"]


if __name__ == "__main__":
    raise SystemExit(main())
