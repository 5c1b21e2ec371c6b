"""
Click command definitions for the vyra CLI.

This module contains the Click command group and all CLI commands
(generate, usage, history).
"""

import click

from vyra import __version__
from vyra.api import AuthContext, call_generate_image
from vyra.cli import progress
from vyra.cli.handlers import run_with_error_handling
from vyra.core.clients import ProviderClients
from vyra.core.config import Config
from vyra.core.ledger import TransactionalLedger
from vyra.core.orchestrator import Orchestrator, utc_today
from vyra.core.quota import QuotaGate, daily_limit, resolve_tier
from vyra.logging_config import configure_logging, get_verbosity_from_env


def _load_config(database: str | None, debug_api: bool = False) -> Config:
    config = Config.from_env()
    if database:
        config.database_path = database
    if debug_api:
        config.debug_api = True
    config.validate()
    return config


def _apply_verbosity(verbose_count: int, quiet: bool) -> None:
    # CLI flags override VYRA_VERBOSITY
    verbose_level = min(verbose_count, 2) if verbose_count > 0 else get_verbosity_from_env()
    configure_logging(verbose_level=verbose_level, quiet=quiet)


user_option = click.option(
    "--user",
    "-u",
    "user_id",
    required=True,
    envvar="VYRA_USER",
    help="User id to act as (or VYRA_USER).",
)
database_option = click.option(
    "--database",
    type=click.Path(dir_okay=False),
    default=None,
    help="SQLite database path (default from VYRA_DATABASE_PATH or vyra.db).",
)


@click.group(help=f"Quota-enforced AI image generation.\n\n\b\nVersion: {__version__}")
@click.version_option(version=__version__, package_name="vyra")
@click.pass_context
def cli(ctx: click.Context) -> None:
    ctx.color = True


@cli.command()
@user_option
@click.option("--prompt", "-p", required=True, help="Text description of the image to generate.")
@click.option("--style", "-s", default=None, help="Free-form style descriptor.")
@click.option(
    "--premium",
    is_flag=True,
    help="Declare the premium tier (honored only with VYRA_TRUST_CLIENT_TIER).",
)
@database_option
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Minimize progress messages; only print the image URL or errors.",
)
@click.option(
    "--verbose",
    "-v",
    "verbose_count",
    count=True,
    help="Increase verbosity: -v also show prompts, -vv show stage and API detail.",
)
@click.option(
    "--debug-api",
    is_flag=True,
    help="Log raw provider request payloads and responses.",
)
def generate(
    user_id: str,
    prompt: str,
    style: str | None,
    premium: bool,
    database: str | None,
    quiet: bool,
    verbose_count: int,
    debug_api: bool,
) -> None:
    """Generate an image from a text prompt, counted against the user's daily quota."""
    _apply_verbosity(verbose_count, quiet)

    def do_generate() -> None:
        config = _load_config(database, debug_api)
        orchestrator = Orchestrator(ProviderClients(config))
        data = {"prompt": prompt, "style": style, "isPremium": premium}
        auth = AuthContext(uid=user_id)

        if quiet:
            result = call_generate_image(auth, data, orchestrator)
        else:
            with progress.generation_progress(model=config.image_model):
                result = call_generate_image(auth, data, orchestrator)
            progress.print_success_result(result["imageUrl"], prompt, result["optimizedPrompt"])
        # URL on stdout for scriptability
        click.echo(result["imageUrl"])

    run_with_error_handling(do_generate, quiet=quiet, debug=debug_api)


@cli.command()
@user_option
@click.option("--premium", is_flag=True, help="Declared tier used to pick the displayed limit.")
@database_option
def usage(user_id: str, premium: bool, database: str | None) -> None:
    """Show a user's generation count for today, lifetime total and XP."""
    configure_logging(verbose_level=get_verbosity_from_env(), quiet=False)

    def do_usage() -> None:
        config = _load_config(database)
        clients = ProviderClients(config)
        today = utc_today()
        record = QuotaGate(clients, config).read_record(user_id)
        tier = resolve_tier(record, premium, config.trust_client_tier)
        progress.print_usage(user_id, record, today, daily_limit(tier, config))

    run_with_error_handling(do_usage)


@cli.command()
@user_option
@click.option("--limit", "-n", type=click.IntRange(min=1), default=20, show_default=True)
@database_option
def history(user_id: str, limit: int, database: str | None) -> None:
    """List a user's recorded generations, newest first."""
    configure_logging(verbose_level=get_verbosity_from_env(), quiet=False)

    def do_history() -> None:
        config = _load_config(database)
        ledger = TransactionalLedger(ProviderClients(config), config)
        progress.print_history(ledger.history(user_id, limit=limit))

    run_with_error_handling(do_history)


def main() -> None:
    """Entry point for the vyra console script."""
    cli()


__all__ = ["cli", "main", "generate", "usage", "history"]
