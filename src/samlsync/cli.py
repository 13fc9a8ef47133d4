"""Administrative command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

import click
import structlog
from pydantic import TypeAdapter, ValidationError
from safir.asyncio import run_with_asyncio
from safir.click import display_help

from .config import Config
from .constants import CONFIG_PATH
from .database import create_samlsync_engine, initialize_samlsync_database
from .exceptions import NotConfiguredError
from .factory import Factory
from .models.attributes import build_attribute_bag
from .models.result import Rejected

__all__ = [
    "help",
    "init",
    "main",
    "reconcile",
]

_ATTRIBUTES_ADAPTER = TypeAdapter(dict[str, str | list[str]])
"""Parser for attribute files, which may use strings for single values."""


def _load_config(ctx: click.Context, config_path: Path | None) -> Config:
    """Get the configuration for a command.

    An explicit configuration path always wins. Otherwise, a configuration
    passed by the caller as the context object is used, and only if there is
    none is the configuration loaded from the default path.
    """
    if not config_path and isinstance(ctx.obj, Config):
        return ctx.obj
    config = Config.from_file(config_path or Path(CONFIG_PATH))
    config.configure_logging()
    return config


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(message="%(version)s")
def main() -> None:
    """Administrative command-line interface for samlsync."""


@main.command()
@click.argument("topic", default=None, required=False, nargs=1)
@click.pass_context
def help(ctx: click.Context, topic: str | None) -> None:
    """Show help for any command."""
    display_help(main, ctx, topic)


@main.command()
@click.option(
    "--config-path",
    envvar="SAMLSYNC_CONFIG_PATH",
    type=click.Path(path_type=Path),
    default=None,
    help="Application configuration file.",
)
@click.option(
    "--reset", default=False, is_flag=True, help="Delete all existing users"
)
@click.pass_context
@run_with_asyncio
async def init(
    ctx: click.Context, *, config_path: Path | None, reset: bool
) -> None:
    """Initialize the user directory database."""
    config = _load_config(ctx, config_path)
    logger = structlog.get_logger("samlsync")
    try:
        engine = create_samlsync_engine(config)
    except NotConfiguredError as e:
        raise click.UsageError(str(e)) from e
    logger.debug("Initializing database")
    try:
        await initialize_samlsync_database(engine, logger, reset=reset)
    finally:
        await engine.dispose()
    logger.debug("Finished initializing database")


@main.command()
@click.argument(
    "attributes_file", type=click.Path(exists=True, path_type=Path)
)
@click.option(
    "--config-path",
    envvar="SAMLSYNC_CONFIG_PATH",
    type=click.Path(path_type=Path),
    default=None,
    help="Application configuration file.",
)
@click.pass_context
@run_with_asyncio
async def reconcile(
    ctx: click.Context, *, attributes_file: Path, config_path: Path | None
) -> None:
    """Reconcile an assertion with the user directory.

    ATTRIBUTES_FILE is a JSON object mapping attribute names to a value or a
    list of values, as released by the identity provider. The account is
    created or updated as it would be on login, and the outcome is printed
    as JSON. Exits with status 1 if the assertion is rejected.
    """
    config = _load_config(ctx, config_path)
    try:
        raw = _ATTRIBUTES_ADAPTER.validate_json(attributes_file.read_bytes())
    except ValidationError as e:
        msg = f"Invalid attributes file {attributes_file}: {e!s}"
        raise click.UsageError(msg) from e
    try:
        engine = create_samlsync_engine(config)
    except NotConfiguredError as e:
        raise click.UsageError(str(e)) from e
    try:
        async with Factory.standalone(config, engine) as factory:
            reconciler = factory.create_reconciliation_service()
            async with factory.session.begin():
                result = await reconciler.reconcile_attributes(
                    build_attribute_bag(raw)
                )
    finally:
        await engine.dispose()
    click.echo(json.dumps(result.to_dict(), indent=2))
    if isinstance(result, Rejected):
        raise click.exceptions.Exit(1)
