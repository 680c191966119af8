"""Shared CLI helpers and decorators."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

import click

from .cache import CacheStore
from .config import AppConfig, load_config
from .exceptions import ConfigurationError, ScoutError, ValidationError
from .logging import Logger, get_logger
from .utils import dump_json

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(slots=True)
class CLIContext:
    """Runtime context shared across CLI invocations."""

    config: AppConfig
    verbose: bool
    logger: Logger
    cache: CacheStore


pass_cli_context = click.make_pass_decorator(CLIContext)


def server_label(config: AppConfig) -> str:
    return f"{config.connection.host}:{config.connection.port}"


def common_cli_options(func: F) -> F:
    """Decorator injecting shared CLI options and context creation."""

    @click.option("--config", "config_path", type=click.Path(path_type=str), help="Path to config file.")
    @click.option("--database", "database", help="Override the default database.")
    @click.option("--no-cache", is_flag=True, help="Bypass the on-disk result cache.")
    @click.option("--verbose", is_flag=True, help="Enable verbose logging output.")
    @click.pass_context
    @functools.wraps(func)
    def wrapper(
        ctx: click.Context,
        *args: Any,
        config_path: str | None = None,
        database: str | None = None,
        no_cache: bool = False,
        verbose: bool = False,
        **kwargs: Any,
    ) -> Any:
        try:
            app_config = load_config(config_path)
        except ConfigurationError as exc:
            raise click.ClickException(str(exc)) from exc

        if database:
            app_config = app_config.with_database(database)
        if no_cache:
            app_config = app_config.with_cache_enabled(False)

        logger = get_logger(verbose=verbose)
        cache = CacheStore(app_config.cache, logger=logger.child("cache"), server=server_label(app_config))

        cli_ctx = CLIContext(
            config=app_config,
            verbose=verbose,
            logger=logger,
            cache=cache,
        )
        ctx.obj = cli_ctx
        kwargs["cli_ctx"] = cli_ctx
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def handle_cli_errors(func: F) -> F:
    """Convert project exceptions into Click-friendly errors."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ConfigurationError as exc:
            raise click.ClickException(f"Configuration error: {exc}") from exc
        except ValidationError as exc:
            raise click.UsageError(str(exc)) from exc
        except ScoutError as exc:
            raise click.ClickException(str(exc)) from exc
        except click.ClickException:
            raise
        except Exception as exc:  # pragma: no cover
            raise click.ClickException(f"Unexpected error: {exc}") from exc

    return wrapper  # type: ignore[return-value]


def echo_json(payload: Any) -> None:
    """Write a JSON document to stdout."""
    click.echo(dump_json(payload))
