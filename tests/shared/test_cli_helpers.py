from __future__ import annotations

from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from scout_cli.shared.cli import CLIContext, common_cli_options, handle_cli_errors, pass_cli_context
from scout_cli.shared.config import AppConfig, load_config
from scout_cli.shared.exceptions import ConfigurationError, QueryError, ValidationError


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def stub_config(monkeypatch: pytest.MonkeyPatch, scout_env: dict[str, str]) -> AppConfig:
    config = load_config(env=scout_env)
    monkeypatch.setattr("scout_cli.shared.cli.load_config", lambda config_path: config)
    return config


def test_common_cli_options_builds_context(runner: CliRunner, stub_config: AppConfig) -> None:
    @click.command()
    @common_cli_options
    def sample(cli_ctx: CLIContext) -> None:
        click.echo(f"db={cli_ctx.config.connection.database} cache={cli_ctx.cache.enabled}")

    result = runner.invoke(sample, [])

    assert result.exit_code == 0, result.output
    assert "db=shop cache=True" in result.output


def test_database_and_no_cache_flags_override_config(runner: CliRunner, stub_config: AppConfig) -> None:
    @click.command()
    @common_cli_options
    def sample(cli_ctx: CLIContext) -> None:
        click.echo(f"db={cli_ctx.config.connection.database} cache={cli_ctx.cache.enabled}")

    result = runner.invoke(sample, ["--database", "analytics", "--no-cache"])

    assert result.exit_code == 0, result.output
    assert "db=analytics cache=False" in result.output


def test_context_reaches_subcommands(runner: CliRunner, stub_config: AppConfig) -> None:
    @click.group()
    @common_cli_options
    def group(cli_ctx: CLIContext) -> None:
        pass

    @group.command()
    @pass_cli_context
    def child(cli_ctx: CLIContext) -> None:
        click.echo(f"verbose={cli_ctx.verbose}")

    result = runner.invoke(group, ["--verbose", "child"])

    assert result.exit_code == 0, result.output
    assert "verbose=True" in result.output


def test_configuration_errors_surface_as_click_errors(
    monkeypatch: pytest.MonkeyPatch, runner: CliRunner
) -> None:
    def broken(config_path: str | None) -> AppConfig:
        raise ConfigurationError("bad yaml")

    monkeypatch.setattr("scout_cli.shared.cli.load_config", broken)

    @click.command()
    @common_cli_options
    def sample(cli_ctx: CLIContext) -> None:  # pragma: no cover - never reached
        click.echo("unreachable")

    result = runner.invoke(sample, [])

    assert result.exit_code == 1
    assert "bad yaml" in result.output


def test_handle_cli_errors_maps_validation_to_usage_error(runner: CliRunner) -> None:
    @click.command()
    @handle_cli_errors
    def sample() -> None:
        raise ValidationError("Tables array is required")

    result = runner.invoke(sample, [])

    assert result.exit_code == 2
    assert "Tables array is required" in result.output


def test_handle_cli_errors_maps_scout_errors(runner: CliRunner) -> None:
    @click.command()
    @handle_cli_errors
    def sample() -> None:
        raise QueryError("Query failed: (1146) Table 'shop.nope' doesn't exist")

    result = runner.invoke(sample, [])

    assert result.exit_code == 1
    assert "Query failed" in result.output


def test_handle_cli_errors_prefixes_configuration_errors(runner: CliRunner, tmp_path: Path) -> None:
    @click.command()
    @handle_cli_errors
    def sample() -> None:
        raise ConfigurationError(f"missing {tmp_path}")

    result = runner.invoke(sample, [])

    assert result.exit_code == 1
    assert "Configuration error: missing" in result.output
