"""CLI interface for retrykit"""

import logging
import random
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError

from retrykit.domain.config.http import HttpConfig
from retrykit.domain.config.retry import PRESETS, RetryConfig
from retrykit.domain.models.error import ClassifiedError
from retrykit.infrastructure.backoff import delay_schedule
from retrykit.infrastructure.config.config_manager import ConfigManager, ConfigurationError
from retrykit.infrastructure.http_client import send_with_retries

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def _resolve_retry_config(ctx: click.Context, preset: Optional[str]) -> RetryConfig:
    """Retry policy from --preset, falling back to the loaded configuration"""
    verbose = ctx.obj.get("verbose", False)
    if preset:
        try:
            return RetryConfig.preset(preset)
        except ValueError as e:
            _die(str(e), verbose=verbose, exc=e)
    try:
        return ConfigManager(config_path=ctx.obj.get("config_path")).get_retry_config()
    except ConfigurationError as e:
        _die(str(e), verbose=verbose, exc=e)


def _format_config(config: RetryConfig) -> str:
    jitter = "on" if config.use_jitter else "off"
    return (
        f"max_attempts={config.max_attempts} initial_delay={config.initial_delay:g}s "
        f"backoff_multiplier={config.backoff_multiplier:g} max_delay={config.max_delay:g}s jitter={jitter}"
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .retrykit.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """retrykit - retries with exponential backoff and jitter"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
def presets():
    """List the built-in retry presets."""
    for name, config in PRESETS.items():
        click.echo(f"{name:<12}{_format_config(config)}")


@cli.command()
@click.option("--preset", type=str, help="Preset to use (quick, standard, aggressive). Overrides config.")
@click.option("--no-jitter", is_flag=True, help="Show delays without jitter")
@click.option("--seed", type=int, help="Seed the jitter random source")
@click.pass_context
def schedule(ctx, preset: Optional[str], no_jitter: bool, seed: Optional[int]):
    """Show the delay before each retry of a policy."""
    config = _resolve_retry_config(ctx, preset)
    if no_jitter:
        config = config.model_copy(update={"use_jitter": False})

    click.echo(_format_config(config))
    rng = random.Random(seed) if seed is not None else None
    delays = delay_schedule(config, rng)
    if not delays:
        click.echo("No retries: a single attempt is made.")
        return
    for attempt, delay in enumerate(delays, start=1):
        click.echo(f"after attempt {attempt}: wait {delay:.3f}s")


@cli.command()
@click.argument("url", type=str)
@click.option("--preset", type=str, help="Preset to use (quick, standard, aggressive). Overrides config.")
@click.option("--method", "-X", type=str, default="GET", show_default=True, help="HTTP method")
@click.option("--timeout", type=float, help="Per-attempt timeout in seconds. Overrides config.")
@click.pass_context
def fetch(ctx, url: str, preset: Optional[str], method: str, timeout: Optional[float]):
    """Send an HTTP request, retrying transient failures.

    URL: Address to request
    """
    verbose = ctx.obj.get("verbose", False)
    retry_config = _resolve_retry_config(ctx, preset)
    try:
        http_config = ConfigManager(config_path=ctx.obj.get("config_path")).get_http_config()
    except ConfigurationError as e:
        _die(str(e), verbose=verbose, exc=e)

    if timeout is not None:
        try:
            http_config = HttpConfig(timeout=timeout, headers=http_config.headers)
        except ValidationError as e:
            _die(f"Invalid --timeout {timeout}: must be greater than 0", verbose=verbose, exc=e)

    logger.info(f"Fetching {url} ({_format_config(retry_config)})")
    try:
        response = send_with_retries(
            method,
            url,
            retry_config=retry_config,
            timeout=http_config.timeout,
            headers=http_config.headers or None,
        )
    except ClassifiedError as e:
        _die(f"Request failed ({e.kind.value}): {e.message}", verbose=verbose, exc=e)

    click.echo(f"HTTP {response.status_code}")
    click.echo(response.text)


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
