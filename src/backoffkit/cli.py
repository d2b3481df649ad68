"""CLI interface for backoffkit"""

import logging
import signal
import subprocess
import threading
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

import click
import yaml

from backoffkit.application.runner import run
from backoffkit.domain.config import BackoffSettings, new_config
from backoffkit.domain.policy.base import BudgetRetryer
from backoffkit.infrastructure.config.config_manager import ConfigManager, ConfigurationError
from backoffkit.infrastructure.policy_factory import RetryerFactory

logger = logging.getLogger(__name__)


class CommandFailedError(Exception):
    """A command exited with a non-zero status."""

    def __init__(self, returncode: int, command: Sequence[str]):
        self.returncode = returncode
        self.command = list(command)
        super().__init__(f"'{' '.join(self.command)}' exited with status {returncode}")


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
    for logger_name in logging.Logger.manager.loggerDict:
        logging.getLogger(logger_name).setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def _load_config(ctx: click.Context) -> ConfigManager:
    try:
        return ConfigManager(config_path=ctx.obj.get("config_path"))
    except ConfigurationError as e:
        _die(str(e), verbose=ctx.obj.get("verbose", False), exc=e)


def _resolve_settings(config_manager: ConfigManager, **overrides: Any) -> BackoffSettings:
    """Apply CLI overrides on top of the loaded settings

    Args:
        config_manager: Configuration manager
        **overrides: Settings given on the command line (None means not given)

    Returns:
        Effective backoff settings
    """
    settings = config_manager.get_backoff_settings()
    update = {k: v for k, v in overrides.items() if v is not None}
    if not update:
        return settings
    return BackoffSettings(**{**settings.model_dump(), **update})


def _create_retryer(settings: BackoffSettings) -> BudgetRetryer:
    logger.debug(f"Using retry policy: {settings.policy}")
    return RetryerFactory.create(settings.policy, new_config(*settings.to_options()))


def _format_delay(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.3f}ms"
    return f"{seconds:.3f}s"


def policy_options(func: Callable) -> Callable:
    """Options overriding the configured backoff settings"""
    func = click.option("--seed", type=int, help="Seed for reproducible delays")(func)
    func = click.option("--max-wait", type=float, help="Upper limit of a delay, in seconds")(func)
    func = click.option("--multiplier", type=float, help="Base delay, in seconds")(func)
    func = click.option("--max-retries", type=int, help="Retries after the first attempt")(func)
    func = click.option(
        "--policy",
        type=click.Choice(list(RetryerFactory.POLICIES), case_sensitive=False),
        help="Retry policy. Overrides config.",
    )(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .backoff.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """backoffkit - retries with decorrelated jitter backoff"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@policy_options
@click.pass_context
def schedule(ctx, policy, max_retries, multiplier, max_wait, seed):
    """Print the delays a policy would wait between attempts."""
    config_manager = _load_config(ctx)
    settings = _resolve_settings(
        config_manager,
        policy=policy,
        max_retries=max_retries,
        multiplier=multiplier,
        max_wait=max_wait,
        seed=seed,
    )
    retryer = _create_retryer(settings)

    attempt = 0
    while retryer.next():
        attempt += 1
        d = retryer.delay()
        if d > 0:
            click.echo(f"{attempt} attempt; retrying in {_format_delay(d)}")
        else:
            click.echo(f"{attempt} attempt;")


@cli.command("config")
@click.pass_context
def show_config(ctx):
    """Print the effective configuration as YAML."""
    config_manager = _load_config(ctx)
    click.echo(yaml.safe_dump(config_manager.config.model_dump(), sort_keys=False), nl=False)


@cli.command(context_settings={"ignore_unknown_options": True})
@policy_options
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def retry(ctx, policy, max_retries, multiplier, max_wait, seed, command):
    """Run COMMAND until it exits with status 0.

    Put the command after "--", e.g. backoffkit retry --max-retries 3 -- curl -f URL
    """
    verbose = ctx.obj.get("verbose", False)
    config_manager = _load_config(ctx)
    settings = _resolve_settings(
        config_manager,
        policy=policy,
        max_retries=max_retries,
        multiplier=multiplier,
        max_wait=max_wait,
        seed=seed,
    )
    retryer = _create_retryer(settings)

    def work(attempt: int) -> None:
        logger.info(f"Attempt {attempt}: {' '.join(command)}")
        completed = subprocess.run(list(command))
        if completed.returncode != 0:
            raise CommandFailedError(completed.returncode, command)

    cancel = threading.Event()
    previous = {}

    def _cancel(signum, frame):
        logger.info(f"Received signal {signum}, not retrying any more")
        cancel.set()

    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, _cancel)
    try:
        err = run(cancel, retryer, work)
    finally:
        for signum, handler in previous.items():
            # None means the handler wasn't installed from Python.
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)

    if err is None:
        return
    if isinstance(err, CommandFailedError):
        logger.error(f"Giving up: {err}")
        ctx.exit(err.returncode)
    _die(f"Command failed: {err}", verbose=verbose, exc=err)


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
