import asyncio
import os
import sys
import logging
from typing import Awaitable, Callable

import click
from dotenv import load_dotenv

from nvim_plugin_index.application.add_service import AddService
from nvim_plugin_index.application.index_service import IndexService
from nvim_plugin_index.domain.exceptions import ConfigurationError
from nvim_plugin_index.domain.models import RepositoryReference
from nvim_plugin_index.error_report import format_error
from nvim_plugin_index.infrastructure.github_client import GitHubRestClient
from nvim_plugin_index.infrastructure.index_store import DEFAULT_OUTPUT, JsonIndexStore

logger = logging.getLogger(__name__)

BACKTRACE_ENV = "NVIM_PLUGIN_INDEX_BACKTRACE"

def load_token() -> str:
    """Reads the GitHub token, preferring GITHUB_ACCESS_TOKEN over GITHUB_TOKEN."""
    token = os.getenv("GITHUB_ACCESS_TOKEN") or os.getenv("GITHUB_TOKEN")
    if not token:
        raise ConfigurationError("GITHUB_ACCESS_TOKEN is not set in the environment.")
    return token

def _execute(ctx: click.Context, command: Callable[[], Awaitable[object]]) -> None:
    try:
        asyncio.run(command())
    except KeyboardInterrupt:
        logger.info("Interrupted by user. Exiting.")
        ctx.exit(1)
    except Exception as e:
        click.echo(format_error(e, show_traceback=ctx.obj["backtrace"]), err=True)
        ctx.exit(1)

@click.group()
@click.option(
    "--log-level",
    default="INFO",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
)
@click.option(
    "--backtrace/--no-backtrace",
    default=False,
    envvar=BACKTRACE_ENV,
    show_envvar=True,
    help="Print tracebacks for fatal errors.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str, backtrace: bool) -> None:
    """Build and maintain a JSON index of Neovim plugins."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    ctx.obj = {"backtrace": backtrace}

@cli.command()
@click.argument("repository")
@click.option("-o", "--output", default=DEFAULT_OUTPUT, show_default=True, type=click.Path(dir_okay=False))
@click.pass_context
def add(ctx: click.Context, repository: str, output: str) -> None:
    """Add a new custom plugin.

    REPOSITORY is a GitHub repository in user/repo format (e.g., foo/bar).
    """
    async def command():
        RepositoryReference.parse(repository)
        service = AddService(github_client=GitHubRestClient(token=load_token()), index_store=JsonIndexStore(output))
        return await service.add(repository)

    _execute(ctx, command)

@cli.command(help="Build the plugin index")
@click.option("-o", "--output", default=DEFAULT_OUTPUT, show_default=True, type=click.Path(dir_okay=False))
@click.pass_context
def index(ctx: click.Context, output: str) -> None:
    async def command():
        service = IndexService(github_client=GitHubRestClient(token=load_token()), index_store=JsonIndexStore(output))
        return await service.run()

    _execute(ctx, command)

def main() -> None:
    # Load environment variables from .env file before click reads envvar defaults
    load_dotenv()
    cli()

if __name__ == "__main__":
    main()
