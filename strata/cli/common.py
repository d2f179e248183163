"""Helpers shared by CLI commands."""

import logging

import click

from strata.core.config import Config
from strata.core.repository import Repository
from strata.cli.output import error, info

LOG_FORMAT = '%(levelname)s %(name)s: %(message)s'


def require_repository() -> Repository:
    """Repository containing the current directory, or abort."""
    repo = Repository.find_repository()
    if repo is None:
        click.echo(error("Not a strata repository (or any of the parent directories)"))
        click.echo(info("Use 'strata init' to create one"))
        raise click.Abort()
    return repo


def fail(exc: Exception) -> None:
    """Report an error and abort the command."""
    click.echo(error(str(exc)))
    raise click.Abort()


def configure_logging(verbose: int) -> None:
    """
    Set up root logging for a CLI run.

    -v selects INFO, -vv and more DEBUG; otherwise core.loglevel applies.
    """
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        repo = Repository.find_repository()
        config = repo.config if repo is not None else Config()
        level_name = (config.get('core', 'loglevel') or 'WARNING').upper()
        level = getattr(logging, level_name, None)
        if not isinstance(level, int):
            level = logging.WARNING

    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


