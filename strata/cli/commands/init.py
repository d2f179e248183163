"""Initialize a new Strata repository."""

import click
from pathlib import Path

from strata.core.errors import StrataError
from strata.core.repository import Repository
from strata.cli.common import fail
from strata.cli.output import success, info


@click.command('init')
@click.argument('path', default='.')
@click.option('-b', '--branch', default=None, help='Name of the initial branch')
def init_cmd(path, branch):
    """
    Initialize a new Strata repository.

    Creates a .strata directory holding the object store, references,
    HEAD and configuration.

    Examples:
        strata init                  # Initialize in current directory
        strata init my-project       # Initialize in my-project directory
        strata init -b trunk         # Start on branch 'trunk'
    """
    try:
        repo = Repository(Path(path))
        repo.init(default_branch=branch)
    except (StrataError, PermissionError) as e:
        fail(e)

    click.echo(success(f"Initialized empty Strata repository in {repo.control_dir}"))
    click.echo(info(f"On branch {repo.refs.current_branch()}"))
