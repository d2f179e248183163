"""Checkout command - switch branches or detach at a commit."""

import click

from strata.core.errors import StrataError, UncommittedChangesError
from strata.cli.common import require_repository, fail
from strata.cli.output import success, error, info, warning, short


@click.command('checkout')
@click.option('-b', '--create-branch', 'create', is_flag=True, help='Create the branch at HEAD first')
@click.option('--detach', is_flag=True, help='Detach HEAD at the named commit')
@click.argument('target')
def checkout_cmd(create, detach, target):
    """
    Switch branches or detach HEAD at a commit.

    Fails without touching any file if local changes would be overwritten.

    Examples:
        strata checkout main            # Switch to 'main'
        strata checkout -b feature      # Create 'feature' at HEAD and switch
        strata checkout 3f9a1c2d        # Detached HEAD at a commit
        strata checkout v1.0            # Detached HEAD at a tag
    """
    repo = require_repository()

    try:
        if create:
            if repo.refs.resolve_head() is None:
                repo.switch_branch(target)
                click.echo(success(f"Switched to a new branch '{target}'"))
                return
            repo.create_branch(target)

        count = repo.checkout(target, detach=detach)
    except UncommittedChangesError as e:
        click.echo(error("Your local changes would be overwritten by checkout:"))
        for path in e.paths:
            click.echo(f"    {path}")
        click.echo(info("Commit your changes or remove them before you switch"))
        raise click.Abort()
    except StrataError as e:
        fail(e)

    branch = repo.refs.current_branch()
    if branch:
        click.echo(success(f"Switched to branch '{branch}'"))
    else:
        click.echo(warning(f"HEAD is now at {short(repo.refs.resolve_head())} (detached HEAD)"))
    click.echo(info(f"Updated {count} file(s)"))
