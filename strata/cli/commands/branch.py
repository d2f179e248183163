"""Branch and tag commands."""

import click
from colorama import Fore, Style

from strata.core.errors import StrataError
from strata.core.refs import TAGS_PREFIX, validate_ref_name
from strata.cli.common import require_repository, fail
from strata.cli.output import success, info, short


@click.command('branch')
@click.argument('name', required=False)
@click.argument('start', required=False)
@click.option('-d', '--delete', is_flag=True, help='Delete the branch')
@click.option('-f', '--force', is_flag=True, help='Delete even if not merged into HEAD')
def branch_cmd(name, start, delete, force):
    """
    List, create or delete branches.

    Examples:
        strata branch                  # List branches
        strata branch feature          # Create 'feature' at HEAD
        strata branch fix 3f9a1c2d     # Create 'fix' at a commit
        strata branch -d feature       # Delete 'feature' if HEAD contains it
        strata branch -d -f spike      # Delete 'spike' regardless
    """
    repo = require_repository()

    try:
        if name is None:
            current = repo.refs.current_branch()
            for branch in sorted(repo.refs.list_branches()):
                digest = repo.refs.get_ref(f"refs/heads/{branch}")
                if branch == current:
                    click.echo(f"* {Fore.GREEN}{branch}{Style.RESET_ALL} {short(digest)}")
                else:
                    click.echo(f"  {branch} {short(digest)}")
            return

        if delete:
            repo.delete_branch(name, force)
            click.echo(success(f"Deleted branch {name}"))
            return

        digest = repo.create_branch(name, start)
        click.echo(success(f"Created branch {name} at {short(digest)}"))
    except StrataError as e:
        fail(e)


@click.command('tag')
@click.argument('name', required=False)
@click.argument('target', required=False)
@click.option('-d', '--delete', is_flag=True, help='Delete the tag')
@click.option('-f', '--force', is_flag=True, help='Move an existing tag')
def tag_cmd(name, target, delete, force):
    """
    List, create or delete tags.

    Examples:
        strata tag                 # List tags
        strata tag v1.0            # Tag HEAD
        strata tag v0.9 3f9a1c2d   # Tag a commit
        strata tag -d v1.0         # Delete a tag
    """
    repo = require_repository()

    try:
        if name is None:
            for tag in sorted(repo.refs.list_tags()):
                click.echo(tag)
            return

        ref = TAGS_PREFIX + name
        validate_ref_name(ref)

        if delete:
            repo.refs.delete_ref(ref)
            click.echo(success(f"Deleted tag {name}"))
            return

        if repo.refs.ref_exists(ref) and not force:
            click.echo(info(f"Tag {name} already exists (use --force to move it)"))
            raise click.Abort()

        digest = repo.refs.resolve(target or 'HEAD')
        repo.refs.set_ref(ref, digest)
        click.echo(success(f"Tagged {short(digest)} as {name}"))
    except StrataError as e:
        fail(e)
