"""Commit command - create a commit from staged changes."""

import click

from strata.core.errors import StrataError, NothingToCommitError
from strata.cli.common import require_repository, fail
from strata.cli.output import success, error, info, short


@click.command('commit')
@click.option('-m', '--message', required=True, help='Commit message')
@click.option('--author', help='Author name and email (format: "Name <email>")')
def commit_cmd(message, author):
    """
    Record the staged snapshot as a new commit.

    The current branch moves to the new commit; with a detached HEAD only
    HEAD moves.

    Examples:
        strata commit -m "Initial commit"
        strata commit -m "Add feature" --author "Jane <jane@example.com>"
    """
    repo = require_repository()

    try:
        digest = repo.commit(message, author=author)
    except NothingToCommitError:
        click.echo(error("Nothing to commit (staging area matches HEAD)"))
        click.echo(info("Use 'strata add <file>' to stage changes"))
        raise click.Abort()
    except StrataError as e:
        fail(e)

    commit = repo.commits.get(digest)
    where = repo.refs.current_branch() or 'detached HEAD'
    kind = 'root commit' if commit.is_root else f"parent {short(commit.parents[0])}"
    click.echo(success(f"[{where} {short(digest)}] {commit.summary}"))
    click.echo(info(f"Author: {commit.author}"))
    click.echo(info(f"Tree: {short(commit.tree)} ({kind})"))
