"""Log command - show commit history."""

import itertools
from collections import defaultdict
from datetime import datetime

import click
from colorama import Fore, Style

from strata.core.errors import StrataError
from strata.cli.common import require_repository, fail
from strata.cli.output import info, short


def format_timestamp(timestamp: int, timezone: str) -> str:
    return f"{datetime.fromtimestamp(timestamp).strftime('%a %b %d %H:%M:%S %Y')} {timezone}"


def refs_by_commit(repo):
    """Map commit digest -> list of branch/tag names pointing at it."""
    names = defaultdict(list)
    for ref in sorted(repo.refs.list_refs()):
        names[repo.refs.get_ref(ref)].append(ref.split('/', 2)[2])
    return names


@click.command('log')
@click.argument('start', required=False)
@click.option('-n', '--max-count', type=int, default=None, help='Limit the number of commits')
@click.option('--all-parents', is_flag=True, help='Follow every parent, not just the first')
@click.option('--oneline', is_flag=True, help='One line per commit')
def log_cmd(start, max_count, all_parents, oneline):
    """
    Show commit history, newest first.

    Examples:
        strata log
        strata log --oneline -n 5
        strata log --all-parents feature
    """
    repo = require_repository()

    try:
        start_digest = repo.refs.resolve(start) if start else repo.refs.resolve_head()
        if start_digest is None:
            click.echo(info("No commits yet"))
            return

        decorations = refs_by_commit(repo)
        walk = repo.history(start_digest, first_parent=not all_parents)
        for digest, commit in itertools.islice(walk, max_count):
            names = decorations.get(digest)
            deco = f" {Fore.GREEN}({', '.join(names)}){Style.RESET_ALL}" if names else ''

            if oneline:
                click.echo(f"{Fore.YELLOW}{short(digest)}{Style.RESET_ALL}{deco} {commit.summary}")
                continue

            click.echo(f"{Fore.YELLOW}commit {digest}{Style.RESET_ALL}{deco}")
            if commit.is_merge:
                click.echo(f"Merge: {' '.join(short(p) for p in commit.parents)}")
            click.echo(f"Author: {commit.author}")
            click.echo(f"Date:   {format_timestamp(commit.timestamp, commit.timezone)}")
            click.echo()
            for line in commit.message.split('\n'):
                click.echo(f"    {line}")
            click.echo()
    except StrataError as e:
        fail(e)
