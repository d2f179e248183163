"""Plumbing commands for references."""

import click

from strata.core.errors import StrataError
from strata.core.refs import NamedBranch
from strata.cli.common import require_repository, fail


@click.command('show-ref')
@click.option('--heads', is_flag=True, help='Only branches')
@click.option('--tags', is_flag=True, help='Only tags')
def show_ref_cmd(heads, tags):
    """List references with the commits they point to."""
    repo = require_repository()

    prefix = 'refs/heads/' if heads else 'refs/tags/' if tags else 'refs/'
    try:
        for ref in sorted(repo.refs.list_refs(prefix)):
            click.echo(f"{repo.refs.get_ref(ref)} {ref}")
    except StrataError as e:
        fail(e)


@click.command('symbolic-ref')
@click.argument('target', required=False)
def symbolic_ref_cmd(target):
    """
    Read HEAD, or attach it to a branch without touching files.

    Examples:
        strata symbolic-ref                   # refs/heads/main
        strata symbolic-ref refs/heads/next   # attach HEAD to 'next'
    """
    repo = require_repository()

    try:
        if target is None:
            head = repo.refs.read_head()
            if not isinstance(head, NamedBranch):
                click.echo("fatal: HEAD is not a symbolic ref")
                raise click.Abort()
            click.echo(head.ref)
            return
        repo.refs.set_head(NamedBranch(target))
    except StrataError as e:
        fail(e)
