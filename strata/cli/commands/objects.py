"""Plumbing commands for the object store."""

import click
from pathlib import Path

from strata.core.errors import StrataError
from strata.core.objects import Blob, Commit, Tree, digest_for
from strata.cli.common import require_repository, fail
from strata.cli.output import success, error, info


@click.command('cat-file')
@click.option('-t', 'show_type', is_flag=True, help='Show object type')
@click.option('-s', 'show_size', is_flag=True, help='Show object size')
@click.option('-p', 'pretty', is_flag=True, help='Pretty-print object content')
@click.argument('rev')
def cat_file_cmd(show_type, show_size, pretty, rev):
    """
    Show the type, size or content of a stored object.

    Examples:
        strata cat-file -t HEAD
        strata cat-file -p 3f9a1c2d...
    """
    repo = require_repository()

    try:
        digest = rev if len(rev) == 64 else repo.refs.resolve(rev)
        type_tag, data = repo.objects.get_typed(digest)

        if show_type:
            click.echo(type_tag)
        elif show_size:
            click.echo(len(data))
        elif type_tag == Tree.type_tag:
            for entry in Tree.from_bytes(data).entries:
                click.echo(f"{entry.mode} {entry.type} {entry.hash}\t{entry.name}")
        elif type_tag == Commit.type_tag or pretty:
            click.echo(data.decode(errors='replace'), nl=False)
        else:
            click.get_binary_stream('stdout').write(data)
    except StrataError as e:
        fail(e)


@click.command('hash-object')
@click.option('-w', '--write', is_flag=True, help='Store the blob in the object store')
@click.argument('files', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
def hash_object_cmd(write, files):
    """Compute the blob digest of files, optionally storing them."""
    repo = require_repository() if write else None

    for name in files:
        data = Path(name).read_bytes()
        if repo is not None:
            click.echo(repo.objects.write_object(Blob(data)))
        else:
            click.echo(digest_for(Blob.type_tag, data))


@click.command('write-tree')
@click.option('--from-workdir', is_flag=True, help='Snapshot the working directory instead of the index')
def write_tree_cmd(from_workdir):
    """Store the tree for the index (or working directory) and print its digest."""
    repo = require_repository()

    try:
        if from_workdir:
            digest = repo.trees.build_from_directory(repo.work_tree, repo.ignore_matcher())
        else:
            digest = repo.index.flatten()
    except StrataError as e:
        fail(e)
    click.echo(digest)


@click.command('fsck')
def fsck_cmd():
    """
    Verify every stored object and the links between them.

    Exits with an error if any object is corrupt or missing.
    """
    repo = require_repository()

    report = repo.fsck()
    for digest, reason in sorted(report.corrupt.items()):
        click.echo(error(f"corrupt {digest}: {reason}"))
    for referrer, missing in report.missing:
        click.echo(error(f"missing {missing} (referenced by {referrer})"))

    click.echo(info(f"Checked {report.checked} object(s)"))
    if not report.ok:
        raise click.Abort()
    click.echo(success("No problems found"))
