"""Add and rm commands - update the staging area."""

import click
from pathlib import Path

from strata.core.errors import StrataError
from strata.cli.common import require_repository, fail
from strata.cli.output import success, info, warning


@click.command('add')
@click.argument('paths', nargs=-1, type=click.Path())
@click.option('-A', '--all', 'add_all', is_flag=True, help='Stage every change in the working tree')
def add_cmd(paths, add_all):
    """
    Add file contents to the staging area.

    Directories are added recursively, skipping ignored files.

    Examples:
        strata add README.md
        strata add src/
        strata add --all
    """
    repo = require_repository()

    if not paths and not add_all:
        click.echo(warning("Nothing specified, nothing added"))
        click.echo(info("Use 'strata add <path>...' or 'strata add --all'"))
        return

    try:
        if add_all:
            changes = repo.worktree.stage_all()
            for path, kind in changes.items():
                click.echo(info(f"{kind.value}: {path}"))
            click.echo(success(f"Staged {len(changes)} change(s)"))
            return

        matcher = repo.ignore_matcher()
        count = 0
        for raw in paths:
            target = Path(raw).resolve()
            if target.is_dir():
                files = [p for p in sorted(target.rglob('*')) if p.is_file()]
            elif target.is_file():
                files = [target]
            else:
                click.echo(warning(f"Path does not exist: {raw}"))
                continue

            for file_path in files:
                rel_path = file_path.relative_to(repo.work_tree).as_posix()
                if rel_path.split('/')[0] == repo.control_dir.name:
                    continue
                if target.is_dir() and matcher.is_ignored(rel_path):
                    continue
                digest = repo.add_file(file_path)
                click.echo(info(f"added {rel_path} ({digest[:10]})"))
                count += 1
    except (StrataError, ValueError) as e:
        fail(e)

    click.echo(success(f"Staged {count} file(s)"))


@click.command('rm')
@click.argument('paths', nargs=-1, required=True)
@click.option('--cached', is_flag=True, help='Only remove from the staging area')
def rm_cmd(paths, cached):
    """
    Remove files from the staging area (and the working tree).

    Examples:
        strata rm old.txt
        strata rm --cached secrets.env
    """
    repo = require_repository()

    try:
        for raw in paths:
            full = Path(raw).resolve()
            rel_path = full.relative_to(repo.work_tree).as_posix()
            repo.remove(rel_path)
            if not cached and full.is_file():
                full.unlink()
            click.echo(info(f"removed {rel_path}"))
    except (StrataError, ValueError) as e:
        fail(e)
