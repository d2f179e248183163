"""Status command - show working tree status."""

import click
from colorama import Fore, Style

from strata.core.errors import StrataError
from strata.cli.common import require_repository, fail
from strata.cli.output import success, info, short

_LABELS = {'added': 'new file:', 'modified': 'modified:', 'deleted': 'deleted: '}


@click.command('status')
def status_cmd():
    """
    Show the working tree status.

    Displays:
    - Changes staged for commit (index vs HEAD)
    - Changes not staged for commit (working tree vs index)
    - Untracked files

    Examples:
        strata status
    """
    repo = require_repository()

    try:
        report = repo.status()
    except StrataError as e:
        fail(e)

    if report.branch:
        click.echo(f"On branch {Fore.CYAN}{report.branch}{Style.RESET_ALL}")
    else:
        click.echo(f"{Fore.YELLOW}HEAD detached at {short(report.head)}{Style.RESET_ALL}")
    if report.head is None:
        click.echo("No commits yet")
    click.echo()

    if report.staged:
        click.echo(Fore.GREEN + "Changes to be committed:" + Style.RESET_ALL)
        for path, kind in report.staged.items():
            click.echo(f"  {Fore.GREEN}{_LABELS[kind.value]}   {path}{Style.RESET_ALL}")
        click.echo()

    if report.unstaged:
        click.echo(Fore.YELLOW + "Changes not staged for commit:" + Style.RESET_ALL)
        click.echo(info("  (use \"strata add <file>...\" to update what will be committed)"))
        for path, kind in report.unstaged.items():
            click.echo(f"  {Fore.YELLOW}{_LABELS[kind.value]}   {path}{Style.RESET_ALL}")
        click.echo()

    if report.untracked:
        click.echo(Fore.RED + "Untracked files:" + Style.RESET_ALL)
        for path in report.untracked:
            click.echo(f"  {Fore.RED}{path}{Style.RESET_ALL}")
        click.echo()

    if report.is_clean:
        click.echo(success("Nothing to commit, working tree clean"))
