"""Main CLI entry point for Strata."""

import click
from colorama import init

from strata import __version__
from strata.cli.common import configure_logging
from strata.cli.output import BANNER
from strata.cli.commands import (init_cmd, add_cmd, rm_cmd, commit_cmd, status_cmd, log_cmd,
                                 checkout_cmd, branch_cmd, tag_cmd, show_ref_cmd,
                                 symbolic_ref_cmd, cat_file_cmd, hash_object_cmd,
                                 write_tree_cmd, fsck_cmd, config_cmd)

# Initialize colorama for cross-platform colored output
init(autoreset=True)


class StrataGroup(click.Group):
    """Command group that prints the banner before help."""

    def format_help(self, ctx, formatter):
        click.echo(BANNER)
        super().format_help(ctx, formatter)


@click.group(cls=StrataGroup)
@click.version_option(version=__version__)
@click.option('-v', '--verbose', count=True, help='Increase log output (-v info, -vv debug)')
def cli(verbose):
    configure_logging(verbose)


cli.add_command(init_cmd)
cli.add_command(add_cmd)
cli.add_command(rm_cmd)
cli.add_command(commit_cmd)
cli.add_command(status_cmd)
cli.add_command(log_cmd)
cli.add_command(checkout_cmd)
cli.add_command(branch_cmd)
cli.add_command(tag_cmd)
cli.add_command(show_ref_cmd)
cli.add_command(symbolic_ref_cmd)
cli.add_command(cat_file_cmd)
cli.add_command(hash_object_cmd)
cli.add_command(write_tree_cmd)
cli.add_command(fsck_cmd)
cli.add_command(config_cmd)


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
