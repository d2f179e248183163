"""Config command - get and set configuration values."""

import click

from strata.core.config import Config, split_key
from strata.core.repository import Repository
from strata.cli.common import fail
from strata.cli.output import success, error, info


def _config(global_config: bool) -> Config:
    repo = Repository.find_repository()
    if repo is None:
        if not global_config:
            click.echo(error("Not in a strata repository (use --global)"))
            raise click.Abort()
        return Config()
    return repo.config


@click.group('config')
def config_cmd():
    """
    Get and set repository or global options.

    Examples:
        strata config set user.name "Jane Doe"
        strata config set --global user.email jane@example.com
        strata config get core.commitretries
        strata config list
    """
    pass


@config_cmd.command('get')
@click.argument('key')
def config_get(key):
    """Print the effective value of section.key."""
    try:
        section, option = split_key(key)
    except ValueError as e:
        fail(e)

    repo = Repository.find_repository()
    value = (repo.config if repo else Config()).get(section, option)
    if value is None:
        raise click.Abort()
    click.echo(value)


@config_cmd.command('set')
@click.argument('key')
@click.argument('value')
@click.option('--global', 'global_config', is_flag=True, help='Write the global config')
def config_set(key, value, global_config):
    """Set section.key to value."""
    try:
        section, option = split_key(key)
        _config(global_config).set(section, option, value, global_config=global_config)
    except ValueError as e:
        fail(e)
    click.echo(success(f"{key} = {value}"))


@config_cmd.command('unset')
@click.argument('key')
@click.option('--global', 'global_config', is_flag=True, help='Modify the global config')
def config_unset(key, global_config):
    """Remove section.key."""
    try:
        section, option = split_key(key)
        removed = _config(global_config).unset(section, option, global_config=global_config)
    except ValueError as e:
        fail(e)
    if removed:
        click.echo(success(f"Removed {key}"))
    else:
        click.echo(info(f"{key} was not set"))


@config_cmd.command('list')
def config_list():
    """List every configured value."""
    repo = Repository.find_repository()
    for key, value in (repo.config if repo else Config()).list_all().items():
        click.echo(f"{key}={value}")
