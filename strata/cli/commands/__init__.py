"""CLI commands for Strata."""

from strata.cli.commands.init import init_cmd
from strata.cli.commands.add import add_cmd, rm_cmd
from strata.cli.commands.commit import commit_cmd
from strata.cli.commands.status import status_cmd
from strata.cli.commands.log import log_cmd
from strata.cli.commands.checkout import checkout_cmd
from strata.cli.commands.branch import branch_cmd, tag_cmd
from strata.cli.commands.refs import show_ref_cmd, symbolic_ref_cmd
from strata.cli.commands.objects import cat_file_cmd, hash_object_cmd, write_tree_cmd, fsck_cmd
from strata.cli.commands.config import config_cmd

__all__ = ['init_cmd', 'add_cmd', 'rm_cmd', 'commit_cmd', 'status_cmd', 'log_cmd',
           'checkout_cmd', 'branch_cmd', 'tag_cmd', 'show_ref_cmd', 'symbolic_ref_cmd',
           'cat_file_cmd', 'hash_object_cmd', 'write_tree_cmd', 'fsck_cmd', 'config_cmd']
