"""Strata - a content-addressable snapshot store with Git-like history."""

__version__ = '0.1.0'

from strata.core.repository import Repository
from strata.core.objects import StrataObject, Blob, Tree, Commit
from strata.core.tree import SnapshotFile
from strata.core import errors

__all__ = [
    'Repository',
    'StrataObject',
    'Blob',
    'Tree',
    'Commit',
    'SnapshotFile',
    'errors',
]
