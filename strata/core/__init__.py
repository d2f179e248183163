"""Core functionality for Strata.

This module contains the core data structures:
- Stored objects (Blob, Tree, Commit)
- Object store and tree builder
- Index/staging area
- Commit graph
- Reference management
- Configuration management

For checkout, status and fsck, see strata.operations
"""

from strata.core.objects import StrataObject, Blob, Tree, TreeEntry, Commit
from strata.core.store import ObjectStore
from strata.core.tree import TreeBuilder, SnapshotFile
from strata.core.index import Index, IndexEntry, StageState
from strata.core.commits import CommitGraph
from strata.core.refs import RefManager, NamedBranch, DirectCommit
from strata.core.config import Config
from strata.core.repository import Repository
from strata.core.hash import hash_object

__all__ = [
    'StrataObject',
    'Blob',
    'Tree',
    'TreeEntry',
    'Commit',
    'ObjectStore',
    'TreeBuilder',
    'SnapshotFile',
    'Index',
    'IndexEntry',
    'StageState',
    'CommitGraph',
    'RefManager',
    'NamedBranch',
    'DirectCommit',
    'Config',
    'Repository',
    'hash_object',
]
