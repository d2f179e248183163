"""Tree building: turn hierarchical snapshots into blob and tree objects.

All traversals use explicit work stacks, so deep directory hierarchies do
not consume interpreter call depth.
"""

import logging
import os
import stat
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union

from .errors import InvalidPathError, ObjectNotFoundError, PathConflictError
from .objects import (
    MODE_DIRECTORY,
    MODE_EXECUTABLE,
    MODE_FILE,
    FILE_MODES,
    Blob,
    Tree,
    validate_name,
)

logger = logging.getLogger(__name__)

CONTROL_DIR = '.strata'

# path -> (digest, mode)
EntryTable = Dict[str, Tuple[str, str]]


@dataclass(frozen=True)
class SnapshotFile:
    """A file leaf in a snapshot mapping, with its executable bit."""
    content: bytes
    executable: bool = False

    @property
    def mode(self) -> str:
        return MODE_EXECUTABLE if self.executable else MODE_FILE


SnapshotValue = Union[bytes, str, SnapshotFile, Mapping]


def normalize_path(path: Union[str, os.PathLike]) -> str:
    """
    Normalize a repository-relative path to 'a/b/c' form.

    Raises:
        InvalidPathError: If the path is absolute, empty, or escapes the root
    """
    raw = os.fspath(path).replace('\\', '/')
    posix = PurePosixPath(raw)
    if posix.is_absolute():
        raise InvalidPathError(f"Path must be relative: {raw}")

    parts = [part for part in posix.parts if part != '.']
    if not parts:
        raise InvalidPathError(f"Empty path: {raw!r}")
    for part in parts:
        validate_name(part)
    return '/'.join(parts)


def parent_dirs(path: str) -> Iterator[str]:
    """Yield every ancestor directory of path, nearest first."""
    parts = path.split('/')
    for i in range(len(parts) - 1, 0, -1):
        yield '/'.join(parts[:i])


def _join(prefix: str, name: str) -> str:
    return f"{prefix}/{name}" if prefix else name


def _leaf(value) -> Tuple[bytes, str]:
    if isinstance(value, SnapshotFile):
        return value.content, value.mode
    if isinstance(value, str):
        return value.encode(), MODE_FILE
    if isinstance(value, (bytes, bytearray)):
        return bytes(value), MODE_FILE
    raise TypeError(f"Unsupported snapshot value: {type(value).__name__}")


class TreeBuilder:
    """Builds and reads trees against an object store."""

    def __init__(self, store):
        self.store = store

    def build(self, snapshot: Mapping[str, SnapshotValue]) -> str:
        """
        Store a hierarchical snapshot and return its root tree digest.

        Directories are collected in pre-order and then assembled in reverse,
        which puts every child tree before its parent.

        Args:
            snapshot: Nested mapping; values are file contents (bytes, str,
                SnapshotFile) or nested mappings for subdirectories
        """
        order = []
        # each item carries its chain of enclosing mappings as (id, parent_chain)
        stack = [('', snapshot, None)]

        while stack:
            path, mapping, enclosing = stack.pop()
            link = enclosing
            while link is not None:
                if link[0] == id(mapping):
                    raise InvalidPathError(f"Snapshot directory contains itself at {path}")
                link = link[1]
            order.append((path, mapping))

            chain = (id(mapping), enclosing)
            for name, value in mapping.items():
                validate_name(name)
                if isinstance(value, Mapping):
                    stack.append((_join(path, name), value, chain))

        digests: Dict[str, str] = {}
        for path, mapping in reversed(order):
            tree = Tree()
            for name, value in mapping.items():
                if isinstance(value, Mapping):
                    tree.add_entry(MODE_DIRECTORY, name, digests[_join(path, name)])
                else:
                    content, mode = _leaf(value)
                    tree.add_entry(mode, name, self.store.write_object(Blob(content)))
            digests[path] = self.store.write_object(tree)

        return digests['']

    def build_from_entries(self, entries: Mapping[str, Tuple[str, str]]) -> str:
        """
        Store the trees for a flat path table and return the root digest.

        Args:
            entries: Mapping of 'dir/file' paths to (blob digest, mode)

        Raises:
            PathConflictError: If a path is both a file and a directory
            ObjectNotFoundError: If an entry's blob is not stored
        """
        children: Dict[str, Dict[str, Tuple[str, str]]] = defaultdict(dict)
        children['']

        for path in sorted(entries):
            digest, mode = entries[path]
            if mode not in FILE_MODES:
                raise ValueError(f"Invalid file mode {mode} for {path}")
            if not self.store.contains(digest):
                raise ObjectNotFoundError(digest)

            for directory in parent_dirs(path):
                if directory in entries:
                    raise PathConflictError(path, f"{directory} is a file")
                children[directory]

            head, _, name = path.rpartition('/')
            children[head][name] = (digest, mode)

        for directory in sorted(children, key=lambda d: d.count('/') if d else -1, reverse=True):
            tree = Tree()
            for name, (digest, mode) in children[directory].items():
                tree.add_entry(mode, name, digest)
            digest = self.store.write_object(tree)

            if directory:
                head, _, name = directory.rpartition('/')
                children[head][name] = (digest, MODE_DIRECTORY)
            else:
                root = digest

        logger.debug("Built tree %s from %d entries", root[:12], len(entries))
        return root

    def build_from_directory(self, root: Union[str, Path], matcher=None) -> str:
        """Snapshot a directory on disk, storing blobs for every file."""
        entries: EntryTable = {}
        for rel_path, full_path in iter_working_files(root, matcher):
            blob = Blob.from_file(str(full_path))
            entries[rel_path] = (self.store.write_object(blob), file_mode(full_path))
        return self.build_from_entries(entries)

    def read_tree(self, tree_digest: Optional[str]) -> EntryTable:
        """
        Flatten a stored tree into a path table of files.

        Returns:
            Mapping of 'dir/file' paths to (blob digest, mode); empty for None
        """
        files: EntryTable = {}
        if tree_digest is None:
            return files

        stack = [('', tree_digest)]
        while stack:
            prefix, digest = stack.pop()
            tree = self.store.read_object(digest, Tree)
            for entry in tree.entries:
                path = _join(prefix, entry.name)
                if entry.is_dir:
                    stack.append((path, entry.hash))
                else:
                    files[path] = (entry.hash, entry.mode)

        return files


def file_mode(path: Union[str, Path]) -> str:
    """Tree mode for a file on disk, from its owner-executable bit."""
    return MODE_EXECUTABLE if os.stat(path).st_mode & stat.S_IXUSR else MODE_FILE


def iter_working_files(root: Union[str, Path], matcher=None) -> Iterator[Tuple[str, Path]]:
    """
    Yield (relative path, absolute path) for each regular file under root.

    The control directory is always skipped; matcher, if given, filters
    ignored files and directories.
    """
    root = Path(root)
    stack = [root]

    while stack:
        directory = stack.pop()
        for item in sorted(directory.iterdir()):
            rel_path = item.relative_to(root).as_posix()
            if rel_path == CONTROL_DIR:
                continue
            if item.is_symlink():
                continue
            if item.is_dir():
                if matcher is None or not matcher.is_ignored(rel_path, is_dir=True):
                    stack.append(item)
            elif item.is_file():
                if matcher is None or not matcher.is_ignored(rel_path):
                    yield rel_path, item
