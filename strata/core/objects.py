"""Stored object model for Strata: blobs, trees and commits."""

import time
from abc import ABC, abstractmethod
from typing import List, Optional

from .errors import InvalidPathError, PathConflictError
from .hash import DIGEST_SIZE, hash_object

MODE_FILE = '100644'
MODE_EXECUTABLE = '100755'
MODE_DIRECTORY = '040000'

FILE_MODES = (MODE_FILE, MODE_EXECUTABLE)
VALID_MODES = FILE_MODES + (MODE_DIRECTORY,)


def frame(type_tag: str, data: bytes) -> bytes:
    """
    Build the framed record that is hashed and stored.

    Format: <type> <size>\\0<content>
    """
    return f"{type_tag} {len(data)}\0".encode() + data


def digest_for(type_tag: str, data: bytes) -> str:
    """Digest of a typed object body."""
    return hash_object(frame(type_tag, data))


def validate_name(name: str) -> None:
    """
    Check that a tree entry name is a single path component.

    Raises:
        InvalidPathError: If the name is empty, '.', '..', or contains '/' or NUL
    """
    if not name or name in ('.', '..') or '/' in name or '\0' in name:
        raise InvalidPathError(f"Invalid entry name: {name!r}")


class StrataObject(ABC):
    """Base class for all stored objects."""

    type_tag: str = ''

    def __init__(self):
        self._hash: Optional[str] = None

    @abstractmethod
    def serialize(self) -> bytes:
        """Serialize the object body to bytes."""
        pass

    @abstractmethod
    def deserialize(self, data: bytes) -> None:
        """
        Populate the object from its serialized body.

        Raises:
            ValueError: If the body is malformed
        """
        pass

    @property
    def type(self) -> str:
        """Object type tag (blob, tree, commit)."""
        return self.type_tag

    @classmethod
    def from_bytes(cls, data: bytes) -> 'StrataObject':
        """Create an object of this class from its serialized body."""
        obj = cls()
        obj.deserialize(data)
        return obj

    @property
    def hash(self) -> str:
        """
        Content digest of the object.

        Returns:
            str: 64-character SHA-256 hash
        """
        if self._hash is None:
            self._hash = digest_for(self.type_tag, self.serialize())
        return self._hash


class Blob(StrataObject):
    """Raw file content, with no name or mode."""

    type_tag = 'blob'

    def __init__(self, data: Optional[bytes] = None):
        super().__init__()
        self.data = data or b''

    def serialize(self) -> bytes:
        return self.data

    def deserialize(self, data: bytes) -> None:
        self.data = data
        self._hash = None

    @classmethod
    def from_file(cls, filepath: str) -> 'Blob':
        """Create blob from the content of a file on disk."""
        with open(filepath, 'rb') as f:
            return cls(f.read())

    def __repr__(self) -> str:
        return f"Blob(hash={self.hash[:7]}, size={len(self.data)})"


class TreeEntry:
    """
    A single entry in a tree.

    - mode: '100644' (file), '100755' (executable) or '040000' (directory)
    - name: single path component
    - hash: digest of the child blob or tree
    """

    def __init__(self, mode: str, name: str, obj_hash: str):
        if mode not in VALID_MODES:
            raise ValueError(f"Invalid tree entry mode: {mode}")
        validate_name(name)
        self.mode = mode
        self.name = name
        self.hash = obj_hash

    @property
    def type(self) -> str:
        """Type of the child object."""
        return 'tree' if self.mode == MODE_DIRECTORY else 'blob'

    @property
    def is_dir(self) -> bool:
        return self.mode == MODE_DIRECTORY

    def sort_key(self) -> bytes:
        return self.name.encode()

    def __eq__(self, other) -> bool:
        if not isinstance(other, TreeEntry):
            return NotImplemented
        return (self.mode, self.name, self.hash) == (other.mode, other.name, other.hash)

    def __repr__(self) -> str:
        return f"TreeEntry({self.mode} {self.type} {self.hash[:7]} {self.name})"


class Tree(StrataObject):
    """
    Directory listing pointing to blobs and subtrees.

    Entries are kept sorted by the byte order of their names so that the
    serialized form, and therefore the digest, is deterministic.
    """

    type_tag = 'tree'

    def __init__(self):
        super().__init__()
        self.entries: List[TreeEntry] = []

    def add_entry(self, mode: str, name: str, obj_hash: str) -> None:
        """
        Add entry to tree.

        Raises:
            PathConflictError: If an entry with the same name exists
        """
        if any(entry.name == name for entry in self.entries):
            raise PathConflictError(name, "duplicate tree entry")
        self.entries.append(TreeEntry(mode, name, obj_hash))
        self.entries.sort(key=TreeEntry.sort_key)
        self._hash = None

    def get(self, name: str) -> Optional[TreeEntry]:
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def serialize(self) -> bytes:
        """
        Serialize tree entries.

        Each entry is: mode, space, UTF-8 name, NUL, 32-byte raw digest.
        """
        parts = []
        for entry in sorted(self.entries, key=TreeEntry.sort_key):
            parts.append(f"{entry.mode} {entry.name}".encode() + b'\0')
            parts.append(bytes.fromhex(entry.hash))
        return b''.join(parts)

    def deserialize(self, data: bytes) -> None:
        entries = []
        pos = 0

        while pos < len(data):
            space_pos = data.find(b' ', pos)
            null_pos = data.find(b'\0', space_pos + 1)
            if space_pos < 0 or null_pos < 0 or null_pos + 1 + DIGEST_SIZE > len(data):
                raise ValueError("Truncated tree entry")

            mode = data[pos:space_pos].decode()
            name = data[space_pos + 1:null_pos].decode()
            digest = data[null_pos + 1:null_pos + 1 + DIGEST_SIZE].hex()
            entries.append(TreeEntry(mode, name, digest))
            pos = null_pos + 1 + DIGEST_SIZE

        self.entries = sorted(entries, key=TreeEntry.sort_key)
        self._hash = None

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"Tree(entries={len(self.entries)})"


class Commit(StrataObject):
    """
    A snapshot of the project with its ancestry and metadata.

    A commit references exactly one tree and zero or more parents. Zero
    parents marks a root commit, two or more a merge.
    """

    type_tag = 'commit'

    def __init__(self):
        super().__init__()
        self.tree: str = ''
        self.parents: List[str] = []
        self.author: str = ''
        self.committer: str = ''
        self.timestamp: int = 0
        self.timezone: str = '+0000'
        self.message: str = ''

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    def serialize(self) -> bytes:
        """
        Serialize commit.

        Format:
        tree <tree-hash>
        parent <parent-hash>  (zero or more)
        author Name <email> <timestamp> <timezone>
        committer Name <email> <timestamp> <timezone>

        <commit message>
        """
        lines = [f'tree {self.tree}']
        lines.extend(f'parent {parent}' for parent in self.parents)
        lines.append(f'author {self.author} {self.timestamp} {self.timezone}')
        lines.append(f'committer {self.committer} {self.timestamp} {self.timezone}')
        lines.append('')
        lines.append(self.message)
        return '\n'.join(lines).encode()

    def deserialize(self, data: bytes) -> None:
        header, sep, message = data.decode().partition('\n\n')
        if not sep:
            raise ValueError("Commit has no message separator")

        self.parents = []
        self.tree = ''
        for line in header.split('\n'):
            key, _, value = line.partition(' ')
            if key == 'tree':
                self.tree = value
            elif key == 'parent':
                self.parents.append(value)
            elif key in ('author', 'committer'):
                identity, timestamp, timezone = value.rsplit(' ', 2)
                setattr(self, key, identity)
                self.timestamp = int(timestamp)
                self.timezone = timezone
            else:
                raise ValueError(f"Unknown commit header: {key}")

        if not self.tree:
            raise ValueError("Commit has no tree")

        self.message = message
        self._hash = None

    @classmethod
    def create(
        cls,
        tree_hash: str,
        parent_hashes: List[str],
        author: str,
        message: str,
        committer: Optional[str] = None,
        timestamp: Optional[int] = None,
        timezone: str = '+0000'
    ) -> 'Commit':
        """
        Create a new commit.

        Args:
            tree_hash: Digest of the root tree
            parent_hashes: Parent commit digests, empty for a root commit
            author: Author as "Name <email>"
            message: Commit message
            committer: Committer, defaults to the author
            timestamp: Unix timestamp (defaults to current time)
            timezone: Timezone offset (e.g., "+0000", "-0500")
        """
        commit = cls()
        commit.tree = tree_hash
        commit.parents = list(parent_hashes)
        commit.author = author
        commit.committer = committer or author
        commit.message = message
        commit.timestamp = int(time.time()) if timestamp is None else timestamp
        commit.timezone = timezone
        return commit

    @property
    def summary(self) -> str:
        """First line of the message."""
        return self.message.split('\n', 1)[0]

    def __repr__(self) -> str:
        parent_info = f", parents={len(self.parents)}" if self.parents else ""
        return f"Commit(hash={self.hash[:7]}{parent_info}, msg='{self.summary[:50]}')"


OBJECT_TYPES = {cls.type_tag: cls for cls in (Blob, Tree, Commit)}
