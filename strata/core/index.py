"""Index (staging area) implementation."""

import enum
import hashlib
import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .errors import (
    IntegrityError,
    InvalidDigestError,
    ObjectNotFoundError,
    PathConflictError,
    PathNotStagedError,
)
from .hash import is_digest
from .objects import FILE_MODES, MODE_EXECUTABLE, MODE_FILE, Blob
from .tree import TreeBuilder, file_mode, normalize_path, parent_dirs
from ..utils.lockfile import atomic_write

logger = logging.getLogger(__name__)

INDEX_SIGNATURE = b'SIDX'
INDEX_VERSION = 1

# mode, size, digest, path length
_ENTRY_HEADER = struct.Struct('>IQ32sH')
_CHECKSUM_SIZE = 32


class StageState(enum.Enum):
    """State of a path in the index relative to the HEAD tree."""
    UNCHANGED = 'unchanged'
    ADDED = 'added'
    MODIFIED = 'modified'
    DELETED = 'deleted'
    ABSENT = 'absent'


@dataclass
class IndexEntry:
    """A staged file: its path, blob digest, tree mode and size."""
    path: str
    digest: str
    mode: str = MODE_FILE
    size: int = 0

    def __repr__(self) -> str:
        return f"IndexEntry({self.mode} {self.digest[:7]} {self.path})"


class Index:
    """
    Staging area: the table of paths that make up the next commit.

    When bound to an index file, every mutation is persisted immediately.
    The table always flattens to a valid tree: a path is never staged both
    as a file and as a directory containing other staged files.
    """

    def __init__(self, store, index_path: Optional[Path] = None):
        """
        Args:
            store: ObjectStore receiving staged blobs
            index_path: Optional file the index is loaded from and saved to
        """
        self.store = store
        self.index_path = Path(index_path) if index_path else None
        self.entries: Dict[str, IndexEntry] = {}
        self.version: int = INDEX_VERSION

        if self.index_path is not None:
            self.read()

    def _check_conflicts(self, path: str) -> None:
        for directory in parent_dirs(path):
            if directory in self.entries:
                raise PathConflictError(path, f"parent {directory} is a staged file")

        prefix = path + '/'
        if any(staged.startswith(prefix) for staged in self.entries):
            raise PathConflictError(path, "path is a directory in the staged tree")

    def stage(self, path: str, digest: str, mode: str = MODE_FILE, size: int = 0) -> None:
        """
        Upsert an entry for an already stored blob.

        Raises:
            InvalidDigestError: If digest is not a full hex digest
            ObjectNotFoundError: If no object is stored under digest
            PathConflictError: If path clashes with a staged file or directory
        """
        path = normalize_path(path)
        if mode not in FILE_MODES:
            raise ValueError(f"Invalid file mode: {mode}")
        if not is_digest(digest):
            raise InvalidDigestError(digest)
        if not self.store.contains(digest):
            raise ObjectNotFoundError(digest)
        self._check_conflicts(path)

        self.entries[path] = IndexEntry(path=path, digest=digest, mode=mode, size=size)
        logger.debug("Staged %s -> %s", path, digest[:12])
        self._persist()

    def add(self, path: str, content: Union[bytes, str], executable: bool = False) -> str:
        """
        Store content as a blob and stage it at path.

        Returns:
            str: Blob digest
        """
        if isinstance(content, str):
            content = content.encode()
        path = normalize_path(path)
        self._check_conflicts(path)

        digest = self.store.write_object(Blob(content))
        mode = MODE_EXECUTABLE if executable else MODE_FILE
        self.stage(path, digest, mode, len(content))
        return digest

    def add_file(self, work_tree: Path, filepath: Union[str, Path]) -> str:
        """
        Stage a file from the working tree.

        Args:
            work_tree: Repository root
            filepath: File path, absolute or relative to work_tree

        Returns:
            str: Blob digest
        """
        work_tree = Path(work_tree)
        file_path = Path(filepath)
        if not file_path.is_absolute():
            file_path = work_tree / file_path

        if not file_path.is_file():
            raise FileNotFoundError(f"File not found: {filepath}")

        rel_path = normalize_path(file_path.relative_to(work_tree).as_posix())
        content = file_path.read_bytes()
        self._check_conflicts(rel_path)

        digest = self.store.write_object(Blob(content))
        self.stage(rel_path, digest, file_mode(file_path), len(content))
        return digest

    def remove(self, path: str) -> None:
        """
        Remove an entry; the working file is left alone.

        Raises:
            PathNotStagedError: If path has no entry
        """
        path = normalize_path(path)
        if path not in self.entries:
            raise PathNotStagedError(path)
        del self.entries[path]
        logger.debug("Unstaged %s", path)
        self._persist()

    def get_entry(self, path: str) -> Optional[IndexEntry]:
        return self.entries.get(path)

    def clear(self) -> None:
        self.entries.clear()
        self._persist()

    def replace(self, table: Mapping[str, Tuple[str, str]]) -> None:
        """Replace all entries with a path -> (digest, mode) table."""
        self.entries = {
            path: IndexEntry(path=path, digest=digest, mode=mode)
            for path, (digest, mode) in table.items()
        }
        self._persist()

    def table(self) -> Dict[str, Tuple[str, str]]:
        """Current entries as a path -> (digest, mode) table."""
        return {path: (entry.digest, entry.mode) for path, entry in self.entries.items()}

    def flatten(self) -> str:
        """Build and store the tree for the staged entries; return its digest."""
        return TreeBuilder(self.store).build_from_entries(self.table())

    def state_of(self, path: str, head_files: Mapping[str, Tuple[str, str]]) -> StageState:
        """Derive the staging state of path against the HEAD file table."""
        entry = self.entries.get(path)
        head = head_files.get(path)

        if entry is None:
            return StageState.DELETED if head is not None else StageState.ABSENT
        if head is None:
            return StageState.ADDED
        if head != (entry.digest, entry.mode):
            return StageState.MODIFIED
        return StageState.UNCHANGED

    def staged_changes(self, head_files: Mapping[str, Tuple[str, str]]) -> Dict[str, StageState]:
        """All paths whose state differs from HEAD, with their state."""
        changes = {}
        for path in set(self.entries) | set(head_files):
            state = self.state_of(path, head_files)
            if state not in (StageState.UNCHANGED, StageState.ABSENT):
                changes[path] = state
        return changes

    def _persist(self) -> None:
        if self.index_path is not None:
            self.write()

    def write(self, index_path: Optional[Path] = None) -> None:
        """
        Write the index in binary form.

        Format:
        - Header: 'SIDX' + version (4 bytes) + entry count (4 bytes)
        - Entries sorted by path: mode, size, 32-byte digest, path length, path
        - Checksum: SHA-256 of everything before it
        """
        content = bytearray()
        content.extend(INDEX_SIGNATURE)
        content.extend(struct.pack('>II', self.version, len(self.entries)))

        for path in sorted(self.entries, key=lambda p: p.encode()):
            entry = self.entries[path]
            encoded = path.encode()
            content.extend(_ENTRY_HEADER.pack(
                int(entry.mode, 8),
                entry.size,
                bytes.fromhex(entry.digest),
                len(encoded),
            ))
            content.extend(encoded)

        content.extend(hashlib.sha256(content).digest())
        atomic_write(index_path or self.index_path, bytes(content))

    def read(self, index_path: Optional[Path] = None) -> None:
        """
        Load the index from disk; a missing file yields an empty index.

        Raises:
            IntegrityError: If the signature or checksum does not match
        """
        path = Path(index_path or self.index_path)
        self.entries.clear()
        if not path.exists():
            return

        data = path.read_bytes()
        body, checksum = data[:-_CHECKSUM_SIZE], data[-_CHECKSUM_SIZE:]
        if len(data) < 12 + _CHECKSUM_SIZE or hashlib.sha256(body).digest() != checksum:
            raise IntegrityError(str(path), "index checksum mismatch")
        if body[:4] != INDEX_SIGNATURE:
            raise IntegrityError(str(path), f"invalid index signature {body[:4]!r}")

        self.version, count = struct.unpack('>II', body[4:12])
        offset = 12
        for _ in range(count):
            mode, size, digest, length = _ENTRY_HEADER.unpack_from(body, offset)
            offset += _ENTRY_HEADER.size
            entry_path = body[offset:offset + length].decode()
            offset += length
            self.entries[entry_path] = IndexEntry(
                path=entry_path,
                digest=digest.hex(),
                mode=f'{mode:06o}',
                size=size,
            )

    def paths(self) -> List[str]:
        return sorted(self.entries)

    def __iter__(self) -> Iterator[IndexEntry]:
        for path in self.paths():
            yield self.entries[path]

    def __contains__(self, path: str) -> bool:
        return path in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"Index(entries={len(self.entries)})"
