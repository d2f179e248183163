"""Atomic file replacement and exclusive lock files.

A lock on ``path`` is the file ``path.lock`` created with O_EXCL. Content is
written to the lock file and renamed over ``path`` on commit, so readers only
ever see the old or the new value.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

LOCK_SUFFIX = '.lock'


class LockHeld(Exception):
    """Raised when another writer holds the lock on a path."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Lock already held: {path}")


def atomic_write(path: Union[str, Path], data: bytes) -> None:
    """Write data to a temporary sibling and rename it over path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    # one temp file per call; concurrent writers never share a name
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix='.tmp')
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


class LockFile:
    """
    Exclusive writer lock for a single file.

    Usage:
        with LockFile(path) as lock:
            lock.write(b'new content')

    Leaving the block normally commits the written content; an exception
    aborts and leaves the original file untouched.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + LOCK_SUFFIX)
        self._fd: Optional[int] = None
        self._written = False

    def acquire(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            raise LockHeld(self.lock_path) from None

    def write(self, data: bytes) -> None:
        os.write(self._fd, data)
        self._written = True

    def commit(self) -> None:
        os.fsync(self._fd)
        os.close(self._fd)
        self._fd = None
        os.replace(self.lock_path, self.path)

    def abort(self) -> None:
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None
        if self.lock_path.exists():
            self.lock_path.unlink()

    def __enter__(self) -> 'LockFile':
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None and self._written:
            self.commit()
        else:
            self.abort()
