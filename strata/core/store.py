"""Content-addressed object store.

Objects are stored compressed with zlib at ``objects/<2 hex>/<62 hex>``.
Every read recomputes the digest of the decoded record, so a truncated or
tampered file is reported as an IntegrityError instead of being returned.
"""

import logging
import threading
import zlib
from pathlib import Path
from typing import Iterator, Optional, Tuple, Type

from .errors import (
    IntegrityError,
    InvalidDigestError,
    ObjectNotFoundError,
    ObjectTypeError,
)
from .hash import hash_object, is_digest
from .objects import OBJECT_TYPES, StrataObject, frame
from ..utils.lockfile import atomic_write

logger = logging.getLogger(__name__)


class ObjectStore:
    """
    Durable map from digest to immutable object bytes.

    Writing identical content twice stores it once; the second ``put`` is a
    no-op returning the same digest.
    """

    def __init__(self, objects_dir: Path):
        self.objects_dir = Path(objects_dir)
        self._write_lock = threading.Lock()

    def object_path(self, digest: str) -> Path:
        """
        Get filesystem path for an object.

        Raises:
            InvalidDigestError: If digest is not 64 lowercase hex characters
        """
        if not is_digest(digest):
            raise InvalidDigestError(digest)
        return self.objects_dir / digest[:2] / digest[2:]

    def put(self, type_tag: str, data: bytes) -> str:
        """
        Store a typed object body.

        Args:
            type_tag: 'blob', 'tree' or 'commit'
            data: Object body

        Returns:
            str: Digest of the object
        """
        if type_tag not in OBJECT_TYPES:
            raise ValueError(f"Unknown object type: {type_tag}")

        record = frame(type_tag, data)
        digest = hash_object(record)
        path = self.object_path(digest)

        with self._write_lock:
            if path.exists():
                logger.debug("Object %s already stored, skipped", digest[:12])
                return digest
            atomic_write(path, zlib.compress(record))

        logger.debug("Stored %s %s (%d bytes)", type_tag, digest[:12], len(data))
        return digest

    def get_typed(self, digest: str) -> Tuple[str, bytes]:
        """
        Read an object and verify it against its digest.

        Returns:
            (type_tag, body)

        Raises:
            ObjectNotFoundError: If no object is stored under digest
            IntegrityError: If the stored record fails verification
        """
        path = self.object_path(digest)
        try:
            compressed = path.read_bytes()
        except FileNotFoundError:
            raise ObjectNotFoundError(digest) from None

        try:
            record = zlib.decompress(compressed)
        except zlib.error as e:
            raise IntegrityError(digest, f"cannot decompress record ({e})") from e

        actual = hash_object(record)
        if actual != digest:
            raise IntegrityError(digest, f"content hashes to {actual}")

        null_idx = record.find(b'\0')
        if null_idx < 0:
            raise IntegrityError(digest, "missing header terminator")

        try:
            type_tag, size_str = record[:null_idx].decode().split(' ', 1)
            size = int(size_str)
        except ValueError:
            raise IntegrityError(digest, "malformed header") from None

        data = record[null_idx + 1:]
        if type_tag not in OBJECT_TYPES:
            raise IntegrityError(digest, f"unknown object type {type_tag!r}")
        if len(data) != size:
            raise IntegrityError(digest, f"size mismatch: expected {size}, got {len(data)}")

        return type_tag, data

    def get(self, digest: str) -> bytes:
        """Read the verified body of an object."""
        return self.get_typed(digest)[1]

    def contains(self, digest: str) -> bool:
        """Check whether an object is stored under digest."""
        if not is_digest(digest):
            return False
        return self.object_path(digest).exists()

    __contains__ = contains

    def write_object(self, obj: StrataObject) -> str:
        """Store a model object and return its digest."""
        return self.put(obj.type_tag, obj.serialize())

    def read_object(self, digest: str, expected: Optional[Type[StrataObject]] = None) -> StrataObject:
        """
        Read and decode a Blob, Tree or Commit.

        Args:
            digest: Object digest
            expected: Optional class the object must be an instance of

        Raises:
            ObjectTypeError: If the object is not of the expected type
            IntegrityError: If the body cannot be decoded
        """
        type_tag, data = self.get_typed(digest)
        if expected is not None and type_tag != expected.type_tag:
            raise ObjectTypeError(digest, expected.type_tag, type_tag)

        try:
            return OBJECT_TYPES[type_tag].from_bytes(data)
        except (ValueError, UnicodeDecodeError) as e:
            raise IntegrityError(digest, f"malformed {type_tag}: {e}") from e

    def iter_digests(self) -> Iterator[str]:
        """Yield the digest of every stored object."""
        if not self.objects_dir.exists():
            return
        for shard in sorted(self.objects_dir.iterdir()):
            if not shard.is_dir() or len(shard.name) != 2:
                continue
            for item in sorted(shard.iterdir()):
                digest = shard.name + item.name
                if is_digest(digest):
                    yield digest

    def __repr__(self) -> str:
        return f"ObjectStore(path={self.objects_dir})"
