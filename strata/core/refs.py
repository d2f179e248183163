"""Reference management for Strata."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Set, Union

from .errors import (
    InvalidRefError,
    ObjectNotFoundError,
    RefNotFoundError,
    ReferenceConflictError,
)
from .hash import is_digest
from .objects import Commit
from ..utils.lockfile import LOCK_SUFFIX, LockFile, LockHeld

logger = logging.getLogger(__name__)

HEAD = 'HEAD'
HEADS_PREFIX = 'refs/heads/'
TAGS_PREFIX = 'refs/tags/'
SYMREF_PREFIX = 'ref: '

_BAD_REF_CHARS = re.compile(r'[\x00-\x20\x7f~^:?*\[\\]')


@dataclass(frozen=True)
class NamedBranch:
    """HEAD attached to a branch (branch mode)."""
    ref: str

    @property
    def branch(self) -> str:
        return self.ref[len(HEADS_PREFIX):] if self.ref.startswith(HEADS_PREFIX) else self.ref


@dataclass(frozen=True)
class DirectCommit:
    """HEAD pointing straight at a commit (detached mode)."""
    digest: str


HeadState = Union[NamedBranch, DirectCommit]


def validate_ref_name(name: str) -> None:
    """
    Check a full reference name such as 'refs/heads/main'.

    Raises:
        InvalidRefError: If the name is malformed
    """
    if not name.startswith('refs/') or name.endswith('/'):
        raise InvalidRefError(f"Invalid reference name: {name!r}")
    for component in name.split('/'):
        if (not component or component.startswith('.') or component.startswith('-')
                or component.endswith(LOCK_SUFFIX) or component.endswith('.')):
            raise InvalidRefError(f"Invalid reference name: {name!r}")
    if '..' in name or '@{' in name or _BAD_REF_CHARS.search(name):
        raise InvalidRefError(f"Invalid reference name: {name!r}")


class RefManager:
    """
    Manages references (branches, tags, HEAD).

    Branches live in refs/heads, tags in refs/tags. Each ref file holds one
    commit digest. HEAD holds either 'ref: refs/heads/<name>' or a digest;
    it is the only place a symbolic reference is allowed.
    """

    def __init__(self, control_dir: Path, store):
        """
        Args:
            control_dir: The repository's .strata directory
            store: ObjectStore used to validate targets
        """
        self.control_dir = Path(control_dir)
        self.store = store
        self.head_file = self.control_dir / HEAD

    def full_name(self, name: str) -> str:
        """
        Expand a short branch or tag name to its full reference name.

        'main' resolves to refs/heads/main if that branch exists, otherwise to
        refs/tags/main if that tag exists, otherwise to refs/heads/main.
        """
        if name.startswith('refs/'):
            return name
        for prefix in (HEADS_PREFIX, TAGS_PREFIX):
            if (self.control_dir / (prefix + name)).is_file():
                return prefix + name
        return HEADS_PREFIX + name

    def _ref_path(self, ref: str) -> Path:
        validate_ref_name(ref)
        return self.control_dir / ref

    def _read_file(self, ref: str) -> Optional[str]:
        path = self._ref_path(ref)
        if not path.is_file():
            return None
        content = path.read_text().strip()
        if content.startswith(SYMREF_PREFIX):
            raise InvalidRefError(f"{ref} is symbolic; only HEAD may refer to another reference")
        if not is_digest(content):
            raise InvalidRefError(f"{ref} does not hold a digest: {content!r}")
        return content

    def _require_commit(self, digest: str) -> None:
        if not self.store.contains(digest):
            raise ObjectNotFoundError(digest)
        self.store.read_object(digest, Commit)

    def get_ref(self, name: str) -> str:
        """
        Read a branch or tag.

        Raises:
            RefNotFoundError: If the reference does not exist
        """
        if name == HEAD:
            digest = self.resolve_head()
            if digest is None:
                raise RefNotFoundError(HEAD)
            return digest

        ref = self.full_name(name)
        digest = self._read_file(ref)
        if digest is None:
            raise RefNotFoundError(ref)
        return digest

    def ref_exists(self, name: str) -> bool:
        return self._ref_path(self.full_name(name)).is_file()

    def set_ref(self, name: str, digest: str) -> None:
        """
        Point a reference at a stored commit, creating it if needed.

        Raises:
            ObjectNotFoundError: If digest is not stored
            ObjectTypeError: If digest is not a commit
        """
        ref = self.full_name(name)
        self._require_commit(digest)
        try:
            with LockFile(self._ref_path(ref)) as lock:
                lock.write(f"{digest}\n".encode())
        except LockHeld:
            raise ReferenceConflictError(ref, None, None) from None
        logger.debug("Set %s -> %s", ref, digest[:12])

    def compare_and_swap(self, name: str, expected: Optional[str], new: str) -> None:
        """
        Move a reference from expected to new atomically.

        Args:
            name: Reference name
            expected: Value the caller observed; None means the ref must not exist
            new: New commit digest

        Raises:
            ReferenceConflictError: If the ref no longer holds expected, or
                another writer holds its lock
        """
        ref = HEAD if name == HEAD else self.full_name(name)
        path = self.head_file if ref == HEAD else self._ref_path(ref)
        self._require_commit(new)

        try:
            with LockFile(path) as lock:
                if ref == HEAD:
                    head = self.read_head()
                    current = head.digest if isinstance(head, DirectCommit) else None
                else:
                    current = self._read_file(ref)
                if current != expected:
                    raise ReferenceConflictError(ref, expected, current)
                lock.write(f"{new}\n".encode())
        except LockHeld:
            raise ReferenceConflictError(ref, expected, None) from None

        logger.debug("Moved %s %s -> %s", ref, (expected or 'nothing')[:12], new[:12])

    def delete_ref(self, name: str) -> None:
        """
        Delete a branch or tag.

        Raises:
            RefNotFoundError: If the reference does not exist
            InvalidRefError: If the branch is checked out
        """
        ref = self.full_name(name)
        path = self._ref_path(ref)
        if not path.is_file():
            raise RefNotFoundError(ref)

        head = self.read_head()
        if isinstance(head, NamedBranch) and head.ref == ref:
            raise InvalidRefError(f"Cannot delete the checked-out branch {head.branch}")

        try:
            with LockFile(path):
                path.unlink()
        except LockHeld:
            raise ReferenceConflictError(ref, None, None) from None

        # Drop now-empty namespace directories below refs/heads or refs/tags
        parent = path.parent
        while parent.name not in ('heads', 'tags') and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent

        logger.debug("Deleted %s", ref)

    def list_refs(self, prefix: str = 'refs/') -> Set[str]:
        """Full names of every branch and tag under prefix."""
        refs_dir = self.control_dir / 'refs'
        names = set()
        for path in refs_dir.rglob('*'):
            if path.is_file() and not path.name.endswith(LOCK_SUFFIX):
                name = path.relative_to(self.control_dir).as_posix()
                if name.startswith(prefix):
                    names.add(name)
        return names

    def list_branches(self) -> Set[str]:
        return {ref[len(HEADS_PREFIX):] for ref in self.list_refs(HEADS_PREFIX)}

    def list_tags(self) -> Set[str]:
        return {ref[len(TAGS_PREFIX):] for ref in self.list_refs(TAGS_PREFIX)}

    def read_head(self) -> HeadState:
        """
        Parse HEAD into its tagged form.

        Raises:
            InvalidRefError: If HEAD is missing or malformed
        """
        if not self.head_file.is_file():
            raise InvalidRefError("HEAD is missing")
        content = self.head_file.read_text().strip()

        if content.startswith(SYMREF_PREFIX):
            target = content[len(SYMREF_PREFIX):]
            if not target.startswith(HEADS_PREFIX):
                raise InvalidRefError(f"HEAD must point to a branch, not {target}")
            validate_ref_name(target)
            return NamedBranch(target)

        if not is_digest(content):
            raise InvalidRefError(f"HEAD holds neither a branch nor a digest: {content!r}")
        return DirectCommit(content)

    def resolve_head(self) -> Optional[str]:
        """
        Resolve HEAD to a commit digest.

        Returns:
            The digest, or None when HEAD names a branch with no commits yet
        """
        head = self.read_head()
        if isinstance(head, DirectCommit):
            return head.digest
        return self._read_file(head.ref)

    def current_branch(self) -> Optional[str]:
        """Short name of the checked-out branch, or None when detached."""
        head = self.read_head()
        return head.branch if isinstance(head, NamedBranch) else None

    def is_detached(self) -> bool:
        return isinstance(self.read_head(), DirectCommit)

    def set_head(self, target: HeadState) -> None:
        """Attach HEAD to a branch or detach it at a commit."""
        if isinstance(target, NamedBranch):
            ref = self.full_name(target.ref)
            if not ref.startswith(HEADS_PREFIX):
                raise InvalidRefError(f"HEAD can only attach to a branch, not {ref}")
            validate_ref_name(ref)
            content = f"{SYMREF_PREFIX}{ref}\n"
        else:
            self._require_commit(target.digest)
            content = f"{target.digest}\n"

        try:
            with LockFile(self.head_file) as lock:
                lock.write(content.encode())
        except LockHeld:
            raise ReferenceConflictError(HEAD, None, None) from None
        logger.debug("HEAD -> %s", content.strip())

    def update_head(self, new: str, expected: Optional[str]) -> str:
        """
        Advance whatever HEAD designates from expected to new.

        In branch mode the branch moves and HEAD is untouched; in detached
        mode HEAD itself moves.

        Returns:
            The name of the reference that moved
        """
        head = self.read_head()
        name = head.ref if isinstance(head, NamedBranch) else HEAD
        self.compare_and_swap(name, expected, new)
        return name

    def resolve(self, rev: str) -> str:
        """
        Resolve a digest, branch, tag or 'HEAD' to a commit digest.

        Raises:
            RefNotFoundError: If nothing matches
        """
        if is_digest(rev):
            self._require_commit(rev)
            return rev
        if rev == HEAD:
            return self.get_ref(HEAD)
        if self.ref_exists(rev):
            return self.get_ref(rev)

        if 4 <= len(rev) < 64 and all(c in '0123456789abcdef' for c in rev):
            matches = [d for d in self.store.iter_digests() if d.startswith(rev)]
            commits = [d for d in matches if self.store.get_typed(d)[0] == Commit.type_tag]
            if len(commits) == 1:
                return commits[0]
            if len(commits) > 1:
                raise InvalidRefError(f"Ambiguous abbreviation: {rev}")

        raise RefNotFoundError(rev)
