"""Commit graph: creating commits and walking history."""

import heapq
import itertools
import logging
from collections import deque
from typing import Iterator, List, Optional, Sequence, Tuple

from .errors import (
    IdentityError,
    NothingToCommitError,
    ObjectNotFoundError,
    ReferenceConflictError,
)
from .objects import Commit, Tree
from .tree import TreeBuilder

logger = logging.getLogger(__name__)

DEFAULT_COMMIT_RETRIES = 3


class CommitGraph:
    """
    Append-only DAG of commits.

    New commits always take the current HEAD commit as parent, and a commit's
    digest covers its parents' digests, so no commit can become its own
    ancestor.
    """

    def __init__(self, store, refs, index, config=None):
        self.store = store
        self.refs = refs
        self.index = index
        self.config = config

    @property
    def max_retries(self) -> int:
        if self.config is None:
            return DEFAULT_COMMIT_RETRIES
        return max(0, self.config.get_int('core', 'commitretries', DEFAULT_COMMIT_RETRIES))

    def _author(self, author: Optional[str]) -> str:
        if author:
            return author
        configured = self.config.author() if self.config is not None else None
        if not configured:
            raise IdentityError(
                "Author identity unknown; set user.name and user.email "
                "or pass an author"
            )
        return configured

    def _require(self, digest: str, cls) -> None:
        if not self.store.contains(digest):
            raise ObjectNotFoundError(digest)
        self.store.read_object(digest, cls)

    def commit(self, message: str, author: Optional[str] = None, timestamp: Optional[int] = None) -> str:
        """
        Record the staged tree as a new commit on top of HEAD.

        The branch (or detached HEAD) is advanced by compare-and-swap from the
        parent observed when the commit was built. If another writer moved it
        in between, the staged tree is re-applied on the new parent, up to
        core.commitretries times.

        Returns:
            str: Digest of the new commit

        Raises:
            NothingToCommitError: If the staged tree equals the parent's tree
            ReferenceConflictError: If every attempt lost the race
        """
        author = self._author(author)
        tree_digest = self.index.flatten()
        retries = self.max_retries

        for attempt in itertools.count():
            parent = self.refs.resolve_head()
            if parent is not None:
                parent_commit = self.store.read_object(parent, Commit)
                if parent_commit.tree == tree_digest:
                    raise NothingToCommitError("Nothing to commit, staged tree matches HEAD")

            commit = Commit.create(
                tree_hash=tree_digest,
                parent_hashes=[parent] if parent else [],
                author=author,
                message=message,
                timestamp=timestamp,
            )
            digest = self.store.write_object(commit)

            try:
                moved = self.refs.update_head(digest, parent)
            except ReferenceConflictError as e:
                if attempt >= retries:
                    raise
                logger.warning("Commit lost race on %s (attempt %d), retrying", e.name, attempt + 1)
                continue

            logger.debug("Committed %s on %s (parent %s)", digest[:12], moved, (parent or 'none')[:12])
            return digest

    def commit_merge(
        self,
        tree_digest: str,
        parents: Sequence[str],
        message: str,
        author: Optional[str] = None,
        timestamp: Optional[int] = None
    ) -> str:
        """
        Record a merge of already-resolved content.

        The caller supplies the merged tree. HEAD must currently resolve to
        parents[0]; it advances to the merge commit, and the index is reset to
        the merged tree.

        Raises:
            ValueError: If fewer than two distinct parents are given
            ObjectNotFoundError: If the tree or a parent is not stored
            ReferenceConflictError: If HEAD does not resolve to parents[0]
        """
        parents = list(parents)
        if len(parents) < 2 or len(set(parents)) != len(parents):
            raise ValueError("A merge needs at least two distinct parents")

        self._require(tree_digest, Tree)
        for parent in parents:
            self._require(parent, Commit)

        commit = Commit.create(
            tree_hash=tree_digest,
            parent_hashes=parents,
            author=self._author(author),
            message=message,
            timestamp=timestamp,
        )
        digest = self.store.write_object(commit)
        self.refs.update_head(digest, parents[0])
        self.index.replace(TreeBuilder(self.store).read_tree(tree_digest))

        logger.debug("Merged %s into %s", ', '.join(p[:12] for p in parents[1:]), digest[:12])
        return digest

    def get(self, digest: str) -> Commit:
        return self.store.read_object(digest, Commit)

    def history(self, start: Optional[str] = None, first_parent: bool = True) -> Iterator[Tuple[str, Commit]]:
        """
        Lazily walk commits from start (default HEAD), newest first.

        Args:
            start: Commit digest to start from
            first_parent: Follow only the first parent of each commit;
                otherwise visit every reachable commit once, ordered by
                timestamp

        Yields:
            (digest, Commit) pairs, ending at root commits
        """
        if start is None:
            start = self.refs.resolve_head()
            if start is None:
                return

        if first_parent:
            digest = start
            while digest is not None:
                commit = self.get(digest)
                yield digest, commit
                digest = commit.parents[0] if commit.parents else None
            return

        counter = itertools.count()
        seen = {start}
        commit = self.get(start)
        queue = [(-commit.timestamp, next(counter), start, commit)]

        while queue:
            _, _, digest, commit = heapq.heappop(queue)
            yield digest, commit
            for parent in commit.parents:
                if parent not in seen:
                    seen.add(parent)
                    parent_commit = self.get(parent)
                    heapq.heappush(queue, (-parent_commit.timestamp, next(counter), parent, parent_commit))

    def ancestors(self, digest: str) -> List[str]:
        """Every commit reachable from digest through parents, excluding itself."""
        result = []
        seen = set()
        queue = deque(self.get(digest).parents)
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            result.append(current)
            queue.extend(self.get(current).parents)
        return result

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """True if ancestor is descendant or reachable from it."""
        if ancestor == descendant:
            return True
        return ancestor in self.ancestors(descendant)
