"""Repository handle for Strata."""

import logging
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

from .config import Config
from .errors import RepositoryError
from .objects import Commit
from .refs import HEADS_PREFIX, NamedBranch, RefManager, validate_ref_name
from .store import ObjectStore
from .tree import CONTROL_DIR, TreeBuilder

logger = logging.getLogger(__name__)


class Repository:
    """
    A Strata repository.

    All state (object store, references, index, configuration) is reached
    through this handle, so several repositories can be open in one process.
    Components are created lazily on first use.
    """

    def __init__(self, path: Union[str, Path] = '.', global_config_path: Optional[Path] = None):
        """
        Args:
            path: Path to repository root (defaults to current directory)
            global_config_path: Override for the user-level config file
        """
        self.work_tree = Path(path).resolve()
        self.control_dir = self.work_tree / CONTROL_DIR
        self.objects_dir = self.control_dir / 'objects'
        self.refs_dir = self.control_dir / 'refs'
        self.heads_dir = self.refs_dir / 'heads'
        self.tags_dir = self.refs_dir / 'tags'
        self.head_file = self.control_dir / 'HEAD'
        self.index_file = self.control_dir / 'index'
        self.config_file = self.control_dir / 'config'
        self._global_config_path = global_config_path

        self._objects = None
        self._refs = None
        self._index = None
        self._commits = None
        self._worktree = None
        self._config = None

    @property
    def objects(self) -> ObjectStore:
        if self._objects is None:
            self._objects = ObjectStore(self.objects_dir)
        return self._objects

    @property
    def refs(self) -> RefManager:
        if self._refs is None:
            self._refs = RefManager(self.control_dir, self.objects)
        return self._refs

    @property
    def index(self):
        """The staging area, loaded from .strata/index on first use."""
        if self._index is None:
            from .index import Index
            self._index = Index(self.objects, self.index_file)
        return self._index

    @property
    def commits(self):
        if self._commits is None:
            from .commits import CommitGraph
            self._commits = CommitGraph(self.objects, self.refs, self.index, self.config)
        return self._commits

    @property
    def worktree(self):
        """Checkout engine for the working directory."""
        if self._worktree is None:
            from strata.operations.checkout import CheckoutEngine
            self._worktree = CheckoutEngine(self)
        return self._worktree

    @property
    def config(self) -> Config:
        if self._config is None:
            self._config = Config(self.config_file, self._global_config_path)
        return self._config

    @property
    def trees(self) -> TreeBuilder:
        return TreeBuilder(self.objects)

    def ignore_matcher(self):
        from strata.utils.ignore import get_ignore_matcher
        return get_ignore_matcher(self.work_tree)

    def init(self, default_branch: Optional[str] = None) -> 'Repository':
        """
        Initialize a new repository.

        Creates the .strata directory structure:
        .strata/
        ├── objects/       # Object database
        ├── refs/
        │   ├── heads/     # Branch references
        │   └── tags/      # Tag references
        ├── HEAD           # Current branch/commit
        └── config         # Repository configuration

        Raises:
            RepositoryError: If repository already exists
        """
        if self.control_dir.exists():
            raise RepositoryError(f"Repository already exists at {self.control_dir}")

        branch = default_branch or self.config.get('core', 'defaultbranch')
        validate_ref_name(HEADS_PREFIX + branch)

        self.work_tree.mkdir(parents=True, exist_ok=True)
        self.control_dir.mkdir()
        self.objects_dir.mkdir()
        self.refs_dir.mkdir()
        self.heads_dir.mkdir()
        self.tags_dir.mkdir()

        self.head_file.write_text(f'ref: {HEADS_PREFIX}{branch}\n')
        self.config_file.write_text('[core]\nrepositoryformatversion = 0\n')
        self._config = None

        logger.debug("Initialized repository at %s on branch %s", self.control_dir, branch)
        return self

    @classmethod
    def find_repository(cls, path: Union[str, Path] = '.') -> Optional['Repository']:
        """
        Find repository by searching up the directory tree.

        Returns:
            Repository if found, None otherwise
        """
        current = Path(path).resolve()

        while True:
            if (current / CONTROL_DIR).is_dir():
                return cls(current)
            if current == current.parent:
                return None
            current = current.parent

    @classmethod
    def open(cls, path: Union[str, Path] = '.') -> 'Repository':
        """
        Open the repository containing path.

        Raises:
            RepositoryError: If no repository is found
        """
        repo = cls.find_repository(path)
        if repo is None:
            raise RepositoryError(f"Not a strata repository: {Path(path).resolve()}")
        return repo

    def add(self, path: str, content: Union[bytes, str], executable: bool = False) -> str:
        """Stage content at path without touching the working tree."""
        return self.index.add(path, content, executable)

    def add_file(self, path: Union[str, Path]) -> str:
        """Stage a file from the working tree."""
        return self.index.add_file(self.work_tree, path)

    def remove(self, path: str) -> None:
        self.index.remove(path)

    def commit(self, message: str, author: Optional[str] = None, timestamp: Optional[int] = None) -> str:
        return self.commits.commit(message, author, timestamp)

    def history(self, start: Optional[str] = None, first_parent: bool = True) -> Iterator[Tuple[str, Commit]]:
        return self.commits.history(start, first_parent)

    def checkout(self, target: str, detach: bool = False) -> int:
        return self.worktree.checkout(target, detach)

    def status(self):
        return self.worktree.status()

    def create_branch(self, name: str, start: Optional[str] = None) -> str:
        """
        Create a branch at start (default HEAD) without switching to it.

        Raises:
            RepositoryError: If the branch already exists
        """
        ref = HEADS_PREFIX + name
        validate_ref_name(ref)
        if self.refs.ref_exists(ref):
            raise RepositoryError(f"Branch already exists: {name}")
        digest = self.refs.resolve(start or 'HEAD')
        self.refs.set_ref(ref, digest)
        return digest

    def delete_branch(self, name: str, force: bool = False) -> str:
        """
        Delete a branch, refusing one whose commits HEAD does not contain.

        Returns:
            str: The deleted branch's tip

        Raises:
            RepositoryError: If the branch is not merged into HEAD and not forced
            RefNotFoundError: If the branch does not exist
        """
        ref = HEADS_PREFIX + name
        tip = self.refs.get_ref(ref)
        head = self.refs.resolve_head()
        if not force and (head is None or not self.commits.is_ancestor(tip, head)):
            raise RepositoryError(f"Branch {name} is not fully merged (use --force to delete it)")
        self.refs.delete_ref(ref)
        logger.debug("Deleted branch %s at %s", name, tip[:12])
        return tip

    def switch_branch(self, name: str) -> None:
        """Attach HEAD to a branch without touching files (unborn branches allowed)."""
        self.refs.set_head(NamedBranch(HEADS_PREFIX + name))

    def fsck(self):
        from strata.operations.fsck import check_repository
        return check_repository(self.objects)

    def __repr__(self) -> str:
        return f"Repository(path={self.work_tree})"
