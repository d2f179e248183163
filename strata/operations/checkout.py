"""Checkout engine: materialize trees and report working tree status."""

import enum
import logging
import os
import shutil
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from strata.core.errors import UncommittedChangesError
from strata.core.index import StageState
from strata.core.objects import MODE_EXECUTABLE, Blob, Commit, digest_for
from strata.core.refs import DirectCommit, NamedBranch, HEADS_PREFIX
from strata.core.tree import TreeBuilder, file_mode, iter_working_files, parent_dirs

logger = logging.getLogger(__name__)

FileTable = Dict[str, Tuple[str, str]]


class ChangeKind(enum.Enum):
    ADDED = 'added'
    MODIFIED = 'modified'
    DELETED = 'deleted'


_STAGE_TO_CHANGE = {
    StageState.ADDED: ChangeKind.ADDED,
    StageState.MODIFIED: ChangeKind.MODIFIED,
    StageState.DELETED: ChangeKind.DELETED,
}


@dataclass
class StatusReport:
    """
    Working tree status as three disjoint path sets.

    - staged: index differs from the HEAD tree
    - unstaged: working tree differs from the index (paths not already staged)
    - untracked: files in neither the index nor HEAD, minus ignored ones
    """
    branch: Optional[str] = None
    head: Optional[str] = None
    staged: Dict[str, ChangeKind] = field(default_factory=dict)
    unstaged: Dict[str, ChangeKind] = field(default_factory=dict)
    untracked: List[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not (self.staged or self.unstaged or self.untracked)

    @property
    def has_changes(self) -> bool:
        """True if anything tracked is staged or modified."""
        return bool(self.staged or self.unstaged)


@dataclass
class _Scan:
    head_files: FileTable
    index_files: FileTable
    working: FileTable
    report: StatusReport


class CheckoutEngine:
    """Moves the working tree, index and HEAD between commits."""

    def __init__(self, repo):
        self.repo = repo
        self.store = repo.objects
        self.builder = TreeBuilder(repo.objects)

    def _head_files(self, head: Optional[str]) -> FileTable:
        if head is None:
            return {}
        return self.builder.read_tree(self.store.read_object(head, Commit).tree)

    def _working_files(self) -> FileTable:
        files = {}
        for rel_path, full_path in iter_working_files(self.repo.work_tree):
            files[rel_path] = (digest_for(Blob.type_tag, full_path.read_bytes()), file_mode(full_path))
        return files

    def _scan(self) -> _Scan:
        refs = self.repo.refs
        head = refs.resolve_head()
        head_files = self._head_files(head)
        index = self.repo.index
        index_files = index.table()
        working = self._working_files()
        matcher = self.repo.ignore_matcher()

        report = StatusReport(branch=refs.current_branch(), head=head)
        for path, state in index.staged_changes(head_files).items():
            report.staged[path] = _STAGE_TO_CHANGE[state]

        for path, value in index_files.items():
            if path in report.staged:
                continue
            if path not in working:
                report.unstaged[path] = ChangeKind.DELETED
            elif working[path] != value:
                report.unstaged[path] = ChangeKind.MODIFIED

        for path in working:
            if path in index_files or path in report.staged:
                continue
            if not matcher.is_ignored(path):
                report.untracked.append(path)

        report.staged = dict(sorted(report.staged.items()))
        report.unstaged = dict(sorted(report.unstaged.items()))
        report.untracked.sort()
        return _Scan(head_files, index_files, working, report)

    def status(self) -> StatusReport:
        """Compare the working tree against the index and HEAD."""
        return self._scan().report

    def _resolve(self, target: str, detach: bool):
        refs = self.repo.refs
        branch_ref = target if target.startswith(HEADS_PREFIX) else HEADS_PREFIX + target
        if not detach and refs.ref_exists(branch_ref):
            return refs.get_ref(branch_ref), NamedBranch(branch_ref)
        digest = refs.resolve(target)
        return digest, DirectCommit(digest)

    def _conflicts(self, scan: _Scan, target_files: FileTable) -> List[str]:
        report = scan.report
        conflicts = set()

        for path in set(scan.index_files) | set(target_files):
            wanted = target_files.get(path)
            if path in report.staged and scan.index_files.get(path) != wanted:
                conflicts.add(path)
            elif (report.unstaged.get(path) == ChangeKind.MODIFIED
                    and scan.index_files.get(path) != wanted):
                conflicts.add(path)

        untracked = set(report.untracked)
        for path in untracked:
            if path in target_files and scan.working[path] != target_files[path]:
                conflicts.add(path)
            if any(directory in target_files for directory in parent_dirs(path)):
                conflicts.add(path)
        for path in target_files:
            conflicts.update(d for d in parent_dirs(path) if d in untracked)

        # ignored files never show up in the report, so look at the disk
        work_tree = Path(self.repo.work_tree)
        for path in target_files:
            full_path = work_tree / path
            if full_path.is_dir() and not full_path.is_symlink():
                if self._holds_untracked(work_tree, full_path, scan.index_files):
                    conflicts.add(path)
            for directory in parent_dirs(path):
                full_dir = work_tree / directory
                if (full_dir.is_symlink() or full_dir.is_file()) and directory not in scan.index_files:
                    conflicts.add(directory)

        return sorted(conflicts)

    @staticmethod
    def _holds_untracked(work_tree: Path, directory: Path, tracked: FileTable) -> bool:
        """Whether directory contains anything besides tracked files."""
        for root, dirs, names in os.walk(directory):
            if any(os.path.islink(os.path.join(root, name)) for name in dirs):
                return True
            for name in names:
                rel = Path(root, name).relative_to(work_tree).as_posix()
                if rel not in tracked:
                    return True
        return False

    def checkout(self, target: str, detach: bool = False) -> int:
        """
        Switch the working tree, index and HEAD to target.

        A branch name attaches HEAD to that branch; a digest, tag or
        abbreviated digest detaches HEAD at the commit. The checks run before
        any file is touched: if a path with local changes would be overwritten
        or removed, nothing is written.

        Returns:
            int: Number of files written or removed

        Raises:
            UncommittedChangesError: If local changes would be lost
        """
        digest, new_head = self._resolve(target, detach)
        commit = self.store.read_object(digest, Commit)
        target_files = self.builder.read_tree(commit.tree)

        scan = self._scan()
        conflicts = self._conflicts(scan, target_files)
        if conflicts:
            raise UncommittedChangesError(conflicts)

        removals = [p for p in scan.index_files if p not in target_files and p in scan.working]
        # unstaged edits to paths the target leaves alone are carried over
        kept = {p for p, kind in scan.report.unstaged.items() if kind == ChangeKind.MODIFIED}
        writes = [
            p for p in sorted(target_files)
            if p not in kept and scan.working.get(p) != target_files[p]
        ]

        work_tree = Path(self.repo.work_tree)
        for path in removals:
            (work_tree / path).unlink()
            self._prune_empty_dirs(work_tree, path)
            logger.debug("Removed %s", path)

        for path in writes:
            blob_digest, mode = target_files[path]
            self._write_file(work_tree / path, self.store.read_object(blob_digest, Blob).data, mode)
            logger.debug("Wrote %s", path)

        self.repo.index.replace(target_files)
        self.repo.refs.set_head(new_head)
        logger.debug("Checked out %s (%d writes, %d removals)", digest[:12], len(writes), len(removals))
        return len(writes) + len(removals)

    @staticmethod
    def _write_file(full_path: Path, data: bytes, mode: str) -> None:
        if full_path.is_dir() and not full_path.is_symlink():
            # only empty directories are left here once tracked files are gone
            shutil.rmtree(full_path)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_bytes(data)

        current = full_path.stat().st_mode
        if mode == MODE_EXECUTABLE:
            os.chmod(full_path, current | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        else:
            os.chmod(full_path, current & ~(stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))

    @staticmethod
    def _prune_empty_dirs(work_tree: Path, path: str) -> None:
        for directory in parent_dirs(path):
            full = work_tree / directory
            if full.is_dir() and not any(full.iterdir()):
                full.rmdir()
            else:
                break

    def stage_all(self) -> Dict[str, ChangeKind]:
        """
        Reconcile working tree edits into the index.

        New and modified files are staged, files missing from the working
        tree are unstaged. Ignored untracked files are left out.

        Returns:
            The changes applied, by path
        """
        scan = self._scan()
        index = self.repo.index
        applied = {}

        for path, kind in scan.report.unstaged.items():
            if kind == ChangeKind.DELETED:
                index.remove(path)
            else:
                index.add_file(self.repo.work_tree, path)
            applied[path] = kind

        # staged deletions are not in the index and stay staged as they are
        for path, kind in scan.report.staged.items():
            # staged, then edited again on disk
            if path in scan.index_files and path in scan.working and scan.working[path] != scan.index_files[path]:
                index.add_file(self.repo.work_tree, path)
                applied[path] = ChangeKind.MODIFIED
            elif path in scan.index_files and path not in scan.working:
                index.remove(path)
                applied[path] = ChangeKind.DELETED

        for path in scan.report.untracked:
            index.add_file(self.repo.work_tree, path)
            applied[path] = ChangeKind.ADDED

        return dict(sorted(applied.items()))
