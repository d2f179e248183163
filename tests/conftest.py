"""Shared pytest fixtures for Strata tests."""

import pytest
import tempfile
import shutil
from pathlib import Path

from strata.core.config import Config
from strata.core.repository import Repository
from strata.core.objects import Blob, Tree, Commit

AUTHOR = "Test User <test@example.com>"


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory, monkeypatch):
    """Keep the user's ~/.strataconfig and STRATA_* variables out of tests."""
    global_path = tmp_path_factory.mktemp('home') / '.strataconfig'
    monkeypatch.setattr(Config, 'GLOBAL_CONFIG_PATH', global_path)
    for name in ('STRATA_USER_NAME', 'STRATA_USER_EMAIL', 'STRATA_CORE_COMMITRETRIES',
                 'STRATA_CORE_DEFAULTBRANCH', 'STRATA_CORE_LOGLEVEL'):
        monkeypatch.delenv(name, raising=False)
    return global_path


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def repo(temp_dir):
    """Create an initialized repository."""
    return Repository(temp_dir).init()


@pytest.fixture
def repo_with_config(repo):
    """Create a repository with an author identity configured."""
    repo.config.set('user', 'name', 'Test User')
    repo.config.set('user', 'email', 'test@example.com')
    return repo


@pytest.fixture
def store(repo):
    return repo.objects


@pytest.fixture
def sample_blob():
    """Create a sample blob object."""
    return Blob(b"Hello, World!\n")


@pytest.fixture
def sample_tree(store, sample_blob):
    """Create a sample tree with one blob."""
    blob_hash = store.write_object(sample_blob)
    tree = Tree()
    tree.add_entry('100644', 'test.txt', blob_hash)
    return tree


@pytest.fixture
def sample_commit(store, sample_tree):
    """Sample root commit object."""
    tree_hash = store.write_object(sample_tree)
    return Commit.create(
        tree_hash=tree_hash,
        parent_hashes=[],
        author=AUTHOR,
        message="Test commit",
        timestamp=1700000000,
    )


@pytest.fixture
def working_files(repo):
    """Create sample file structure in repository."""
    file1 = repo.work_tree / "test1.txt"
    file2 = repo.work_tree / "test2.txt"
    (repo.work_tree / "subdir").mkdir()
    file3 = repo.work_tree / "subdir" / "test3.txt"

    file1.write_text("Content 1")
    file2.write_text("Content 2")
    file3.write_text("Content 3")

    return {
        'file1': file1,
        'file2': file2,
        'file3': file3
    }


def write_file(repo, path, content):
    """Write a file in the working tree, creating parent directories."""
    full = repo.work_tree / path
    full.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, str):
        content = content.encode()
    full.write_bytes(content)
    return full


def commit_files(repo, files, message="Test commit", timestamp=None):
    """
    Write files to the working tree, stage them and commit.

    Args:
        repo: Repository with an author configured
        files: Mapping of relative path -> content
        message: Commit message

    Returns:
        str: Commit digest
    """
    for path, content in files.items():
        write_file(repo, path, content)
        repo.add_file(repo.work_tree / path)
    return repo.commit(message, timestamp=timestamp)


@pytest.fixture
def files():
    """Helpers for writing working tree files and committing them."""
    class Helpers:
        write = staticmethod(write_file)
        commit = staticmethod(commit_files)
    return Helpers
