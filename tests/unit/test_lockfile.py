"""Unit tests for lock files and atomic writes."""

import pytest

from strata.utils.lockfile import LockFile, LockHeld, atomic_write


def test_atomic_write_creates_parents(temp_dir):
    target = temp_dir / 'a' / 'b' / 'file'
    atomic_write(target, b'data')
    assert target.read_bytes() == b'data'
    assert [p.name for p in target.parent.iterdir()] == ['file']


def test_atomic_write_replaces(temp_dir):
    target = temp_dir / 'file'
    target.write_bytes(b'old')
    atomic_write(target, b'new')
    assert target.read_bytes() == b'new'


def test_lock_commit(temp_dir):
    target = temp_dir / 'ref'
    with LockFile(target) as lock:
        lock.write(b'value\n')
        assert (temp_dir / 'ref.lock').exists()
    assert target.read_bytes() == b'value\n'
    assert not (temp_dir / 'ref.lock').exists()


def test_lock_abort_on_exception(temp_dir):
    target = temp_dir / 'ref'
    target.write_bytes(b'original')

    with pytest.raises(RuntimeError):
        with LockFile(target) as lock:
            lock.write(b'partial')
            raise RuntimeError("boom")

    assert target.read_bytes() == b'original'
    assert not (temp_dir / 'ref.lock').exists()


def test_lock_without_write_leaves_file(temp_dir):
    target = temp_dir / 'ref'
    target.write_bytes(b'original')
    with LockFile(target):
        pass
    assert target.read_bytes() == b'original'


def test_lock_held(temp_dir):
    target = temp_dir / 'ref'
    with LockFile(target):
        with pytest.raises(LockHeld):
            LockFile(target).acquire()
