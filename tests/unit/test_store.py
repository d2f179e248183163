"""Unit tests for the content-addressed object store."""

import threading
import zlib

import pytest

from strata.core.errors import (
    IntegrityError,
    InvalidDigestError,
    ObjectNotFoundError,
    ObjectTypeError,
)
from strata.core.hash import hash_object
from strata.core.objects import Blob, Commit, Tree, digest_for
from strata.core.store import ObjectStore


def test_put_returns_content_digest(store):
    digest = store.put('blob', b'hello')
    assert digest == digest_for('blob', b'hello')


def test_object_path_is_sharded(store):
    digest = store.put('blob', b'sharded')
    path = store.object_path(digest)
    assert path.parent.name == digest[:2]
    assert path.name == digest[2:]
    assert path.exists()


def test_get_returns_body(store):
    digest = store.put('blob', b'payload')
    assert store.get(digest) == b'payload'
    assert store.get_typed(digest) == ('blob', b'payload')


def test_put_is_idempotent(store):
    first = store.put('blob', b'same bytes')
    path = store.object_path(first)
    mtime = path.stat().st_mtime_ns

    second = store.put('blob', b'same bytes')
    assert first == second
    assert path.stat().st_mtime_ns == mtime
    assert list(store.iter_digests()).count(first) == 1


def test_contains(store):
    digest = store.put('blob', b'x')
    assert store.contains(digest)
    assert digest in store
    assert not store.contains('0' * 64)


def test_get_missing(store):
    with pytest.raises(ObjectNotFoundError) as exc_info:
        store.get('0' * 64)
    assert exc_info.value.digest == '0' * 64


@pytest.mark.parametrize('bad', ['abc', 'Z' * 64, 'A' * 64, ''])
def test_invalid_digest(store, bad):
    with pytest.raises(InvalidDigestError):
        store.get(bad)


def test_unknown_type_rejected(store):
    with pytest.raises(ValueError):
        store.put('symlink', b'target')


def test_stored_file_is_compressed_record(store):
    digest = store.put('blob', b'compressed?')
    raw = zlib.decompress(store.object_path(digest).read_bytes())
    assert raw == b'blob 11\x00compressed?'


def test_corrupted_content_detected(store):
    """Tampered object bytes are reported, never returned."""
    digest = store.put('blob', b'original content')
    store.object_path(digest).write_bytes(zlib.compress(b'blob 16\x00tampered content'))

    with pytest.raises(IntegrityError) as exc_info:
        store.get(digest)
    assert exc_info.value.digest == digest


def test_truncated_file_detected(store):
    digest = store.put('blob', b'some content that will be cut')
    path = store.object_path(digest)
    path.write_bytes(path.read_bytes()[:5])

    with pytest.raises(IntegrityError):
        store.get(digest)


def test_wrong_size_header_detected(store):
    record = b'blob 99\x00short'
    digest = hash_object(record)
    path = store.object_path(digest)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(zlib.compress(record))

    with pytest.raises(IntegrityError, match='size mismatch'):
        store.get(digest)


def test_write_and_read_object(store, sample_commit):
    digest = store.write_object(sample_commit)
    commit = store.read_object(digest, Commit)
    assert commit.message == "Test commit"
    assert commit.hash == digest


def test_read_object_type_check(store):
    digest = store.write_object(Blob(b'not a tree'))
    with pytest.raises(ObjectTypeError) as exc_info:
        store.read_object(digest, Tree)
    assert exc_info.value.actual == 'blob'
    assert exc_info.value.expected == 'tree'


def test_malformed_body_is_integrity_error(store):
    digest = store.put('commit', b'no separator here')
    with pytest.raises(IntegrityError):
        store.read_object(digest)


def test_iter_digests(store):
    digests = {store.put('blob', bytes([i])) for i in range(5)}
    assert set(store.iter_digests()) == digests


def test_iter_digests_missing_dir(temp_dir):
    assert list(ObjectStore(temp_dir / 'nothing').iter_digests()) == []


def test_concurrent_puts_of_same_content(store):
    results = []

    def writer():
        results.append(store.put('blob', b'contended'))

    threads = [threading.Thread(target=writer) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(set(results)) == 1
    assert store.get(results[0]) == b'contended'


def test_concurrent_puts_from_separate_stores(repo):
    """Several handles on one objects directory can store the same content."""
    stores = [ObjectStore(repo.objects_dir) for _ in range(8)]
    errors = []

    def writer(handle):
        try:
            for n in range(100):
                handle.put('blob', b'same-%d' % n)
        except Exception as e:
            errors.append(repr(e))

    threads = [threading.Thread(target=writer, args=(handle,)) for handle in stores]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    for n in range(100):
        assert stores[0].get(digest_for('blob', b'same-%d' % n)) == b'same-%d' % n
    leftovers = list(repo.objects_dir.rglob('*.tmp'))
    assert leftovers == []


@pytest.mark.parametrize('bad', ['xyz', 'A' * 64, '', None])
def test_contains_malformed_digest(store, bad):
    assert store.contains(bad) is False
    assert bad not in store
