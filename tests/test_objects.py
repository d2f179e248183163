"""Object model tests."""

import hashlib

import pytest

from strata.core.errors import InvalidPathError, PathConflictError
from strata.core.objects import (
    MODE_DIRECTORY,
    MODE_EXECUTABLE,
    MODE_FILE,
    Blob,
    Commit,
    Tree,
    digest_for,
    frame,
)

A = 'a' * 64
B = 'b' * 64


def test_frame_header():
    assert frame('blob', b'hello') == b'blob 5\x00hello'


def test_blob_digest_covers_type_and_size():
    blob = Blob(b"hello\n")
    assert blob.hash == hashlib.sha256(b"blob 6\x00hello\n").hexdigest()
    assert blob.hash == digest_for('blob', b"hello\n")


def test_same_bytes_different_types_differ():
    assert digest_for('blob', b'') != digest_for('tree', b'')


def test_blob_empty():
    blob = Blob()
    assert blob.data == b''
    assert blob.serialize() == b''


def test_blob_from_file(temp_dir):
    path = temp_dir / 'data.txt'
    path.write_bytes(b'file content')
    assert Blob.from_file(str(path)).data == b'file content'


def test_tree_entries_sorted_by_name_bytes():
    tree = Tree()
    tree.add_entry(MODE_FILE, 'b.txt', A)
    tree.add_entry(MODE_DIRECTORY, 'a', B)
    tree.add_entry(MODE_FILE, 'B.txt', A)
    assert [e.name for e in tree] == ['B.txt', 'a', 'b.txt']


def test_tree_insertion_order_does_not_change_digest():
    first = Tree()
    first.add_entry(MODE_FILE, 'x', A)
    first.add_entry(MODE_FILE, 'y', B)
    second = Tree()
    second.add_entry(MODE_FILE, 'y', B)
    second.add_entry(MODE_FILE, 'x', A)
    assert first.hash == second.hash
    assert first.serialize() == second.serialize()


def test_tree_serialize_format():
    tree = Tree()
    tree.add_entry(MODE_EXECUTABLE, 'run.sh', A)
    assert tree.serialize() == b'100755 run.sh\x00' + bytes.fromhex(A)


def test_tree_duplicate_name_rejected():
    tree = Tree()
    tree.add_entry(MODE_FILE, 'same', A)
    with pytest.raises(PathConflictError):
        tree.add_entry(MODE_DIRECTORY, 'same', B)


@pytest.mark.parametrize('name', ['', '.', '..', 'a/b', 'nul\0'])
def test_tree_invalid_names(name):
    with pytest.raises(InvalidPathError):
        Tree().add_entry(MODE_FILE, name, A)


def test_tree_invalid_mode():
    with pytest.raises(ValueError):
        Tree().add_entry('120000', 'link', A)


def test_tree_deserialize():
    tree = Tree()
    tree.add_entry(MODE_FILE, 'file.txt', A)
    tree.add_entry(MODE_DIRECTORY, 'lib', B)

    parsed = Tree.from_bytes(tree.serialize())
    assert parsed.get('file.txt').hash == A
    assert parsed.get('lib').is_dir
    assert parsed.get('lib').type == 'tree'
    assert parsed.hash == tree.hash


def test_tree_deserialize_truncated():
    data = b'100644 file.txt\x00' + bytes.fromhex(A)[:10]
    with pytest.raises(ValueError):
        Tree.from_bytes(data)


def test_commit_serialize():
    commit = Commit.create(A, [B], "Jane <jane@example.com>", "Subject\n\nBody", timestamp=1234567890)
    text = commit.serialize().decode()
    assert text.startswith(f"tree {A}\nparent {B}\n")
    assert "author Jane <jane@example.com> 1234567890 +0000" in text
    assert text.endswith("\n\nSubject\n\nBody")


def test_commit_deserialize():
    original = Commit.create(A, [B, A], "Jane <jane@example.com>", "Merge\n\ndetails", timestamp=42, timezone='-0500')
    parsed = Commit.from_bytes(original.serialize())

    assert parsed.tree == A
    assert parsed.parents == [B, A]
    assert parsed.author == "Jane <jane@example.com>"
    assert parsed.committer == "Jane <jane@example.com>"
    assert parsed.timestamp == 42
    assert parsed.timezone == '-0500'
    assert parsed.message == "Merge\n\ndetails"
    assert parsed.hash == original.hash


def test_commit_root_and_merge_flags():
    root = Commit.create(A, [], "a <a@b>", "root", timestamp=1)
    merge = Commit.create(A, [A, B], "a <a@b>", "merge", timestamp=1)
    assert root.is_root and not root.is_merge
    assert merge.is_merge and not merge.is_root


def test_commit_summary():
    commit = Commit.create(A, [], "a <a@b>", "First line\nsecond", timestamp=1)
    assert commit.summary == "First line"


def test_commit_digest_depends_on_parents():
    one = Commit.create(A, [], "a <a@b>", "msg", timestamp=1)
    two = Commit.create(A, [B], "a <a@b>", "msg", timestamp=1)
    assert one.hash != two.hash


def test_commit_without_tree_rejected():
    with pytest.raises(ValueError):
        Commit.from_bytes(b"author a <a@b> 1 +0000\n\nmsg")
