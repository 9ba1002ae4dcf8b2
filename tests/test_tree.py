import pytest

from litgit import tree
from litgit.errors import MalformedTree
from litgit.tree import TreeEntry

HELLO = bytes.fromhex('95d09f2b10159347eece71399a7e2e907ea3df4f')
EMPTY = bytes.fromhex('e69de29bb2d1d6434b8b29ae775ad8c2e48c5391')


def test_empty_tree():
    assert tree.encode([]) == b''
    assert tree.decode(b'') == []


def test_encode_layout():
    payload = tree.encode([TreeEntry('100644', 'hello.txt', HELLO)])
    assert payload == b'100644 hello.txt\x00' + HELLO
    assert len(payload) == 37


def test_encode_sorts_by_name():
    payload = tree.encode([TreeEntry('100644', 'b', EMPTY), TreeEntry('100644', 'a', HELLO)])
    assert payload.index(b' a\x00') < payload.index(b' b\x00')
    assert [e.name for e in tree.decode(payload)] == ['a', 'b']


def test_encode_order_is_independent_of_input_order():
    entries = [
        TreeEntry('40000', 'src', EMPTY),
        TreeEntry('100755', 'run.sh', HELLO),
        TreeEntry('120000', 'link', EMPTY),
        TreeEntry('100644', 'README', HELLO),
    ]
    assert tree.encode(entries) == tree.encode(reversed(entries))
    assert [e.name for e in tree.decode(tree.encode(entries))] == ['README', 'link', 'run.sh', 'src']


def test_sort_is_bytewise():
    # 'é' encodes to 0xc3 0xa9, which sorts after every ASCII name
    entries = [TreeEntry('100644', 'é', HELLO), TreeEntry('100644', 'z', HELLO), TreeEntry('100644', 'Z', HELLO)]
    assert [e.name for e in tree.decode(tree.encode(entries))] == ['Z', 'z', 'é']


def test_decode_keeps_stored_order():
    payload = b'100644 b\x00' + HELLO + b'100644 a\x00' + EMPTY
    assert tree.decode(payload) == [TreeEntry('100644', 'b', HELLO), TreeEntry('100644', 'a', EMPTY)]


def test_decode_names_with_spaces_and_odd_bytes():
    payload = b'100644 my file\x00' + HELLO + b'100644 \xff\xfe\x00' + EMPTY
    entries = tree.decode(payload)
    assert entries[0].name == 'my file'
    assert tree.encode(entries) == b'100644 my file\x00' + HELLO + b'100644 \xff\xfe\x00' + EMPTY


@pytest.mark.parametrize('payload', [
    b'100644',
    b'100644 name',
    b'100644 name\x00' + HELLO[:19],
    b'100644 a\x00' + HELLO + b'40000 b',
    b'100\x00644 a' + HELLO,
])
def test_decode_truncated(payload):
    with pytest.raises(MalformedTree):
        tree.decode(payload)


@pytest.mark.parametrize('entry', [
    TreeEntry('100600', 'a', HELLO),
    TreeEntry('100644', '', HELLO),
    TreeEntry('100644', 'a/b', HELLO),
    TreeEntry('100644', 'a\x00b', HELLO),
    TreeEntry('100644', 'a', HELLO.hex().encode()),
])
def test_encode_rejects_bad_entries(entry):
    with pytest.raises(MalformedTree):
        tree.encode([entry])


def test_format_entry():
    blob = TreeEntry('100644', 'hello.txt', HELLO)
    sub = TreeEntry('40000', 'src', EMPTY)
    assert tree.format_entry(blob) == '100644 blob 95d09f2b10159347eece71399a7e2e907ea3df4f\thello.txt'
    assert tree.format_entry(sub) == '40000 tree e69de29bb2d1d6434b8b29ae775ad8c2e48c5391\tsrc'
    assert tree.format_entry(sub, name_only=True) == 'src'
