"""Binary codec for tree (directory listing) objects.

A tree payload is a run of entries with no separators::

    <mode> SP <name> NUL <20 raw id bytes>

Entries are written sorted by the bytes of their name.
"""
from dataclasses import dataclass
from typing import Iterable, List

from .errors import MalformedTree

MODE_FILE = '100644'
MODE_EXECUTABLE = '100755'
MODE_SYMLINK = '120000'
MODE_TREE = '40000'
MODES = (MODE_FILE, MODE_EXECUTABLE, MODE_SYMLINK, MODE_TREE)

OID_RAWLEN = 20


def name_to_bytes(name: str) -> bytes:
    return name.encode('utf-8', errors='surrogateescape')


def name_from_bytes(raw: bytes) -> str:
    return raw.decode('utf-8', errors='surrogateescape')


@dataclass(frozen=True)
class TreeEntry:
    mode: str
    name: str
    oid: bytes

    @property
    def hexsha(self) -> str:
        return self.oid.hex()

    @property
    def object_type(self) -> str:
        return 'tree' if self.mode == MODE_TREE else 'blob'

    def sort_key(self) -> bytes:
        return name_to_bytes(self.name)


def _check_entry(entry: TreeEntry):
    if entry.mode not in MODES:
        raise MalformedTree(f'unsupported mode {entry.mode!r} for {entry.name!r}')
    if not entry.name or '/' in entry.name or '\x00' in entry.name:
        raise MalformedTree(f'invalid entry name {entry.name!r}')
    if len(entry.oid) != OID_RAWLEN:
        raise MalformedTree(f'entry {entry.name!r} has a {len(entry.oid)} byte id, expected {OID_RAWLEN}')


def encode(entries: Iterable[TreeEntry]) -> bytes:
    """Serialize *entries* in canonical (byte-wise name) order.

    Duplicate names are written as given; avoiding them is up to the caller.
    """
    out = []
    for entry in sorted(entries, key=TreeEntry.sort_key):
        _check_entry(entry)
        out.append(entry.mode.encode('ascii') + b' ' + entry.sort_key() + b'\x00' + bytes(entry.oid))
    return b''.join(out)


def decode(payload: bytes) -> List[TreeEntry]:
    """Parse a tree payload, keeping entries in the order they are stored."""
    entries = []
    pos = 0
    end = len(payload)
    while pos < end:
        sp = payload.find(b' ', pos)
        if sp == -1 or b'\x00' in payload[pos:sp]:
            raise MalformedTree(f'missing space after mode at offset {pos}')
        nul = payload.find(b'\x00', sp + 1)
        if nul == -1:
            raise MalformedTree(f'missing NUL after name at offset {sp + 1}')
        oid = payload[nul + 1:nul + 1 + OID_RAWLEN]
        if len(oid) != OID_RAWLEN:
            raise MalformedTree(f'truncated object id at offset {nul + 1}')
        mode = payload[pos:sp].decode('ascii', errors='replace')
        entries.append(TreeEntry(mode, name_from_bytes(payload[sp + 1:nul]), oid))
        pos = nul + 1 + OID_RAWLEN
    return entries


def format_entry(entry: TreeEntry, name_only: bool = False) -> str:
    if name_only:
        return entry.name
    return f'{entry.mode} {entry.object_type} {entry.hexsha}\t{entry.name}'
