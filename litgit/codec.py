"""Object envelope framing: ``<type> <size>\\0<payload>``.

The envelope is both what gets hashed and what gets compressed on disk, so
the exact byte layout matters. No I/O happens here.
"""
import hashlib
from typing import Tuple

from .errors import MalformedObject


def frame(type_: str, payload: bytes) -> bytes:
    if not type_ or not type_.isascii() or ' ' in type_ or '\x00' in type_:
        raise MalformedObject(f'invalid object type {type_!r}')
    header = f'{type_} {len(payload)}\x00'.encode('ascii')
    return header + bytes(payload)


def parse_header(header: bytes) -> Tuple[str, int]:
    type_, sep, size = header.partition(b' ')
    if not sep or not type_ or not size.isdigit():
        raise MalformedObject(f'bad object header {header[:32]!r}')
    return type_.decode('ascii', errors='replace'), int(size)


def parse_envelope(envelope: bytes) -> Tuple[str, int, bytes]:
    nul = envelope.find(b'\x00')
    if nul == -1:
        raise MalformedObject('object has no header terminator')
    type_, size = parse_header(envelope[:nul])
    return type_, size, envelope[nul + 1:]


def unframe(envelope: bytes) -> Tuple[str, bytes]:
    """Split an envelope into its type label and payload.

    The declared size is parsed but not compared with the payload length;
    see ``ObjectStore.get`` for the checked variant.
    """
    type_, _size, payload = parse_envelope(envelope)
    return type_, payload


def hash_envelope(envelope: bytes) -> str:
    return hashlib.sha1(envelope).hexdigest()
