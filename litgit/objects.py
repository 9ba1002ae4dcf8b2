"""Loose object storage: zlib-compressed envelopes in fan-out directories.

An object with id ``95d09f2b...`` lives at ``objects/95/d09f2b...``.
"""
import logging
import os
import string
import tempfile
import zlib
from pathlib import Path
from typing import Iterator, Tuple, Union

from . import codec
from .errors import CorruptObject, InvalidIdentifier, IOFailure, MalformedObject, ObjectNotFound

logger = logging.getLogger(__name__)

HEXDIGITS = frozenset(string.hexdigits.lower())
OID_HEXLEN = 40
OID_RAWLEN = 20
MIN_OID_LEN = 3  # two fan-out characters plus at least one for the file name

ObjectId = Union[str, bytes]


def normalize_oid(oid: ObjectId) -> str:
    """Return *oid* as lowercase hex, accepting hex text (str or ASCII bytes) or 20 raw bytes."""
    if isinstance(oid, (bytes, bytearray)) and len(oid) == OID_HEXLEN and oid.isascii():
        oid = oid.decode('ascii')
    if isinstance(oid, (bytes, bytearray)):
        if len(oid) != OID_RAWLEN:
            raise InvalidIdentifier(f'raw object id must be {OID_RAWLEN} bytes, got {len(oid)}')
        return bytes(oid).hex()
    hexsha = oid.strip().lower()
    if len(hexsha) < MIN_OID_LEN or len(hexsha) > OID_HEXLEN:
        raise InvalidIdentifier(f'invalid object id {oid!r}')
    if not set(hexsha) <= HEXDIGITS:
        raise InvalidIdentifier(f'object id is not hexadecimal: {oid!r}')
    return hexsha


class ObjectStore:
    def __init__(self, objects_dir: Path, compression_level: int = -1, verify_length: bool = True):
        self.objects_dir = Path(objects_dir)
        self.compression_level = compression_level
        self.verify_length = verify_length

    def path_for(self, oid: ObjectId) -> Path:
        hexsha = normalize_oid(oid)
        return self.objects_dir / hexsha[:2] / hexsha[2:]

    def contains(self, oid: ObjectId) -> bool:
        return self.path_for(oid).is_file()

    __contains__ = contains

    def put(self, type_: str, payload: bytes, write: bool = True) -> str:
        """Store *payload* as an object of *type_* and return its id.

        With ``write=False`` only the id is computed. An object that is
        already present is not rewritten.
        """
        envelope = codec.frame(type_, payload)
        oid = codec.hash_envelope(envelope)
        if not write:
            return oid
        path = self.path_for(oid)
        if path.exists():
            logger.debug('object %s already stored, skipped', oid[:8])
            return oid
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._write_atomic(path, zlib.compress(envelope, self.compression_level))
        except OSError as exc:
            raise IOFailure(f'cannot write object {oid}: {exc}') from exc
        logger.debug('stored %s %s (%d bytes)', type_, oid[:8], len(payload))
        return oid

    def _write_atomic(self, path: Path, data: bytes):
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix='tmp_obj_')
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
            os.chmod(tmp, 0o444)
            os.replace(tmp, path)
        finally:
            if os.path.exists(tmp):
                os.unlink(tmp)

    def _read_envelope(self, oid: ObjectId) -> Tuple[str, bytes]:
        hexsha = normalize_oid(oid)
        path = self.path_for(hexsha)
        try:
            raw = path.read_bytes()
        except FileNotFoundError as exc:
            logger.debug('object %s not found', hexsha[:8])
            raise ObjectNotFound(hexsha) from exc
        except OSError as exc:
            raise IOFailure(f'cannot read object {hexsha}: {exc}') from exc
        try:
            return hexsha, zlib.decompress(raw)
        except zlib.error as exc:
            raise CorruptObject(f'object {hexsha} is not a valid zlib stream: {exc}') from exc

    def _parse(self, oid: ObjectId) -> Tuple[str, int, bytes]:
        hexsha, envelope = self._read_envelope(oid)
        try:
            type_, size, payload = codec.parse_envelope(envelope)
        except MalformedObject as exc:
            raise CorruptObject(f'object {hexsha}: {exc}') from exc
        if self.verify_length and size != len(payload):
            raise CorruptObject(
                f'object {hexsha}: header declares {size} bytes, payload has {len(payload)}')
        return type_, size, payload

    def get(self, oid: ObjectId) -> Tuple[str, bytes]:
        """Return ``(type, payload)`` for the object stored under *oid*."""
        type_, _size, payload = self._parse(oid)
        return type_, payload

    def read_header(self, oid: ObjectId) -> Tuple[str, int]:
        """Return the type and the size declared in the object's header."""
        type_, size, _payload = self._parse(oid)
        return type_, size

    def iter_oids(self) -> Iterator[str]:
        if not self.objects_dir.is_dir():
            return
        for fanout in sorted(self.objects_dir.iterdir()):
            if len(fanout.name) != 2 or not fanout.is_dir():
                continue
            for p in sorted(fanout.iterdir()):
                name = fanout.name + p.name
                if len(name) == OID_HEXLEN and set(name) <= HEXDIGITS:
                    yield name
