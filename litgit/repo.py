"""Repository-level operations built on the object store and the tree codec."""
from pathlib import Path
import json, logging, os, stat
from typing import Any, Dict, List, Optional, Tuple

from . import tree
from .errors import ConfigError, IOFailure, MalformedTree
from .objects import ObjectId, ObjectStore
from .refs import read_head, refs_dir, write_head
from .tree import TreeEntry

logger = logging.getLogger(__name__)

DEFAULT_LIT_DIR = '.git'
CONFIG_FILE = 'lit.json'
DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    'core': {'compression': -1, 'verifylength': True},
}


def lit_dir_name() -> str:
    return os.environ.get('LIT_DIR') or DEFAULT_LIT_DIR


def _parse_config_value(key: str, value: str) -> Any:
    if key == 'core.compression':
        try:
            level = int(value)
        except ValueError:
            raise ConfigError(f'{key} must be an integer, got {value!r}') from None
        if not -1 <= level <= 9:
            raise ConfigError(f'{key} must be between -1 and 9, got {level}')
        return level
    if key == 'core.verifylength':
        lowered = value.strip().lower()
        if lowered in ('1', 'true', 'yes', 'on'):
            return True
        if lowered in ('0', 'false', 'no', 'off'):
            return False
        raise ConfigError(f'{key} must be a boolean, got {value!r}')
    raise ConfigError(f'unknown config key {key!r}')


class Repo:
    def __init__(self, path: str = '.'):
        self.workdir = Path(path).resolve()
        self.git_dir = self.workdir / lit_dir_name()
        core = self.get_config()['core']
        self.objects = ObjectStore(
            self.git_dir / 'objects',
            compression_level=core['compression'],
            verify_length=core['verifylength'],
        )

    def _ensure_structure(self):
        self.objects.objects_dir.mkdir(parents=True, exist_ok=True)
        (refs_dir(self.git_dir) / 'heads').mkdir(parents=True, exist_ok=True)
        if not (self.git_dir / 'HEAD').exists():
            write_head(self.git_dir)

    def init(self) -> Path:
        try:
            self._ensure_structure()
        except OSError as exc:
            raise IOFailure(f'cannot create repository in {self.git_dir}: {exc}') from exc
        logger.debug('initialized repository in %s', self.git_dir)
        return self.git_dir

    def head_ref(self) -> Optional[str]:
        return read_head(self.git_dir)

    def _read_config_file(self) -> Dict[str, Dict[str, Any]]:
        cfgf = self.git_dir / CONFIG_FILE
        if not cfgf.exists():
            return {}
        try:
            stored = json.loads(cfgf.read_text())
        except ValueError as exc:
            raise ConfigError(f'{cfgf} is not valid JSON: {exc}') from exc
        if not isinstance(stored, dict) or not all(isinstance(v, dict) for v in stored.values()):
            raise ConfigError(f'{cfgf} must map section names to objects')
        return stored

    def get_config(self) -> Dict[str, Dict[str, Any]]:
        cfg = {section: dict(values) for section, values in DEFAULT_CONFIG.items()}
        for section, values in self._read_config_file().items():
            for name, value in values.items():
                cfg.setdefault(section, {})[name] = _parse_config_value(f'{section}.{name}', str(value))
        return cfg

    def get_config_value(self, key: str) -> Any:
        section, _, name = key.partition('.')
        try:
            return self.get_config()[section][name]
        except KeyError:
            raise ConfigError(f'unknown config key {key!r}') from None

    def set_config(self, key: str, value: str) -> Any:
        parsed = _parse_config_value(key, value)
        section, _, name = key.partition('.')
        cfg = self._read_config_file()
        cfg.setdefault(section, {})[name] = parsed
        cfgf = self.git_dir / CONFIG_FILE
        cfgf.parent.mkdir(parents=True, exist_ok=True)
        cfgf.write_text(json.dumps(cfg, indent=2, sort_keys=True))
        return parsed

    def hash_object(self, path: str, type_: str = 'blob', write: bool = False) -> str:
        p = self.workdir / path
        try:
            data = p.read_bytes()
        except OSError as exc:
            raise IOFailure(f'cannot read {path}: {exc}') from exc
        return self.objects.put(type_, data, write=write)

    def cat_file(self, oid: ObjectId) -> Tuple[str, bytes]:
        return self.objects.get(oid)

    def object_info(self, oid: ObjectId) -> Tuple[str, int]:
        return self.objects.read_header(oid)

    def ls_tree(self, oid: ObjectId) -> List[TreeEntry]:
        type_, payload = self.objects.get(oid)
        if type_ != 'tree':
            raise MalformedTree(f'{oid} is a {type_}, not a tree')
        return sorted(tree.decode(payload), key=TreeEntry.sort_key)

    def write_tree(self, path: Optional[str] = None) -> str:
        """Snapshot the directory at *path* (the worktree by default) as tree objects."""
        root = (self.workdir / path).resolve() if path else self.workdir
        try:
            oid = self._write_tree_recursive(root)
        except OSError as exc:
            raise IOFailure(f'cannot snapshot {root}: {exc}') from exc
        if oid is None:
            # nothing to record, still a valid (empty) tree
            oid = self.objects.put('tree', b'')
        return oid

    def _write_tree_recursive(self, directory: Path) -> Optional[str]:
        entries = []
        for p in directory.iterdir():
            if p.name == self.git_dir.name:
                continue
            if p.is_symlink():
                oid = self.objects.put('blob', os.fsencode(os.readlink(p)))
                mode = tree.MODE_SYMLINK
            elif p.is_dir():
                oid = self._write_tree_recursive(p)
                if oid is None:
                    continue
                mode = tree.MODE_TREE
            elif p.is_file():
                oid = self.objects.put('blob', p.read_bytes())
                mode = tree.MODE_EXECUTABLE if p.stat().st_mode & stat.S_IXUSR else tree.MODE_FILE
            else:
                continue
            entries.append(TreeEntry(mode, p.name, bytes.fromhex(oid)))
        if not entries:
            return None
        oid = self.objects.put('tree', tree.encode(entries))
        logger.debug('wrote tree %s for %s (%d entries)', oid[:8], directory, len(entries))
        return oid
