from pathlib import Path
from typing import Optional

DEFAULT_BRANCH = 'refs/heads/main'


def refs_dir(git_dir: Path) -> Path:
    return git_dir / 'refs'


def read_head(git_dir: Path) -> Optional[str]:
    """Return the ref HEAD points at, or None when HEAD is missing or empty."""
    p = git_dir / 'HEAD'
    if not p.exists():
        return None
    value = p.read_text().strip()
    if value.startswith('ref:'):
        value = value[len('ref:'):].strip()
    return value or None


def write_head(git_dir: Path, ref: str = DEFAULT_BRANCH):
    p = git_dir / 'HEAD'
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(f'ref: {ref}\n')
