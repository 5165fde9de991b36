import sys
from pathlib import Path

import pytest

# Make the package importable without installing it
ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

from mediacat.config import Config


def make_tree(base: Path, files: list[str]) -> Path:
    """Create empty files (and their parents) below *base*."""
    base.mkdir(parents=True, exist_ok=True)
    for rel in files:
        path = base / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("dummy", encoding="utf-8")
    return base


class RecordingMutator:
    """Mutator fake that records operations and reports nothing as existing."""

    def __init__(self, existing: set[Path] | None = None):
        self.calls: list[tuple] = []
        self.existing = set(existing or ())

    def exists(self, path: Path) -> bool:
        return path in self.existing

    def mkdir(self, path: Path) -> None:
        self.calls.append(("mkdir", path))
        self.existing.add(path)

    def move(self, source: Path, destination: Path) -> None:
        self.calls.append(("move", source, destination))

    def chmod(self, path: Path, mode: int) -> None:
        self.calls.append(("chmod", path, mode))

    def chown(self, path: Path, owner: str) -> None:
        self.calls.append(("chown", path, owner))


@pytest.fixture
def media_root(tmp_path):
    root = tmp_path / "media"
    root.mkdir()
    return root


@pytest.fixture
def incoming(tmp_path):
    folder = tmp_path / "incoming"
    folder.mkdir()
    return folder


@pytest.fixture
def config(media_root):
    return Config(media_root=str(media_root))
