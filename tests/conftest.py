import os
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List

import pytest
import yaml

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'po'
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))


from po.core.config import CacheStore
from po.core.stdlib_logging import reset_stdlib_logging_for_tests

# Environment variables that redirect where po looks for documents and caches.
_PO_ENV_KEYS = [
    "PO_CONFIG_DIR",
    "PO_CACHE_DIR",
    "PO_LOG_LEVEL",
    "PO_LOG_FILE",
    "XDG_CONFIG_HOME",
    "XDG_CACHE_HOME",
    "POHOME",
    "POPATH",
]


@pytest.fixture(autouse=True)
def isolated_po_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Dict[str, Path]:
    """Point every po location at a per-test directory.

    Returns a mapping with ``config`` (user config dir), ``cache`` (cache root)
    and ``project`` (a working directory with no po.yml yet). The working
    directory is changed to ``project``.
    """
    for key in _PO_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)

    config_dir = tmp_path / "home" / "config"
    cache_dir = tmp_path / "home" / "cache"
    project = tmp_path / "project"
    project.mkdir(parents=True)

    monkeypatch.setenv("PO_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("PO_CACHE_DIR", str(cache_dir))
    monkeypatch.chdir(project)
    yield {"config": config_dir, "cache": cache_dir, "project": project}
    reset_stdlib_logging_for_tests()


@pytest.fixture
def write_yaml() -> Callable[[Path, Any], Path]:
    """Write ``data`` as YAML to ``path`` (parents created); returns the path."""

    def _write(path: Path, data: Any) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, str):
            path.write_text(data, encoding="utf-8")
        else:
            path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def cache_store(isolated_po_env: Dict[str, Path]) -> CacheStore:
    return CacheStore(isolated_po_env["cache"])


class ExecCalled(Exception):
    """Raised by the fake execve so the test sees the hand-off instead of a new process."""

    def __init__(self, path: str, argv: List[str], env: Dict[str, str]) -> None:
        super().__init__(path)
        self.path = path
        self.argv = argv
        self.env = env


@pytest.fixture(autouse=True)
def fake_execve(monkeypatch: pytest.MonkeyPatch) -> List[ExecCalled]:
    """Replace ``os.execve`` in every test with a recorder that raises ExecCalled.

    A real exec would replace the pytest process itself.
    """
    calls: List[ExecCalled] = []

    def _execve(path: str, argv: List[str], env: Dict[str, str]) -> None:
        call = ExecCalled(path, list(argv), dict(env))
        calls.append(call)
        raise call

    monkeypatch.setattr(os, "execve", _execve)
    return calls
