from __future__ import annotations

from pathlib import Path

import pytest

from po.core.utils.paths import (
    find_project_config,
    get_cache_dir,
    get_user_config_dir,
    get_user_config_path,
    is_root_path,
)


def test_user_config_dir_prefers_po_config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PO_CONFIG_DIR", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    assert get_user_config_dir() == tmp_path / "cfg"
    assert get_user_config_path() == tmp_path / "cfg" / "po.yml"


def test_user_config_dir_falls_back_to_xdg_then_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PO_CONFIG_DIR", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    assert get_user_config_dir() == tmp_path / "xdg" / "po"

    monkeypatch.delenv("XDG_CONFIG_HOME")
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    assert get_user_config_dir() == tmp_path / "home" / ".config" / "po"


def test_cache_dir_precedence(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PO_CACHE_DIR", str(tmp_path / "c"))
    assert get_cache_dir() == tmp_path / "c"

    monkeypatch.delenv("PO_CACHE_DIR")
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg"))
    assert get_cache_dir() == tmp_path / "xdg" / "po"


def test_relative_override_is_relative_to_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("PO_CACHE_DIR", "rel/cache")
    assert get_cache_dir() == tmp_path / "rel" / "cache"


def test_find_project_config_walks_up_to_nearest(tmp_path: Path) -> None:
    (tmp_path / "a").mkdir()
    (tmp_path / "a" / "po.yml").write_text("commands: {}\n", encoding="utf-8")
    deep = tmp_path / "a" / "b" / "c"
    deep.mkdir(parents=True)

    assert find_project_config(deep) == (tmp_path / "a" / "po.yml").resolve()


def test_find_project_config_prefers_closest_document(tmp_path: Path) -> None:
    (tmp_path / "po.yml").write_text("{}\n", encoding="utf-8")
    inner = tmp_path / "inner"
    inner.mkdir()
    (inner / "po.yml").write_text("{}\n", encoding="utf-8")

    assert find_project_config(inner) == (inner / "po.yml").resolve()


def test_find_project_config_ignores_directories_named_like_the_file(tmp_path: Path) -> None:
    (tmp_path / "po.yml").mkdir()
    assert find_project_config(tmp_path) != (tmp_path / "po.yml").resolve()


def test_is_root_path() -> None:
    assert is_root_path(Path("/"))
    assert not is_root_path(Path("/tmp"))
