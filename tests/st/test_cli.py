"""CLI 端到端测试 - 假 VCS 后端 + 临时项目目录"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

import vendorsync.core.config as cfgmod
import vendorsync.core.vcs as vcsmod
from tests.fakes import FakeVcs, go_file
from vendorsync.cli import main
from vendorsync.utils.logger import reset_logging


@pytest.fixture(autouse=True)
def _isolate(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(cfgmod, "_current", None)
    monkeypatch.delenv("VENDORSYNC_CONFIG", raising=False)
    yield
    reset_logging()


@pytest.fixture
def cfg_file(tmp_path: Path, project: Path) -> Path:
    p = tmp_path / "vendorsync.yml"
    p.write_text(yaml.safe_dump({
        "vendor_dir": str(project / "vendor"),
        "home": str(tmp_path / "home"),
        "gopath": [],
        "concurrent_workers": 2,
    }))
    return p


def _use_vcs(monkeypatch: pytest.MonkeyPatch, vcs: FakeVcs) -> FakeVcs:
    monkeypatch.setattr(vcsmod, "_default_backend", vcs)
    return vcs


def _declare(project: Path, *names: str) -> None:
    (project / "vendor.yml").write_text(yaml.safe_dump({
        "name": "example.com/proj",
        "imports": [{"package": n} for n in names],
    }))


def _run(cfg_file: Path, *args: str):
    return CliRunner().invoke(main, ["--config", str(cfg_file), *args])


class TestNormalize:
    def test_prints_root_and_subpackage(self, cfg_file: Path) -> None:
        result = _run(cfg_file, "normalize", "github.com/a/b/c/d", "gopkg.in/yaml.v2")
        assert result.exit_code == 0, result.output
        assert "github.com/a/b" in result.output
        assert "c/d" in result.output
        assert "gopkg.in/yaml.v2" in result.output

    def test_malformed_path_fails(self, cfg_file: Path) -> None:
        result = _run(cfg_file, "normalize", "github.com/a/b", "fmt")
        assert result.exit_code == 1
        assert "1 个路径无法识别" in result.output


class TestList:
    def test_lists_declared(self, cfg_file: Path, project: Path) -> None:
        _declare(project, "github.com/a/one")
        result = _run(cfg_file, "list", "--dev")
        assert result.exit_code == 0, result.output
        assert "github.com/a/one" in result.output
        assert "dev_imports:" in result.output


class TestCheckout:
    def test_fetches_declared(self, cfg_file: Path, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        vcs = _use_vcs(monkeypatch, FakeVcs())
        _declare(project, "github.com/a/one", "github.com/b/two")
        result = _run(cfg_file, "checkout")
        assert result.exit_code == 0, result.output
        assert vcs.gets == ["github.com/a/one", "github.com/b/two"]


class TestUpdate:
    def test_writes_lockfile(self, cfg_file: Path, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        vcs = _use_vcs(monkeypatch, FakeVcs(sources={
            "github.com/a/one": {"one.go": go_file("one", "github.com/b/two")},
            "github.com/b/two": {"two.go": go_file("two")},
        }))
        _declare(project, "github.com/a/one")

        result = _run(cfg_file, "update")

        assert result.exit_code == 0, result.output
        assert "完成: 2/2 成功" in result.output
        lock = yaml.safe_load((project / "vendor.lock").read_text())
        assert lock["hash"]
        assert [d["name"] for d in lock["imports"]] == ["github.com/a/one", "github.com/b/two"]
        assert sorted(vcs.updates) == ["github.com/a/one", "github.com/b/two"]

    def test_strict_fails_on_update_error(
        self, cfg_file: Path, project: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        one = project / "vendor" / "github.com" / "a" / "one"
        one.mkdir(parents=True)
        (one / "one.go").write_text(go_file("one"))
        _use_vcs(monkeypatch, FakeVcs(fail={"github.com/a/one"}))
        _declare(project, "github.com/a/one")

        assert _run(cfg_file, "update").exit_code == 0
        result = _run(cfg_file, "update", "--strict")
        assert result.exit_code == 1
        assert "1 个依赖未能更新" in result.output

    def test_missing_manifest(self, cfg_file: Path, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _use_vcs(monkeypatch, FakeVcs())
        (project / "vendor.yml").unlink()
        result = _run(cfg_file, "update")
        assert result.exit_code == 1
        assert "清单文件不存在" in result.output


class TestInstall:
    def test_without_lock_runs_update(self, cfg_file: Path, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _use_vcs(monkeypatch, FakeVcs(sources={"github.com/a/one": {"one.go": go_file("one")}}))
        _declare(project, "github.com/a/one")

        result = _run(cfg_file, "install")

        assert result.exit_code == 0, result.output
        assert (project / "vendor.lock").is_file()

    def test_with_lock_updates_locked_versions(
        self, cfg_file: Path, project: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        vcs = _use_vcs(monkeypatch, FakeVcs())
        _declare(project, "github.com/a/one")
        (project / "vendor.lock").write_text(yaml.safe_dump({
            "hash": "stale",
            "imports": [{"name": "github.com/a/one", "version": "v1"}, {"name": "github.com/z/zz", "version": "v9"}],
        }))

        result = _run(cfg_file, "install", "--workers", "1")

        assert result.exit_code == 0, result.output
        assert vcs.updates == ["github.com/a/one", "github.com/z/zz"]
        assert vcs.gets == []
