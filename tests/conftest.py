"""测试共享 fixture - 假 VCS 后端 + 隔离的运行配置"""

from __future__ import annotations

from pathlib import Path

import pytest

import vendorsync.core.config as cfgmod
from tests.fakes import FakeVcs


@pytest.fixture
def fake_vcs() -> FakeVcs:
    return FakeVcs()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """带空清单的项目目录"""
    root = tmp_path / "proj"
    root.mkdir()
    (root / "vendor.yml").write_text("name: example.com/proj\nimports: []\n")
    return root


@pytest.fixture
def config(tmp_path: Path, project: Path, monkeypatch: pytest.MonkeyPatch) -> cfgmod.Config:
    """指向临时目录的独立配置，并设为全局配置"""
    cfg = cfgmod.Config(
        vendor_dir=str(project / "vendor"),
        home=str(tmp_path / "home"),
        gopath=[],
        concurrent_workers=4,
        vcs_timeout=30,
    )
    monkeypatch.setattr(cfgmod, "_current", cfg)
    return cfg
