"""运行配置测试"""

from __future__ import annotations

from pathlib import Path

import pytest

import vendorsync.core.config as cfgmod
from vendorsync.core.config import Config, get_config, init_config
from vendorsync.core.exceptions import ConfigError


class TestConfig:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GOPATH", "/go1:/go2")
        cfg = Config()
        assert cfg.concurrent_workers == 20
        assert cfg.vcs_timeout == 600.0
        assert cfg.dedupe_subpackages is False
        assert cfg.gopath == ["/go1", "/go2"]
        assert cfg.home.endswith(".vendorsync")

    @pytest.mark.parametrize("kwargs", [
        {"concurrent_workers": 0},
        {"vcs_timeout": 0},
        {"extra_hosts": {"git.corp": 1}},
        {"extra_hosts": {"git.corp": "3"}},
    ])
    def test_invalid_values(self, kwargs: dict) -> None:
        with pytest.raises(ConfigError):
            Config(**kwargs)

    def test_from_file(self, tmp_path: Path) -> None:
        p = tmp_path / "vendorsync.yml"
        p.write_text(
            "concurrent_workers: 5\n"
            "use_cache: true\n"
            "gopath: /a:/b\n"
            "extra_hosts:\n  git.corp.example: 3\n"
            "team: infra\n"
        )
        cfg = Config.from_file(str(p))
        assert cfg.concurrent_workers == 5
        assert cfg.use_cache is True
        assert cfg.gopath == ["/a", "/b"]
        assert cfg.extra_hosts == {"git.corp.example": 3}
        assert cfg.extra == {"team": "infra"}

    def test_from_missing_file_returns_defaults(self, tmp_path: Path) -> None:
        assert Config.from_file(str(tmp_path / "none.yml")).concurrent_workers == 20

    def test_with_overrides_ignores_none(self) -> None:
        base = Config(concurrent_workers=3, gopath=[])
        cfg = base.with_overrides(concurrent_workers=None, use_gopath=True)
        assert cfg.concurrent_workers == 3
        assert cfg.use_gopath is True
        assert base.use_gopath is False

    def test_with_overrides_validates(self) -> None:
        with pytest.raises(ConfigError):
            Config(gopath=[]).with_overrides(concurrent_workers=0)


class TestGlobalConfig:
    def test_init_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(cfgmod, "_current", None)
        p = tmp_path / "custom.yml"
        p.write_text("concurrent_workers: 7\n")
        monkeypatch.setenv("VENDORSYNC_CONFIG", str(p))

        assert init_config().concurrent_workers == 7
        assert get_config().concurrent_workers == 7

    def test_get_config_lazy_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(cfgmod, "_current", None)
        assert get_config() is get_config()
