"""缺失包处理器测试"""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from tests.fakes import FakeVcs
from vendorsync.core.exceptions import NormalizationError, VcsError
from vendorsync.core.handler import MissingPackageHandler
from vendorsync.core.models import Dependency
from vendorsync.core.vcs import VcsOptions


class _SlowVcs(FakeVcs):
    def get(self, dep: Dependency, dest: Path, options: VcsOptions) -> None:
        dest.mkdir(parents=True)
        time.sleep(0.3)
        super().get(dep, dest, options)


class _PartialVcs(FakeVcs):
    def get(self, dep: Dependency, dest: Path, options: VcsOptions) -> None:
        (dest / ".git").mkdir(parents=True)
        raise VcsError(f"git clone失败 (rc=128): {dep.name}")


class _BrokenVcs(FakeVcs):
    def get(self, dep: Dependency, dest: Path, options: VcsOptions) -> None:
        raise OSError("磁盘已满")


class TestNotFound:
    def test_fetches_repo_root_once(self, tmp_path: Path, fake_vcs: FakeVcs) -> None:
        vendor = tmp_path / "vendor"
        h = MissingPackageHandler(vendor, VcsOptions(), vcs=fake_vcs)

        assert h.not_found("github.com/org/lib/sub/pkg") is True
        assert fake_vcs.gets == ["github.com/org/lib"]
        assert h.fetched == ["github.com/org/lib"]
        assert (vendor / "github.com" / "org" / "lib" / ".git").is_dir()

    def test_existing_root_not_refetched(self, tmp_path: Path, fake_vcs: FakeVcs) -> None:
        vendor = tmp_path / "vendor"
        (vendor / "github.com" / "org" / "lib").mkdir(parents=True)
        h = MissingPackageHandler(vendor, VcsOptions(), vcs=fake_vcs)

        assert h.not_found("github.com/org/lib/missing") is False
        assert fake_vcs.gets == []

    def test_vcs_failure_propagates(self, tmp_path: Path) -> None:
        vcs = FakeVcs(fail={"github.com/org/bad"})
        h = MissingPackageHandler(tmp_path, VcsOptions(), vcs=vcs)
        with pytest.raises(VcsError, match="git clone失败"):
            h.not_found("github.com/org/bad")
        assert h.fetched == []

    def test_other_errors_wrapped(self, tmp_path: Path) -> None:
        h = MissingPackageHandler(tmp_path, VcsOptions(), vcs=_BrokenVcs())
        with pytest.raises(VcsError, match="拉取失败"):
            h.not_found("github.com/org/lib")

    def test_timeout_raises_vcs_error(self, tmp_path: Path, fake_vcs: FakeVcs) -> None:
        h = MissingPackageHandler(tmp_path, VcsOptions(), vcs=_SlowVcs(), timeout=0.05)
        with pytest.raises(VcsError, match="拉取超时"):
            h.not_found("github.com/org/slow/a")

        assert not any(t.name.startswith("vendorsync-fetch") for t in threading.enumerate())
        assert not (tmp_path / "github.com" / "org" / "slow").exists()
        assert h.fetched == []

        retry = MissingPackageHandler(tmp_path, VcsOptions(), vcs=fake_vcs)
        assert retry.not_found("github.com/org/slow/b") is True

    def test_partial_checkout_removed_on_failure(self, tmp_path: Path) -> None:
        h = MissingPackageHandler(tmp_path, VcsOptions(), vcs=_PartialVcs())
        with pytest.raises(VcsError):
            h.not_found("github.com/org/half")
        assert not (tmp_path / "github.com" / "org" / "half").exists()

    def test_cancelled_handler_does_not_fetch(self, tmp_path: Path, fake_vcs: FakeVcs) -> None:
        cancel = threading.Event()
        cancel.set()
        h = MissingPackageHandler(tmp_path, VcsOptions(), vcs=fake_vcs, cancel=cancel)
        with pytest.raises(VcsError, match="已取消"):
            h.not_found("github.com/org/lib")
        assert fake_vcs.gets == []

    def test_malformed_path(self, tmp_path: Path, fake_vcs: FakeVcs) -> None:
        h = MissingPackageHandler(tmp_path, VcsOptions(), vcs=fake_vcs)
        with pytest.raises(NormalizationError):
            h.not_found("github.com/org")
        assert fake_vcs.gets == []


class TestOnGopath:
    def test_returns_false_without_fetching(self, tmp_path: Path, fake_vcs: FakeVcs) -> None:
        h = MissingPackageHandler(tmp_path, VcsOptions(), vcs=fake_vcs)
        assert h.on_gopath("github.com/org/lib") is False
        assert fake_vcs.gets == []
