"""shell.py run_cmd 单元测试"""

from __future__ import annotations

import subprocess
import sys

import pytest

from vendorsync.core.exceptions import ExecutionError
from vendorsync.utils.shell import CommandResult, get_executor, run_cmd, set_executor


class _TimeoutExecutor:
    def execute(self, args, *, cwd=None, env=None, timeout=None) -> CommandResult:
        raise subprocess.TimeoutExpired(args, timeout)


class TestRunCmd:
    def test_success(self, tmp_path) -> None:
        r = run_cmd([sys.executable, "-c", "print('hello')"], cwd=str(tmp_path), label="test")
        assert r.returncode == 0
        assert "hello" in r.stdout

    def test_failure_raises(self, tmp_path) -> None:
        with pytest.raises(ExecutionError, match="cmd失败"):
            run_cmd([sys.executable, "-c", "raise SystemExit(3)"], cwd=str(tmp_path))

    def test_custom_label_in_error(self, tmp_path) -> None:
        with pytest.raises(ExecutionError, match=r"git clone失败 \(rc=2\)"):
            run_cmd([sys.executable, "-c", "raise SystemExit(2)"], cwd=str(tmp_path), label="git clone")

    def test_missing_binary(self) -> None:
        with pytest.raises(ExecutionError, match="无法启动"):
            run_cmd(["vendorsync-no-such-binary-x9"], label="probe")

    def test_timeout(self) -> None:
        with pytest.raises(ExecutionError, match="超时"):
            run_cmd(["git", "clone"], timeout=1, executor=_TimeoutExecutor())

    def test_global_executor_swap(self) -> None:
        original = get_executor()
        fake = _TimeoutExecutor()
        try:
            set_executor(fake)
            assert get_executor() is fake
            with pytest.raises(ExecutionError):
                run_cmd(["hg", "pull"])
        finally:
            set_executor(original)
