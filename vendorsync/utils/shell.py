"""外部命令执行 - git/hg/bzr/svn 子进程调用的统一入口

通过 CommandExecutor 协议抽象子进程执行，测试中注入假执行器，
无需真实网络或 VCS 工具。
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Protocol

from vendorsync.core.exceptions import ExecutionError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandExecutor(Protocol):
    """命令执行器协议

    超时时应抛出 subprocess.TimeoutExpired，由调用方转换为领域异常。
    """

    def execute(
        self,
        args: list[str],
        *,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        ...


class LocalExecutor:
    """本地子进程执行器（默认实现）"""

    def execute(
        self,
        args: list[str],
        *,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        logger.debug("执行: %s (cwd=%s)", " ".join(args), cwd or ".")
        r = subprocess.run(
            args, capture_output=True, text=True,
            cwd=cwd, env=env, check=False, timeout=timeout,
        )
        return CommandResult(returncode=r.returncode, stdout=r.stdout, stderr=r.stderr)


_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认执行器（测试或远程执行场景）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor


def run_cmd(
    args: list[str], *, cwd: str | None = None,
    timeout: float | None = None,
    label: str = "cmd",
    executor: CommandExecutor | None = None,
) -> CommandResult:
    """执行命令，非零退出码或超时抛 ExecutionError

    Args:
        args: 参数列表（不经 shell 解析）
        cwd: 工作目录
        timeout: 秒，None 表示不限
        label: 错误信息前缀
        executor: 不传则使用全局默认执行器
    """
    exe = executor or get_executor()
    try:
        r = exe.execute(args, cwd=cwd, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise ExecutionError(f"{label}超时 ({timeout}秒): {' '.join(args)}") from e
    except OSError as e:
        raise ExecutionError(f"{label}无法启动: {e}") from e
    if not r.success:
        raise ExecutionError(f"{label}失败 (rc={r.returncode}): {r.stderr.strip()[:300]}")
    return r
