"""缺失包处理器 - 解析器遍历导入图时的按需拉取回调

解析器在同步遍历中遇到本地不存在的导入时调用 not_found()，处理器立即
把该包所属仓库拉取到 vendor 目录，解析器随后读取新源码继续向下遍历。
发现与拉取因此按包交替进行：不拉下源码就不知道它导入了什么。

拉取在单线程执行器中进行，调用方以超时等待结果。超时后仍等待进行中的
命令退出（每条 VCS 命令自身受 vcs_timeout 限制），随后删除半成品目录并
抛 VcsError；失败的拉取不会在 vendor 下留下目录。
"""

from __future__ import annotations

import logging
import shutil
import threading
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path
from typing import Protocol

from vendorsync.core.exceptions import VcsError
from vendorsync.core.models import Dependency
from vendorsync.core.naming import normalize_name
from vendorsync.core.vcs import VcsBackend, VcsOptions, get_backend, target_dir

logger = logging.getLogger(__name__)


class PackageHandler(Protocol):
    """解析器可插拔的缺失包回调协议"""

    def not_found(self, pkg: str) -> bool:
        """本地没有 pkg；返回 True 表示已补齐，可继续遍历"""
        ...

    def on_gopath(self, pkg: str) -> bool:
        """pkg 位于 GOPATH；返回 True 表示已把它放入 vendor"""
        ...


class MissingPackageHandler:
    """按需拉取缺失包到 destination

    参数:
        destination: vendor 目录
        options: 拉取选项（缓存、GOPATH、单条命令超时）
        vcs: VCS 后端，默认全局后端
        timeout: 单次拉取的总等待时间（秒），None 表示不限
        extra_hosts: 额外的站点段数约定
        cancel: 置位后不再发起新的拉取
    """

    def __init__(
        self,
        destination: Path,
        options: VcsOptions,
        vcs: VcsBackend | None = None,
        timeout: float | None = None,
        extra_hosts: Mapping[str, int] | None = None,
        cancel: threading.Event | None = None,
    ) -> None:
        self.destination = destination
        self.options = options
        self.timeout = timeout
        self.extra_hosts = extra_hosts
        self._vcs = vcs or get_backend()
        self._cancel = cancel or threading.Event()
        self.fetched: list[str] = []

    def not_found(self, pkg: str) -> bool:
        """同步拉取 pkg 所属仓库，成功返回 True，失败抛 VcsError"""
        root, _ = normalize_name(pkg, self.extra_hosts)
        dest = target_dir(self.destination, root)
        if dest.exists():
            logger.warning("%s 已存在但其中没有包 %s", root, pkg)
            return False

        if self._cancel.is_set():
            raise VcsError(f"已取消，未拉取 {root}")

        logger.info("拉取 %s 到 %s", root, self.destination, extra={"dep": root})
        dep = Dependency(name=root)
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="vendorsync-fetch")
        future = executor.submit(self._vcs.get, dep, dest, self.options)
        try:
            try:
                future.result(timeout=self.timeout)
            except FutureTimeout:
                logger.warning("拉取 %s 超过 %s 秒，等待进行中的命令退出", root, self.timeout)
                raise
            finally:
                # 已启动的拉取无法取消，须等其结束
                executor.shutdown(wait=True)
        except FutureTimeout as e:
            self._discard(dest)
            raise VcsError(f"拉取超时 ({self.timeout}秒): {root}") from e
        except VcsError:
            self._discard(dest)
            raise
        except Exception as e:
            self._discard(dest)
            raise VcsError(f"拉取失败 {root}: {e}") from e

        self.fetched.append(root)
        return True

    @staticmethod
    def _discard(dest: Path) -> None:
        """删除失败拉取留下的半成品目录"""
        if dest.exists():
            logger.info("清理未完成的拉取: %s", dest)
            shutil.rmtree(dest, ignore_errors=True)

    def on_gopath(self, pkg: str) -> bool:
        """仅提示，不处理"""
        logger.info("包 %s 位于 GOPATH", pkg)
        return False
