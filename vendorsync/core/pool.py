"""拉取/更新工作池 - 有界并发地对一批依赖执行 VCS 更新

模型:
  - W 个常驻工作线程从容量为 W 的队列取任务，直到收到停止信号
  - 调用方逐个入队并累加待处理计数，阻塞到计数归零
  - 单个依赖失败只记录告警和结果，不影响其余依赖
  - 全部完成后发送恰好 W 个停止信号并 join 所有线程，不泄漏线程

依赖之间没有完成顺序保证，唯一保证是: 每个依赖恰好被尝试一次，
全部尝试结束（成功或失败）后 run() 才返回。
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from vendorsync.core.models import Dependency, UpdateOutcome, summarize_outcomes

if TYPE_CHECKING:
    from vendorsync.core.installer import Installer

logger = logging.getLogger(__name__)

# 更新函数：(依赖, vendor 目录) -> None，失败抛异常
Updater = Callable[[Dependency, Path], None]

_STOP = object()


class UpdatePool:
    """有界并发的依赖更新池

    参数:
        workers: 并发上限 W，是保护网络/VCS 工具的限流阀，而非正确性参数
        updater: 对单个依赖执行更新
        cancel: 置位后尚未开始的依赖直接记为 cancelled
    """

    def __init__(
        self,
        workers: int,
        updater: Updater,
        cancel: threading.Event | None = None,
    ) -> None:
        self.workers = max(1, workers)
        self._updater = updater
        self._cancel = cancel or threading.Event()
        self._threads: list[threading.Thread] = []

    @property
    def live_workers(self) -> int:
        """当前仍存活的工作线程数（run 返回后应为 0）"""
        return sum(1 for t in self._threads if t.is_alive())

    def run(self, deps: list[Dependency], cwd: Path) -> dict[str, UpdateOutcome]:
        """更新全部依赖，返回 {依赖名: 结果}，顺序与输入一致"""
        if not deps:
            return {}

        work: queue.Queue[object] = queue.Queue(maxsize=self.workers)
        done = threading.Condition()
        outcomes: list[UpdateOutcome | None] = [None] * len(deps)
        pending = 0

        def worker() -> None:
            nonlocal pending
            while True:
                item = work.get()
                if item is _STOP:
                    return
                idx, dep = item  # type: ignore[misc]
                try:
                    outcome = self._process(dep, cwd)
                except BaseException as e:  # noqa: BLE001 - 只结束本项
                    logger.error("更新中断 %s: %r", dep.name, e, extra={"dep": dep.name})
                    outcome = UpdateOutcome(name=dep.name, status="failed", error=repr(e))
                finally:
                    with done:
                        outcomes[idx] = outcome
                        pending -= 1
                        done.notify_all()

        self._threads = [
            threading.Thread(target=worker, name=f"vendorsync-worker-{i}", daemon=True)
            for i in range(self.workers)
        ]
        for t in self._threads:
            t.start()

        for idx, dep in enumerate(deps):
            with done:
                pending += 1
            work.put((idx, dep))

        with done:
            done.wait_for(lambda: pending == 0)

        for _ in range(self.workers):
            work.put(_STOP)
        for t in self._threads:
            t.join()

        results = {dep.name: out for dep, out in zip(deps, outcomes) if out is not None}
        stats = summarize_outcomes(results)
        if stats["failed"] or stats["cancelled"]:
            logger.warning(
                "更新汇总: %d 成功, %d 失败, %d 取消",
                stats["ok"], stats["failed"], stats["cancelled"],
            )
        return results

    def _process(self, dep: Dependency, cwd: Path) -> UpdateOutcome:
        if self._cancel.is_set():
            return UpdateOutcome(name=dep.name, status="cancelled", error="已取消")
        start = time.monotonic()
        try:
            self._updater(dep, cwd)
        except Exception as e:  # noqa: BLE001 - 单项失败不得终止工作线程
            logger.warning("更新失败 %s: %s", dep.name, e, extra={"dep": dep.name})
            return UpdateOutcome(
                name=dep.name, status="failed", error=str(e),
                duration=time.monotonic() - start,
            )
        return UpdateOutcome(name=dep.name, status="ok", duration=time.monotonic() - start)


def concurrent_update(
    deps: list[Dependency], cwd: Path, installer: Installer,
) -> dict[str, UpdateOutcome]:
    """按安装器的选项并发更新 deps"""
    options = installer.vcs_options()

    def _update(dep: Dependency, base: Path) -> None:
        installer.vcs.update(dep, base, options)

    pool = UpdatePool(installer.workers, _update, cancel=installer.cancel)
    return pool.run(deps, cwd)
