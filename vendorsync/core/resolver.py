"""传递依赖解析器 - 从声明的依赖出发遍历 Go 源码的导入图

遍历是同步、单线程的：
  1. 包在 vendor 下存在 -> 记入结果并解析其导入
  2. 包在 GOPATH 下存在 -> 通知 handler.on_gopath()，视为已满足，继续解析其导入
  3. 否则 -> handler.not_found() 按需拉取，成功则回到 1

返回 vendor 下包目录的路径列表（发现顺序，已去重）。单个分支拉取失败
只记告警；读取源码失败等遍历本身的错误抛 ResolutionError。
"""

from __future__ import annotations

import logging
import re
from collections import deque
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

from vendorsync.core.exceptions import (
    NormalizationError,
    ResolutionError,
    ValidationError,
    VcsError,
)
from vendorsync.core.handler import PackageHandler
from vendorsync.core.models import Dependency
from vendorsync.core.vcs import target_dir

logger = logging.getLogger(__name__)

_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.S)
_LINE_COMMENT_RE = re.compile(r"//[^\n]*")
_IMPORT_BLOCK_RE = re.compile(r"^\s*import\s*\((.*?)\)", re.S | re.M)
_IMPORT_LINE_RE = re.compile(r'^\s*import\s+(?:[\w.]+\s+)?"([^"]+)"', re.M)
_QUOTED_RE = re.compile(r'"([^"]+)"')


def parse_imports(source: str) -> list[str]:
    """提取 Go 源码中的导入路径（保持出现顺序）"""
    text = _LINE_COMMENT_RE.sub("", _BLOCK_COMMENT_RE.sub("", source))
    found: list[str] = []
    for block in _IMPORT_BLOCK_RE.findall(text):
        found.extend(_QUOTED_RE.findall(block))
    found.extend(_IMPORT_LINE_RE.findall(text))
    return list(dict.fromkeys(found))


def is_remote_import(path: str) -> bool:
    """标准库、cgo 与相对导入不是远程依赖"""
    if not path or path == "C" or path.startswith("."):
        return False
    return "." in path.split("/", 1)[0]


class _NullHandler:
    def not_found(self, pkg: str) -> bool:
        return False

    def on_gopath(self, pkg: str) -> bool:
        return False


class Resolver:
    """导入图解析器

    参数:
        base: 项目根目录
        vendor_dir: vendor 目录，默认 base/vendor
        gopath: 次级源码位置列表
        extra_hosts: 额外站点段数约定（仅用于 handler 拉取）
    """

    def __init__(
        self,
        base: str | Path,
        vendor_dir: Path | None = None,
        gopath: Sequence[str] = (),
        extra_hosts: Mapping[str, int] | None = None,
    ) -> None:
        base_path = Path(base)
        if not base_path.is_dir():
            raise ResolutionError(f"项目目录不存在: {base_path}")
        self.base = base_path.resolve()
        self.vendor_dir = (vendor_dir or self.base / "vendor").resolve()
        self.gopath = [Path(p) for p in gopath]
        self.extra_hosts = extra_hosts
        self.handler: PackageHandler = _NullHandler()

    def resolve_all(self, deps: Iterable[Dependency]) -> list[str]:
        """从 deps 出发解析全部传递依赖，返回 vendor 下的包目录路径"""
        pending: deque[str] = deque()
        for d in deps:
            pending.extend(d.packages())

        seen: set[str] = set()
        result: list[str] = []
        while pending:
            pkg = pending.popleft()
            if pkg in seen:
                continue
            seen.add(pkg)

            located = self._locate(pkg)
            if located is None:
                continue
            path, vendored = located
            if vendored:
                result.append(str(path))
            for imp in self._imports(path):
                if imp not in seen:
                    pending.append(imp)
        return result

    def _locate(self, pkg: str) -> tuple[Path, bool] | None:
        """返回 (包目录, 是否位于 vendor)，无法满足时返回 None"""
        try:
            local = target_dir(self.vendor_dir, pkg)
        except ValidationError as e:
            logger.warning("忽略非法导入 %s: %s", pkg, e)
            return None
        if local.is_dir():
            return local, True

        for gp in self.gopath:
            on_gopath = gp / "src" / local.relative_to(self.vendor_dir)
            if on_gopath.is_dir():
                if self.handler.on_gopath(pkg) and local.is_dir():
                    return local, True
                return on_gopath, False

        try:
            handled = self.handler.not_found(pkg)
        except (VcsError, NormalizationError) as e:
            logger.warning("无法解析 %s: %s", pkg, e)
            return None
        if handled and local.is_dir():
            return local, True
        logger.warning("未找到包: %s", pkg)
        return None

    @staticmethod
    def _imports(pkg_dir: Path) -> list[str]:
        """读取包目录下（不含子目录、测试文件）全部 .go 源码的远程导入"""
        found: list[str] = []
        try:
            files = sorted(pkg_dir.glob("*.go"))
            for f in files:
                if f.name.endswith("_test.go") or not f.is_file():
                    continue
                source = f.read_text(encoding="utf-8", errors="replace")
                found.extend(i for i in parse_imports(source) if is_remote_import(i))
        except OSError as e:
            raise ResolutionError(f"读取源码失败 {pkg_dir}: {e}") from e
        return list(dict.fromkeys(found))
