"""版本控制操作 - 工作副本的拉取 (get) 与更新 (update)

支持 git / hg / bzr / svn，全部通过 CommandExecutor 调用命令行工具。

get:    首次获取工作副本（可选：从 GOPATH 复制、经本地缓存克隆、回写 GOPATH）
update: 已有工作副本 pull 到最新或切换到声明的 reference；不存在时退化为 get
"""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from vendorsync.core.exceptions import ExecutionError, ValidationError, VcsError
from vendorsync.core.models import Dependency
from vendorsync.utils.shell import CommandExecutor, get_executor, run_cmd

logger = logging.getLogger(__name__)

_SAFE_REF_RE = re.compile(r"^[a-zA-Z0-9_./@\-]+$")
_CACHE_KEY_RE = re.compile(r"[^a-zA-Z0-9._-]+")

# VCS 类型 -> 工作副本标记目录
VCS_DIRS: dict[str, str] = {
    "git": ".git",
    "hg": ".hg",
    "bzr": ".bzr",
    "svn": ".svn",
}


@dataclass(frozen=True)
class VcsOptions:
    """拉取/更新选项"""

    home: str = ""
    use_cache: bool = False
    use_cache_gopath: bool = False
    use_gopath: bool = False
    gopath: tuple[str, ...] = ()
    update_vendored: bool = False
    timeout: float | None = None  # 单条 VCS 命令的超时（秒）


class VcsBackend(Protocol):
    """VCS 后端协议 - 测试中替换为假实现"""

    def get(self, dep: Dependency, dest: Path, options: VcsOptions) -> None:
        ...

    def update(self, dep: Dependency, base_dir: Path, options: VcsOptions) -> None:
        ...


def target_dir(base: Path, name: str) -> Path:
    """计算依赖在 base 下的目录，拒绝越界路径"""
    parts = name.replace("\\", "/").split("/")
    if not name or name.startswith("/") or any(p in ("", ".", "..") for p in parts):
        raise ValidationError(f"依赖名不能作为目录: {name!r}")
    return base.joinpath(*parts)


def detect_local(path: Path) -> str | None:
    """根据标记目录判断工作副本类型，非 VCS 目录返回 None"""
    for vcs, marker in VCS_DIRS.items():
        if (path / marker).exists():
            return vcs
    return None


class CommandVcs:
    """命令行 VCS 后端（默认实现）"""

    def __init__(self, executor: CommandExecutor | None = None) -> None:
        self._executor = executor

    # ---- 公共接口 ----

    def get(self, dep: Dependency, dest: Path, options: VcsOptions) -> None:
        """获取 dep 的全新工作副本到 dest"""
        self._check_reference(dep)
        vcs = self._vcs_type(dep)

        if options.use_gopath and self._copy_from_gopath(dep, dest, options):
            self._set_reference(vcs, dest, dep.reference, options)
            return

        remote = self.remote(dep)
        if options.use_cache:
            cached = self._refresh_cache(vcs, remote, options)
            logger.info("从缓存复制: %s -> %s", cached, dest)
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copytree(cached, dest, symlinks=True, dirs_exist_ok=True)
        else:
            logger.info("克隆: %s -> %s", remote, dest)
            self._clone(vcs, remote, dest, options)

        self._set_reference(vcs, dest, dep.reference, options)

        if options.use_cache_gopath and options.gopath:
            self._copy_to_gopath(dep, dest, options)

    def update(self, dep: Dependency, base_dir: Path, options: VcsOptions) -> None:
        """把 base_dir/<name> 更新到 dep.reference（未设置则更新到最新）"""
        self._check_reference(dep)
        dest = target_dir(base_dir, dep.name)

        if not dest.exists():
            logger.info("%s 不存在，执行拉取", dep.name)
            self.get(dep, dest, options)
            return

        vcs = detect_local(dest)
        if vcs is None:
            if options.update_vendored:
                logger.info("%s 不是 VCS 检出目录，重新拉取替换", dep.name)
                shutil.rmtree(dest)
                self.get(dep, dest, options)
            else:
                logger.info("%s 不是 VCS 检出目录，跳过更新", dep.name)
            return

        if dep.vcs_type and dep.vcs_type != vcs:
            raise VcsError(f"{dep.name} 声明类型 {dep.vcs_type} 与本地 {vcs} 不一致")

        logger.info("更新: %s%s", dep.name, f"@{dep.reference}" if dep.reference else "")
        self._pull(vcs, dest, bool(dep.reference), options)
        self._set_reference(vcs, dest, dep.reference, options)

    @staticmethod
    def remote(dep: Dependency) -> str:
        return dep.repository or f"https://{dep.name}"

    # ---- 内部步骤 ----

    @staticmethod
    def _check_reference(dep: Dependency) -> None:
        if dep.reference and not _SAFE_REF_RE.match(dep.reference):
            raise ValidationError(f"reference 包含非法字符: {dep.reference}")

    @staticmethod
    def _vcs_type(dep: Dependency) -> str:
        if dep.vcs_type:
            if dep.vcs_type not in VCS_DIRS:
                raise ValidationError(f"不支持的 VCS 类型: {dep.vcs_type}")
            return dep.vcs_type
        remote = dep.repository or dep.name
        for vcs in VCS_DIRS:
            if remote.endswith(f".{vcs}") or f".{vcs}/" in remote:
                return vcs
        return "git"

    def _run(self, args: list[str], options: VcsOptions, *, cwd: Path | None = None) -> None:
        try:
            run_cmd(
                args, cwd=str(cwd) if cwd else None, timeout=options.timeout,
                label=f"{args[0]} {args[1]}", executor=self._executor or get_executor(),
            )
        except ExecutionError as e:
            raise VcsError(str(e)) from e

    def _clone(self, vcs: str, remote: str, dest: Path, options: VcsOptions) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        if vcs == "git":
            self._run(["git", "clone", remote, str(dest)], options)
        elif vcs == "hg":
            self._run(["hg", "clone", remote, str(dest)], options)
        elif vcs == "bzr":
            self._run(["bzr", "branch", remote, str(dest)], options)
        else:
            self._run(["svn", "checkout", remote, str(dest)], options)

    def _pull(self, vcs: str, dest: Path, has_ref: bool, options: VcsOptions) -> None:
        if vcs == "git":
            if has_ref:
                # 可能处于 detached HEAD，只 fetch，随后 checkout
                self._run(["git", "fetch", "--tags", "origin"], options, cwd=dest)
            else:
                self._run(["git", "pull", "--ff-only"], options, cwd=dest)
        elif vcs == "hg":
            self._run(["hg", "pull"], options, cwd=dest)
            if not has_ref:
                self._run(["hg", "update"], options, cwd=dest)
        elif vcs == "bzr":
            self._run(["bzr", "pull"], options, cwd=dest)
        else:
            self._run(["svn", "update"], options, cwd=dest)

    def _set_reference(self, vcs: str, dest: Path, ref: str, options: VcsOptions) -> None:
        if not ref:
            return
        if vcs == "git":
            self._run(["git", "checkout", "--quiet", ref], options, cwd=dest)
        elif vcs == "hg":
            self._run(["hg", "update", "-r", ref], options, cwd=dest)
        elif vcs == "bzr":
            self._run(["bzr", "update", "-r", ref], options, cwd=dest)
        else:
            self._run(["svn", "update", "-r", ref], options, cwd=dest)

    def _refresh_cache(self, vcs: str, remote: str, options: VcsOptions) -> Path:
        """在 home/cache/src 下维护一份克隆，返回其路径"""
        if not options.home:
            raise VcsError("启用缓存时必须配置 home")
        key = _CACHE_KEY_RE.sub("-", remote).strip("-")
        cached = Path(options.home) / "cache" / "src" / key
        if (cached / VCS_DIRS[vcs]).exists():
            logger.debug("刷新缓存: %s", cached)
            self._pull(vcs, cached, False, options)
        else:
            if cached.exists():
                shutil.rmtree(cached)
            logger.info("克隆到缓存: %s -> %s", remote, cached)
            self._clone(vcs, remote, cached, options)
        return cached

    @staticmethod
    def _copy_from_gopath(dep: Dependency, dest: Path, options: VcsOptions) -> bool:
        for gp in options.gopath:
            src = target_dir(Path(gp) / "src", dep.name)
            if src.is_dir():
                logger.info("从 GOPATH 复制: %s -> %s", src, dest)
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copytree(src, dest, symlinks=True, dirs_exist_ok=True)
                return True
        return False

    @staticmethod
    def _copy_to_gopath(dep: Dependency, dest: Path, options: VcsOptions) -> None:
        target = target_dir(Path(options.gopath[0]) / "src", dep.name)
        if target.exists():
            return
        logger.info("回写 GOPATH: %s -> %s", dest, target)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copytree(dest, target, symlinks=True)


_default_backend: VcsBackend = CommandVcs()


def get_backend() -> VcsBackend:
    return _default_backend


def set_backend(backend: VcsBackend) -> None:
    """替换全局默认 VCS 后端"""
    global _default_backend  # noqa: PLW0603
    _default_backend = backend


def vcs_get(dep: Dependency, dest: Path, options: VcsOptions) -> None:
    get_backend().get(dep, dest, options)


def vcs_update(dep: Dependency, base_dir: Path, options: VcsOptions) -> None:
    get_backend().update(dep, base_dir, options)
