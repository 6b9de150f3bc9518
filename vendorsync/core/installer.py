"""安装器 - install / checkout / update 三个入口的编排

  install:  只按锁文件落地，不做解析
  checkout: 为 vendor 下尚不存在的声明依赖做首次拉取（幂等）
  update:   传递解析 -> 聚合 -> 并发更新 -> 生成新锁文件

update 单次运行的状态:
  idle -> resolving -> aggregating -> updating -> done

解析阶段失败终止整个调用；更新阶段的失败只逐项告警，
结果保存在 Installer.outcomes 中供调用方检查。
"""

from __future__ import annotations

import logging
import shutil
import threading
from collections.abc import Callable
from pathlib import Path

from vendorsync.core.aggregate import deps_from_packages
from vendorsync.core.config import Config, get_config
from vendorsync.core.exceptions import ResolutionError, VendorSyncError
from vendorsync.core.handler import MissingPackageHandler
from vendorsync.core.models import Dependency, Lockfile, Manifest, UpdateOutcome
from vendorsync.core.paths import find_vendor_dir
from vendorsync.core.pool import concurrent_update
from vendorsync.core.resolver import Resolver
from vendorsync.core.vcs import VcsBackend, VcsOptions, get_backend, target_dir

logger = logging.getLogger(__name__)

ResolverFactory = Callable[[Path, Path], Resolver]


class Installer:
    """依赖安装器

    所有选项来自 Config；CLI 通过 Config.with_overrides() 传入命令行覆盖。
    vcs / resolver_factory / cancel 可注入，便于测试。
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        vcs: VcsBackend | None = None,
        resolver_factory: ResolverFactory | None = None,
        cancel: threading.Event | None = None,
    ) -> None:
        cfg = config or get_config()
        self.config = cfg
        self.home = cfg.home
        self.use_cache = cfg.use_cache
        self.use_cache_gopath = cfg.use_cache_gopath
        self.use_gopath = cfg.use_gopath
        self.update_vendored = cfg.update_vendored
        self.delete_unused = cfg.delete_unused
        self.workers = cfg.concurrent_workers
        self.timeout = cfg.vcs_timeout
        self.vcs = vcs or get_backend()
        self.cancel = cancel or threading.Event()
        self._resolver_factory = resolver_factory or self._default_resolver
        self.state = "idle"
        self.outcomes: dict[str, UpdateOutcome] = {}

    def _default_resolver(self, base: Path, vendor: Path) -> Resolver:
        return Resolver(
            base, vendor_dir=vendor,
            gopath=self.config.gopath, extra_hosts=self.config.extra_hosts,
        )

    def vcs_options(self) -> VcsOptions:
        return VcsOptions(
            home=self.home,
            use_cache=self.use_cache,
            use_cache_gopath=self.use_cache_gopath,
            use_gopath=self.use_gopath,
            gopath=tuple(self.config.gopath),
            update_vendored=self.update_vendored,
            timeout=self.timeout,
        )

    def vendor_dir(self) -> Path:
        """显式配置优先，否则向上查找清单所在目录下的 vendor/"""
        if self.config.vendor_dir:
            return Path(self.config.vendor_dir)
        return find_vendor_dir(manifest_name=self.config.manifest_file)

    # ------------------------------------------------------------------
    # install: 锁文件 -> vendor
    # ------------------------------------------------------------------

    def install(self, lock: Lockfile, manifest: Manifest) -> Manifest:
        """按锁文件安装，返回由锁文件投影出的清单"""
        cwd = self.vendor_dir()

        if lock.is_stale(manifest):
            logger.warning("锁文件与当前清单不一致，建议重新执行 update")

        new_manifest = Manifest(
            name=manifest.name,
            imports=[d.to_dependency() for d in lock.imports],
            dev_imports=[d.to_dependency() for d in lock.dev_imports],
        )
        new_manifest.dedupe()
        self.outcomes = {}

        if not new_manifest.imports:
            logger.info("未找到任何依赖，无需安装")
            return new_manifest

        self.outcomes.update(concurrent_update(new_manifest.imports, cwd, self))
        # 已在 imports 中更新过的仓库不再重复更新
        names = {d.name for d in new_manifest.imports}
        dev = [d for d in new_manifest.dev_imports if d.name not in names]
        self.outcomes.update(concurrent_update(dev, cwd, self))
        return new_manifest

    # ------------------------------------------------------------------
    # checkout: 首次拉取
    # ------------------------------------------------------------------

    def checkout(self, manifest: Manifest, use_dev: bool = False) -> None:
        """拉取 vendor 下尚不存在的声明依赖，已存在的目录保持不动"""
        dest = self.vendor_dir()
        self._checkout_imports(manifest.imports, dest)
        if use_dev:
            self._checkout_imports(manifest.dev_imports, dest)

    def _checkout_imports(self, deps: list[Dependency], dest: Path) -> None:
        options = self.vcs_options()
        for dep in deps:
            target = target_dir(dest, dep.name)
            if target.exists():
                logger.debug("包 %s 已存在", dep.name)
                continue
            logger.info("拉取 %s 到 %s", dep.name, dest)
            self.vcs.get(dep, target, options)

    # ------------------------------------------------------------------
    # update: 传递解析 + 并发更新
    # ------------------------------------------------------------------

    def update(self, manifest: Manifest) -> Lockfile:
        """完整刷新：解析全部传递依赖并更新，返回新锁文件

        dev_imports 不做传递解析。
        """
        vendor = self.vendor_dir()
        base = vendor.parent

        self.state = "resolving"
        handler = MissingPackageHandler(
            destination=vendor,
            options=self.vcs_options(),
            vcs=self.vcs,
            timeout=self.timeout,
            extra_hosts=self.config.extra_hosts,
            cancel=self.cancel,
        )
        try:
            resolver = self._resolver_factory(base, vendor)
        except VendorSyncError as e:
            raise ResolutionError(f"无法创建解析器: {e}") from e
        resolver.handler = handler

        logger.info("解析导入")
        packages = self._all_packages(manifest.imports, resolver, vendor)
        logger.warning("dev_imports 未做传递解析")

        self.state = "aggregating"
        deps = deps_from_packages(
            packages,
            dedupe_subpackages=self.config.dedupe_subpackages,
            extra_hosts=self.config.extra_hosts,
        )
        self._carry_declared(deps, manifest.imports)

        self.state = "updating"
        self.outcomes = concurrent_update(deps, vendor, self)

        if self.delete_unused:
            self._delete_unused(vendor, {d.name for d in deps})

        lock = Lockfile.from_dependencies(deps, manifest.hash())
        self.state = "done"
        return lock

    @staticmethod
    def _all_packages(deps: list[Dependency], resolver: Resolver, vendor: Path) -> list[str]:
        """解析 deps 所需的全部包，路径去掉 vendor 前缀"""
        if not deps:
            return []
        try:
            found = resolver.resolve_all(deps)
        except ResolutionError:
            raise
        except (VendorSyncError, OSError) as e:
            raise ResolutionError(f"获取依赖列表失败: {e}") from e

        root = vendor.resolve()
        result: list[str] = []
        for p in found:
            path = Path(p)
            try:
                result.append(path.resolve().relative_to(root).as_posix())
            except ValueError:
                result.append(path.as_posix())
        return result

    @staticmethod
    def _carry_declared(deps: list[Dependency], declared: list[Dependency]) -> None:
        """把清单中声明的版本与源信息带到聚合结果上"""
        by_name = {d.name: d for d in declared}
        for dep in deps:
            src = by_name.get(dep.name)
            if src is None:
                continue
            dep.reference = src.reference
            dep.repository = src.repository
            dep.vcs_type = src.vcs_type
            dep.arch = list(src.arch)
            dep.os = list(src.os)

    @staticmethod
    def _delete_unused(vendor: Path, roots: set[str]) -> None:
        """删除 vendor 下不属于任何仓库根的目录"""
        prefixes = {"/".join(r.split("/")[:i]) for r in roots for i in range(1, r.count("/") + 1)}

        def walk(directory: Path, rel: str) -> None:
            for child in sorted(directory.iterdir()):
                if not child.is_dir():
                    continue
                name = f"{rel}/{child.name}" if rel else child.name
                if name in roots:
                    continue
                if name in prefixes:
                    walk(child, name)
                    continue
                logger.info("删除未使用的目录: %s", name)
                shutil.rmtree(child)

        if vendor.is_dir():
            walk(vendor, "")
