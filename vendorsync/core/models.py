"""核心数据模型

- Dependency: 一条依赖记录，以仓库根导入路径为唯一键
- Manifest: 项目清单（声明的 imports / dev_imports）
- LockedDependency / Lockfile: 一次 update 产出的不可变快照
- UpdateOutcome: 工作池中单个依赖的执行结果
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class Dependency:
    """单个依赖（一个上游仓库）"""

    name: str                       # 仓库根，如 github.com/foo/bar
    reference: str = ""             # 版本/提交，空表示未解析
    repository: str = ""            # 源地址覆盖
    vcs_type: str = ""              # git / hg / bzr / svn，空表示自动探测
    subpackages: list[str] = field(default_factory=list)
    arch: list[str] = field(default_factory=list)
    os: list[str] = field(default_factory=list)

    def packages(self) -> list[str]:
        """依赖声明覆盖的导入路径：仓库根 + 各子包"""
        if not self.subpackages:
            return [self.name]
        return [self.name] + [f"{self.name}/{sp}" for sp in self.subpackages]

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"package": self.name}
        if self.reference:
            d["version"] = self.reference
        if self.repository:
            d["repo"] = self.repository
        if self.vcs_type:
            d["vcs"] = self.vcs_type
        if self.subpackages:
            d["subpackages"] = list(self.subpackages)
        if self.arch:
            d["arch"] = list(self.arch)
        if self.os:
            d["os"] = list(self.os)
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Dependency:
        return cls(
            name=str(data.get("package", "")),
            reference=str(data.get("version", "") or ""),
            repository=str(data.get("repo", "") or ""),
            vcs_type=str(data.get("vcs", "") or ""),
            subpackages=list(data.get("subpackages") or []),
            arch=list(data.get("arch") or []),
            os=list(data.get("os") or []),
        )


def dedupe(deps: list[Dependency]) -> list[Dependency]:
    """按仓库根合并重复记录，保留首次出现的顺序

    同一仓库根只保留第一条记录，后续记录的子包并入其中（不重复），其余字段以第一条为准。
    后续记录声明了不同的 reference 时告警并沿用第一条的 reference。
    输入记录不会被修改。
    """
    by_name: dict[str, Dependency] = {}
    result: list[Dependency] = []
    for d in deps:
        first = by_name.get(d.name)
        if first is None:
            merged = replace(d, subpackages=list(d.subpackages), arch=list(d.arch), os=list(d.os))
            by_name[d.name] = merged
            result.append(merged)
            continue
        if d.reference and d.reference != first.reference:
            logger.warning(
                "%s 重复声明且版本不一致 (%s / %s)，使用 %s",
                d.name, first.reference or "(最新)", d.reference, first.reference or "(最新)",
            )
        first.subpackages.extend(sp for sp in d.subpackages if sp not in first.subpackages)
    return result


@dataclass
class Manifest:
    """项目清单"""

    name: str = ""
    imports: list[Dependency] = field(default_factory=list)
    dev_imports: list[Dependency] = field(default_factory=list)

    def dedupe(self) -> None:
        self.imports = dedupe(self.imports)
        self.dev_imports = dedupe(self.dev_imports)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "imports": [d.to_dict() for d in self.imports],
            "dev_imports": [d.to_dict() for d in self.dev_imports],
        }

    def hash(self) -> str:
        """配置指纹：规范化 JSON 的 SHA-256，仅用于漂移检测"""
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class LockedDependency:
    """锁定后的依赖，不可变"""

    name: str
    version: str = ""
    repository: str = ""
    vcs_type: str = ""
    subpackages: tuple[str, ...] = ()
    arch: tuple[str, ...] = ()
    os: tuple[str, ...] = ()

    @classmethod
    def from_dependency(cls, dep: Dependency) -> LockedDependency:
        return cls(
            name=dep.name,
            version=dep.reference,
            repository=dep.repository,
            vcs_type=dep.vcs_type,
            subpackages=tuple(dep.subpackages),
            arch=tuple(dep.arch),
            os=tuple(dep.os),
        )

    def to_dependency(self) -> Dependency:
        """投影为可交给工作池的依赖记录（version → reference）"""
        return Dependency(
            name=self.name,
            reference=self.version,
            repository=self.repository,
            vcs_type=self.vcs_type,
            subpackages=list(self.subpackages),
            arch=list(self.arch),
            os=list(self.os),
        )


@dataclass(frozen=True)
class Lockfile:
    """一次 update 的扁平快照"""

    hash: str
    updated: str
    imports: tuple[LockedDependency, ...] = ()
    dev_imports: tuple[LockedDependency, ...] = ()

    @classmethod
    def from_dependencies(
        cls, deps: list[Dependency], config_hash: str,
        dev_deps: list[Dependency] | None = None,
    ) -> Lockfile:
        return cls(
            hash=config_hash,
            updated=datetime.now(timezone.utc).isoformat(timespec="seconds"),
            imports=tuple(LockedDependency.from_dependency(d) for d in deps),
            dev_imports=tuple(LockedDependency.from_dependency(d) for d in dev_deps or []),
        )

    def is_stale(self, manifest: Manifest) -> bool:
        """清单自生成锁文件后是否被修改过"""
        return self.hash != manifest.hash()


@dataclass
class UpdateOutcome:
    """单个依赖在工作池中的执行结果"""

    name: str
    status: str  # "ok", "failed", "cancelled"
    error: str = ""
    duration: float = 0.0  # 秒

    @property
    def ok(self) -> bool:
        return self.status == "ok"


def summarize_outcomes(outcomes: dict[str, UpdateOutcome]) -> dict[str, int]:
    """统计结果状态分布"""
    values = list(outcomes.values())
    return {
        "total": len(values),
        "ok": sum(1 for o in values if o.status == "ok"),
        "failed": sum(1 for o in values if o.status == "failed"),
        "cancelled": sum(1 for o in values if o.status == "cancelled"),
    }
