"""清单与锁文件的读写

vendor.yml:
    name: example.com/myproject
    imports:
      - package: github.com/foo/bar
        version: v1.2.0
        subpackages: [baz]
    dev_imports: []

vendor.lock:
    hash: <清单指纹>
    updated: 2024-01-01T12:00:00+00:00
    imports:
      - name: github.com/foo/bar
        version: v1.2.0
        subpackages: [baz]
    dev_imports: []
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from vendorsync.core.exceptions import ConfigError, LockfileError
from vendorsync.core.models import Dependency, LockedDependency, Lockfile, Manifest
from vendorsync.utils.yaml_io import load_yaml, save_yaml

logger = logging.getLogger(__name__)


def _dep_list(raw: Any, section: str, path: Path) -> list[Dependency]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError(f"{path}: {section} 必须是列表")
    deps: list[Dependency] = []
    for i, item in enumerate(raw):
        if isinstance(item, str):
            item = {"package": item}
        if not isinstance(item, dict) or not item.get("package"):
            raise ConfigError(f"{path}: {section}[{i}] 缺少 package 字段")
        deps.append(Dependency.from_dict(item))
    return deps


def load_manifest(path: str | Path) -> Manifest:
    """读取项目清单，文件不存在抛 ConfigError"""
    p = Path(path)
    if not p.is_file():
        raise ConfigError(f"清单文件不存在: {p}")
    try:
        data = load_yaml(p)
    except (yaml.YAMLError, ValueError) as e:
        raise ConfigError(f"清单文件无效 {p}: {e}") from e
    return Manifest(
        name=str(data.get("name", "")),
        imports=_dep_list(data.get("imports"), "imports", p),
        dev_imports=_dep_list(data.get("dev_imports"), "dev_imports", p),
    )


def save_manifest(manifest: Manifest, path: str | Path) -> None:
    save_yaml(path, manifest.to_dict())


def _locked_to_dict(d: LockedDependency) -> dict[str, Any]:
    entry: dict[str, Any] = {"name": d.name, "version": d.version}
    if d.repository:
        entry["repo"] = d.repository
    if d.vcs_type:
        entry["vcs"] = d.vcs_type
    if d.subpackages:
        entry["subpackages"] = list(d.subpackages)
    if d.arch:
        entry["arch"] = list(d.arch)
    if d.os:
        entry["os"] = list(d.os)
    return entry


def _locked_list(raw: Any, section: str) -> tuple[LockedDependency, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise LockfileError(f"锁文件 {section} 必须是列表")
    result: list[LockedDependency] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict) or not item.get("name"):
            raise LockfileError(f"锁文件 {section}[{i}] 缺少 name 字段")
        result.append(LockedDependency(
            name=str(item["name"]),
            version=str(item.get("version", "") or ""),
            repository=str(item.get("repo", "") or ""),
            vcs_type=str(item.get("vcs", "") or ""),
            subpackages=tuple(item.get("subpackages") or ()),
            arch=tuple(item.get("arch") or ()),
            os=tuple(item.get("os") or ()),
        ))
    return tuple(result)


def lockfile_to_dict(lock: Lockfile) -> dict[str, Any]:
    return {
        "hash": lock.hash,
        "updated": lock.updated,
        "imports": [_locked_to_dict(d) for d in lock.imports],
        "dev_imports": [_locked_to_dict(d) for d in lock.dev_imports],
    }


def load_lockfile(path: str | Path) -> Lockfile:
    """读取锁文件，不存在或格式错误抛 LockfileError"""
    p = Path(path)
    if not p.is_file():
        raise LockfileError(f"锁文件不存在: {p}")
    try:
        data = load_yaml(p)
    except (yaml.YAMLError, ValueError) as e:
        raise LockfileError(f"锁文件无效 {p}: {e}") from e
    if not data.get("hash"):
        raise LockfileError(f"锁文件缺少 hash: {p}")
    return Lockfile(
        hash=str(data["hash"]),
        updated=str(data.get("updated", "")),
        imports=_locked_list(data.get("imports"), "imports"),
        dev_imports=_locked_list(data.get("dev_imports"), "dev_imports"),
    )


def save_lockfile(lock: Lockfile, path: str | Path) -> None:
    save_yaml(path, lockfile_to_dict(lock))
    logger.info("锁文件已写入: %s (%d 个依赖)", path, len(lock.imports))
