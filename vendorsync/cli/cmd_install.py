"""CLI - install / checkout / update"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import click

from vendorsync.cli import _installer, _project_files
from vendorsync.core.exceptions import VendorSyncError
from vendorsync.core.manifest import load_lockfile, load_manifest, save_lockfile
from vendorsync.core.models import UpdateOutcome, summarize_outcomes

logger = logging.getLogger(__name__)


def register(group: click.Group) -> None:
    group.add_command(install)
    group.add_command(checkout)
    group.add_command(update)


def _fetch_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """拉取相关的公共选项；未指定的开关沿用配置文件中的值"""
    options = [
        click.option("--cache", "use_cache", is_flag=True, help="经本地缓存克隆"),
        click.option("--cache-gopath", "use_cache_gopath", is_flag=True, help="拉取后回写 GOPATH"),
        click.option("--use-gopath", is_flag=True, help="优先从 GOPATH 复制"),
        click.option("--workers", "concurrent_workers", type=click.IntRange(min=1), default=None,
                     help="并发更新数"),
        click.option("--update-vendored", is_flag=True, help="替换 vendor 下非 VCS 检出的目录"),
    ]
    for opt in reversed(options):
        fn = opt(fn)
    return fn


_strict_option = click.option(
    "--strict", is_flag=True, help="任一依赖更新失败时返回非零退出码",
)


def _report(outcomes: dict[str, UpdateOutcome], strict: bool) -> None:
    stats = summarize_outcomes(outcomes)
    if not stats["total"]:
        return
    click.echo(f"完成: {stats['ok']}/{stats['total']} 成功")
    for o in outcomes.values():
        if not o.ok:
            click.echo(f"  [{o.status}] {o.name}: {o.error}")
    if strict and stats["ok"] != stats["total"]:
        raise click.ClickException(f"{stats['total'] - stats['ok']} 个依赖未能更新")


@click.command()
@_fetch_options
@_strict_option
def install(strict: bool, **overrides: Any) -> None:
    """按锁文件安装依赖（无锁文件时执行 update 并写入锁文件）"""
    inst = _installer(**{k: v for k, v in overrides.items() if v})
    try:
        manifest_path, lock_path = _project_files(inst.config)
        manifest = load_manifest(manifest_path)
        if lock_path.is_file():
            inst.install(load_lockfile(lock_path), manifest)
        else:
            logger.info("锁文件不存在，执行 update")
            lock = inst.update(manifest)
            save_lockfile(lock, lock_path)
    except VendorSyncError as e:
        raise click.ClickException(str(e)) from e
    _report(inst.outcomes, strict)


@click.command()
@click.option("--dev", "use_dev", is_flag=True, help="同时拉取 dev_imports")
@_fetch_options
def checkout(use_dev: bool, **overrides: Any) -> None:
    """拉取 vendor 下尚不存在的声明依赖"""
    inst = _installer(**{k: v for k, v in overrides.items() if v})
    try:
        manifest_path, _ = _project_files(inst.config)
        inst.checkout(load_manifest(manifest_path), use_dev=use_dev)
    except VendorSyncError as e:
        raise click.ClickException(str(e)) from e


@click.command()
@click.option("--delete-unused", is_flag=True, help="删除 vendor 下未使用的目录")
@_fetch_options
@_strict_option
def update(strict: bool, **overrides: Any) -> None:
    """解析全部传递依赖、并发更新并写入锁文件"""
    inst = _installer(**{k: v for k, v in overrides.items() if v})
    try:
        manifest_path, lock_path = _project_files(inst.config)
        lock = inst.update(load_manifest(manifest_path))
        save_lockfile(lock, lock_path)
    except VendorSyncError as e:
        raise click.ClickException(str(e)) from e
    _report(inst.outcomes, strict)
