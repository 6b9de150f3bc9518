"""CLI - 查询命令（路径规范化、声明依赖列表）"""

from __future__ import annotations

import click

from vendorsync.cli import _project_files
from vendorsync.core.config import get_config
from vendorsync.core.exceptions import NormalizationError, VendorSyncError
from vendorsync.core.manifest import load_manifest
from vendorsync.core.naming import normalize_name


def register(group: click.Group) -> None:
    group.add_command(normalize)
    group.add_command(list_deps)


@click.command()
@click.argument("paths", nargs=-1, required=True)
def normalize(paths: tuple[str, ...]) -> None:
    """把导入路径拆分为仓库根与子包"""
    extra = get_config().extra_hosts
    failed = 0
    for p in paths:
        try:
            root, sub = normalize_name(p, extra)
        except NormalizationError as e:
            click.echo(f"  {p}: {e}", err=True)
            failed += 1
            continue
        click.echo(f"  {root:40s} {sub or '-'}")
    if failed:
        raise click.ClickException(f"{failed} 个路径无法识别")


@click.command(name="list")
@click.option("--dev", "use_dev", is_flag=True, help="同时列出 dev_imports")
def list_deps(use_dev: bool) -> None:
    """列出清单中声明的依赖"""
    try:
        manifest_path, _ = _project_files(get_config())
        manifest = load_manifest(manifest_path)
    except VendorSyncError as e:
        raise click.ClickException(str(e)) from e

    sections = [("imports", manifest.imports)]
    if use_dev:
        sections.append(("dev_imports", manifest.dev_imports))
    for title, deps in sections:
        click.echo(f"{title}:")
        if not deps:
            click.echo("  (无)")
        for d in deps:
            subs = ",".join(d.subpackages) or "-"
            click.echo(f"  {d.name:40s} {d.reference or '(最新)':12s} [{subs}]")
