"""vendorsync 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import click

from vendorsync import __version__
from vendorsync.core.config import Config, get_config, init_config
from vendorsync.core.installer import Installer
from vendorsync.core.paths import find_project_root
from vendorsync.utils.logger import setup_logging


def _installer(**overrides: Any) -> Installer:
    """以全局配置 + 命令行覆盖构造安装器"""
    return Installer(get_config().with_overrides(**overrides))


def _project_files(cfg: Config) -> tuple[Path, Path]:
    """返回 (清单路径, 锁文件路径)"""
    if cfg.vendor_dir:
        root = Path(cfg.vendor_dir).parent
    else:
        root = find_project_root(manifest_name=cfg.manifest_file)
    return root / cfg.manifest_file, root / cfg.lock_file


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default="", help="运行配置文件（默认 vendorsync.yml）")
@click.option("--debug", is_flag=True, help="输出调试日志")
def main(config_path: str, debug: bool) -> None:
    """vendorsync - 源码依赖安装/更新工具"""
    setup_logging(
        level="DEBUG" if debug else os.getenv("VENDORSYNC_LOG_LEVEL", "INFO"),
        json_output=os.getenv("VENDORSYNC_LOG_JSON", "") == "1",
    )
    init_config(config_path)


# 注册各领域子命令
from vendorsync.cli.cmd_install import register as _reg_install  # noqa: E402
from vendorsync.cli.cmd_misc import register as _reg_misc  # noqa: E402

_reg_install(main)
_reg_misc(main)
