"""项目目录定位 - 向上查找清单文件，确定项目根与 vendor 目录"""

from __future__ import annotations

from pathlib import Path

from vendorsync.core.exceptions import VendorNotFoundError

VENDOR_DIR_NAME = "vendor"


def find_project_root(start: Path | None = None, manifest_name: str = "vendor.yml") -> Path:
    """从 start（默认 cwd）向上查找包含清单文件的目录"""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        if (directory / manifest_name).is_file():
            return directory
    raise VendorNotFoundError(f"在 {current} 及其上级目录中找不到 {manifest_name}")


def find_vendor_dir(start: Path | None = None, manifest_name: str = "vendor.yml") -> Path:
    """项目根下的 vendor 目录（可能尚未创建）"""
    return find_project_root(start, manifest_name) / VENDOR_DIR_NAME
