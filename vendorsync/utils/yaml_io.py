"""YAML 文件读写工具

项目清单 (vendor.yml)、锁文件 (vendor.lock) 与运行配置共用同一套读写逻辑：
UTF-8、空文件保护、大小上限、原子写入。
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 清单/锁文件体积上限 (4MB)
MAX_YAML_SIZE = 4 * 1024 * 1024


def atomic_write(path: Path, content: str) -> None:
    """先写同目录临时文件再 os.replace，中途失败不会留下半截锁文件"""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, str(path))
    except Exception:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def load_yaml(path: str | Path) -> dict[str, Any]:
    """读取 YAML 映射

    文件不存在或为空时返回空字典；顶层不是映射时告警并返回空字典。

    异常:
        ValueError: 文件超过 MAX_YAML_SIZE
        yaml.YAMLError: 语法错误
    """
    p = Path(path)
    if not p.exists():
        return {}

    size = p.stat().st_size
    if size > MAX_YAML_SIZE:
        raise ValueError(f"YAML 文件过大: {p} ({size} 字节)，上限 {MAX_YAML_SIZE} 字节")

    try:
        with open(p, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error("解析 YAML 失败: %s (%s)", p, e)
        raise

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("%s 顶层不是映射 (实际: %s)，按空处理", p, type(data).__name__)
        return {}
    return data


def dump_yaml(data: Any) -> str:
    """序列化为 YAML 文本，保持键顺序"""
    return yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)


def save_yaml(path: str | Path, data: Any) -> None:
    """原子写入 YAML 文件，自动创建父目录"""
    p = Path(path)
    try:
        atomic_write(p, dump_yaml(data))
    except (yaml.YAMLError, OSError) as e:
        logger.error("写入 YAML 失败: %s (%s)", p, e)
        raise
