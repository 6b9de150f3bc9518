"""集中配置管理

运行参数（vendor 目录、缓存、GOPATH、并发度、超时等）统一从这里读取。
支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any

from vendorsync.core.exceptions import ConfigError
from vendorsync.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "vendorsync.yml"


def _default_gopath() -> list[str]:
    raw = os.environ.get("GOPATH", "")
    return [p for p in raw.split(os.pathsep) if p]


@dataclass
class Config:
    """全局运行配置"""

    # 文件与目录
    manifest_file: str = "vendor.yml"
    lock_file: str = "vendor.lock"
    vendor_dir: str = ""  # 为空时从 cwd 向上查找清单所在目录下的 vendor/
    home: str = field(default_factory=lambda: os.path.join(os.path.expanduser("~"), ".vendorsync"))

    # 来源
    use_cache: bool = False
    use_cache_gopath: bool = False
    use_gopath: bool = False
    gopath: list[str] = field(default_factory=_default_gopath)

    # 执行
    concurrent_workers: int = 20
    vcs_timeout: float = 600.0
    update_vendored: bool = False
    delete_unused: bool = False

    # 命名
    dedupe_subpackages: bool = False
    extra_hosts: dict[str, int] = field(default_factory=dict)

    # 放不到字段里的配置项
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.concurrent_workers < 1:
            raise ConfigError(f"concurrent_workers 必须 >= 1: {self.concurrent_workers}")
        if self.vcs_timeout <= 0:
            raise ConfigError(f"vcs_timeout 必须为正数: {self.vcs_timeout}")
        for host, count in self.extra_hosts.items():
            if not isinstance(count, int) or count < 2:
                raise ConfigError(f"extra_hosts.{host} 段数必须为 >= 2 的整数: {count!r}")

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_FILE) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        matched = {k: v for k, v in data.items() if k in known and k != "extra"}
        extra = {k: v for k, v in data.items() if k not in known}
        if isinstance(matched.get("gopath"), str):
            matched["gopath"] = [p for p in matched["gopath"].split(os.pathsep) if p]
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置文件字段无效 {path}: {e}") from e
        cfg.extra = extra
        return cfg

    def with_overrides(self, **overrides: Any) -> Config:
        """返回覆盖了部分字段的副本，值为 None 的覆盖项被忽略"""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "") -> Config:
    """从文件初始化全局配置，path 为空时读取 VENDORSYNC_CONFIG 或默认文件"""
    global _current  # noqa: PLW0603
    path = path or os.environ.get("VENDORSYNC_CONFIG", DEFAULT_CONFIG_FILE)
    _current = Config.from_file(path)
    logger.debug("配置已加载: %s", path)
    return _current
