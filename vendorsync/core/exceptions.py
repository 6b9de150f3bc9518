"""统一异常体系

所有业务异常继承 VendorSyncError，替代散落的 ValueError / RuntimeError。
CLI 层据此输出一行友好提示并以非零码退出。

致命错误（终止整次 install/update）:
  - VendorNotFoundError: 找不到 vendor 目录
  - ResolutionError: 解析器构造失败或依赖图遍历失败

逐项错误（仅告警，不中断批量更新）:
  - VcsError: 单个依赖的拉取/更新失败
"""

from __future__ import annotations


class VendorSyncError(Exception):
    """基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(VendorSyncError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(VendorSyncError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class NormalizationError(ValidationError):
    """导入路径无法拆分为 (仓库根, 子包)"""

    code = "NORMALIZATION_ERROR"


class VendorNotFoundError(VendorSyncError):
    """向上查找不到项目清单，无法定位 vendor 目录"""

    code = "VENDOR_NOT_FOUND"


class ResolutionError(VendorSyncError):
    """传递依赖解析失败"""

    code = "RESOLUTION_ERROR"


class VcsError(VendorSyncError):
    """版本控制操作（clone / pull / checkout）失败"""

    code = "VCS_ERROR"


class LockfileError(VendorSyncError):
    """锁文件缺失或格式错误"""

    code = "LOCKFILE_ERROR"


class ExecutionError(VendorSyncError):
    """外部命令执行失败"""

    code = "EXECUTION_ERROR"
