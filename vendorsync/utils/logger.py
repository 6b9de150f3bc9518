"""vendorsync 日志配置

批量更新在多个工作线程中并发进行，日志中携带线程名与依赖名，便于区分
同一时刻多个依赖的拉取输出。只配置 "vendorsync" 日志器，不改动根日志器，
嵌入其他程序时不会覆盖宿主的日志设置。
"""

from __future__ import annotations

import json
import logging
import sys
import time

PACKAGE_LOGGER = "vendorsync"

_TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(threadName)s] %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """每条记录一行 JSON，便于 CI 汇总逐项失败

    字段: ts, level, logger, thread, msg；记录带 extra={"dep": ...} 时
    附加 dep，带异常时附加 exc。
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created)) + "Z",
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "msg": record.getMessage(),
        }
        dep = getattr(record, "dep", None)
        if dep:
            entry["dep"] = dep
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_output: bool = False) -> logging.Logger:
    """给 vendorsync 日志器安装唯一的 stderr handler，返回该日志器

    可重复调用，旧 handler 会先被移除。
    """
    log = reset_logging()
    level_no = logging.getLevelName(level.upper())
    log.setLevel(level_no if isinstance(level_no, int) else logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(_TEXT_FORMAT))
    log.addHandler(handler)
    return log


def reset_logging() -> logging.Logger:
    """移除 vendorsync 日志器上的 handlers"""
    log = logging.getLogger(PACKAGE_LOGGER)
    for h in list(log.handlers):
        log.removeHandler(h)
        h.close()
    return log
