"""bzlimport 日志配置

两种输出:
- 文本: 给终端用户看，`时间 [级别] logger: 消息`
- JSON: 一行一条，给 CI 采集；缓存事件额外带 target / project / caller 字段，
  便于按目标或发起工程过滤，不必从消息文本里解析
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

# 通过 logger.log(..., extra={...}) 附加、在 JSON 输出中单独成列的字段
CONTEXT_FIELDS = ("target", "project", "caller")

TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """一行一个 JSON 对象

        {"time": "...", "level": "INFO", "logger": "bzlimport.core.aspect.cache",
         "message": "ASPECT CACHE HIT target: //a:b [prj=..., src=...]",
         "target": "//a:b", "project": "...", "caller": "..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value:
                entry[name] = value
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """替换根日志器的 handler，返回新装上的 handler

    未知级别按 INFO 处理；stream 缺省为 stderr，命令本身的输出留给 stdout。
    """
    reset_logging()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)
    return handler


def reset_logging() -> None:
    """摘掉并关闭根日志器上的全部 handler"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
