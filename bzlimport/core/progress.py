"""进度监视器

cache manager 与导入编排只依赖 ProgressMonitor 协议。
取消请求只在两个目标之间被检查，正在运行的 bazel 进程不会被打断。
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol

logger = logging.getLogger(__name__)


class ProgressMonitor(Protocol):
    """进度监视器协议"""

    def sub_task(self, label: str) -> None:
        """宣告一个子任务"""
        ...

    def worked(self, units: int) -> None:
        """报告已完成的工作量"""
        ...

    def is_canceled(self) -> bool:
        """是否已请求取消"""
        ...


class NullProgressMonitor:
    """什么都不做的监视器，调用方未提供时使用"""

    def sub_task(self, label: str) -> None:
        pass

    def worked(self, units: int) -> None:
        pass

    def is_canceled(self) -> bool:
        return False


class LoggingProgressMonitor:
    """把进度写入日志的监视器（CLI 使用）"""

    def __init__(self) -> None:
        self._canceled = threading.Event()
        self.total_worked = 0

    def sub_task(self, label: str) -> None:
        logger.info("%s", label)

    def worked(self, units: int) -> None:
        self.total_worked += units
        logger.debug("进度 +%d (累计 %d)", units, self.total_worked)

    def cancel(self) -> None:
        self._canceled.set()

    def is_canceled(self) -> bool:
        return self._canceled.is_set()
