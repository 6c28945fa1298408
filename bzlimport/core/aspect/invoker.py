"""bazel 调用边界

只负责 "运行工具、返回输出行与退出码"，不做缓存。
退出码非零不是异常: 带 -k 构建时，出错包之外的产物照常输出。
"""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass, field
from typing import Callable

from bzlimport.core.exceptions import ConfigError, InvocationError
from bzlimport.utils.shell import CommandExecutor, LocalExecutor

logger = logging.getLogger(__name__)

LineFilter = Callable[[str], "str | None"]


@dataclass
class InvocationResult:
    """一次 bazel 调用的输出"""

    lines: list[str] = field(default_factory=list)
    returncode: int = 0
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.returncode == 0


class BazelInvoker:
    """bazel 命令执行器"""

    def __init__(
        self,
        executable: str = "bazel",
        *,
        executor: CommandExecutor | None = None,
        timeout: int | None = None,
    ) -> None:
        if not executable or not executable.strip():
            raise ConfigError("未配置 bazel 可执行文件")
        self.executable = executable.strip()
        self.executor: CommandExecutor = executor or LocalExecutor()
        self.timeout = timeout

    def run(
        self,
        subcommand: str,
        argv: list[str],
        working_dir: str,
        line_filter: LineFilter | None = None,
    ) -> InvocationResult:
        """执行 `bazel <subcommand> <argv...>`，返回经 line_filter 过滤后的输出行"""
        cmd = [self.executable, subcommand, *argv]
        logger.info("执行: %s (cwd=%s)", " ".join(cmd), working_dir)
        start = time.monotonic()
        try:
            r = self.executor.execute(cmd, cwd=working_dir, timeout=self.timeout)
        except FileNotFoundError as e:
            raise InvocationError(f"bazel 可执行文件不存在: {self.executable}: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise InvocationError(f"bazel 执行超时（{self.timeout}秒）: {' '.join(cmd)}") from e
        except OSError as e:
            raise InvocationError(f"bazel 启动失败: {e}") from e
        duration = time.monotonic() - start

        lines = r.lines()
        if line_filter is not None:
            lines = [out for out in (line_filter(line) for line in lines) if out is not None]

        if r.returncode != 0:
            logger.warning(
                "bazel %s 退出码 %d (%.1fs)，保留 %d 行输出",
                subcommand, r.returncode, duration, len(lines),
            )
        else:
            logger.info("bazel %s 完成 (%.1fs)，%d 行输出", subcommand, duration, len(lines))
        return InvocationResult(lines=lines, returncode=r.returncode, duration=duration)
