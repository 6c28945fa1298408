"""aspect 结果缓存管理

缓存策略:
  - current:   每个目标最近一次成功计算的记录，flush 时清空
  - wildcards: 通配目标（//a:*、//a/...）上次展开得到的 literal 目标集合，与 current 一同清空
  - last_good: 每个目标历史上最后一次成功的记录，永不清空；
               用户把某个包改出编译错误、aspect 跑不出来时用它兜底

同一实例上的 resolve / flush / flush_for 串行执行: bazel 是有状态的共享资源，
两次解析不能并发调用它，缓存读写也必须与调用保持线性一致。
锁可重入，进度回调里可以读缓存状态或调用 flush。
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from bzlimport.core.aspect.invoker import BazelInvoker
from bzlimport.core.aspect.variants import AspectLocation, AspectVariant
from bzlimport.core.exceptions import (
    InvocationError,
    OperationCanceledError,
    StructuralError,
)
from bzlimport.core.models import (
    AspectResolution,
    BazelLabel,
    PackageInfo,
    canonical_label,
)
from bzlimport.core.progress import NullProgressMonitor, ProgressMonitor

logger = logging.getLogger(__name__)

TASK_LABEL = "Load Bazel dependency information"


@dataclass(frozen=True)
class _Origin:
    """发起解析的工程与调用方，写进每条缓存事件日志"""

    project: str = ""
    caller: str = ""

    @property
    def tag(self) -> str:
        return f" [prj={self.project}, src={self.caller}]"

    def log(self, level: int, event: str, target: str, detail: str = "") -> None:
        logger.log(
            level, "ASPECT CACHE %s target: %s%s%s", event, target, detail, self.tag,
            extra={"target": target, "project": self.project, "caller": self.caller},
        )


class AspectCacheManager:
    """运行、收集并缓存一个工作区内全部目标的 aspect 结果

    生命周期与一次工作区导入会话相同，由会话创建并以引用传递给协作者。
    """

    def __init__(
        self,
        invoker: BazelInvoker,
        workspace_root: str | Path,
        variant: AspectVariant,
        location: AspectLocation,
    ) -> None:
        self.invoker = invoker
        self.workspace_root = Path(workspace_root)
        self.variant = variant
        self.aspect_options = variant.build_options(location)

        self._lock = threading.RLock()
        self._current: dict[str, PackageInfo] = {}
        self._wildcards: dict[str, tuple[str, ...]] = {}
        self._last_good: dict[str, PackageInfo] = {}
        self._cache_hits = 0

    # ---- 查询 ----

    @property
    def cache_hits(self) -> int:
        """缓存命中次数（仅用于观测）"""
        with self._lock:
            return self._cache_hits

    def is_cached(self, target: str) -> bool:
        with self._lock:
            return canonical_label(target) in self._current

    def has_last_good(self, target: str) -> bool:
        with self._lock:
            return canonical_label(target) in self._last_good

    def wildcard_expansion(self, target: str) -> tuple[str, ...] | None:
        """通配目标上次展开的 literal 目标，未记录返回 None"""
        with self._lock:
            return self._wildcards.get(canonical_label(target))

    # ---- 解析 ----

    def resolve(
        self,
        targets: Iterable[str],
        progress: ProgressMonitor | None = None,
        *,
        project: str = "",
        caller: str = "",
    ) -> dict[str, PackageInfo]:
        """解析目标列表，返回 label -> PackageInfo（插入顺序即解析顺序）

        未 flush 之前不会重复计算已经算过的目标。
        """
        return self.resolve_with_report(
            targets, progress, project=project, caller=caller,
        ).infos

    def resolve_with_report(
        self,
        targets: Iterable[str],
        progress: ProgressMonitor | None = None,
        *,
        project: str = "",
        caller: str = "",
    ) -> AspectResolution:
        """同 resolve，额外返回命中 / 计算 / 降级 / 缺失的诊断信息

        bazel 无法启动或产物无法读取时抛 InvocationError，
        其 partial 字段携带本次调用中已解析出的记录；已写入缓存的成功结果不回滚。
        """
        monitor = progress or NullProgressMonitor()
        origin = _Origin(project, caller)
        report = AspectResolution()

        with self._lock:
            monitor.sub_task(TASK_LABEL)
            try:
                for target in targets:
                    # 取消只在两个目标之间生效，运行中的 bazel 进程不会被打断
                    if monitor.is_canceled():
                        raise OperationCanceledError(f"aspect 解析已取消 (剩余目标自 {target} 起)")
                    label = BazelLabel(target)
                    if label.is_wildcard:
                        self._resolve_wildcard(label.canonical, report, monitor, origin, set())
                    else:
                        self._resolve_literal(label.canonical, report, monitor, origin)
            except InvocationError as e:
                e.partial = dict(report.infos)
                raise

            monitor.worked(len(report.infos))

        if report.degraded:
            logger.warning("以下目标使用了上次成功的旧记录: %s%s", report.degraded, origin.tag)
        if report.missing:
            logger.warning("以下目标没有可用记录，已省略: %s%s", report.missing, origin.tag)
        return report

    # ---- 失效 ----

    def flush(self) -> None:
        """清空 current 与 wildcards（整个工作区的依赖图），last_good 保留"""
        with self._lock:
            self._current.clear()
            self._wildcards.clear()
        logger.info("aspect 缓存已清空")

    def flush_for(self, targets: Iterable[str]) -> None:
        """从 current 与 wildcards 中移除指定目标，不存在的目标直接忽略"""
        with self._lock:
            for target in targets:
                key = canonical_label(target)
                self._current.pop(key, None)
                self._wildcards.pop(key, None)

    # ---- 内部实现（调用方已持有锁） ----

    def _resolve_literal(
        self, target: str, report: AspectResolution,
        monitor: ProgressMonitor, origin: _Origin,
    ) -> None:
        info = self._current.get(target)
        if info is not None:
            origin.log(logging.INFO, "HIT", target)
            report.infos[target] = info
            report.hits.append(target)
            self._cache_hits += 1
        else:
            origin.log(logging.INFO, "MISS", target)
            computed = self._compute(target, origin)
            self._merge(report, computed)
            if target in computed:
                report.computed.append(target)
            elif target not in report.infos:
                self._fallback(target, report, origin)

        monitor.worked(len(report.infos))

    def _resolve_wildcard(
        self, target: str, report: AspectResolution,
        monitor: ProgressMonitor, origin: _Origin, visiting: set[str],
    ) -> None:
        if target in visiting:
            raise StructuralError(f"通配目标展开出现环: {target}")
        visiting.add(target)

        expansion = self._wildcards.get(target)
        if expansion is not None:
            # 已知该通配目标展开成哪些子目标，逐个按 literal 处理
            for sub in expansion:
                if BazelLabel(sub).is_wildcard:
                    self._resolve_wildcard(sub, report, monitor, origin, visiting)
                else:
                    self._resolve_literal(sub, report, monitor, origin)
            visiting.discard(target)
            return

        origin.log(logging.INFO, "MISS", target)
        computed = self._compute(target, origin)
        if computed:
            self._wildcards[target] = tuple(computed)
            self._merge(report, computed)
            report.computed.extend(computed)
        else:
            self._fallback_package(target, report, origin)
        visiting.discard(target)
        monitor.worked(len(report.infos))

    @staticmethod
    def _merge(report: AspectResolution, computed: dict[str, PackageInfo]) -> None:
        """新算出的记录覆盖本次结果中的同名条目，并撤销它先前的降级 / 缺失标记"""
        report.infos.update(computed)
        if report.degraded:
            report.degraded = [t for t in report.degraded if t not in computed]
        if report.missing:
            report.missing = [t for t in report.missing if t not in computed]

    def _fallback(self, target: str, report: AspectResolution, origin: _Origin) -> None:
        """bazel 没有产出该目标（通常是包内有编译错误），退回上次成功的记录"""
        info = self._last_good.get(target)
        if info is not None:
            origin.log(logging.WARNING, "STALE", target)
            report.infos[target] = info
            report.degraded.append(target)
        else:
            origin.log(logging.WARNING, "FAIL", target)
            report.missing.append(target)

    def _fallback_package(self, target: str, report: AspectResolution, origin: _Origin) -> None:
        """通配目标一条记录都没算出来时，退回同包内全部上次成功的记录（不记录展开集合）"""
        package = BazelLabel(target).package
        stale = {k: v for k, v in self._last_good.items() if v.package == package}
        if not stale:
            origin.log(logging.WARNING, "FAIL", target)
            report.missing.append(target)
            return
        origin.log(logging.WARNING, "STALE", target, f" -> {len(stale)} 条旧记录")
        for key, info in stale.items():
            report.infos[key] = info
            report.degraded.append(key)

    def _compute(self, target: str, origin: _Origin) -> dict[str, PackageInfo]:
        """对单个目标（或通配目标）运行 aspect，结果写入 current 与 last_good"""
        result = self.invoker.run(
            "build", [*self.aspect_options, target],
            str(self.workspace_root), self.variant.filter_line,
        )
        paths = [self._artifact_path(line) for line in result.lines]
        records = self.variant.load(paths)

        computed: dict[str, PackageInfo] = {}
        for info in records.values():
            key = canonical_label(info.label)
            origin.log(logging.INFO, "LOAD", key)
            self._current[key] = info
            self._last_good[key] = info
            computed[key] = info
        return computed

    def _artifact_path(self, line: str) -> Path:
        path = Path(line)
        return path if path.is_absolute() else self.workspace_root / path
