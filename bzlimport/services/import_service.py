"""工作区导入编排

流程:
1. 创建工作区根工程（容器工程，总是第一个）
2. 计算每个选中包的源码目录与 bazel 目标
3. 通过 AspectCacheManager 获取全部目标的 aspect 记录
4. ImportOrderResolver 计算依赖优先的创建顺序
5. 按顺序为每个包创建工程，并带上它所依赖的工程引用

aspect 调用失败与循环依赖会中止本次导入，已创建的工程保持不动。
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from bzlimport.core.aspect.cache import AspectCacheManager
from bzlimport.core.config import Config, get_config
from bzlimport.core.exceptions import (
    ImportFailedError,
    OperationCanceledError,
    ValidationError,
)
from bzlimport.core.import_order import ImportOrderResolver
from bzlimport.core.models import BazelLabel, BazelPackageNode, ImportedProject, PackageInfo
from bzlimport.core.progress import NullProgressMonitor, ProgressMonitor
from bzlimport.core.protocols import ProjectFactory

logger = logging.getLogger(__name__)

WORKSPACE_PROJECT_BASENAME = "Bazel Workspace"

# 目录名长度达到该值才拼进根工程名
MIN_NAME_LENGTH = 3


def workspace_project_name(workspace_root: Path) -> str:
    """根工程名，如 "Bazel Workspace (bazel-demo)" """
    dirname = Path(workspace_root).name
    if len(dirname) >= MIN_NAME_LENGTH:
        return f"{WORKSPACE_PROJECT_BASENAME} ({dirname})"
    return WORKSPACE_PROJECT_BASENAME


@dataclass
class PackageLayout:
    """一个包的源码目录（相对工作区根）与对应的 bazel 目标"""

    source_paths: list[str] = field(default_factory=list)
    targets: list[str] = field(default_factory=list)


class WorkspaceImporter:
    """把选中的 Bazel 包导入为工程"""

    def __init__(
        self,
        aspects: AspectCacheManager,
        project_factory: ProjectFactory,
        config: Config | None = None,
        resolver: ImportOrderResolver | None = None,
    ) -> None:
        self.aspects = aspects
        self.project_factory = project_factory
        self.config = config or get_config()
        self.resolver = resolver or ImportOrderResolver()
        self._in_progress = threading.Event()

    @property
    def import_in_progress(self) -> bool:
        """正处于导入引导阶段（其他组件据此推迟自身的初始化）"""
        return self._in_progress.is_set()

    def compute_layout(self, package: BazelPackageNode) -> PackageLayout:
        """查找包内的主代码 / 测试代码目录，并确定该包的构建目标

        //foo 这样的包默认标签会换成 //foo:*，以覆盖 BUILD 文件中的全部目标。
        """
        layout = PackageLayout()
        for rel in (self.config.src_path, self.config.test_path):
            rel = rel.strip("/")
            if rel and (package.directory / rel).is_dir():
                layout.source_paths.append(f"{package.relative_path}/{rel}")

        if not layout.source_paths:
            raise ValidationError(f"找不到包的源码目录: {package.name}")

        label = BazelLabel(package.name)
        if label.is_package_default:
            label = label.to_wildcard()
        layout.targets.append(label.label)
        return layout

    def import_workspace(
        self,
        root: BazelPackageNode,
        selected: Iterable[BazelPackageNode],
        progress: ProgressMonitor | None = None,
    ) -> list[ImportedProject]:
        """导入工作区，返回创建的工程列表；第一个元素总是工作区根工程"""
        monitor = progress or NullProgressMonitor()
        packages = [p for p in selected if not p.is_workspace_root]
        root_name = workspace_project_name(root.workspace_root)

        self._in_progress.set()
        try:
            logger.info("开始导入 [%s]，共 %d 个包，可能需要一些时间", root_name, len(packages))
            root_project = self.project_factory.create_project(
                root_name, root,
                source_paths=[], generated_sources=[], targets=[], references=[],
            )
            if root_project is None:
                raise ImportFailedError("无法创建工作区根工程，详见前面的日志")
            imported = [root_project]

            monitor.sub_task("Getting the Aspect Information for targets")
            layouts = {p.name: self.compute_layout(p) for p in packages}
            targets = [t for layout in layouts.values() for t in layout.targets]
            infos = self.aspects.resolve(
                targets, monitor, project=root_name, caller="import_workspace",
            )

            ordered = self.resolver.order(root, packages, infos)
            graph = self.resolver.dependency_graph(packages, infos)
            names = {p.name: p.last_segment for p in packages}

            monitor.sub_task("Importing bazel packages")
            for package in ordered:
                if package.is_workspace_root:
                    continue
                if monitor.is_canceled():
                    raise OperationCanceledError(f"导入已取消，停在 {package.name}")
                monitor.sub_task(f"Importing {package.name}")
                layout = layouts[package.name]
                project = self.project_factory.create_project(
                    names[package.name], package,
                    source_paths=layout.source_paths,
                    generated_sources=self._generated_sources(package, infos),
                    targets=layout.targets,
                    references=[names[dep] for dep in graph[package.name]],
                )
                if project is not None:
                    imported.append(project)
                else:
                    logger.warning("包 %s 的工程创建失败，已跳过", package.name)
                monitor.worked(1)

            logger.info("导入完成 [%s]: %d 个工程", root_name, len(imported))
            return imported
        finally:
            self._in_progress.clear()

    @staticmethod
    def _generated_sources(
        package: BazelPackageNode, infos: dict[str, PackageInfo],
    ) -> list[str]:
        generated: list[str] = []
        for info in infos.values():
            if info.package != package.name:
                continue
            for path in info.generated_sources:
                if path not in generated:
                    generated.append(path)
        return generated
