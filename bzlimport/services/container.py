"""服务容器: 一个容器对应一次工作区导入会话

同一容器内的实例共享状态: aspect 缓存的生命周期就是容器的生命周期，
以引用传递给导入编排，不存在隐藏的全局缓存。

依赖关系图（→ 表示依赖）:
  importer → aspects → invoker
  importer → projects

用法:
    container = ServiceContainer("/path/to/workspace")
    root = container.scanner.scan(container.workspace_root)
    projects = container.importer.import_workspace(root, root.children)

    # 测试中注入假的进程执行器
    container = ServiceContainer(ws, executor=FakeBazel(...))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bzlimport.core.aspect.cache import AspectCacheManager
    from bzlimport.core.aspect.invoker import BazelInvoker
    from bzlimport.core.package_tree import PackageScanner
    from bzlimport.services.import_service import WorkspaceImporter
    from bzlimport.services.project_factory import RecordingProjectFactory
    from bzlimport.utils.shell import CommandExecutor

from bzlimport.core.config import Config, get_config

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(
        self,
        workspace_root: str | Path,
        config: Config | None = None,
        executor: CommandExecutor | None = None,
    ) -> None:
        self.workspace_root = Path(workspace_root).resolve()
        self._config = config or get_config()
        self._executor = executor
        self._instances: dict[str, object] = {}

    @property
    def config(self) -> Config:
        return self._config

    @property
    def scanner(self) -> PackageScanner:
        if "scanner" not in self._instances:
            from bzlimport.core.package_tree import PackageScanner
            self._instances["scanner"] = PackageScanner()
        return self._instances["scanner"]  # type: ignore[return-value]

    @property
    def invoker(self) -> BazelInvoker:
        if "invoker" not in self._instances:
            from bzlimport.core.aspect.invoker import BazelInvoker
            self._instances["invoker"] = BazelInvoker(
                self._config.bazel_executable,
                executor=self._executor,
                timeout=self._config.command_timeout,
            )
        return self._instances["invoker"]  # type: ignore[return-value]

    @property
    def aspects(self) -> AspectCacheManager:
        if "aspects" not in self._instances:
            from bzlimport.core.aspect.cache import AspectCacheManager
            from bzlimport.core.aspect.variants import AspectLocation, get_variant
            variant = get_variant(self._config.aspect_version)
            aspect_dir = Path(self._config.aspect_dir)
            if not aspect_dir.is_absolute():
                aspect_dir = self.workspace_root / aspect_dir
            self._instances["aspects"] = AspectCacheManager(
                self.invoker, self.workspace_root, variant,
                AspectLocation(str(aspect_dir), self._config.aspect_label),
            )
            logger.info("aspect 变体: %s", variant.name)
        return self._instances["aspects"]  # type: ignore[return-value]

    @property
    def projects(self) -> RecordingProjectFactory:
        if "projects" not in self._instances:
            from bzlimport.services.project_factory import RecordingProjectFactory
            self._instances["projects"] = RecordingProjectFactory()
        return self._instances["projects"]  # type: ignore[return-value]

    @property
    def importer(self) -> WorkspaceImporter:
        if "importer" not in self._instances:
            from bzlimport.services.import_service import WorkspaceImporter
            self._instances["importer"] = WorkspaceImporter(
                self.aspects, self.projects, self._config,
            )
        return self._instances["importer"]  # type: ignore[return-value]
