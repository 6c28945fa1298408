"""内存工程工厂

ProjectFactory 的默认实现: 不绑定任何 IDE，只把要创建的工程记录下来，
供 CLI 输出导入清单、供测试断言引用关系。
"""

from __future__ import annotations

import logging

from bzlimport.core.exceptions import ValidationError
from bzlimport.core.models import BazelPackageNode, ImportedProject

logger = logging.getLogger(__name__)


class RecordingProjectFactory:
    """按创建顺序记录工程"""

    def __init__(self) -> None:
        self.projects: dict[str, ImportedProject] = {}

    def create_project(
        self,
        name: str,
        package: BazelPackageNode,
        *,
        source_paths: list[str],
        generated_sources: list[str],
        targets: list[str],
        references: list[str],
    ) -> ImportedProject | None:
        existing = self.projects.get(name)
        if existing is not None:
            logger.error("工程 [%s] 已存在，不再重复初始化", name)
            return existing

        if not package.is_workspace_root:
            prefix = package.relative_path + "/"
            outside = [p for p in source_paths if not p.startswith(prefix)]
            if outside:
                raise ValidationError(
                    f"源码目录应位于包目录 {package.relative_path} 之下", details=outside,
                )

        unknown = [r for r in references if r not in self.projects]
        if unknown:
            logger.warning("工程 [%s] 引用了尚未创建的工程: %s", name, unknown)

        project = ImportedProject(
            name=name,
            package=package.name,
            package_path=package.relative_path,
            source_paths=list(source_paths),
            generated_sources=list(generated_sources),
            targets=list(targets),
            references=list(references),
            is_workspace_root=package.is_workspace_root,
        )
        self.projects[name] = project
        logger.info("工程已创建: %s (refs=%s)", name, references)
        return project

    def get(self, name: str) -> ImportedProject | None:
        return self.projects.get(name)
