"""领域协议定义

导入编排只依赖抽象: IDE 工程的真正创建（nature、classpath 容器、
文件链接、偏好存储）由宿主环境实现 ProjectFactory 完成。
"""

from __future__ import annotations

from typing import Protocol

from bzlimport.core.models import BazelPackageNode, ImportedProject


class ProjectFactory(Protocol):
    """IDE 工程工厂协议"""

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
        """为一个 Bazel 包创建工程，失败返回 None（已记录日志）"""
        ...
