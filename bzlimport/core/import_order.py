"""导入顺序解析

把选中的 Bazel 包看作图节点: 包 P 的任一记录依赖了包 Q 的目标，则 P -> Q。
后序深度优先遍历得到 "依赖在前、依赖方在后" 的创建顺序，
工作区根包总是排第一（由构造保证，不参与图）。

无依赖关系的包之间保持调用方给出的选择顺序；存在环时抛 CyclicDependencyError，
不会死循环，也不会悄悄截断结果。纯计算，无 IO、无锁。
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Iterator, Mapping

from bzlimport.core.exceptions import CyclicDependencyError
from bzlimport.core.models import BazelPackageNode, PackageInfo, package_of

logger = logging.getLogger(__name__)


class _Mark(Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


def _unique_children(selected: Iterable[BazelPackageNode]) -> list[BazelPackageNode]:
    """去重并去掉工作区根节点，保持原顺序"""
    seen: set[str] = set()
    nodes: list[BazelPackageNode] = []
    for node in selected:
        if node.is_workspace_root or node.name in seen:
            continue
        seen.add(node.name)
        nodes.append(node)
    return nodes


class ImportOrderResolver:
    """按依赖关系计算包的导入顺序"""

    @staticmethod
    def dependency_graph(
        selected: Iterable[BazelPackageNode],
        infos: Mapping[str, PackageInfo],
    ) -> dict[str, list[str]]:
        """包名 -> 它依赖的选中包名列表（按选择顺序排列）

        选择范围之外的依赖与包内自依赖被忽略。
        """
        names = [n.name for n in _unique_children(selected)]
        position = {name: i for i, name in enumerate(names)}
        graph: dict[str, list[str]] = {name: [] for name in names}

        for info in infos.values():
            owner = info.package
            if owner not in graph:
                continue
            for dep in info.dependencies:
                dep_package = package_of(dep)
                if dep_package == owner or dep_package not in graph:
                    continue
                if dep_package not in graph[owner]:
                    graph[owner].append(dep_package)

        for deps in graph.values():
            deps.sort(key=position.__getitem__)
        return graph

    def order(
        self,
        root: BazelPackageNode,
        selected: Iterable[BazelPackageNode],
        infos: Mapping[str, PackageInfo],
    ) -> list[BazelPackageNode]:
        """返回导入顺序，第一个元素总是工作区根包"""
        nodes = _unique_children(selected)
        by_name = {n.name: n for n in nodes}
        graph = self.dependency_graph(nodes, infos)

        ordered = [root]
        marks = dict.fromkeys(by_name, _Mark.UNVISITED)
        for start in by_name:
            if marks[start] is _Mark.UNVISITED:
                ordered.extend(by_name[name] for name in self._post_order(start, graph, marks))

        logger.info("导入顺序: %s", [n.name for n in ordered])
        return ordered

    @staticmethod
    def _post_order(
        start: str,
        graph: Mapping[str, list[str]],
        marks: dict[str, _Mark],
    ) -> Iterator[str]:
        """从 start 出发的迭代式后序遍历（显式栈，不受递归深度限制）"""
        marks[start] = _Mark.IN_PROGRESS
        stack: list[tuple[str, Iterator[str]]] = [(start, iter(graph[start]))]
        while stack:
            name, deps = stack[-1]
            for dep in deps:
                mark = marks[dep]
                if mark is _Mark.IN_PROGRESS:
                    path = [n for n, _ in stack]
                    raise CyclicDependencyError(path[path.index(dep):] + [dep])
                if mark is _Mark.UNVISITED:
                    marks[dep] = _Mark.IN_PROGRESS
                    stack.append((dep, iter(graph[dep])))
                    break
            else:
                stack.pop()
                marks[name] = _Mark.DONE
                yield name
