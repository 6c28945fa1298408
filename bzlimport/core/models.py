"""核心数据模型

标签、aspect 解析记录、包树节点与导入结果集中定义，
cache / import_order / import_service 统一从此处导入。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from bzlimport.core.exceptions import ValidationError

# 表示 "包内全部目标" 的名字
WILDCARD_NAMES = frozenset({"*", "all", "all-targets"})

ROOT_PACKAGE = "//"


# =========================================================================
# Bazel 标签
# =========================================================================


@dataclass(frozen=True)
class BazelLabel:
    """Bazel 标签，如 //a/b:c、//a/b、//a/b:*、@repo//x:y

    literal 标签对应唯一一个包内目标，wildcard 标签展开为包内全部目标。
    """

    label: str

    def __post_init__(self) -> None:
        text = self.label.strip()
        if not text:
            raise ValidationError("标签不能为空")
        if text.startswith("@//"):
            text = text[1:]
        if "//" not in text or (not text.startswith("//") and not text.startswith("@")):
            raise ValidationError(f"非法标签: {self.label!r}")
        object.__setattr__(self, "label", text)

    @property
    def repository(self) -> str:
        """外部仓库前缀（@repo），主仓库为空串"""
        return self.label.split("//", 1)[0]

    @property
    def _body(self) -> str:
        return self.label.split("//", 1)[1]

    @property
    def package_path(self) -> str:
        """包的相对路径，如 a/b"""
        return self._body.split(":", 1)[0]

    @property
    def package(self) -> str:
        """包标签，如 //a/b"""
        return f"{self.repository}//{self.package_path}"

    @property
    def is_package_default(self) -> bool:
        """未写 :name 的简写形式"""
        return ":" not in self._body

    @property
    def target_name(self) -> str:
        if self.is_package_default:
            return self.package_path.rsplit("/", 1)[-1]
        return self._body.split(":", 1)[1]

    @property
    def is_wildcard(self) -> bool:
        """展开为多个目标的模式: //a:*、//a:all、//a/..."""
        if self.is_recursive:
            return True
        return not self.is_package_default and self.target_name in WILDCARD_NAMES

    def to_wildcard(self) -> BazelLabel:
        """//a/b -> //a/b:*"""
        return BazelLabel(f"{self.package}:*")

    @property
    def is_recursive(self) -> bool:
        """//a/... 形式的递归模式"""
        return self.package_path == "..." or self.package_path.endswith("/...")

    @property
    def canonical(self) -> str:
        """//a/b 与 //a/b:b 指同一目标，统一为后者；递归模式原样保留"""
        if self.is_package_default and self.package_path and not self.is_recursive:
            return f"{self.package}:{self.target_name}"
        return self.label

    def __str__(self) -> str:
        return self.label


def canonical_label(label: str) -> str:
    """缓存键使用的规范化标签；无法解析的标签只去掉首尾空白"""
    try:
        return BazelLabel(label).canonical
    except ValidationError:
        return label.strip()


def package_of(label: str) -> str:
    """目标所属包的标签；无法解析的标签原样返回"""
    try:
        return BazelLabel(label).package
    except ValidationError:
        return label


def is_wildcard(label: str) -> bool:
    return BazelLabel(label).is_wildcard


# =========================================================================
# aspect 解析记录
# =========================================================================


@dataclass(frozen=True)
class PackageInfo:
    """单个 literal 目标的 aspect 解析结果（只读，替换即插入新记录）"""

    label: str
    sources: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    generated_sources: tuple[str, ...] = ()
    kind: str = ""
    build_file: str = ""

    @property
    def package(self) -> str:
        return package_of(self.label)


@dataclass
class AspectResolution:
    """一次 resolve 调用的结果与诊断信息

    infos 的插入顺序即解析顺序；degraded 为使用了 last-known-good
    旧记录的目标，missing 为既没算出来也没有旧记录、被省略的目标。
    """

    infos: dict[str, PackageInfo] = field(default_factory=dict)
    hits: list[str] = field(default_factory=list)
    computed: list[str] = field(default_factory=list)
    degraded: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.degraded and not self.missing


# =========================================================================
# 包树
# =========================================================================


@dataclass(eq=False)
class BazelPackageNode:
    """工作区中可发现的一个 Bazel 包（根节点代表整个工作区）"""

    name: str                      # //a/b；工作区根为 "//"
    workspace_root: Path
    relative_path: str = ""        # 相对工作区根的路径；根为 ""
    children: list[BazelPackageNode] = field(default_factory=list)

    @property
    def is_workspace_root(self) -> bool:
        return self.relative_path == ""

    @property
    def directory(self) -> Path:
        return self.workspace_root / self.relative_path

    @property
    def last_segment(self) -> str:
        if self.is_workspace_root:
            return self.workspace_root.name
        return self.relative_path.rsplit("/", 1)[-1]

    def walk(self) -> Iterator[BazelPackageNode]:
        """先序遍历自身及全部子孙节点"""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, name: str) -> BazelPackageNode | None:
        return next((n for n in self.walk() if n.name == name), None)

    def __repr__(self) -> str:
        return f"BazelPackageNode({self.name!r})"


# =========================================================================
# 导入结果
# =========================================================================


@dataclass
class ImportedProject:
    """为一个 Bazel 包创建出的 IDE 工程"""

    name: str
    package: str
    package_path: str = ""
    source_paths: list[str] = field(default_factory=list)
    generated_sources: list[str] = field(default_factory=list)
    targets: list[str] = field(default_factory=list)
    references: list[str] = field(default_factory=list)  # 被引用工程名
    is_workspace_root: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "package": self.package,
            "package_path": self.package_path,
            "source_paths": list(self.source_paths),
            "generated_sources": list(self.generated_sources),
            "targets": list(self.targets),
            "references": list(self.references),
            "is_workspace_root": self.is_workspace_root,
        }
