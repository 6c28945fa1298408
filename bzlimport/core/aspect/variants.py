"""aspect 变体（策略对象）

两种 aspect 的差异只在构建参数、产物行标记/后缀与后处理上，
记录结构相同。变体在会话创建时由配置一次选定，之后作为显式的值传递。

    ============  ============================  ============================
                  legacy (bef)                  modern (intellij)
    ============  ============================  ============================
    构建参数      override_repository +          override_repository +
                  专用 aspect + -k + json 输出组  通用 aspect + 关闭 validations
    产物行        >>>...bzleclipse-build.json    >>>...intellij-info.txt
    后处理        无（直接读 JSON）              进程内文本转换，失败丢弃
    ============  ============================  ============================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from bzlimport.core.aspect.parser import (
    BEF_SUFFIX,
    INTELLIJ_SUFFIX,
    load_ide_info_files,
    load_json_files,
)
from bzlimport.core.exceptions import ConfigError
from bzlimport.core.models import PackageInfo

logger = logging.getLogger(__name__)

ARTIFACT_MARKER = ">>>"

Loader = Callable[[Iterable[Path]], "dict[str, PackageInfo]"]


@dataclass(frozen=True)
class AspectLocation:
    """aspect 规则所在位置"""

    directory: str
    label: str = ""


def _bef_options(location: AspectLocation) -> list[str]:
    return [
        f"--override_repository=local_eclipse_aspect={location.directory}",
        f"--aspects=@local_eclipse_aspect{location.label}",
        "-k",
        "--output_groups=json-files,classpath-jars,-_,-defaults",
        "--experimental_show_artifacts",
    ]


def _intellij_options(location: AspectLocation) -> list[str]:
    return [
        "--nobuild_event_binary_file_path_conversion",
        "--noexperimental_run_validations",
        "--aspects=@intellij_aspect//:intellij_info_bundled.bzl%intellij_info_aspect",
        f"--override_repository=intellij_aspect={location.directory}",
        "--output_groups=intellij-info-generic,intellij-info-java-direct-deps,"
        "intellij-resolve-java-direct-deps",
        "--experimental_show_artifacts",
    ]


@dataclass(frozen=True)
class AspectVariant:
    """aspect 变体策略"""

    name: str
    artifact_suffix: str
    options: Callable[[AspectLocation], list[str]]
    loader: Loader

    def build_options(self, location: AspectLocation) -> list[str]:
        """追加在 `bazel build` 之后、目标之前的参数"""
        return self.options(location)

    def filter_line(self, line: str) -> str | None:
        """保留以 >>> 开头、以产物后缀结尾的行并去掉标记，其余丢弃"""
        text = line.strip()
        if not text.startswith(ARTIFACT_MARKER) or not text.endswith(self.artifact_suffix):
            return None
        return text[len(ARTIFACT_MARKER):].strip()

    def load(self, paths: Iterable[Path]) -> dict[str, PackageInfo]:
        return self.loader(list(paths))


LEGACY = AspectVariant(
    name="bef", artifact_suffix=BEF_SUFFIX,
    options=_bef_options, loader=load_json_files,
)

MODERN = AspectVariant(
    name="intellij", artifact_suffix=INTELLIJ_SUFFIX,
    options=_intellij_options, loader=load_ide_info_files,
)

_VARIANTS = {v.name: v for v in (LEGACY, MODERN)}


def get_variant(name: str) -> AspectVariant:
    """按配置值选择变体（大小写、首尾空白不敏感；空值为 modern）"""
    key = (name or "").strip().lower() or MODERN.name
    variant = _VARIANTS.get(key)
    if variant is None:
        raise ConfigError(f"未知的 aspect 变体: {name!r}，可选: {sorted(_VARIANTS)}")
    return variant
