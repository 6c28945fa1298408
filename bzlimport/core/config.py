"""集中配置管理

支持从 YAML 文件加载 + 编程式覆盖。一个 Config 对应一次导入会话使用的
bazel 可执行文件、aspect 变体与源码目录约定。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any

from bzlimport.core.exceptions import ConfigError
from bzlimport.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

ASPECT_VERSIONS = ("intellij", "bef")


@dataclass
class Config:
    """工具全局配置"""

    # bazel
    bazel_executable: str = "bazel"
    command_timeout: int | None = None  # 秒，None 表示不限

    # aspect
    aspect_version: str = "intellij"   # "intellij"（新版）或 "bef"（旧版）
    aspect_dir: str = "aspect"         # aspect 规则所在目录，作为 override_repository
    aspect_label: str = "//:bzleclipse_aspect.bzl%bzleclipse_aspect"

    # 包内源码目录约定（相对包目录）
    src_path: str = "src/main/java"
    test_path: str = "src/test/java"

    # 日志
    log_level: str = "INFO"

    # 放不到字段里的配置项
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = "bzlimport.yml") -> Config:
        """从 YAML 文件加载配置，文件不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f for f in cls.__dataclass_fields__ if f != "extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        cfg.validate()
        return cfg

    def validate(self) -> None:
        if self.aspect_version.strip().lower() not in ASPECT_VERSIONS:
            raise ConfigError(
                f"未知的 aspect_version: {self.aspect_version!r}，可选: {list(ASPECT_VERSIONS)}"
            )
        if not self.bazel_executable.strip():
            raise ConfigError("bazel_executable 不能为空")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "bzlimport.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
