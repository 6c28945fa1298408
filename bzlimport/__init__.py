"""bzlimport - Bazel 工作区导入工具

通过 Bazel aspect 获取各目标的构建元信息并缓存，
按依赖顺序把 Bazel 包导入为 IDE 工程。
"""

__version__ = "0.3.0"
