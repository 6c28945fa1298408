"""统一异常体系

所有业务异常继承 BzlImportError。
CLI 层据此输出友好提示，单个目标的瞬时失败不走异常（只记日志）。
"""

from __future__ import annotations

from typing import Any


class BzlImportError(Exception):
    """工具基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(BzlImportError):
    """配置缺失或内容无效（如 bazel 可执行文件未配置）"""

    code = "CONFIG_ERROR"


class ValidationError(BzlImportError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class InvocationError(BzlImportError):
    """外部构建工具无法启动，或读取其产物时发生 IO 错误

    partial 保存本次 resolve 调用中已经解析完成的记录，
    调用方可以选择继续使用这些结果。
    """

    code = "INVOCATION_ERROR"

    def __init__(self, message: str, partial: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.partial: dict[str, Any] = dict(partial or {})


class StructuralError(BzlImportError):
    """依赖结构非法，无法得出合法顺序"""

    code = "STRUCTURAL_ERROR"


class CyclicDependencyError(StructuralError):
    """包之间存在循环依赖"""

    code = "CYCLIC_DEPENDENCY"

    def __init__(self, cycle: list[str]) -> None:
        super().__init__("检测到循环依赖: " + " -> ".join(cycle))
        self.cycle = cycle


class ImportFailedError(BzlImportError):
    """工程创建失败，本次导入中止"""

    code = "IMPORT_FAILED"


class OperationCanceledError(BzlImportError):
    """用户通过进度监视器取消了操作"""

    code = "CANCELED"
