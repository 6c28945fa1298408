"""aspect 元信息模块

拆分说明:
- invoker.py: bazel 调用边界
- parser.py: aspect 产物解析（JSON / intellij 文本格式）
- variants.py: 新旧两种 aspect 的策略对象
- cache.py: 三级缓存与降级兜底
"""

from bzlimport.core.aspect.cache import AspectCacheManager
from bzlimport.core.aspect.invoker import BazelInvoker, InvocationResult
from bzlimport.core.aspect.variants import (
    LEGACY,
    MODERN,
    AspectLocation,
    AspectVariant,
    get_variant,
)

__all__ = [
    "AspectCacheManager",
    "AspectLocation",
    "AspectVariant",
    "BazelInvoker",
    "InvocationResult",
    "LEGACY",
    "MODERN",
    "get_variant",
]
