"""aspect 产物解析

把 aspect 输出文件转换为 PackageInfo 记录，两种格式:
- 旧版 bef aspect: *.bzleclipse-build.json，直接可读
- 新版 intellij aspect: *.intellij-info.txt（protobuf 文本格式），
  在进程内转换为记录，替代原来调用外部脚本的后处理

JSON 读取失败视为本次调用的 IO 失败（抛 InvocationError）；
intellij 文本转换失败只丢弃该文件（返回 None）。
"""

from __future__ import annotations

import json
import logging
import posixpath
import re
from pathlib import Path
from typing import Any, Iterable

from bzlimport.core.exceptions import InvocationError
from bzlimport.core.models import PackageInfo

logger = logging.getLogger(__name__)

BEF_SUFFIX = ".bzleclipse-build.json"
INTELLIJ_SUFFIX = ".intellij-info.txt"


# =========================================================================
# 旧版 JSON
# =========================================================================


def _str_list(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def record_from_json(data: dict[str, Any]) -> PackageInfo:
    """bef aspect JSON 对象 -> PackageInfo"""
    if not isinstance(data, dict):
        raise ValueError(f"aspect JSON 顶层应为对象，实际为 {type(data).__name__}")
    label = data.get("label")
    if not label:
        raise ValueError("aspect JSON 缺少 label 字段")
    build_file = data.get("build_file_artifact_location", "")
    if isinstance(build_file, dict):
        build_file = build_file.get("relative_path", "")
    return PackageInfo(
        label=str(label),
        sources=_str_list(data.get("sources")),
        dependencies=_str_list(data.get("dependencies")),
        generated_sources=_str_list(data.get("generated_sources")),
        kind=str(data.get("kind", "")),
        build_file=str(build_file or ""),
    )


def load_json_files(paths: Iterable[Path]) -> dict[str, PackageInfo]:
    """批量读取 bef aspect JSON 文件，按 label 建索引（保持文件顺序）"""
    records: dict[str, PackageInfo] = {}
    for path in paths:
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
            info = record_from_json(data)
        except (OSError, ValueError) as e:
            raise InvocationError(f"读取 aspect 产物失败: {path}: {e}") from e
        records[info.label] = info
    return records


# =========================================================================
# 新版 intellij-info.txt（protobuf 文本格式）
# =========================================================================

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+|\#[^\n]*)
    |(?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
    |(?P<punct>[{}:<>\[\],;])
    |(?P<word>[^\s{}:<>\[\],;"'#]+)
    """,
    re.VERBOSE,
)

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "'": "'", "\\": "\\"}

TextMessage = dict[str, list[Any]]


def _unquote(token: str) -> str:
    body = token[1:-1]
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)


def _tokenize(text: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    pos = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if m is None:
            raise ValueError(f"无法识别的字符 (offset {pos}): {text[pos:pos + 20]!r}")
        pos = m.end()
        kind = m.lastgroup
        if kind == "ws":
            continue
        tokens.append((kind or "", m.group()))
    return tokens


def parse_text_message(text: str) -> TextMessage:
    """解析 protobuf 文本格式，字段统一为列表（repeated 与 singular 同构）

        key { label: "//a:b" }       -> {"key": [{"label": ["//a:b"]}]}
    """
    tokens = _tokenize(text)
    pos = 0

    def parse_message(closing: str | None) -> TextMessage:
        nonlocal pos
        msg: TextMessage = {}
        while pos < len(tokens):
            kind, value = tokens[pos]
            if kind == "punct" and value == closing:
                pos += 1
                return msg
            if kind == "punct" and value in ",;":
                pos += 1
                continue
            if kind != "word":
                raise ValueError(f"期望字段名，实际为 {value!r}")
            name = value
            pos += 1
            if pos < len(tokens) and tokens[pos] == ("punct", ":"):
                pos += 1
            if pos >= len(tokens):
                raise ValueError(f"字段 {name} 缺少值")
            kind, value = tokens[pos]
            if kind == "punct" and value in "{<":
                pos += 1
                item: Any = parse_message("}" if value == "{" else ">")
            elif kind == "string":
                pos += 1
                item = _unquote(value)
                # 相邻字符串字面量拼接
                while pos < len(tokens) and tokens[pos][0] == "string":
                    item += _unquote(tokens[pos][1])
                    pos += 1
            elif kind == "word":
                pos += 1
                item = value
            else:
                raise ValueError(f"字段 {name} 的值非法: {value!r}")
            msg.setdefault(name, []).append(item)
        if closing is not None:
            raise ValueError(f"缺少闭合的 {closing!r}")
        return msg

    return parse_message(None)


def _first(msg: TextMessage, *path: str) -> Any:
    """沿字段路径取第一个值，任一层缺失返回 None"""
    node: Any = msg
    for name in path:
        if not isinstance(node, dict) or not node.get(name):
            return None
        node = node[name][0]
    return node


def _text(msg: TextMessage, *path: str) -> str:
    """取标量字段，缺失为空串；取到子消息说明文件结构不对"""
    value = _first(msg, *path)
    if value is None:
        return ""
    if isinstance(value, dict):
        raise ValueError(f"字段 {'.'.join(path)} 应为标量")
    return value


def _messages(msg: TextMessage, name: str) -> list[TextMessage]:
    """取 repeated 子消息字段，出现标量值说明文件结构不对"""
    values = msg.get(name, [])
    if not all(isinstance(v, dict) for v in values):
        raise ValueError(f"字段 {name} 应为消息")
    return values


def record_from_ide_info(msg: TextMessage) -> PackageInfo:
    """intellij TargetIdeInfo 文本消息 -> PackageInfo

    结构不符（该是消息的地方是标量，或反之）抛 ValueError。
    """
    label = _text(msg, "key", "label")
    if not label:
        raise ValueError("intellij-info 缺少 key.label")

    dependencies = []
    for dep in _messages(msg, "dependencies"):
        dep_label = _text(dep, "target", "label")
        if dep_label and dep_label not in dependencies:
            dependencies.append(dep_label)

    sources: list[str] = []
    generated: list[str] = []
    for java_info in _messages(msg, "java_ide_info")[:1]:
        for artifact in _messages(java_info, "sources"):
            relative = _text(artifact, "relative_path")
            if not relative:
                continue
            if _text(artifact, "is_source") == "false":
                root = _text(artifact, "root_execution_path_fragment")
                directory = posixpath.dirname(posixpath.join(root, relative))
                if directory and directory not in generated:
                    generated.append(directory)
            else:
                sources.append(relative)

    return PackageInfo(
        label=label,
        sources=tuple(sources),
        dependencies=tuple(dependencies),
        generated_sources=tuple(generated),
        kind=_text(msg, "kind_string"),
        build_file=_text(msg, "build_file_artifact_location", "relative_path"),
    )


def transform_ide_info(path: Path) -> PackageInfo | None:
    """转换单个 intellij-info.txt；失败返回 None 并记日志（该文件被丢弃）"""
    try:
        text = Path(path).read_text(encoding="utf-8")
        return record_from_ide_info(parse_text_message(text))
    except (OSError, ValueError) as e:
        logger.warning("intellij-info 转换失败，已跳过: %s: %s", path, e)
        return None


def load_ide_info_files(paths: Iterable[Path]) -> dict[str, PackageInfo]:
    """批量转换 intellij-info.txt，转换失败的文件被丢弃"""
    records: dict[str, PackageInfo] = {}
    for path in paths:
        info = transform_ide_info(path)
        if info is not None:
            records[info.label] = info
    return records
