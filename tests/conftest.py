"""测试共享 fixture: 假的 bazel 执行器

FakeBazel 实现 CommandExecutor 协议: 按命令行最后一个参数（目标）
返回预先登记的 aspect 产物，并把产物文件写到临时目录，
模拟 `bazel build --experimental_show_artifacts` 在 stderr 打印的 >>> 行。
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from bzlimport.core.aspect.cache import AspectCacheManager
from bzlimport.core.aspect.invoker import BazelInvoker
from bzlimport.core.aspect.parser import BEF_SUFFIX
from bzlimport.core.aspect.variants import LEGACY, AspectLocation
from bzlimport.utils.shell import CommandResult


def record(label: str, deps: tuple[str, ...] = (), sources: tuple[str, ...] = (), **extra: Any) -> dict:
    """构造一条 bef aspect JSON 记录"""
    pkg = label.split(":")[0].lstrip("/")
    data = {
        "label": label,
        "kind": "java_library",
        "dependencies": list(deps),
        "sources": list(sources) or [f"{pkg}/src/main/java/Main.java"],
        "build_file_artifact_location": f"{pkg}/BUILD",
    }
    data.update(extra)
    return data


class FakeBazel:
    """假的 bazel: target -> 产物记录列表"""

    def __init__(self, out_dir: Path) -> None:
        self.out_dir = out_dir
        self.outputs: dict[str, list[dict]] = {}
        self.calls: list[list[str]] = []
        self.error: Exception | None = None

    def add(self, target: str, *records: dict) -> None:
        self.outputs.setdefault(target, []).extend(records)

    def fail(self, target: str) -> None:
        """模拟该目标所在包编译失败: 不再产出任何记录"""
        self.outputs[target] = []

    def targets_built(self) -> list[str]:
        return [c[-1] for c in self.calls]

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        self.calls.append(list(cmd))
        if self.error is not None:
            raise self.error
        target = cmd[-1]
        records = self.outputs.get(target, [])
        lines = ["INFO: Analyzed target " + target, "Aspect produced the following output:"]
        for rec in records:
            name = rec["label"].strip("/").replace(":", "/").replace("*", "all")
            path = self.out_dir / (name + BEF_SUFFIX)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(rec), encoding="utf-8")
            lines.append(f">>>{path}")
            lines.append(f">>>{path.with_suffix('.jar')}")
        returncode = 0 if records else 1
        return CommandResult(returncode=returncode, stdout="", stderr="\n".join(lines))


@pytest.fixture()
def fake_bazel(tmp_path: Path) -> FakeBazel:
    return FakeBazel(tmp_path / "bazel-out")


@pytest.fixture()
def manager(fake_bazel: FakeBazel, tmp_path: Path) -> AspectCacheManager:
    invoker = BazelInvoker("bazel", executor=fake_bazel)
    return AspectCacheManager(
        invoker, tmp_path, LEGACY,
        AspectLocation(str(tmp_path / "aspect"), "//:bzleclipse_aspect.bzl%bzleclipse_aspect"),
    )


@pytest.fixture()
def rec():
    """记录工厂: rec("//a:a", deps=("//b:b",))"""
    return record
