"""工作区包发现

扫描 Bazel 工作区目录，含 BUILD / BUILD.bazel 的目录即为一个包；
嵌套的包挂在最近的祖先包下，得到一棵以工作区根为根的包树。
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from bzlimport.core.exceptions import ConfigError
from bzlimport.core.models import BazelPackageNode

logger = logging.getLogger(__name__)

BUILD_FILE_NAMES = ("BUILD", "BUILD.bazel")
WORKSPACE_FILE_NAMES = ("WORKSPACE", "WORKSPACE.bazel", "MODULE.bazel")


def _skip_dir(name: str) -> bool:
    # bazel-out / bazel-<workspace> 等输出链接与隐藏目录不参与扫描
    return name.startswith("bazel-") or name.startswith(".")


class PackageScanner:
    """Bazel 包扫描器"""

    def scan(self, workspace_root: str | Path) -> BazelPackageNode:
        root_dir = Path(workspace_root).resolve()
        if not any((root_dir / f).is_file() for f in WORKSPACE_FILE_NAMES):
            raise ConfigError(
                f"{root_dir} 不是 Bazel 工作区（缺少 {'/'.join(WORKSPACE_FILE_NAMES)}）"
            )

        root = BazelPackageNode(name="//", workspace_root=root_dir)
        # 目录相对路径 -> 该目录所属（最近）的包节点
        owners: dict[str, BazelPackageNode] = {"": root}
        count = 0

        for dirpath, dirnames, filenames in os.walk(root_dir):
            dirnames[:] = sorted(d for d in dirnames if not _skip_dir(d))
            rel = Path(dirpath).relative_to(root_dir).as_posix()
            rel = "" if rel == "." else rel
            owner = owners[rel]

            if rel and any(f in filenames for f in BUILD_FILE_NAMES):
                node = BazelPackageNode(
                    name=f"//{rel}", workspace_root=root_dir, relative_path=rel,
                )
                owner.children.append(node)
                owner = node
                count += 1
            for d in dirnames:
                owners[f"{rel}/{d}" if rel else d] = owner

        logger.info("扫描完成: %s 共 %d 个包", root_dir, count)
        return root
