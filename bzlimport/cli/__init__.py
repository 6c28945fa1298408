"""bzlimport 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from bzlimport import __version__
from bzlimport.core.config import Config
from bzlimport.core.exceptions import BzlImportError
from bzlimport.services.container import ServiceContainer
from bzlimport.utils.logger import setup_logging


def _container(ctx: click.Context, workspace: str) -> ServiceContainer:
    """为本次命令创建导入会话容器"""
    config: Config = ctx.obj["config"]
    return ServiceContainer(Path(workspace), config=config)


def _fail(e: BzlImportError) -> click.ClickException:
    return click.ClickException(f"[{e.code}] {e}")


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", "config_path", default="bzlimport.yml", help="配置文件路径")
@click.option("--aspect-version", default=None, help="覆盖配置中的 aspect 变体 (intellij / bef)")
@click.pass_context
def main(ctx: click.Context, config_path: str, aspect_version: str | None) -> None:
    """bzlimport - Bazel 工作区导入工具"""
    setup_logging(
        level=os.getenv("BZLIMPORT_LOG_LEVEL", "INFO"),
        json_output=os.getenv("BZLIMPORT_LOG_JSON", "") == "1",
    )
    try:
        config = Config.from_file(config_path)
        if aspect_version:
            config.aspect_version = aspect_version
            config.validate()
    except BzlImportError as e:
        raise _fail(e) from e
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# 注册各领域子命令
from bzlimport.cli.cmd_aspects import register as _reg_aspects  # noqa: E402
from bzlimport.cli.cmd_import import register as _reg_import  # noqa: E402

_reg_aspects(main)
_reg_import(main)
