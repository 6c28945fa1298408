"""CLI: aspect 元信息查询命令"""

from __future__ import annotations

import click

from bzlimport.core.exceptions import BzlImportError
from bzlimport.core.progress import LoggingProgressMonitor


def register(group: click.Group) -> None:
    group.add_command(aspects)


@click.command()
@click.argument("targets", nargs=-1, required=True)
@click.option("--workspace", "-w", default=".", help="Bazel 工作区根目录")
@click.pass_context
def aspects(ctx: click.Context, targets: tuple[str, ...], workspace: str) -> None:
    """运行 aspect 并打印目标的构建元信息"""
    from bzlimport.cli import _container, _fail

    container = _container(ctx, workspace)
    try:
        report = container.aspects.resolve_with_report(
            targets, LoggingProgressMonitor(), project=container.workspace_root.name, caller="cli",
        )
    except BzlImportError as e:
        raise _fail(e) from e

    for label, info in report.infos.items():
        mark = " (旧记录)" if label in report.degraded else ""
        click.echo(f"{label}{mark}  kind={info.kind or '-'}")
        for src in info.sources:
            click.echo(f"    src  {src}")
        for gen in info.generated_sources:
            click.echo(f"    gen  {gen}")
        for dep in info.dependencies:
            click.echo(f"    dep  {dep}")
    if report.missing:
        click.echo(f"没有可用记录: {', '.join(report.missing)}")
