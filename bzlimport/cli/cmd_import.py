"""CLI: 包扫描与工作区导入命令"""

from __future__ import annotations

import click

from bzlimport.core.exceptions import BzlImportError, ValidationError
from bzlimport.core.models import BazelPackageNode
from bzlimport.core.progress import LoggingProgressMonitor
from bzlimport.utils.yaml_io import save_yaml


def register(group: click.Group) -> None:
    group.add_command(scan)
    group.add_command(import_workspace)


def _echo_tree(node: BazelPackageNode, depth: int = 0) -> None:
    label = node.name if not node.is_workspace_root else f"{node.name} ({node.workspace_root})"
    click.echo(f"{'  ' * depth}{label}")
    for child in node.children:
        _echo_tree(child, depth + 1)


@click.command()
@click.argument("workspace", default=".")
@click.pass_context
def scan(ctx: click.Context, workspace: str) -> None:
    """列出工作区中的 Bazel 包"""
    from bzlimport.cli import _container, _fail

    container = _container(ctx, workspace)
    try:
        root = container.scanner.scan(container.workspace_root)
    except BzlImportError as e:
        raise _fail(e) from e
    _echo_tree(root)


@click.command(name="import")
@click.argument("workspace", default=".")
@click.option("--package", "-p", "packages", multiple=True,
              help="只导入指定包，如 //module1（可多次指定，默认导入全部含源码的包）")
@click.option("--output", "-o", default="", help="把导入结果写入 YAML 清单")
@click.pass_context
def import_workspace(
    ctx: click.Context, workspace: str, packages: tuple[str, ...], output: str,
) -> None:
    """按依赖顺序把工作区中的包导入为工程"""
    from bzlimport.cli import _container, _fail

    container = _container(ctx, workspace)
    try:
        root = container.scanner.scan(container.workspace_root)
        if packages:
            selected = []
            for name in packages:
                node = root.find(name)
                if node is None:
                    raise ValidationError(f"工作区中没有包: {name}")
                selected.append(node)
        else:
            selected = [n for n in root.walk() if not n.is_workspace_root and _has_sources(container, n)]
        projects = container.importer.import_workspace(root, selected, LoggingProgressMonitor())
    except BzlImportError as e:
        raise _fail(e) from e

    for project in projects:
        refs = f"  -> {', '.join(project.references)}" if project.references else ""
        click.echo(f"  {project.name}{refs}")
    click.echo(f"共导入 {len(projects)} 个工程")

    if output:
        save_yaml(output, {
            "workspace": str(container.workspace_root),
            "projects": [p.to_dict() for p in projects],
        })
        click.echo(f"导入清单: {output}")


def _has_sources(container, node: BazelPackageNode) -> bool:
    try:
        container.importer.compute_layout(node)
    except ValidationError:
        return False
    return True
