"""工作区导入端到端测试: 扫描 -> aspect -> 排序 -> 建工程，以及 CLI"""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

import bzlimport.cli as climod
from bzlimport.cli import main
from bzlimport.core.config import Config
from bzlimport.services.container import ServiceContainer
from bzlimport.utils.logger import reset_logging
from bzlimport.utils.yaml_io import load_yaml


@pytest.fixture()
def workspace(tmp_path: Path) -> Path:
    """module1 依赖 module2 与 module3，module3 下有嵌套包 module3/util"""
    ws = tmp_path / "bazel-demo"
    files = [
        "WORKSPACE", "BUILD",
        "module1/BUILD", "module1/src/main/java/m1/App.java",
        "module2/BUILD", "module2/src/main/java/m2/Lib.java",
        "module3/BUILD", "module3/src/main/java/m3/Util.java",
        "module3/src/test/java/m3/UtilTest.java",
        "tools/BUILD",
    ]
    for rel in files:
        p = ws / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text("", encoding="utf-8")
    return ws


@pytest.fixture()
def demo_bazel(fake_bazel, rec):
    fake_bazel.add("//module1:*", rec("//module1:module1", deps=("//module2:module2", "//module3:module3")))
    fake_bazel.add("//module2:*", rec("//module2:module2", deps=("@maven//:guava",)))
    fake_bazel.add("//module3:*", rec("//module3:module3"), rec("//module3:tests", deps=("//module3:module3",)))
    return fake_bazel


@pytest.fixture()
def container(workspace: Path, demo_bazel) -> ServiceContainer:
    return ServiceContainer(workspace, config=Config(aspect_version="bef"), executor=demo_bazel)


def _import_all(c: ServiceContainer):
    root = c.scanner.scan(c.workspace_root)
    selected = [root.find("//module1"), root.find("//module2"), root.find("//module3")]
    return c.importer.import_workspace(root, selected)


class TestWorkspaceImport:
    def test_dependency_first_order(self, container: ServiceContainer) -> None:
        projects = _import_all(container)
        assert [p.name for p in projects] == [
            "Bazel Workspace (bazel-demo)", "module2", "module3", "module1",
        ]

    def test_references_and_layout(self, container: ServiceContainer) -> None:
        _import_all(container)
        module1 = container.projects.get("module1")
        assert module1.references == ["module2", "module3"]
        assert module1.targets == ["//module1:*"]
        assert module1.source_paths == ["module1/src/main/java"]
        module3 = container.projects.get("module3")
        assert module3.source_paths == ["module3/src/main/java", "module3/src/test/java"]
        assert module3.references == []

    def test_each_package_invoked_once(self, container: ServiceContainer, demo_bazel) -> None:
        _import_all(container)
        assert demo_bazel.targets_built() == ["//module1:*", "//module2:*", "//module3:*"]
        assert container.aspects.is_cached("//module3:tests")

    def test_second_session_import_is_served_from_cache(self, container, demo_bazel) -> None:
        _import_all(container)
        before = container.aspects.cache_hits
        infos = container.aspects.resolve(["//module1:*", "//module3:module3"])
        assert len(demo_bazel.calls) == 3
        assert container.aspects.cache_hits == before + 2
        assert list(infos) == ["//module1:module1", "//module3:module3"]

    def test_broken_package_uses_last_good(self, container: ServiceContainer, demo_bazel) -> None:
        _import_all(container)
        container.aspects.flush()
        demo_bazel.fail("//module2:*")

        report = container.aspects.resolve_with_report(["//module1:*", "//module2:*"])
        assert report.degraded == ["//module2:module2"]
        assert "//module2:module2" in report.infos
        assert report.computed == ["//module1:module1"]


class TestCli:
    @pytest.fixture(autouse=True)
    def _inject_bazel(self, monkeypatch: pytest.MonkeyPatch, demo_bazel):
        def factory(root, config=None):
            return ServiceContainer(root, config=config, executor=demo_bazel)

        monkeypatch.setattr(climod, "ServiceContainer", factory)
        yield
        reset_logging()

    @pytest.fixture()
    def config_file(self, tmp_path: Path) -> Path:
        p = tmp_path / "bzlimport.yml"
        p.write_text("aspect_version: bef\n", encoding="utf-8")
        return p

    def test_scan(self, workspace: Path, config_file: Path) -> None:
        r = CliRunner().invoke(main, ["-c", str(config_file), "scan", str(workspace)])
        assert r.exit_code == 0, r.output
        assert "//module3" in r.output
        assert "//tools" in r.output

    def test_import_writes_manifest(self, workspace: Path, config_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "manifest.yml"
        r = CliRunner().invoke(main, [
            "-c", str(config_file), "import", str(workspace), "-o", str(out),
        ])
        assert r.exit_code == 0, r.output
        assert "共导入 4 个工程" in r.output
        manifest = load_yaml(out)
        assert [p["name"] for p in manifest["projects"]] == [
            "Bazel Workspace (bazel-demo)", "module2", "module3", "module1",
        ]
        assert manifest["projects"][3]["references"] == ["module2", "module3"]

    def test_import_selected_package(self, workspace: Path, config_file: Path) -> None:
        r = CliRunner().invoke(main, [
            "-c", str(config_file), "import", str(workspace), "-p", "//module2",
        ])
        assert r.exit_code == 0, r.output
        assert "共导入 2 个工程" in r.output

    def test_import_unknown_package(self, workspace: Path, config_file: Path) -> None:
        r = CliRunner().invoke(main, [
            "-c", str(config_file), "import", str(workspace), "-p", "//nope",
        ])
        assert r.exit_code != 0
        assert "VALIDATION_ERROR" in r.output

    def test_aspects_command(self, workspace: Path, config_file: Path) -> None:
        r = CliRunner().invoke(main, [
            "-c", str(config_file), "aspects", "//module3:*", "//missing:x", "-w", str(workspace),
        ])
        assert r.exit_code == 0, r.output
        assert "//module3:tests" in r.output
        assert "dep  //module3:module3" in r.output
        assert "没有可用记录: //missing:x" in r.output

    def test_not_a_workspace(self, tmp_path: Path, config_file: Path) -> None:
        empty = tmp_path / "empty"
        empty.mkdir()
        r = CliRunner().invoke(main, ["-c", str(config_file), "scan", str(empty)])
        assert r.exit_code != 0
        assert "CONFIG_ERROR" in r.output

    def test_bad_aspect_version_option(self, workspace: Path, config_file: Path) -> None:
        r = CliRunner().invoke(main, [
            "-c", str(config_file), "--aspect-version", "v9", "scan", str(workspace),
        ])
        assert r.exit_code != 0
        assert "CONFIG_ERROR" in r.output
