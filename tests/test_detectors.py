"""Tests for project type detection."""

import json
from pathlib import Path

import pytest

from reclaim.detectors import (
    DETECTORS,
    SIGNATURES,
    classify,
    extract_name_from_cfg_content,
    extract_name_from_python_content,
    extract_quoted_value,
    is_cargo_workspace_root,
    is_inside_cargo_workspace,
    is_name_line,
    parse_toml_name_field,
)
from reclaim.models import ProjectType
from reclaim.pool import ErrorLog


def touch(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def mkdir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def artifact_names(project, root: Path) -> list[str]:
    return [str(a.path.relative_to(root)) for a in project.artifacts]


class TestNameHelpers:
    def test_extract_quoted_value(self):
        assert extract_quoted_value('name = "demo"') == "demo"

    def test_extract_quoted_value_single_quote_char(self):
        assert extract_quoted_value('name = "demo') is None

    def test_extract_quoted_value_no_quotes(self):
        assert extract_quoted_value("name = demo") is None

    def test_is_name_line(self):
        assert is_name_line('name = "x"')
        assert not is_name_line('version = "1.0"')
        assert not is_name_line("name")

    def test_parse_toml_name_field(self):
        content = '[package]\nversion = "0.1.0"\nname = "my-crate"\n'
        assert parse_toml_name_field(content) == "my-crate"

    def test_parse_toml_name_field_missing(self):
        assert parse_toml_name_field("[package]\nversion = '1'\n") is None

    def test_setup_py_name(self):
        content = 'from setuptools import setup\n\nsetup(\n    name="legacy-pkg",\n)\n'
        assert extract_name_from_python_content(content) == "legacy-pkg"

    def test_setup_cfg_name(self):
        content = "[options]\nname = wrong\n\n[metadata]\nname = cfg-pkg\nversion = 1.0\n"
        assert extract_name_from_cfg_content(content) == "cfg-pkg"

    def test_setup_cfg_without_metadata(self):
        assert extract_name_from_cfg_content("[options]\nzip_safe = False\n") is None


class TestCargoWorkspace:
    def test_workspace_root(self, tmp_path):
        cargo = touch(tmp_path / "Cargo.toml", '[workspace]\nmembers = ["a"]\n')
        assert is_cargo_workspace_root(cargo)

    def test_workspace_subtable_is_not_a_root(self, tmp_path):
        cargo = touch(tmp_path / "Cargo.toml", '[package]\nname = "x"\n\n[workspace.dependencies]\n')
        assert not is_cargo_workspace_root(cargo)

    def test_inside_workspace(self, tmp_path):
        touch(tmp_path / "Cargo.toml", "[workspace]\n")
        member = mkdir(tmp_path / "crates" / "member")
        assert is_inside_cargo_workspace(member)

    def test_own_manifest_is_not_an_ancestor(self, tmp_path):
        touch(tmp_path / "Cargo.toml", "[workspace]\n")
        assert not is_inside_cargo_workspace(tmp_path)


class TestRust:
    def test_detects_crate(self, tmp_path):
        touch(tmp_path / "Cargo.toml", '[package]\nname = "my-crate"\n')
        mkdir(tmp_path / "target")
        project = classify(tmp_path)
        assert project.kind == ProjectType.RUST
        assert project.name == "my-crate"
        assert project.root_path == tmp_path
        assert artifact_names(project, tmp_path) == ["target"]
        assert project.artifacts[0].size is None

    def test_requires_target(self, tmp_path):
        touch(tmp_path / "Cargo.toml", '[package]\nname = "x"\n')
        assert classify(tmp_path) is None

    def test_workspace_member_is_suppressed(self, tmp_path):
        touch(tmp_path / "Cargo.toml", '[workspace]\nmembers = ["member"]\n')
        mkdir(tmp_path / "target")
        member = tmp_path / "member"
        touch(member / "Cargo.toml", '[package]\nname = "member"\n')
        mkdir(member / "target")

        assert classify(member) is None
        assert classify(tmp_path).kind == ProjectType.RUST

    def test_name_falls_back_to_directory(self, tmp_path):
        root = mkdir(tmp_path / "unnamed")
        touch(root / "Cargo.toml", "[package]\n")
        mkdir(root / "target")
        assert classify(root).name == "unnamed"


class TestNodeAndDeno:
    def test_node(self, tmp_path):
        touch(tmp_path / "package.json", json.dumps({"name": "web"}))
        mkdir(tmp_path / "node_modules")
        project = classify(tmp_path)
        assert project.kind == ProjectType.NODE
        assert project.name == "web"

    def test_node_invalid_json_uses_directory_name(self, tmp_path):
        root = mkdir(tmp_path / "broken")
        touch(root / "package.json", "{not json")
        mkdir(root / "node_modules")
        errors = ErrorLog()
        project = classify(root, error_log=errors, verbose=True)
        assert project.kind == ProjectType.NODE
        assert project.name == "broken"
        assert len(errors) == 1

    def test_extraction_errors_not_recorded_when_quiet(self, tmp_path):
        touch(tmp_path / "package.json", "{not json")
        mkdir(tmp_path / "node_modules")
        errors = ErrorLog()
        classify(tmp_path, error_log=errors, verbose=False)
        assert len(errors) == 0

    def test_deno_with_node_modules(self, tmp_path):
        touch(tmp_path / "deno.json", json.dumps({"name": "denoapp"}))
        mkdir(tmp_path / "node_modules")
        project = classify(tmp_path)
        assert project.kind == ProjectType.DENO
        assert project.name == "denoapp"

    def test_deno_jsonc_with_vendor(self, tmp_path):
        touch(tmp_path / "deno.jsonc", "{}")
        mkdir(tmp_path / "vendor")
        project = classify(tmp_path)
        assert project.kind == ProjectType.DENO
        assert artifact_names(project, tmp_path) == ["vendor"]

    def test_package_json_makes_node_modules_npm(self, tmp_path):
        touch(tmp_path / "deno.json", "{}")
        touch(tmp_path / "package.json", json.dumps({"name": "npm-app"}))
        mkdir(tmp_path / "node_modules")
        assert classify(tmp_path).kind == ProjectType.NODE


class TestJvm:
    def test_maven(self, tmp_path):
        touch(
            tmp_path / "pom.xml",
            "<project>\n  <groupId>org.example</groupId>\n  <artifactId>demo</artifactId>\n</project>\n",
        )
        mkdir(tmp_path / "target")
        project = classify(tmp_path)
        assert project.kind == ProjectType.JAVA
        assert project.name == "demo"
        assert artifact_names(project, tmp_path) == ["target"]

    def test_gradle(self, tmp_path):
        touch(tmp_path / "build.gradle.kts", "plugins {}\n")
        touch(tmp_path / "settings.gradle", "rootProject.name = 'gradle-app'\n")
        mkdir(tmp_path / "build")
        project = classify(tmp_path)
        assert project.kind == ProjectType.JAVA
        assert project.name == "gradle-app"
        assert artifact_names(project, tmp_path) == ["build"]

    def test_gradle_wins_over_cmake(self, tmp_path):
        touch(tmp_path / "build.gradle", "")
        touch(tmp_path / "CMakeLists.txt", "project(native)\n")
        mkdir(tmp_path / "build")
        assert classify(tmp_path).kind == ProjectType.JAVA

    def test_scala(self, tmp_path):
        touch(tmp_path / "build.sbt", 'name := "scala-app"\n')
        mkdir(tmp_path / "project" / "target")
        project = classify(tmp_path)
        assert project.kind == ProjectType.SCALA
        assert project.name == "scala-app"
        assert artifact_names(project, tmp_path) == [str(Path("project") / "target")]


class TestSwiftAndDotnet:
    def test_swift(self, tmp_path):
        touch(tmp_path / "Package.swift", 'let package = Package(\n    name: "SwiftPkg",\n)\n')
        mkdir(tmp_path / ".build")
        project = classify(tmp_path)
        assert project.kind == ProjectType.SWIFT
        assert project.name == "SwiftPkg"

    def test_dotnet_emits_bin_and_obj(self, tmp_path):
        touch(tmp_path / "App.csproj", "<Project />")
        mkdir(tmp_path / "bin")
        mkdir(tmp_path / "obj")
        project = classify(tmp_path)
        assert project.kind == ProjectType.DOTNET
        assert project.name == "App"
        assert artifact_names(project, tmp_path) == ["bin", "obj"]

    def test_dotnet_single_artifact(self, tmp_path):
        touch(tmp_path / "Lib.fsproj", "<Project />")
        mkdir(tmp_path / "obj")
        project = classify(tmp_path)
        assert artifact_names(project, tmp_path) == ["obj"]

    def test_dotnet_requires_project_file(self, tmp_path):
        mkdir(tmp_path / "bin")
        mkdir(tmp_path / "obj")
        assert classify(tmp_path) is None


class TestPython:
    def test_collects_every_artifact(self, tmp_path):
        touch(tmp_path / "pyproject.toml", '[project]\nname = "pyproj"\n')
        mkdir(tmp_path / "__pycache__")
        mkdir(tmp_path / ".venv")
        mkdir(tmp_path / "pyproj.egg-info")
        project = classify(tmp_path)
        assert project.kind == ProjectType.PYTHON
        assert project.name == "pyproj"
        assert artifact_names(project, tmp_path) == ["__pycache__", ".venv", "pyproj.egg-info"]

    def test_setup_py_name(self, tmp_path):
        touch(tmp_path / "setup.py", 'setup(\n    name="legacy",\n)\n')
        mkdir(tmp_path / "dist")
        assert classify(tmp_path).name == "legacy"

    def test_setup_cfg_name(self, tmp_path):
        touch(tmp_path / "setup.cfg", "[metadata]\nname = cfgpkg\n")
        mkdir(tmp_path / "build")
        project = classify(tmp_path)
        assert project.kind == ProjectType.PYTHON
        assert project.name == "cfgpkg"

    def test_requirements_only(self, tmp_path):
        root = mkdir(tmp_path / "scripts")
        touch(root / "requirements.txt", "requests\n")
        mkdir(root / ".pytest_cache")
        project = classify(root)
        assert project.kind == ProjectType.PYTHON
        assert project.name == "scripts"

    def test_marker_without_artifacts(self, tmp_path):
        touch(tmp_path / "pyproject.toml", '[project]\nname = "x"\n')
        assert classify(tmp_path) is None


class TestGoAndPhp:
    def test_go(self, tmp_path):
        touch(tmp_path / "go.mod", "module github.com/user/tool\n\ngo 1.22\n")
        mkdir(tmp_path / "vendor")
        project = classify(tmp_path)
        assert project.kind == ProjectType.GO
        assert project.name == "tool"

    def test_php(self, tmp_path):
        touch(tmp_path / "composer.json", json.dumps({"name": "acme/shop"}))
        mkdir(tmp_path / "vendor")
        project = classify(tmp_path)
        assert project.kind == ProjectType.PHP
        assert project.name == "shop"


class TestHaskellDartZig:
    def test_haskell_stack(self, tmp_path):
        touch(tmp_path / "stack.yaml", "resolver: lts-22.0\n")
        touch(tmp_path / "hpkg.cabal", "cabal-version: 2.4\nname:          hpkg\n")
        mkdir(tmp_path / ".stack-work")
        project = classify(tmp_path)
        assert project.kind == ProjectType.HASKELL
        assert project.name == "hpkg"

    def test_haskell_cabal_only(self, tmp_path):
        touch(tmp_path / "lib.cabal", "")
        mkdir(tmp_path / "dist-newstyle")
        project = classify(tmp_path)
        assert project.kind == ProjectType.HASKELL
        assert project.name == "lib"

    def test_dart(self, tmp_path):
        touch(tmp_path / "pubspec.yaml", "name: flutter_app\ndescription: demo\n")
        mkdir(tmp_path / ".dart_tool")
        mkdir(tmp_path / "build")
        project = classify(tmp_path)
        assert project.kind == ProjectType.DART
        assert project.name == "flutter_app"
        assert artifact_names(project, tmp_path) == [".dart_tool", "build"]

    def test_zig(self, tmp_path):
        touch(tmp_path / "build.zig", "")
        touch(tmp_path / "build.zig.zon", '.{\n    .name = "ziggy",\n    .version = "0.1.0",\n}\n')
        mkdir(tmp_path / "zig-out")
        mkdir(tmp_path / ".zig-cache")
        project = classify(tmp_path)
        assert project.kind == ProjectType.ZIG
        assert project.name == "ziggy"
        assert artifact_names(project, tmp_path) == [".zig-cache", "zig-out"]

    def test_zig_enum_literal_name(self, tmp_path):
        touch(tmp_path / "build.zig", "")
        touch(tmp_path / "build.zig.zon", ".{\n    .name = .ziggy,\n}\n")
        mkdir(tmp_path / "zig-out")
        assert classify(tmp_path).name == "ziggy"


class TestCppRubyElixir:
    def test_cmake(self, tmp_path):
        touch(tmp_path / "CMakeLists.txt", "cmake_minimum_required(VERSION 3.20)\nproject(MyCpp VERSION 1.0)\n")
        mkdir(tmp_path / "build")
        project = classify(tmp_path)
        assert project.kind == ProjectType.CPP
        assert project.name == "MyCpp"

    def test_makefile(self, tmp_path):
        root = mkdir(tmp_path / "native")
        touch(root / "Makefile", "all:\n")
        mkdir(root / "build")
        project = classify(root)
        assert project.kind == ProjectType.CPP
        assert project.name == "native"

    def test_ruby(self, tmp_path):
        touch(tmp_path / "Gemfile", "source 'https://rubygems.org'\n")
        touch(tmp_path / "gemmy.gemspec", 'Gem::Specification.new do |spec|\n  spec.name = "gemmy"\nend\n')
        mkdir(tmp_path / ".bundle")
        mkdir(tmp_path / "vendor" / "bundle")
        project = classify(tmp_path)
        assert project.kind == ProjectType.RUBY
        assert project.name == "gemmy"
        assert artifact_names(project, tmp_path) == [".bundle", str(Path("vendor") / "bundle")]

    def test_elixir(self, tmp_path):
        touch(tmp_path / "mix.exs", "def project do\n  [app: :my_app, version: \"0.1.0\"]\nend\n")
        mkdir(tmp_path / "_build")
        project = classify(tmp_path)
        assert project.kind == ProjectType.ELIXIR
        assert project.name == "my_app"


class TestClassify:
    def test_plain_directory(self, tmp_path):
        touch(tmp_path / "notes.txt", "hello")
        assert classify(tmp_path) is None

    def test_artifact_without_marker(self, tmp_path):
        mkdir(tmp_path / "target")
        mkdir(tmp_path / "node_modules")
        assert classify(tmp_path) is None

    def test_idempotent(self, tmp_path):
        touch(tmp_path / "App.csproj", "")
        mkdir(tmp_path / "bin")
        mkdir(tmp_path / "obj")
        assert classify(tmp_path) == classify(tmp_path)

    def test_first_match_wins(self, tmp_path):
        touch(tmp_path / "Cargo.toml", '[package]\nname = "both"\n')
        mkdir(tmp_path / "target")
        touch(tmp_path / "package.json", "{}")
        mkdir(tmp_path / "node_modules")
        assert classify(tmp_path).kind == ProjectType.RUST

    def test_kinds_restricts_detectors(self, tmp_path):
        touch(tmp_path / "Cargo.toml", '[package]\nname = "both"\n')
        mkdir(tmp_path / "target")
        touch(tmp_path / "package.json", "{}")
        mkdir(tmp_path / "node_modules")
        assert classify(tmp_path, kinds={ProjectType.NODE}).kind == ProjectType.NODE
        assert classify(tmp_path, kinds={ProjectType.GO}) is None

    def test_detector_order(self):
        order = [kind for kind, _ in DETECTORS]
        assert len(order) == len(ProjectType)
        assert set(order) == set(ProjectType)
        assert order[0] == ProjectType.RUST
        assert order.index(ProjectType.DENO) < order.index(ProjectType.NODE)
        for jvm in (ProjectType.JAVA, ProjectType.SCALA, ProjectType.DART):
            assert order.index(jvm) < order.index(ProjectType.CPP)

    @pytest.mark.parametrize("kind", list(ProjectType))
    def test_every_type_has_a_signature(self, kind):
        markers, artifacts = SIGNATURES[kind]
        assert markers
        assert artifacts
