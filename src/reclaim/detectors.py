"""Project type detection for reclaim.

Each detector looks at a single directory and reports a Project when it finds
both the ecosystem's manifest file and at least one of its artifact
directories. Detectors are tried in the order of ``DETECTORS``; the first
match wins, so narrower signatures sit before broader ones that share
directory names (``build``, ``target``, ``vendor``, ``node_modules``).
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

from reclaim.models import BuildArtifact, Project, ProjectType
from reclaim.pool import ErrorLog

log = logging.getLogger(__name__)


PYTHON_CONFIG_FILES = [
    "requirements.txt",
    "setup.py",
    "pyproject.toml",
    "setup.cfg",
    "Pipfile",
    "pipenv.lock",
    "poetry.lock",
]

PYTHON_ARTIFACT_DIRS = [
    "__pycache__",
    ".pytest_cache",
    "venv",
    ".venv",
    "build",
    "dist",
    ".eggs",
    ".tox",
    ".coverage",
]

DOTNET_PROJECT_EXTENSIONS = (".csproj", ".fsproj", ".vbproj")
HASKELL_ARTIFACT_DIRS = [".stack-work", "dist-newstyle"]
DART_ARTIFACT_DIRS = [".dart_tool", "build"]
ZIG_ARTIFACT_DIRS = [".zig-cache", "zig-cache", "zig-out"]
SCALA_ARTIFACT_DIRS = ["target", "project/target"]
RUBY_ARTIFACT_DIRS = [".bundle", "vendor/bundle"]

CMAKE_PROJECT_RE = re.compile(r"^\s*project\s*\(\s*[\"']?([^\s\"')]+)", re.IGNORECASE)
ZIG_NAME_RE = re.compile(r"\.name\s*=\s*(?:\"([^\"]+)\"|\.@?\"?([A-Za-z0-9_]+))")
ELIXIR_APP_RE = re.compile(r"app:\s*:([A-Za-z0-9_]+)")


@dataclass
class DetectContext:
    """Per-scan state handed to every detector."""

    error_log: Optional[ErrorLog] = None
    verbose: bool = False

    def record(self, message: str) -> None:
        """Keep a non-fatal problem for the verbose error report."""
        if self.verbose and self.error_log is not None:
            self.error_log.append(message)


Detector = Callable[[Path, DetectContext], Optional[Project]]


# =============================================================================
# Name extraction helpers
# =============================================================================


def extract_quoted_value(line: str) -> Optional[str]:
    """Return the text between the first and last double quote of a line."""
    start = line.find('"')
    end = line.rfind('"')
    if start == -1 or start == end:
        return None
    return line[start + 1 : end]


def is_name_line(line: str) -> bool:
    return line.startswith("name") and "=" in line


def parse_toml_name_field(content: str) -> Optional[str]:
    """First ``name = "..."`` value in a TOML-like manifest."""
    for line in content.splitlines():
        line = line.strip()
        if is_name_line(line):
            name = extract_quoted_value(line)
            if name:
                return name
    return None


def extract_name_from_python_content(content: str) -> Optional[str]:
    """Name passed to ``setup()`` in a setup.py."""
    for line in content.splitlines():
        line = line.strip()
        if "name" in line and "=" in line:
            return extract_quoted_value(line)
    return None


def extract_name_from_cfg_content(content: str) -> Optional[str]:
    """``name`` key of the ``[metadata]`` section of a setup.cfg."""
    in_metadata = False
    for line in content.splitlines():
        line = line.strip()
        if line == "[metadata]":
            in_metadata = True
        elif line.startswith("[") and line.endswith("]"):
            in_metadata = False
        elif in_metadata and line.startswith("name") and "=" in line:
            return line.split("=", 1)[1].strip() or None
    return None


def extract_yaml_name(content: str, key: str = "name") -> Optional[str]:
    """Top-level ``name: value`` of a YAML-ish or cabal manifest."""
    prefix = f"{key}:"
    for line in content.splitlines():
        if line[:1].isspace():
            continue
        if line.lower().startswith(prefix):
            value = line[len(prefix) :].strip().strip("\"'")
            if value:
                return value
    return None


def fallback_to_directory_name(path: Path) -> str:
    return path.name or str(path)


def read_file_content(file_path: Path, ctx: DetectContext) -> Optional[str]:
    try:
        return file_path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        ctx.record(f"Error reading {file_path}: {e}")
        return None


def read_json_name(file_path: Path, ctx: DetectContext) -> Optional[str]:
    """``name`` field of a JSON manifest (package.json, deno.json, composer.json)."""
    content = read_file_content(file_path, ctx)
    if content is None:
        return None
    try:
        data = json.loads(content)
    except ValueError as e:
        ctx.record(f"Error parsing {file_path}: {e}")
        return None
    name = data.get("name") if isinstance(data, dict) else None
    return name if isinstance(name, str) and name else None


def find_files_with_suffix(directory: Path, suffixes: Iterable[str]) -> list[Path]:
    """Files directly inside ``directory`` ending with any suffix, sorted by name."""
    suffixes = tuple(suffixes)
    try:
        return sorted(
            p for p in directory.iterdir() if p.name.endswith(suffixes) and p.is_file()
        )
    except OSError:
        return []


def existing_artifacts(path: Path, names: Iterable[str]) -> list[BuildArtifact]:
    """Unsized artifacts for every listed directory that exists under ``path``."""
    return [
        BuildArtifact(path=path / name) for name in names if (path / name).is_dir()
    ]


def _project(
    kind: ProjectType, path: Path, artifacts: list[BuildArtifact], name: Optional[str]
) -> Project:
    return Project(
        kind=kind,
        root_path=path,
        artifacts=artifacts,
        name=name or fallback_to_directory_name(path),
    )


# =============================================================================
# Rust
# =============================================================================


def is_cargo_workspace_root(cargo_toml: Path) -> bool:
    """Whether a Cargo.toml declares a ``[workspace]`` section."""
    try:
        content = cargo_toml.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False
    return any(line.strip() == "[workspace]" for line in content.splitlines())


def is_inside_cargo_workspace(path: Path) -> bool:
    """Whether any ancestor of ``path`` (not ``path`` itself) is a workspace root."""
    for ancestor in path.parents:
        cargo_toml = ancestor / "Cargo.toml"
        if cargo_toml.is_file() and is_cargo_workspace_root(cargo_toml):
            return True
    return False


def detect_rust_project(path: Path, ctx: DetectContext) -> Optional[Project]:
    cargo_toml = path / "Cargo.toml"
    target_dir = path / "target"

    if not (cargo_toml.is_file() and target_dir.is_dir()):
        return None

    # Members of a workspace build into the workspace root's target/.
    if is_inside_cargo_workspace(path):
        return None

    content = read_file_content(cargo_toml, ctx)
    name = parse_toml_name_field(content) if content else None
    return _project(ProjectType.RUST, path, [BuildArtifact(path=target_dir)], name)


# =============================================================================
# JavaScript runtimes
# =============================================================================


def detect_deno_project(path: Path, ctx: DetectContext) -> Optional[Project]:
    deno_json = path / "deno.json"
    deno_jsonc = path / "deno.jsonc"

    if deno_json.is_file():
        config_path = deno_json
    elif deno_jsonc.is_file():
        config_path = deno_jsonc
    else:
        return None

    vendor_dir = path / "vendor"
    node_modules = path / "node_modules"

    if vendor_dir.is_dir():
        artifact = vendor_dir
    elif node_modules.is_dir() and not (path / "package.json").exists():
        # With a package.json next to it, node_modules belongs to npm.
        artifact = node_modules
    else:
        return None

    name = read_json_name(config_path, ctx)
    return _project(ProjectType.DENO, path, [BuildArtifact(path=artifact)], name)


def detect_node_project(path: Path, ctx: DetectContext) -> Optional[Project]:
    package_json = path / "package.json"
    node_modules = path / "node_modules"

    if not (package_json.is_file() and node_modules.is_dir()):
        return None

    name = read_json_name(package_json, ctx)
    return _project(ProjectType.NODE, path, [BuildArtifact(path=node_modules)], name)


# =============================================================================
# JVM
# =============================================================================


def extract_maven_name(pom_xml: Path, ctx: DetectContext) -> Optional[str]:
    content = read_file_content(pom_xml, ctx)
    if content is None:
        return None
    for line in content.splitlines():
        line = line.strip()
        if line.startswith("<artifactId>") and line.endswith("</artifactId>"):
            return line[len("<artifactId>") : -len("</artifactId>")].strip() or None
    return None


def extract_gradle_name(path: Path, ctx: DetectContext) -> Optional[str]:
    for settings_file in ("settings.gradle", "settings.gradle.kts"):
        settings_path = path / settings_file
        if not settings_path.is_file():
            continue
        content = read_file_content(settings_path, ctx)
        if content is None:
            continue
        for line in content.splitlines():
            line = line.strip()
            if "rootProject.name" in line and "=" in line:
                return extract_quoted_value(line) or line.split("=", 1)[1].strip().strip("'")
    return None


def detect_java_project(path: Path, ctx: DetectContext) -> Optional[Project]:
    pom_xml = path / "pom.xml"
    target_dir = path / "target"

    if pom_xml.is_file() and target_dir.is_dir():
        name = extract_maven_name(pom_xml, ctx)
        return _project(ProjectType.JAVA, path, [BuildArtifact(path=target_dir)], name)

    has_gradle = (path / "build.gradle").is_file() or (path / "build.gradle.kts").is_file()
    build_dir = path / "build"

    if has_gradle and build_dir.is_dir():
        name = extract_gradle_name(path, ctx)
        return _project(ProjectType.JAVA, path, [BuildArtifact(path=build_dir)], name)

    return None


def detect_scala_project(path: Path, ctx: DetectContext) -> Optional[Project]:
    build_sbt = path / "build.sbt"
    if not build_sbt.is_file():
        return None

    artifacts = existing_artifacts(path, SCALA_ARTIFACT_DIRS)
    if not artifacts:
        return None

    name = None
    content = read_file_content(build_sbt, ctx)
    for line in (content or "").splitlines():
        line = line.strip()
        if line.startswith("name") and ":=" in line:
            name = extract_quoted_value(line)
            break
    return _project(ProjectType.SCALA, path, artifacts, name)


# =============================================================================
# Apple / .NET
# =============================================================================


def detect_swift_project(path: Path, ctx: DetectContext) -> Optional[Project]:
    package_swift = path / "Package.swift"
    build_dir = path / ".build"

    if not (package_swift.is_file() and build_dir.is_dir()):
        return None

    name = None
    content = read_file_content(package_swift, ctx)
    for line in (content or "").splitlines():
        if "name:" in line:
            name = extract_quoted_value(line.strip())
            break
    return _project(ProjectType.SWIFT, path, [BuildArtifact(path=build_dir)], name)


def detect_dotnet_project(path: Path, ctx: DetectContext) -> Optional[Project]:
    artifacts = existing_artifacts(path, ["bin", "obj"])
    if not artifacts:
        return None

    project_files = find_files_with_suffix(path, DOTNET_PROJECT_EXTENSIONS)
    if not project_files:
        return None

    return _project(ProjectType.DOTNET, path, artifacts, project_files[0].stem)


# =============================================================================
# Python
# =============================================================================


def extract_python_project_name(path: Path, ctx: DetectContext) -> Optional[str]:
    """Try pyproject.toml, then setup.py, then setup.cfg."""
    extractors = [
        ("pyproject.toml", parse_toml_name_field),
        ("setup.py", extract_name_from_python_content),
        ("setup.cfg", extract_name_from_cfg_content),
    ]
    for file_name, extract in extractors:
        manifest = path / file_name
        if not manifest.is_file():
            continue
        content = read_file_content(manifest, ctx)
        if content:
            name = extract(content)
            if name:
                return name
    return None


def detect_python_project(path: Path, ctx: DetectContext) -> Optional[Project]:
    if not any((path / f).exists() for f in PYTHON_CONFIG_FILES):
        return None

    artifacts = existing_artifacts(path, PYTHON_ARTIFACT_DIRS)
    try:
        egg_infos = sorted(
            p for p in path.iterdir() if p.name.endswith(".egg-info") and p.is_dir()
        )
    except OSError as e:
        ctx.record(f"Error reading {path}: {e}")
        egg_infos = []
    artifacts.extend(BuildArtifact(path=p) for p in egg_infos)

    if not artifacts:
        return None

    name = extract_python_project_name(path, ctx)
    return _project(ProjectType.PYTHON, path, artifacts, name)


# =============================================================================
# Go / PHP
# =============================================================================


def extract_go_module_name(go_mod: Path, ctx: DetectContext) -> Optional[str]:
    content = read_file_content(go_mod, ctx)
    for line in (content or "").splitlines():
        line = line.strip()
        if line.startswith("module "):
            module_path = line[len("module ") :].strip().strip('"')
            return module_path.rsplit("/", 1)[-1] or None
    return None


def detect_go_project(path: Path, ctx: DetectContext) -> Optional[Project]:
    go_mod = path / "go.mod"
    vendor_dir = path / "vendor"

    if not (go_mod.is_file() and vendor_dir.is_dir()):
        return None

    name = extract_go_module_name(go_mod, ctx)
    return _project(ProjectType.GO, path, [BuildArtifact(path=vendor_dir)], name)


def detect_php_project(path: Path, ctx: DetectContext) -> Optional[Project]:
    composer_json = path / "composer.json"
    vendor_dir = path / "vendor"

    if not (composer_json.is_file() and vendor_dir.is_dir()):
        return None

    # Composer names are "vendor/package".
    name = read_json_name(composer_json, ctx)
    if name:
        name = name.rsplit("/", 1)[-1]
    return _project(ProjectType.PHP, path, [BuildArtifact(path=vendor_dir)], name)


# =============================================================================
# Haskell / Dart / Zig
# =============================================================================


def detect_haskell_project(path: Path, ctx: DetectContext) -> Optional[Project]:
    cabal_files = find_files_with_suffix(path, [".cabal"])
    has_manifest = (
        (path / "stack.yaml").is_file() or (path / "cabal.project").is_file() or cabal_files
    )
    if not has_manifest:
        return None

    artifacts = existing_artifacts(path, HASKELL_ARTIFACT_DIRS)
    if not artifacts:
        return None

    name = None
    if cabal_files:
        content = read_file_content(cabal_files[0], ctx)
        name = extract_yaml_name(content or "") or cabal_files[0].stem
    return _project(ProjectType.HASKELL, path, artifacts, name)


def detect_dart_project(path: Path, ctx: DetectContext) -> Optional[Project]:
    pubspec = path / "pubspec.yaml"
    if not pubspec.is_file():
        return None

    artifacts = existing_artifacts(path, DART_ARTIFACT_DIRS)
    if not artifacts:
        return None

    content = read_file_content(pubspec, ctx)
    name = extract_yaml_name(content) if content else None
    return _project(ProjectType.DART, path, artifacts, name)


def detect_zig_project(path: Path, ctx: DetectContext) -> Optional[Project]:
    if not (path / "build.zig").is_file():
        return None

    artifacts = existing_artifacts(path, ZIG_ARTIFACT_DIRS)
    if not artifacts:
        return None

    name = None
    zon = path / "build.zig.zon"
    if zon.is_file():
        match = ZIG_NAME_RE.search(read_file_content(zon, ctx) or "")
        if match:
            name = match.group(1) or match.group(2)
    return _project(ProjectType.ZIG, path, artifacts, name)


# =============================================================================
# C/C++ / Ruby / Elixir
# =============================================================================


def extract_cmake_project_name(cmake_file: Path, ctx: DetectContext) -> Optional[str]:
    content = read_file_content(cmake_file, ctx)
    for line in (content or "").splitlines():
        match = CMAKE_PROJECT_RE.match(line)
        if match:
            return match.group(1)
    return None


def detect_cpp_project(path: Path, ctx: DetectContext) -> Optional[Project]:
    build_dir = path / "build"
    if not build_dir.is_dir():
        return None

    cmake_file = path / "CMakeLists.txt"
    if cmake_file.is_file():
        name = extract_cmake_project_name(cmake_file, ctx)
    elif (path / "Makefile").is_file():
        name = None
    else:
        return None

    return _project(ProjectType.CPP, path, [BuildArtifact(path=build_dir)], name)


def extract_ruby_project_name(path: Path, ctx: DetectContext) -> Optional[str]:
    for gemspec in find_files_with_suffix(path, [".gemspec"]):
        content = read_file_content(gemspec, ctx)
        for line in (content or "").splitlines():
            line = line.strip()
            if ".name" in line and "=" in line:
                name = extract_quoted_value(line)
                if name:
                    return name
    return None


def detect_ruby_project(path: Path, ctx: DetectContext) -> Optional[Project]:
    if not (path / "Gemfile").is_file():
        return None

    artifacts = existing_artifacts(path, RUBY_ARTIFACT_DIRS)
    if not artifacts:
        return None

    name = extract_ruby_project_name(path, ctx)
    return _project(ProjectType.RUBY, path, artifacts, name)


def detect_elixir_project(path: Path, ctx: DetectContext) -> Optional[Project]:
    mix_exs = path / "mix.exs"
    build_dir = path / "_build"

    if not (mix_exs.is_file() and build_dir.is_dir()):
        return None

    match = ELIXIR_APP_RE.search(read_file_content(mix_exs, ctx) or "")
    name = match.group(1) if match else None
    return _project(ProjectType.ELIXIR, path, [BuildArtifact(path=build_dir)], name)


# =============================================================================
# Dispatch
# =============================================================================

DETECTORS: list[tuple[ProjectType, Detector]] = [
    (ProjectType.RUST, detect_rust_project),
    (ProjectType.DENO, detect_deno_project),
    (ProjectType.NODE, detect_node_project),
    (ProjectType.JAVA, detect_java_project),
    (ProjectType.SCALA, detect_scala_project),
    (ProjectType.SWIFT, detect_swift_project),
    (ProjectType.DOTNET, detect_dotnet_project),
    (ProjectType.PYTHON, detect_python_project),
    (ProjectType.GO, detect_go_project),
    (ProjectType.PHP, detect_php_project),
    (ProjectType.HASKELL, detect_haskell_project),
    (ProjectType.DART, detect_dart_project),
    (ProjectType.ZIG, detect_zig_project),
    (ProjectType.CPP, detect_cpp_project),
    (ProjectType.RUBY, detect_ruby_project),
    (ProjectType.ELIXIR, detect_elixir_project),
]


# (marker files, artifact directories) shown by ``reclaim types``.
SIGNATURES: dict[ProjectType, tuple[str, str]] = {
    ProjectType.RUST: ("Cargo.toml", "target"),
    ProjectType.DENO: ("deno.json, deno.jsonc", "vendor, node_modules"),
    ProjectType.NODE: ("package.json", "node_modules"),
    ProjectType.JAVA: ("pom.xml, build.gradle(.kts)", "target, build"),
    ProjectType.SCALA: ("build.sbt", ", ".join(SCALA_ARTIFACT_DIRS)),
    ProjectType.SWIFT: ("Package.swift", ".build"),
    ProjectType.DOTNET: ("*.csproj, *.fsproj, *.vbproj", "bin, obj"),
    ProjectType.PYTHON: (", ".join(PYTHON_CONFIG_FILES), ", ".join(PYTHON_ARTIFACT_DIRS) + ", *.egg-info"),
    ProjectType.GO: ("go.mod", "vendor"),
    ProjectType.PHP: ("composer.json", "vendor"),
    ProjectType.HASKELL: ("stack.yaml, cabal.project, *.cabal", ", ".join(HASKELL_ARTIFACT_DIRS)),
    ProjectType.DART: ("pubspec.yaml", ", ".join(DART_ARTIFACT_DIRS)),
    ProjectType.ZIG: ("build.zig", ", ".join(ZIG_ARTIFACT_DIRS)),
    ProjectType.CPP: ("CMakeLists.txt, Makefile", "build"),
    ProjectType.RUBY: ("Gemfile", ", ".join(RUBY_ARTIFACT_DIRS)),
    ProjectType.ELIXIR: ("mix.exs", "_build"),
}


def classify(
    path: Path,
    error_log: Optional[ErrorLog] = None,
    verbose: bool = False,
    kinds: Optional[set[ProjectType]] = None,
) -> Optional[Project]:
    """
    Detect which ecosystem, if any, owns build artifacts in a directory.

    Args:
        path: Directory to inspect
        error_log: Shared log for unreadable manifests (used when verbose)
        verbose: Record extraction problems in ``error_log``
        kinds: Only try these ecosystems (None tries all)

    Returns:
        The first matching Project, or None
    """
    ctx = DetectContext(error_log=error_log, verbose=verbose)
    for kind, detect in DETECTORS:
        if kinds and kind not in kinds:
            continue
        try:
            project = detect(path, ctx)
        except OSError as e:
            ctx.record(f"Error inspecting {path} for {kind.value}: {e}")
            log.debug("Detector %s failed on %s: %s", kind.value, path, e)
            continue
        if project is not None:
            return project
    return None
