"""Shared pytest fixtures for the type3 test suite.

Provides reusable fixtures for:
- Configuration records (minimal, full TypeScript, and a factory)
- Settings pointing at a temporary output directory
- A mocked installer so no package manager is ever launched
- Import/export cross-reference checks over generated source files
"""

from __future__ import annotations

import itertools
import posixpath
import re
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

from type3.config import Database, Language, PackageManager, ProjectConfig, Settings
from type3.installer import Installer


# Every configuration the generator supports, for parametrized sweeps.
ALL_CONFIGS: list[ProjectConfig] = [
    ProjectConfig(
        project_name="sweep-app",
        language=language,
        database=database,
        include_auth=auth,
        include_log=log,
    )
    for language, database, auth, log in itertools.product(
        Language, Database, (False, True), (False, True)
    )
]


def config_id(config: ProjectConfig) -> str:
    """Readable pytest id, e.g. ``TypeScript-PostgreSQL-auth-log``."""
    return "-".join(
        [
            config.language.value,
            config.database.value,
            "auth" if config.include_auth else "noauth",
            "log" if config.include_log else "nolog",
        ]
    )


# ---------------------------------------------------------------------------
# Configuration records
# ---------------------------------------------------------------------------

@pytest.fixture
def make_config() -> Callable[..., ProjectConfig]:
    """Factory building a ``ProjectConfig`` with overridable defaults."""

    def _make(**overrides: Any) -> ProjectConfig:
        data: dict[str, Any] = {
            "project_name": "my-api",
            "language": Language.JAVASCRIPT,
            "package_manager": PackageManager.NPM,
            "database": Database.NONE,
            "include_auth": False,
            "include_log": False,
        }
        data.update(overrides)
        return ProjectConfig(**data)

    return _make


@pytest.fixture
def minimal_config(make_config: Callable[..., ProjectConfig]) -> ProjectConfig:
    """JavaScript, no database, no auth, no logging."""
    return make_config(project_name="minimal-api")


@pytest.fixture
def full_ts_config(make_config: Callable[..., ProjectConfig]) -> ProjectConfig:
    """TypeScript + PostgreSQL with auth and logging."""
    return make_config(
        project_name="full-api",
        language=Language.TYPESCRIPT,
        package_manager=PackageManager.PNPM,
        database=Database.POSTGRESQL,
        include_auth=True,
        include_log=True,
    )


# ---------------------------------------------------------------------------
# Runtime settings & collaborators
# ---------------------------------------------------------------------------

@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Parent directory generated projects land in (auto-cleanup)."""
    out = tmp_path / "out"
    out.mkdir()
    return out


@pytest.fixture
def no_install_settings(output_dir: Path) -> Settings:
    return Settings(output_dir=output_dir, install=False)


@pytest.fixture
def install_settings(output_dir: Path) -> Settings:
    return Settings(output_dir=output_dir, install=True)


@pytest.fixture
def mock_installer() -> Installer:
    """An ``Installer`` whose ``install`` is an ``AsyncMock`` that succeeds."""
    installer = Installer(timeout=30)
    installer.install = AsyncMock(return_value=[["npm", "install", "express"]])
    return installer


# ---------------------------------------------------------------------------
# Source cross-reference helpers
# ---------------------------------------------------------------------------

_JS_IMPORT = re.compile(r'const \{([^}]*)\} = require\("(\.[^"]*)"\)')
_TS_IMPORT = re.compile(r'import \{([^}]*)\} from "(\.[^"]*)"')
_JS_EXPORT = re.compile(r"module\.exports = \{([^}]*)\}")
_TS_EXPORT = re.compile(r"^export (?:const|class|interface) (\w+)", re.MULTILINE)


def _names(group: str) -> list[str]:
    """``"a, b: c, d as e"`` -> ``["a", "b", "d"]``."""
    names = []
    for part in group.split(","):
        part = part.strip()
        if part:
            names.append(re.split(r"\s*:\s*|\s+as\s+", part)[0])
    return names


def relative_imports(content: str) -> list[tuple[list[str], str]]:
    """Every ``(imported names, relative specifier)`` pair in a source file."""
    return [
        (_names(names), specifier)
        for pattern in (_JS_IMPORT, _TS_IMPORT)
        for names, specifier in pattern.findall(content)
    ]


def exported_names(content: str) -> set[str]:
    exports = set(_TS_EXPORT.findall(content))
    for group in _JS_EXPORT.findall(content):
        exports.update(_names(group))
    return exports


def unresolved_references(files: dict[str, str], extension: str) -> list[str]:
    """Relative imports in *files* that miss a file or an exported name.

    *files* maps project-relative posix paths to contents.
    """
    problems = []
    for path, content in files.items():
        for names, specifier in relative_imports(content):
            target = posixpath.normpath(posixpath.join(posixpath.dirname(path), specifier))
            target = f"{target}.{extension}"
            if target not in files:
                problems.append(f"{path}: {specifier} -> missing {target}")
                continue
            missing = set(names) - exported_names(files[target])
            if missing:
                problems.append(f"{path}: {sorted(missing)} not exported by {target}")
    return problems
