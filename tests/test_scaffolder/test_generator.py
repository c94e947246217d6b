"""Tests for the composition orchestrator (type3.scaffolder.generator).

Covers:
- The run state machine on success, install failure and skipped install
- Example scenarios (full TypeScript tree, minimal JavaScript tree)
- Failure handling: configuration errors before I/O, provisioning failures,
  interrupts, and rollback of a partially created project
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from type3.config import ProjectConfig, Settings
from type3.errors import ConfigurationError, InstallationError, ProvisioningError
from type3.installer import Installer
from type3.scaffolder.generator import ProjectGenerator, RunState

pytestmark = pytest.mark.unit


def _tree(root: Path) -> set[str]:
    return {p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file()}


def _dirs(root: Path) -> set[str]:
    return {p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_dir()}


# ---------------------------------------------------------------------------
# Successful runs
# ---------------------------------------------------------------------------


class TestSuccessfulRun:
    async def test_full_typescript_tree(
        self, full_ts_config: ProjectConfig, install_settings: Settings, mock_installer: Installer
    ):
        generator = ProjectGenerator(full_ts_config, install_settings, installer=mock_installer)
        result = await generator.generate()

        root = install_settings.output_dir / "full-api"
        assert result.project_root == root
        assert result.state is RunState.DONE
        assert result.history == [
            RunState.IDLE,
            RunState.PROVISIONING,
            RunState.GENERATING,
            RunState.RESOLVING,
            RunState.INSTALLING,
            RunState.DONE,
        ]
        assert result.installed is True
        assert result.warnings == []
        assert _tree(root) == {
            "package.json",
            "tsconfig.json",
            ".env",
            ".env.example",
            ".gitignore",
            "README.md",
            "src/config/database.ts",
            "src/models/user.model.ts",
            "src/services/user.service.ts",
            "src/controllers/user.controller.ts",
            "src/routes/user.routes.ts",
            "src/utils/auth.utils.ts",
            "src/middleware/auth.middleware.ts",
            "src/types/express.d.ts",
            "src/utils/logger.ts",
            "src/middleware/http-logger.middleware.ts",
            "src/server.ts",
        }
        assert "logs" in _dirs(root)
        server = (root / "src" / "server.ts").read_text(encoding="utf-8")
        assert 'from "./middleware/http-logger.middleware"' in server
        assert 'from "./middleware/auth.middleware"' in server
        assert 'from "./config/database"' in server

        mock_installer.install.assert_awaited_once()
        args = mock_installer.install.await_args.args
        assert args[0] == root
        assert args[1].value == "pnpm"
        assert "sequelize" in args[2].runtime

    async def test_minimal_javascript_tree(self, minimal_config: ProjectConfig, no_install_settings: Settings):
        result = await ProjectGenerator(minimal_config, no_install_settings).generate()

        root = no_install_settings.output_dir / "minimal-api"
        assert _tree(root) == {
            "package.json",
            ".env",
            ".env.example",
            ".gitignore",
            "README.md",
            "src/services/hello.service.js",
            "src/controllers/hello.controller.js",
            "src/routes/hello.routes.js",
            "src/server.js",
        }
        assert _dirs(root) == {"logs", "src", "src/services", "src/controllers", "src/routes"}
        assert sorted(result.files) == sorted(root / p for p in _tree(root))

    async def test_skipped_install_warns_with_manual_command(
        self, minimal_config: ProjectConfig, no_install_settings: Settings, mock_installer: Installer
    ):
        generator = ProjectGenerator(minimal_config, no_install_settings, installer=mock_installer)
        result = await generator.generate()

        assert result.state is RunState.DONE
        assert RunState.INSTALLING not in result.history
        assert result.installed is False
        assert len(result.warnings) == 1
        assert "npm install express dotenv cors cookie-parser helmet" in result.warnings[0]
        mock_installer.install.assert_not_awaited()

    async def test_overwrite_into_existing_directory(self, minimal_config: ProjectConfig, output_dir: Path):
        root = output_dir / "minimal-api"
        root.mkdir()
        (root / "notes.txt").write_text("keep", encoding="utf-8")
        settings = Settings(output_dir=output_dir, install=False, overwrite=True)

        result = await ProjectGenerator(minimal_config, settings).generate()

        assert result.success
        assert (root / "notes.txt").read_text(encoding="utf-8") == "keep"
        assert (root / "src" / "server.js").exists()


class TestPlan:
    def test_plan_is_pure_and_ordered(self, full_ts_config: ProjectConfig, no_install_settings: Settings):
        generator = ProjectGenerator(full_ts_config, no_install_settings)
        planned = generator.plan()

        assert not (no_install_settings.output_dir / "full-api").exists()
        paths = [unit.path.as_posix() for unit in planned]
        assert paths[0] == "package.json"
        assert paths[-1] == "src/server.ts"
        assert paths.index("src/config/database.ts") < paths.index("src/models/user.model.ts")
        assert paths.index("src/models/user.model.ts") < paths.index("src/services/user.service.ts")
        assert len(paths) == len(set(paths))
        assert generator.state is RunState.IDLE

    def test_plan_is_deterministic(self, full_ts_config: ProjectConfig):
        assert ProjectGenerator(full_ts_config).plan() == ProjectGenerator(full_ts_config).plan()


# ---------------------------------------------------------------------------
# Installation failure
# ---------------------------------------------------------------------------


class TestInstallFailure:
    async def test_install_failure_is_a_warning(
        self, full_ts_config: ProjectConfig, install_settings: Settings
    ):
        installer = Installer()
        installer.install = AsyncMock(
            side_effect=InstallationError("pnpm failed: ENOTFOUND", manual_command="pnpm add express")
        )
        result = await ProjectGenerator(full_ts_config, install_settings, installer=installer).generate()

        assert result.state is RunState.DONE
        assert result.history[-2:] == [RunState.INSTALLING, RunState.DONE]
        assert result.installed is False
        assert any("pnpm add express" in w for w in result.warnings)
        assert (install_settings.output_dir / "full-api" / "src" / "server.ts").exists()

    async def test_real_installer_with_failing_command(
        self, minimal_config: ProjectConfig, install_settings: Settings
    ):
        runner = AsyncMock(return_value=(127, "", "Command not found: npm"))
        with patch("type3.installer.run_command", runner):
            result = await ProjectGenerator(minimal_config, install_settings).generate()

        assert result.success
        assert "Command not found: npm" in result.warnings[0]
        assert "npm install -D nodemon eslint" in result.warnings[0]


# ---------------------------------------------------------------------------
# Fatal failures
# ---------------------------------------------------------------------------


class TestFailures:
    async def test_configuration_error_before_any_io(
        self, minimal_config: ProjectConfig, no_install_settings: Settings
    ):
        generator = ProjectGenerator(minimal_config, no_install_settings)
        with patch(
            "type3.scaffolder.generator.validate",
            side_effect=ConfigurationError("Unsupported configuration"),
        ):
            with pytest.raises(ConfigurationError):
                await generator.generate()

        assert generator.state is RunState.FAILED
        assert generator.result.history == [RunState.IDLE, RunState.FAILED]
        assert list(no_install_settings.output_dir.iterdir()) == []

    async def test_non_empty_target_fails_without_touching_it(
        self, minimal_config: ProjectConfig, no_install_settings: Settings
    ):
        root = no_install_settings.output_dir / "minimal-api"
        root.mkdir()
        (root / "existing.txt").write_text("mine", encoding="utf-8")

        generator = ProjectGenerator(minimal_config, no_install_settings)
        with pytest.raises(ProvisioningError):
            await generator.generate()

        assert generator.state is RunState.FAILED
        assert _tree(root) == {"existing.txt"}

    async def test_unreadable_target_marks_run_failed(
        self, minimal_config: ProjectConfig, no_install_settings: Settings
    ):
        (no_install_settings.output_dir / "minimal-api").mkdir()
        generator = ProjectGenerator(minimal_config, no_install_settings)
        with patch.object(Path, "iterdir", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(ProvisioningError, match="Permission denied"):
                await generator.generate()

        assert generator.state is RunState.FAILED
        assert generator.result.history == [RunState.IDLE, RunState.PROVISIONING, RunState.FAILED]

    async def test_write_failure_rolls_back_created_root(
        self, full_ts_config: ProjectConfig, no_install_settings: Settings
    ):
        calls = {"n": 0}

        def flaky_write(path: Path, content: str) -> None:
            calls["n"] += 1
            if calls["n"] == 5:
                raise OSError(28, "No space left on device")
            path.write_text(content, encoding="utf-8")

        generator = ProjectGenerator(full_ts_config, no_install_settings)
        with patch("type3.scaffolder.provisioner._write_file", side_effect=flaky_write):
            with pytest.raises(ProvisioningError, match="No space left"):
                await generator.generate()

        assert generator.state is RunState.FAILED
        assert RunState.GENERATING in generator.result.history
        assert generator.result.files == []
        assert not (no_install_settings.output_dir / "full-api").exists()

    async def test_interrupt_rolls_back_and_reraises(
        self, full_ts_config: ProjectConfig, install_settings: Settings
    ):
        installer = Installer()
        installer.install = AsyncMock(side_effect=asyncio.CancelledError())
        generator = ProjectGenerator(full_ts_config, install_settings, installer=installer)

        with pytest.raises(asyncio.CancelledError):
            await generator.generate()

        assert generator.state is RunState.FAILED
        assert generator.result.error == "Interrupted"
        assert not (install_settings.output_dir / "full-api").exists()

    async def test_generator_is_single_use(
        self, minimal_config: ProjectConfig, no_install_settings: Settings
    ):
        generator = ProjectGenerator(minimal_config, no_install_settings)
        await generator.generate()
        with pytest.raises(RuntimeError, match="Illegal transition"):
            await generator.generate()
