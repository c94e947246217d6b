"""Composition orchestrator.

Takes a ``ProjectConfig`` and drives one scaffolding run through its states::

    IDLE -> PROVISIONING -> GENERATING -> RESOLVING -> INSTALLING -> DONE

with ``FAILED`` reachable from every non-terminal state.  Every File Unit is
rendered in memory before the first directory is created, so a run either
writes the complete tree for its configuration or is reported as failed and
rolled back.  Only an installation failure is downgraded to a warning.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from type3.config import ProjectConfig, Settings
from type3.dependencies import DependencyList, manual_command, resolve
from type3.errors import GenerationError, InstallationError, Type3Error
from type3.installer import Installer
from type3.scaffolder.provisioner import DirectoryProvisioner, directory_set
from type3.scaffolder.units import FileUnit, UnitGenerator
from type3.scaffolder.variants import validate
from type3.utils import (
    console,
    format_duration,
    print_error,
    print_step,
    print_success,
    print_warning,
)


class RunState(str, Enum):
    IDLE = "idle"
    PROVISIONING = "provisioning"
    GENERATING = "generating"
    RESOLVING = "resolving"
    INSTALLING = "installing"
    DONE = "done"
    FAILED = "failed"


_TRANSITIONS: dict[RunState, frozenset[RunState]] = {
    RunState.IDLE: frozenset({RunState.PROVISIONING, RunState.FAILED}),
    RunState.PROVISIONING: frozenset({RunState.GENERATING, RunState.FAILED}),
    RunState.GENERATING: frozenset({RunState.RESOLVING, RunState.FAILED}),
    RunState.RESOLVING: frozenset({RunState.INSTALLING, RunState.DONE, RunState.FAILED}),
    RunState.INSTALLING: frozenset({RunState.DONE, RunState.FAILED}),
    RunState.DONE: frozenset(),
    RunState.FAILED: frozenset(),
}


@dataclass
class RunResult:
    """Outcome of one scaffolding run."""

    project_root: Path
    state: RunState = RunState.IDLE
    history: list[RunState] = field(default_factory=lambda: [RunState.IDLE])
    files: list[Path] = field(default_factory=list)
    dependencies: DependencyList | None = None
    installed: bool = False
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def success(self) -> bool:
        """``True`` when the tree is complete, whatever happened to installation."""
        return self.state is RunState.DONE


class ProjectGenerator:
    """Main scaffolding orchestrator.

    Given a ``ProjectConfig``, produces the full Express project tree:
    manifest and tooling files, the persistence layer (or the greeting
    fallback), optional auth and logging modules, and the entry point.
    """

    def __init__(
        self,
        config: ProjectConfig,
        settings: Settings | None = None,
        *,
        units: UnitGenerator | None = None,
        installer: Installer | None = None,
    ) -> None:
        self.config = config
        self.settings = settings or Settings()
        self.units = units or UnitGenerator()
        self.installer = installer or Installer(timeout=self.settings.install_timeout)
        self.result = RunResult(project_root=self.settings.project_root(config))

    # -- State machine -----------------------------------------------------

    @property
    def state(self) -> RunState:
        return self.result.state

    def _transition(self, target: RunState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal transition {self.state.value} -> {target.value}")
        self.result.state = target
        self.result.history.append(target)

    # -- Public API --------------------------------------------------------

    def plan(self) -> list[FileUnit]:
        """Render every File Unit for the configuration, in generation order.

        Pure: nothing is written.  Raises ``ConfigurationError`` for an
        unsupported combination and ``GenerationError`` for a variant table
        defect.
        """
        kinds = validate(self.config)
        planned: list[FileUnit] = []
        for kind in kinds:
            produced = self.units.generate(kind, self.config)
            if not produced:
                raise GenerationError(kind.value, (self.config.project_name,))
            planned.extend(produced)
        return planned

    async def generate(self) -> RunResult:
        """Run the whole pipeline and return its ``RunResult``.

        Configuration, provisioning and generation errors mark the run
        ``FAILED``, roll back what was created, and are re-raised.  An
        interrupt does the same.  Installation errors only add a warning.
        """
        started = time.monotonic()
        provisioner = DirectoryProvisioner(
            self.result.project_root, overwrite=self.settings.overwrite
        )
        try:
            planned = self.plan()

            self._transition(RunState.PROVISIONING)
            print_step("Provisioning")
            await provisioner.prepare_root()
            directories = directory_set(planned)
            await provisioner.ensure(directories)
            console.print(f"  [green]+[/green] {len(directories)} directories ready")

            self._transition(RunState.GENERATING)
            print_step("Generating")
            written = await provisioner.write(planned)
            if len(written) != len(planned):
                raise GenerationError("tree", (len(written), len(planned)))
            self.result.files = written
            for unit in planned:
                console.print(f"  [green]+[/green] {unit.path}")

            self._transition(RunState.RESOLVING)
            deps = resolve(self.config)
            self.result.dependencies = deps

            if self.settings.install:
                self._transition(RunState.INSTALLING)
                print_step("Installing dependencies")
                await self._install(deps)
            else:
                self.result.warnings.append(
                    "Dependency installation skipped. Run manually: "
                    + manual_command(self.config.package_manager, deps)
                )

            self._transition(RunState.DONE)
        except Type3Error as exc:
            self._fail(provisioner, str(exc))
            raise
        except (KeyboardInterrupt, asyncio.CancelledError):
            self._fail(provisioner, "Interrupted")
            raise

        for warning in self.result.warnings:
            print_warning(warning)
        print_success(
            f"Project {self.config.project_name} created in "
            f"{format_duration(time.monotonic() - started)}"
        )
        return self.result

    # -- Internals ---------------------------------------------------------

    async def _install(self, deps: DependencyList) -> None:
        try:
            await self.installer.install(
                self.result.project_root, self.config.package_manager, deps
            )
        except InstallationError as exc:
            self.result.warnings.append(
                f"{exc}. The project was generated; install dependencies manually: "
                f"{exc.manual_command}"
            )
            return
        self.result.installed = True
        print_success("Dependencies installed successfully!")

    def _fail(self, provisioner: DirectoryProvisioner, message: str) -> None:
        self.result.error = message
        if self.state is not RunState.FAILED:
            self._transition(RunState.FAILED)
        if provisioner.rollback():
            message = f"{message} (partial project removed)"
        self.result.files = []
        print_error(f"Scaffolding failed: {message}")
