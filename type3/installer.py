"""Package installation for a freshly generated project.

Runs the chosen package manager once per dependency group inside the
project root.  Installation is never retried; a failure is reported through
``InstallationError`` carrying the command the user can run by hand.
"""

from __future__ import annotations

from pathlib import Path

from type3.config import PackageManager
from type3.dependencies import DependencyList, install_commands, manual_command
from type3.errors import InstallationError
from type3.utils import console, create_progress, run_command


class Installer:
    """Invokes ``npm``/``yarn``/``pnpm`` for a generated project."""

    def __init__(self, timeout: int = 600) -> None:
        self.timeout = timeout

    async def install(
        self,
        project_root: Path,
        manager: PackageManager,
        deps: DependencyList,
    ) -> list[list[str]]:
        """Install *deps* into *project_root*.

        Returns:
            The commands that were executed, in order.

        Raises:
            InstallationError: If any command exits non-zero or times out.
        """
        commands = install_commands(manager, deps)
        for cmd in commands:
            console.print(f"  [cyan]$[/cyan] {' '.join(cmd)}")
            # Output is captured for the error message, so show a live spinner instead.
            with create_progress() as progress:
                progress.add_task(
                    f"Waiting for {manager.value} (output is shown only on failure)", total=None
                )
                returncode, _stdout, stderr = await run_command(
                    cmd, cwd=project_root, timeout=self.timeout, capture=True
                )
            if returncode != 0:
                detail = stderr.splitlines()[-1] if stderr else f"exit code {returncode}"
                raise InstallationError(
                    f"{manager.value} failed: {detail}",
                    manual_command=manual_command(manager, deps),
                )
        return commands
