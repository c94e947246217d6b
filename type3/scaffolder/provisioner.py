"""Directory provisioning and file writing for a generated project.

The provisioner is the only component that touches the filesystem.  It
creates the whole directory set before any file is written, writes each
File Unit exactly once, and can remove a project root it created when a run
fails part-way.
"""

from __future__ import annotations

import asyncio
import shutil
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from type3.errors import ProvisioningError
from type3.scaffolder.units import FileUnit

# Directories every project gets regardless of the files it contains.
ALWAYS_PRESENT: tuple[PurePosixPath, ...] = (PurePosixPath("logs"),)


def directory_set(units: Iterable[FileUnit]) -> frozenset[PurePosixPath]:
    """Union of the parent directories of *units* plus ``ALWAYS_PRESENT``."""
    dirs = set(ALWAYS_PRESENT)
    for unit in units:
        parent = unit.path.parent
        if parent != PurePosixPath("."):
            dirs.add(parent)
    return frozenset(dirs)


class DirectoryProvisioner:
    """Creates the project tree under *root*.

    Attributes:
        root: Absolute or cwd-relative project root.
        created_root: ``True`` once this provisioner created *root* itself,
            which is what makes ``rollback`` allowed to delete it.
    """

    def __init__(self, root: str | Path, *, overwrite: bool = False) -> None:
        self.root = Path(root)
        self.overwrite = overwrite
        self.created_root = False
        self._written: set[PurePosixPath] = set()

    # -- Root -------------------------------------------------------------

    async def prepare_root(self) -> Path:
        """Create the project root, refusing to merge into an existing tree."""
        root = self.root
        try:
            exists = root.exists()
            if exists:
                is_dir = root.is_dir()
                non_empty = is_dir and any(root.iterdir())
        except OSError as exc:
            raise ProvisioningError(str(root), exc.strerror or str(exc)) from exc
        if exists:
            if not is_dir:
                raise ProvisioningError(str(root), "exists and is not a directory")
            if non_empty and not self.overwrite:
                raise ProvisioningError(
                    str(root), "already exists and is not empty (use --overwrite to allow)"
                )
            return root
        try:
            await asyncio.to_thread(root.mkdir, parents=True, exist_ok=False)
        except OSError as exc:
            raise ProvisioningError(str(root), exc.strerror or str(exc)) from exc
        self.created_root = True
        return root

    # -- Directories -------------------------------------------------------

    async def ensure(self, directories: Iterable[PurePosixPath]) -> list[Path]:
        """Create every directory in *directories* concurrently.

        Creation is idempotent.  All creations are awaited before the first
        failure is reported, so no mkdir is left running in the background.

        Raises:
            ProvisioningError: If any directory could not be created.
        """
        ordered = sorted(directories)

        async def _mkdir(rel: PurePosixPath) -> Path:
            path = self.root / rel
            await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)
            return path

        results = await asyncio.gather(*(_mkdir(d) for d in ordered), return_exceptions=True)
        for rel, result in zip(ordered, results):
            if isinstance(result, BaseException):
                message = getattr(result, "strerror", None) or str(result)
                raise ProvisioningError(str(self.root / rel), message) from result
        return [r for r in results if isinstance(r, Path)]

    # -- Files -------------------------------------------------------------

    async def write(self, units: Iterable[FileUnit]) -> list[Path]:
        """Write each unit once; parent directories must already exist.

        Raises:
            ProvisioningError: On a duplicate path or any I/O failure.
        """
        written: list[Path] = []
        for unit in units:
            if unit.path in self._written:
                raise ProvisioningError(str(unit.path), "written twice in the same run")
            target = self.root / unit.path
            if not target.parent.is_dir():
                raise ProvisioningError(str(target.parent), "directory was not provisioned")
            try:
                await asyncio.to_thread(_write_file, target, unit.content)
            except OSError as exc:
                raise ProvisioningError(str(target), exc.strerror or str(exc)) from exc
            self._written.add(unit.path)
            written.append(target)
        return written

    # -- Rollback ----------------------------------------------------------

    def rollback(self) -> bool:
        """Remove the project root if this provisioner created it.

        Returns ``True`` when something was removed.  A root that existed
        before the run is left alone; only the files this run wrote are
        deleted from it.
        """
        if self.created_root:
            shutil.rmtree(self.root, ignore_errors=True)
            self.created_root = False
            self._written.clear()
            return True
        removed = False
        for rel in sorted(self._written, reverse=True):
            (self.root / rel).unlink(missing_ok=True)
            removed = True
        self._written.clear()
        return removed


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: write content with Unix newlines."""
    path.write_text(content, encoding="utf-8", newline="\n")
