"""type3 scaffolder -- composes a complete Express project tree.

This package takes a validated ``ProjectConfig`` and produces every File
Unit the configuration needs (manifest, tooling files, persistence layer or
greeting fallback, auth and logging modules, entry point), provisions the
directory set and writes the units.

Quick usage::

    from type3.config import ProjectConfig, Settings
    from type3.scaffolder import ProjectGenerator

    config = ProjectConfig(project_name="my-api", database="PostgreSQL")
    result = await ProjectGenerator(config, Settings(install=False)).generate()
"""

from type3.scaffolder.generator import ProjectGenerator, RunResult, RunState
from type3.scaffolder.provisioner import DirectoryProvisioner, directory_set
from type3.scaffolder.templates import TemplateRenderer
from type3.scaffolder.units import FileUnit, UnitGenerator
from type3.scaffolder.variants import UnitKind, required_units, select, validate

__all__ = [
    "DirectoryProvisioner",
    "FileUnit",
    "ProjectGenerator",
    "RunResult",
    "RunState",
    "TemplateRenderer",
    "UnitGenerator",
    "UnitKind",
    "directory_set",
    "required_units",
    "select",
    "validate",
]
