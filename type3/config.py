"""type3 configuration.

Two typed models live here:

* ``ProjectConfig`` -- the immutable configuration record built once from the
  user's answers.  Every content decision downstream is a pure function of it.
* ``Settings`` -- runtime knobs (output directory, install behaviour) that
  never influence generated content.

Both use Pydantic v2 so they are validated at construction time.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from type3.errors import ConfigurationError


class Language(str, Enum):
    JAVASCRIPT = "JavaScript"
    TYPESCRIPT = "TypeScript"


class PackageManager(str, Enum):
    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"


class Database(str, Enum):
    MONGODB = "MongoDB"
    MYSQL = "MySQL"
    POSTGRESQL = "PostgreSQL"
    NONE = "None"


_RESERVED_NAMES = {".", ".."}


class ProjectConfig(BaseModel):
    """The validated set of user choices driving all generation decisions."""

    model_config = ConfigDict(frozen=True)

    project_name: str = Field(..., min_length=1, description="Directory and manifest name")
    language: Language = Field(default=Language.JAVASCRIPT)
    package_manager: PackageManager = Field(default=PackageManager.NPM)
    database: Database = Field(default=Database.NONE)
    include_auth: bool = Field(default=False, description="Generate JWT authentication")
    include_log: bool = Field(default=True, description="Generate winston/morgan logging")

    @field_validator("project_name")
    @classmethod
    def _check_project_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("project name must not be empty")
        if name in _RESERVED_NAMES or "/" in name or "\\" in name:
            raise ValueError(f"project name must be a single path segment, got {value!r}")
        return name

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def is_typescript(self) -> bool:
        return self.language is Language.TYPESCRIPT

    @property
    def extension(self) -> str:
        """Source file suffix shared by every generated module."""
        return "ts" if self.is_typescript else "js"

    @property
    def has_database(self) -> bool:
        return self.database is not Database.NONE

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_answers(cls, answers: dict[str, Any]) -> "ProjectConfig":
        """Build a config from a prompt-style answers mapping.

        Accepts both the snake_case field names and the camelCase keys the
        interactive prompts produce (``projectName``, ``includeAuth``, ...).

        Raises:
            ConfigurationError: If any field is missing or outside its
                allowed values.
        """
        aliases = {
            "projectName": "project_name",
            "packageManager": "package_manager",
            "includeAuth": "include_auth",
            "includeLog": "include_log",
        }
        data = {aliases.get(key, key): value for key, value in answers.items()}
        try:
            return cls(**data)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
                for err in exc.errors()
            )
            raise ConfigurationError(f"Invalid configuration -- {problems}") from exc

    def summary(self) -> dict[str, str]:
        """Return a ``{label: value}`` mapping for console summary tables."""
        return {
            "Project": self.project_name,
            "Language": self.language.value,
            "Package manager": self.package_manager.value,
            "Database": self.database.value,
            "Authentication": "JWT" if self.include_auth else "none",
            "Logging": "winston + morgan" if self.include_log else "none",
        }


def _env_flag(name: str) -> bool | None:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Runtime settings for a scaffolding run.

    None of these values are visible in the generated files; they only
    control where the tree lands and whether dependencies get installed.
    """

    output_dir: Path = Field(default=Path("."))
    install: bool = Field(default=True, description="Run the package manager after generation")
    install_timeout: int = Field(default=600, ge=10, description="Install timeout in seconds")
    overwrite: bool = Field(
        default=False, description="Allow generating into an existing non-empty directory"
    )

    def project_root(self, config: ProjectConfig) -> Path:
        """Directory the project for *config* is generated into."""
        return self.output_dir / config.project_name

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            TYPE3_OUTPUT_DIR, TYPE3_SKIP_INSTALL, TYPE3_INSTALL_TIMEOUT,
            TYPE3_OVERWRITE.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("TYPE3_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["TYPE3_OUTPUT_DIR"])
        skip = _env_flag("TYPE3_SKIP_INSTALL")
        if skip is not None:
            kwargs["install"] = not skip
        if os.environ.get("TYPE3_INSTALL_TIMEOUT"):
            kwargs["install_timeout"] = int(os.environ["TYPE3_INSTALL_TIMEOUT"])
        overwrite = _env_flag("TYPE3_OVERWRITE")
        if overwrite is not None:
            kwargs["overwrite"] = overwrite
        return cls(**kwargs)
