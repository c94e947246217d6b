"""Dependency resolution for generated projects.

``resolve`` maps a configuration to the runtime and development package
lists the project needs.  Lists are assembled from per-feature contributions
in a fixed priority (base, database, auth, logging) so the same
configuration always produces the same install command.
"""

from __future__ import annotations

from dataclasses import dataclass

from type3.config import Database, PackageManager, ProjectConfig

BASE_RUNTIME: tuple[str, ...] = ("express", "dotenv", "cors", "cookie-parser", "helmet")

DATABASE_RUNTIME: dict[Database, tuple[str, ...]] = {
    Database.MONGODB: ("mongoose",),
    Database.MYSQL: ("mysql2", "sequelize"),
    Database.POSTGRESQL: ("pg", "pg-hstore", "sequelize"),
    Database.NONE: (),
}

AUTH_RUNTIME: tuple[str, ...] = ("jsonwebtoken", "bcryptjs")
LOG_RUNTIME: tuple[str, ...] = ("winston", "morgan")

BASE_DEV: tuple[str, ...] = ("nodemon", "eslint")
TYPESCRIPT_DEV: tuple[str, ...] = (
    "typescript",
    "ts-node",
    "@types/node",
    "@types/express",
    "@types/cors",
    "@types/cookie-parser",
)
TYPESCRIPT_AUTH_DEV: tuple[str, ...] = ("@types/jsonwebtoken", "@types/bcryptjs")
TYPESCRIPT_LOG_DEV: tuple[str, ...] = ("@types/morgan",)

# (runtime subcommand, dev subcommand + flag)
_INSTALL_VERBS: dict[PackageManager, tuple[list[str], list[str]]] = {
    PackageManager.NPM: (["install"], ["install", "-D"]),
    PackageManager.YARN: (["add"], ["add", "-D"]),
    PackageManager.PNPM: (["add"], ["add", "-D"]),
}


@dataclass(frozen=True)
class DependencyList:
    """Ordered, duplicate-free runtime and development package names."""

    runtime: tuple[str, ...]
    dev: tuple[str, ...]

    @property
    def combined(self) -> tuple[str, ...]:
        return self.runtime + self.dev


def _unique(*groups: tuple[str, ...]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for group in groups:
        for name in group:
            seen.setdefault(name, None)
    return tuple(seen)


def resolve(config: ProjectConfig) -> DependencyList:
    """Return the packages *config* needs, base first then database, auth, logging."""
    runtime = _unique(
        BASE_RUNTIME,
        DATABASE_RUNTIME[config.database],
        AUTH_RUNTIME if config.include_auth else (),
        LOG_RUNTIME if config.include_log else (),
    )
    dev_groups: list[tuple[str, ...]] = [BASE_DEV]
    if config.is_typescript:
        dev_groups.append(TYPESCRIPT_DEV)
        if config.include_auth:
            dev_groups.append(TYPESCRIPT_AUTH_DEV)
        if config.include_log:
            dev_groups.append(TYPESCRIPT_LOG_DEV)
    return DependencyList(runtime=runtime, dev=_unique(*dev_groups))


def install_commands(manager: PackageManager, deps: DependencyList) -> list[list[str]]:
    """Argument vectors that install *deps* with *manager*.

    Runtime and development packages go in separate invocations because
    ``yarn add`` and ``pnpm add`` apply ``-D`` to every package on the line.
    """
    runtime_verb, dev_verb = _INSTALL_VERBS[manager]
    commands: list[list[str]] = []
    if deps.runtime:
        commands.append([manager.value, *runtime_verb, *deps.runtime])
    if deps.dev:
        commands.append([manager.value, *dev_verb, *deps.dev])
    return commands


def manual_command(manager: PackageManager, deps: DependencyList) -> str:
    """Human-readable form of ``install_commands`` for warnings and docs."""
    return " && ".join(" ".join(cmd) for cmd in install_commands(manager, deps))
