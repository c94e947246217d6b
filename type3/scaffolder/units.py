"""File Unit generators.

One generator per logical artifact of the generated project.  Each takes the
configuration record and returns the ``FileUnit`` (or units) it produces;
none of them touch the filesystem.  Content comes from the variant the
selector picks plus the shared contract in ``contracts``.
"""

from __future__ import annotations

import functools
import json
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any

from type3.config import ProjectConfig
from type3.dependencies import manual_command, resolve
from type3.scaffolder import contracts
from type3.scaffolder.templates import TemplateRenderer
from type3.scaffolder.variants import VARIANT_FIELDS, UnitKind, Variant, select


@dataclass(frozen=True)
class FileUnit:
    """One generated file: a project-relative path and its full content."""

    path: PurePosixPath
    content: str


# Exported names shared by every template, keyed the way templates spell them.
SYMBOLS: dict[str, Any] = {
    "db_connector": contracts.DB_CONNECTOR,
    "sequelize": contracts.SEQUELIZE_INSTANCE,
    "user_model": contracts.USER_MODEL,
    "auth_middleware": contracts.AUTH_MIDDLEWARE,
    "token_factory": contracts.TOKEN_FACTORY,
    "hash_password": contracts.HASH_PASSWORD,
    "compare_password": contracts.COMPARE_PASSWORD,
    "auth_utils": list(contracts.AUTH_UTILS),
    "logger": contracts.LOGGER,
    "http_logger": contracts.HTTP_LOGGER,
    "router": contracts.ROUTER,
}

MODULES: dict[str, str] = {
    "server": contracts.SERVER_MODULE,
    "database": contracts.DATABASE_MODULE,
    "user_model": contracts.USER_MODEL_MODULE,
    "auth_utils": contracts.AUTH_UTILS_MODULE,
    "auth_middleware": contracts.AUTH_MIDDLEWARE_MODULE,
    "logger": contracts.LOGGER_MODULE,
    "http_logger": contracts.HTTP_LOGGER_MODULE,
}

_MANIFEST_DESCRIPTION = "Express backend generated by type3"


class UnitGenerator:
    """Builds the File Units of a project, one logical artifact at a time."""

    _UNIT_METHODS: dict[UnitKind, str] = {
        UnitKind.MANIFEST: "manifest",
        UnitKind.TSCONFIG: "tsconfig",
        UnitKind.ENV: "env",
        UnitKind.GITIGNORE: "gitignore",
        UnitKind.README: "readme",
        UnitKind.DATABASE_CONFIG: "database_config",
        UnitKind.MODEL: "model",
        UnitKind.SERVICE: "service",
        UnitKind.CONTROLLER: "controller",
        UnitKind.ROUTER: "router",
        UnitKind.AUTH_UTILS: "auth_utils",
        UnitKind.AUTH_MIDDLEWARE: "auth_middleware",
        UnitKind.EXPRESS_TYPES: "express_types",
        UnitKind.LOGGER: "logger",
        UnitKind.HTTP_LOGGER: "http_logger",
        UnitKind.SERVER: "server",
    }

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self.renderer = renderer or TemplateRenderer()

    def generate(self, kind: UnitKind, config: ProjectConfig) -> list[FileUnit]:
        """Dispatch to the generator for *kind*; always returns a list."""
        method = getattr(self, self._UNIT_METHODS[kind])
        result = method(config)
        return result if isinstance(result, list) else [result]

    # -- Structured (JSON) units ---------------------------------------------

    def manifest(self, config: ProjectConfig) -> FileUnit:
        variant = select(UnitKind.MANIFEST, config)
        package = {
            "name": config.project_name,
            "version": "1.0.0",
            "description": _MANIFEST_DESCRIPTION,
            "main": variant.context["main"],
            "scripts": dict(variant.context["scripts"]),
            "dependencies": {},
            "devDependencies": {},
        }
        return FileUnit(PurePosixPath("package.json"), _dump_json(package))

    def tsconfig(self, config: ProjectConfig) -> FileUnit:
        variant = select(UnitKind.TSCONFIG, config)
        tsconfig = {
            "compilerOptions": dict(variant.context["compiler_options"]),
            "include": ["src/**/*"],
            "exclude": ["node_modules", "dist"],
            "ts-node": {"files": True},
        }
        return FileUnit(PurePosixPath("tsconfig.json"), _dump_json(tsconfig))

    # -- Project-level documents ---------------------------------------------

    def env(self, config: ProjectConfig) -> list[FileUnit]:
        """``.env`` for local use plus an identical, committable ``.env.example``."""
        content = self._render(UnitKind.ENV, config)
        return [
            FileUnit(PurePosixPath(".env"), content),
            FileUnit(PurePosixPath(".env.example"), content),
        ]

    def gitignore(self, config: ProjectConfig) -> FileUnit:
        return FileUnit(PurePosixPath(".gitignore"), self._render(UnitKind.GITIGNORE, config))

    def readme(self, config: ProjectConfig) -> FileUnit:
        return FileUnit(PurePosixPath("README.md"), self._render(UnitKind.README, config))

    # -- Source modules --------------------------------------------------------

    def database_config(self, config: ProjectConfig) -> FileUnit:
        return self._source(UnitKind.DATABASE_CONFIG, config, contracts.DATABASE_MODULE)

    def model(self, config: ProjectConfig) -> FileUnit:
        return self._source(UnitKind.MODEL, config, contracts.USER_MODEL_MODULE)

    def service(self, config: ProjectConfig) -> FileUnit:
        module = contracts.resource_for(config).service_module
        return self._source(UnitKind.SERVICE, config, module)

    def controller(self, config: ProjectConfig) -> FileUnit:
        module = contracts.resource_for(config).controller_module
        return self._source(UnitKind.CONTROLLER, config, module)

    def router(self, config: ProjectConfig) -> FileUnit:
        module = contracts.resource_for(config).router_module
        return self._source(UnitKind.ROUTER, config, module)

    def auth_utils(self, config: ProjectConfig) -> FileUnit:
        return self._source(UnitKind.AUTH_UTILS, config, contracts.AUTH_UTILS_MODULE)

    def auth_middleware(self, config: ProjectConfig) -> FileUnit:
        return self._source(UnitKind.AUTH_MIDDLEWARE, config, contracts.AUTH_MIDDLEWARE_MODULE)

    def express_types(self, config: ProjectConfig) -> FileUnit:
        path = PurePosixPath(contracts.SOURCE_ROOT) / contracts.EXPRESS_TYPES_FILE
        return FileUnit(path, self._render(UnitKind.EXPRESS_TYPES, config))

    def logger(self, config: ProjectConfig) -> FileUnit:
        return self._source(UnitKind.LOGGER, config, contracts.LOGGER_MODULE)

    def http_logger(self, config: ProjectConfig) -> FileUnit:
        return self._source(UnitKind.HTTP_LOGGER, config, contracts.HTTP_LOGGER_MODULE)

    def server(self, config: ProjectConfig) -> FileUnit:
        return self._source(UnitKind.SERVER, config, contracts.SERVER_MODULE)

    # -- Rendering -------------------------------------------------------------

    def _source(self, kind: UnitKind, config: ProjectConfig, module: str) -> FileUnit:
        content = self._render(kind, config, module=module)
        return FileUnit(contracts.source_path(module, config), content)

    def _render(self, kind: UnitKind, config: ProjectConfig, module: str | None = None) -> str:
        variant = select(kind, config)
        assert variant.template is not None, f"{kind.value} is not a template unit"
        return self.renderer.render(variant.template, build_context(kind, config, variant, module))


def build_context(
    kind: UnitKind,
    config: ProjectConfig,
    variant: Variant,
    module: str | None = None,
) -> dict[str, Any]:
    """Assemble the template context for one unit.

    The route table is only exposed to units whose variant key carries both
    ``database`` and ``include_auth``, the two fields it is derived from.
    """
    context: dict[str, Any] = {
        **variant.context,
        "project_name": config.project_name,
        "sym": SYMBOLS,
        "mod": MODULES,
        "api_prefix": contracts.API_PREFIX,
        "health_path": contracts.HEALTH_PATH,
        "whoami_path": contracts.WHOAMI_PATH,
    }
    if {"database", "include_auth"} <= set(VARIANT_FIELDS[kind]):
        context["resource"] = contracts.resource_for(config)
    if kind is UnitKind.README:
        context["install_command"] = manual_command(config.package_manager, resolve(config))
    if module is not None:
        context["rel"] = functools.partial(contracts.import_path, module)
    return context


def _dump_json(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2) + "\n"
