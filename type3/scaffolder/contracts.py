"""Cross-file contract shared by every generated module.

Module locations, exported symbol names and route tables are declared once
here.  Templates never spell an import path or a handler name themselves:
they receive them from this module, so the router always imports exactly
what the controller exports and the entry point only references modules
that are part of the current run.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from pathlib import PurePosixPath

from type3.config import ProjectConfig

SOURCE_ROOT = "src"
API_PREFIX = "/api"

# ---------------------------------------------------------------------------
# Module locations (relative to ``src/``, without extension)
# ---------------------------------------------------------------------------

SERVER_MODULE = "server"
DATABASE_MODULE = "config/database"
USER_MODEL_MODULE = "models/user.model"
AUTH_UTILS_MODULE = "utils/auth.utils"
AUTH_MIDDLEWARE_MODULE = "middleware/auth.middleware"
LOGGER_MODULE = "utils/logger"
HTTP_LOGGER_MODULE = "middleware/http-logger.middleware"
EXPRESS_TYPES_FILE = "types/express.d.ts"

# ---------------------------------------------------------------------------
# Exported symbols
# ---------------------------------------------------------------------------

DB_CONNECTOR = "connectDatabase"
SEQUELIZE_INSTANCE = "sequelize"
USER_MODEL = "User"
AUTH_MIDDLEWARE = "authenticate"
TOKEN_FACTORY = "generateToken"
HASH_PASSWORD = "hashPassword"
COMPARE_PASSWORD = "comparePassword"
AUTH_UTILS = (TOKEN_FACTORY, HASH_PASSWORD, COMPARE_PASSWORD)
LOGGER = "logger"
HTTP_LOGGER = "httpLogger"
ROUTER = "router"

# Health check and (no-database + auth) identity route live in the entry point.
HEALTH_PATH = "/health"
WHOAMI_PATH = f"{API_PREFIX}/me"


@dataclass(frozen=True)
class Route:
    """One Express route: ``router.<method>(path, [guard,] handler)``."""

    method: str
    path: str
    handler: str
    protected: bool = False


@dataclass(frozen=True)
class Resource:
    """The service/controller/router triple generated for a configuration."""

    name: str
    service_class: str
    routes: tuple[Route, ...]

    @property
    def service_module(self) -> str:
        return f"services/{self.name}.service"

    @property
    def controller_module(self) -> str:
        return f"controllers/{self.name}.controller"

    @property
    def router_module(self) -> str:
        return f"routes/{self.name}.routes"

    @property
    def handlers(self) -> list[str]:
        """Controller exports in route order, without duplicates."""
        seen: list[str] = []
        for route in self.routes:
            if route.handler not in seen:
                seen.append(route.handler)
        return seen

    @property
    def has_protected_routes(self) -> bool:
        return any(route.protected for route in self.routes)


_AUTH_USER_ROUTES = (
    Route("post", "/auth/register", "register"),
    Route("post", "/auth/login", "login"),
    Route("get", "/users", "listUsers", protected=True),
    Route("get", "/users/:id", "getUser", protected=True),
    Route("put", "/users/:id", "updateUser", protected=True),
    Route("delete", "/users/:id", "deleteUser", protected=True),
)

_OPEN_USER_ROUTES = (
    Route("post", "/users", "createUser"),
    Route("get", "/users", "listUsers"),
    Route("get", "/users/:id", "getUser"),
    Route("put", "/users/:id", "updateUser"),
    Route("delete", "/users/:id", "deleteUser"),
)

_GREETING_ROUTES = (Route("get", "/hello", "sayHello"),)


def resource_for(config: ProjectConfig) -> Resource:
    """Return the resource wired for *config*.

    Without a database the project falls back to a single greeting endpoint
    so every configuration still serves at least one route.
    """
    if not config.has_database:
        return Resource(name="hello", service_class="HelloService", routes=_GREETING_ROUTES)
    routes = _AUTH_USER_ROUTES if config.include_auth else _OPEN_USER_ROUTES
    return Resource(name="user", service_class="UserService", routes=routes)


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


def source_path(module: str, config: ProjectConfig) -> PurePosixPath:
    """Project-relative path of a source module, e.g. ``src/config/database.ts``."""
    return PurePosixPath(SOURCE_ROOT) / f"{module}.{config.extension}"


def import_path(from_module: str, to_module: str) -> str:
    """Relative import specifier from one ``src`` module to another.

    Both arguments are module locations relative to ``src/`` without an
    extension.  The result always starts with ``./`` or ``../`` as Node's
    resolver requires.
    """
    start = posixpath.dirname(from_module) or "."
    rel = posixpath.relpath(to_module, start)
    if not rel.startswith("."):
        rel = f"./{rel}"
    return rel
