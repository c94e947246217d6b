"""Command-line entry point: ``type3 init NAME [options]``."""

from __future__ import annotations

import argparse
import asyncio
import sys
from enum import Enum
from pathlib import Path
from typing import Callable, Sequence

from rich.panel import Panel

from type3 import __version__
from type3.config import Database, Language, PackageManager, ProjectConfig, Settings
from type3.dependencies import manual_command
from type3.errors import Type3Error
from type3.scaffolder.generator import ProjectGenerator
from type3.utils import console, print_summary_table

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def _enum_arg(enum_cls: type[Enum]) -> Callable[[str], Enum]:
    """argparse ``type=`` converter matching enum values case-insensitively."""
    by_value = {member.value.lower(): member for member in enum_cls}

    def convert(raw: str) -> Enum:
        try:
            return by_value[raw.strip().lower()]
        except KeyError:
            choices = ", ".join(member.value for member in enum_cls)
            raise argparse.ArgumentTypeError(f"invalid choice {raw!r} (choose from {choices})")

    convert.__name__ = enum_cls.__name__
    return convert


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="type3",
        description="type3 -- scaffold an Express backend project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  type3 init my-api\n"
            "  type3 init my-api --language TypeScript --database PostgreSQL --auth\n"
            "  type3 init my-api --package-manager pnpm --no-log --skip-install\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init = subparsers.add_parser("init", help="Generate a new project")
    init.add_argument("project_name", metavar="NAME", help="Project directory and package name")
    init.add_argument(
        "--language", "-l",
        type=_enum_arg(Language),
        default=Language.JAVASCRIPT,
        help="JavaScript or TypeScript (default: JavaScript)",
    )
    init.add_argument(
        "--package-manager", "-p",
        type=_enum_arg(PackageManager),
        default=PackageManager.NPM,
        help="npm, yarn or pnpm (default: npm)",
    )
    init.add_argument(
        "--database", "-d",
        type=_enum_arg(Database),
        default=Database.NONE,
        help="MongoDB, MySQL, PostgreSQL or None (default: None)",
    )
    init.add_argument(
        "--auth",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Generate JWT authentication (default: off)",
    )
    init.add_argument(
        "--log",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Generate winston/morgan logging (default: on)",
    )
    init.add_argument(
        "--output", "-o",
        default=None,
        help="Parent directory for the project (default: $TYPE3_OUTPUT_DIR or .)",
    )
    init.add_argument(
        "--skip-install",
        action="store_true",
        help="Do not run the package manager after generation",
    )
    init.add_argument(
        "--overwrite",
        action="store_true",
        help="Allow generating into an existing non-empty directory",
    )
    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    updates: dict[str, object] = {}
    if args.output:
        updates["output_dir"] = Path(args.output)
    if args.skip_install:
        updates["install"] = False
    if args.overwrite:
        updates["overwrite"] = True
    return settings.model_copy(update=updates)


def run_init(args: argparse.Namespace) -> int:
    """Execute ``type3 init`` and return the process exit code."""
    try:
        config = ProjectConfig.from_answers(
            {
                "project_name": args.project_name,
                "language": args.language,
                "package_manager": args.package_manager,
                "database": args.database,
                "include_auth": args.auth,
                "include_log": args.log,
            }
        )
        settings = _settings_from_args(args)
    except (Type3Error, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        return EXIT_FAILURE

    console.print(
        Panel(
            f"[bold]type3[/bold] -- generating [cyan]{config.project_name}[/cyan]\n"
            f"into {settings.project_root(config)}",
            style="cyan",
        )
    )
    print_summary_table(config.summary(), title="Project configuration")

    generator = ProjectGenerator(config, settings)
    try:
        result = asyncio.run(generator.generate())
    except KeyboardInterrupt:
        console.print("[bold yellow]Interrupted.[/bold yellow]")
        return EXIT_INTERRUPTED
    except Type3Error:
        # The orchestrator already reported the failure and rolled back.
        return EXIT_FAILURE

    console.print()
    console.print("[bold]Next steps:[/bold]")
    console.print(f"  cd {result.project_root}")
    if not result.installed and result.dependencies is not None:
        console.print(f"  {manual_command(config.package_manager, result.dependencies)}")
    console.print(f"  {config.package_manager.value} run dev")
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point for ``type3`` and ``python -m type3``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "init":
        code = run_init(args)
    else:  # pragma: no cover - argparse enforces the subcommand
        parser.print_help()
        code = EXIT_FAILURE

    if code != EXIT_OK:
        sys.exit(code)


if __name__ == "__main__":
    main()
