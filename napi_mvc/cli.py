# File: napi_mvc/cli.py
"""
napi-mvc - Command-Line Interface
==================================

Built on the standard-library ``argparse`` module.

Usage examples::

    # Generate routes/product.routes.js, models/..., controllers/...
    napi-mvc generate route product

    # Wire the router into app.js
    napi-mvc register route product

    # Point at another database / layout
    napi-mvc generate route order --database shop --user admin \\
        --routes-dir src/routes --models-dir src/models

    # No database at hand: read the table from a schema file
    napi-mvc generate route product --schema-file schema.yaml --dry-run

Exit codes:
    0: success, help, version
    1: missing argument, unknown command, or any error
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence

from napi_mvc.config import ConnectionSettings, OutputPaths
from napi_mvc.generator import GenerationReport, RouteGenerator
from napi_mvc.inspector import SchemaFileInspector, SchemaInspector, TableSource
from napi_mvc.registrar import RegistrationResult, Registrar

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("napi_mvc")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_FAILURE: int = 1


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the napi_mvc logger.

    Args:
        verbosity: -1 = WARNING, 0 = INFO, 1+ = DEBUG.
    """
    if verbosity >= 1:
        level = logging.DEBUG
    elif verbosity >= 0:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("napi_mvc")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with code 1 on usage errors."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser: argparse.ArgumentParser = _ArgumentParser(
        prog="napi-mvc",
        add_help=False,
        usage="%(prog)s <command> route <name> [options]",
        description=(
            "napi-mvc — scaffold Express route, model and controller files "
            "from a database table.\n\n"
            "Commands:\n"
            "  generate route <name>   Generate route + model + controller\n"
            "  register route <name>   Register the route in app.js\n"
            "  help                    Show this help\n\n"
            "The table must exist: for 'product' the table 'products' is used."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s generate route product\n"
            "  %(prog)s register route product\n"
            "  %(prog)s generate route category --database shop\n"
            "\n"
            "Generated files:\n"
            "  routes/<name>.routes.js          (swagger docs from table columns)\n"
            "  models/<name>.model.js           (complete CRUD)\n"
            "  controllers/<name>.controller.js (endpoints)\n"
            "\n"
            "After generating:\n"
            "  1. Run: napi-mvc register route <name>\n"
            "  2. Restart the server\n"
            "  3. Test on http://localhost:3000/api-docs\n"
        ),
    )

    parser.add_argument("command", nargs="?", help=argparse.SUPPRESS)
    parser.add_argument("target", nargs="?", help=argparse.SUPPRESS)
    parser.add_argument("name", nargs="?", help=argparse.SUPPRESS)

    parser.add_argument(
        "-h", "--help",
        action="store_true",
        default=False,
        help="Show this help and exit.",
    )
    parser.add_argument(
        "-v", "--version",
        action="store_true",
        default=False,
        help="Show the version and exit.",
    )

    # --- Database ---
    db_group = parser.add_argument_group(
        "database (falls back to DB_* environment variables)"
    )
    db_group.add_argument("--host", default=None, metavar="HOST", help="Database host.")
    db_group.add_argument("--port", type=int, default=None, metavar="PORT", help="Database port.")
    db_group.add_argument("--user", default=None, metavar="USER", help="Database user.")
    db_group.add_argument("--password", default=None, metavar="PASSWORD", help="Database password.")
    db_group.add_argument("--database", default=None, metavar="NAME", help="Database name.")
    db_group.add_argument(
        "--url",
        default=None,
        metavar="URL",
        help="Full SQLAlchemy URL; overrides host/user/password/database.",
    )
    db_group.add_argument(
        "--schema-file",
        default=None,
        metavar="PATH",
        help="Read the table from a JSON/YAML schema file instead of a database.",
    )

    # --- Output ---
    out_group = parser.add_argument_group("output locations (default: ./<dir>)")
    out_group.add_argument("--routes-dir", default=None, metavar="DIR")
    out_group.add_argument("--models-dir", default=None, metavar="DIR")
    out_group.add_argument("--controllers-dir", default=None, metavar="DIR")
    out_group.add_argument(
        "--app-path", default=None, metavar="PATH", help="Wiring file (default: ./app.js)."
    )
    out_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Render everything but don't write files.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "--verbose",
        action="count",
        default=0,
        help="Show debug output.",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Only show warnings and errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Builders from arguments
# ---------------------------------------------------------------------------


def _build_paths(args: argparse.Namespace) -> OutputPaths:
    return OutputPaths.resolve(
        routes_dir=args.routes_dir,
        models_dir=args.models_dir,
        controllers_dir=args.controllers_dir,
        app_path=args.app_path,
    )


def _build_source(args: argparse.Namespace) -> TableSource:
    if args.schema_file:
        return SchemaFileInspector(Path(args.schema_file))

    settings: ConnectionSettings = ConnectionSettings.resolve(
        host=args.host,
        port=args.port,
        user=args.user,
        password=args.password,
        name=args.database,
        url=args.url,
    )
    logger.debug("Catalog: %s", settings.display_url())
    return SchemaInspector(settings)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _run_generate(args: argparse.Namespace) -> int:
    try:
        generator: RouteGenerator = RouteGenerator(_build_source(args), _build_paths(args))
        report: GenerationReport = generator.generate_route(args.name, dry_run=args.dry_run)
    except Exception as exc:
        logger.error("Error: %s", exc)
        logger.debug("Generation failed.", exc_info=True)
        return EXIT_FAILURE

    print(report.summary())
    print(f"✅ Route generated for {report.resource}")
    return EXIT_SUCCESS


def _run_register(args: argparse.Namespace) -> int:
    try:
        registrar: Registrar = Registrar(_build_paths(args).app_path)
        result: RegistrationResult = registrar.register_route(args.name)
    except Exception as exc:
        logger.error("Error registering route: %s", exc)
        logger.debug("Registration failed.", exc_info=True)
        return EXIT_FAILURE

    if result.already_registered:
        print(f"✅ Route {result.mount_path} already registered")
    elif result.complete:
        print(f"✅ Route registered for {result.resource}: {result.mount_path}")
        print("   Restart the server and test on http://localhost:3000/api-docs")
    else:
        print(f"⚠️  Route for {result.resource} only partially registered in {result.app_path}")
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    from napi_mvc import __version__

    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
    elif args.verbose or os.environ.get("DEBUG"):
        verbosity = max(args.verbose, 1)
    else:
        verbosity = 0
    _setup_logging(verbosity)

    if args.version:
        print(f"napi-mvc v{__version__}")
        sys.exit(EXIT_SUCCESS)

    if args.help or args.command in (None, "help"):
        parser.print_help()
        sys.exit(EXIT_SUCCESS)

    if args.command not in ("generate", "register") or args.target != "route":
        parser.print_help()
        sys.exit(EXIT_FAILURE)

    if not args.name:
        logger.error(
            "Model name required: napi-mvc %s route <modelName>", args.command
        )
        sys.exit(EXIT_FAILURE)

    if args.command == "generate":
        exit_code: int = _run_generate(args)
    else:
        exit_code = _run_register(args)

    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_FAILURE",
]
