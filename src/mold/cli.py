"""
Command-line interface for mold.
"""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import time
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .catalog import explain_recipe, format_explanation, format_listing, list_recipes
from .config import MoldConfig, load_config, split_environments
from .discovery import discover
from .environments import invocation_scope
from .errors import CommandCancelledError, CommandFailedError, MoldError
from .lang.formatter import format_source
from .logging_utils import configure_logging
from .parser import parse_file, read_source
from .resolver import Namespace, load_namespace
from .runtime.capabilities import Capabilities
from .runtime.engine import RecipeExecutor, run_recipes
from .runtime.process import CancelToken, ProcessRunner
from .version import __version__

logger = logging.getLogger("mold.cli")


def build_cli_parser() -> argparse.ArgumentParser:
    cli = argparse.ArgumentParser(prog="mold", description="A tiny task runner driven by moldfiles")
    cli.add_argument(
        "--version",
        action="version",
        version=f"mold {__version__} (Python {sys.version.split()[0]})",
    )
    cli.add_argument("-f", "--file", type=Path, help="Path to the moldfile (discovered upward by default)")
    cli.add_argument("-e", "--env", help="Comma separated environments to activate (default: $MOLDENV)")
    cli.add_argument("-a", "--add", action="append", default=[], metavar="NAME", help="Activate one more environment")
    cli.add_argument("--log-level", help="debug, info, warning, error (default: $MOLD_LOG_LEVEL or warning)")
    sub = cli.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run", help="Run recipes in order")
    run_cmd.add_argument("targets", nargs="+", metavar="RECIPE|NAME=VALUE")
    run_cmd.add_argument("--dry-run", action="store_true", help="Plan and check requirements without running commands")
    run_cmd.add_argument("--timeout", type=float, help="Abort after this many seconds")

    sub.add_parser("list", help="List recipes with their help text")

    explain_cmd = sub.add_parser("explain", help="Show what a recipe would do")
    explain_cmd.add_argument("recipe")

    parse_cmd = sub.add_parser("parse", help="Parse a moldfile and show the AST as JSON")
    parse_cmd.add_argument("path", type=Path)

    fmt_cmd = sub.add_parser("fmt", help="Format a moldfile")
    fmt_cmd.add_argument("path", type=Path, nargs="?", help="Moldfile to format (default: the discovered one)")
    fmt_cmd.add_argument("--check", action="store_true", help="Exit non-zero if the file is not formatted")
    fmt_cmd.add_argument("--write", action="store_true", help="Rewrite the file in place")

    serve_cmd = sub.add_parser("serve", help="Start the read-only HTTP catalog")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8000)
    serve_cmd.add_argument("--dry-run", action="store_true", help="Build app but do not start server")
    return cli


def split_targets(targets: Sequence[str]) -> Tuple[List[str], Dict[str, str]]:
    """Separate recipe names from NAME=VALUE arguments."""
    recipes: List[str] = []
    args: Dict[str, str] = {}
    for target in targets:
        if "=" in target:
            key, value = target.split("=", 1)
            if not key:
                raise SystemExit(f"Invalid argument '{target}'")
            args[key] = value
        else:
            recipes.append(target)
    return recipes, args


def _environments(args: argparse.Namespace, config: MoldConfig) -> List[str]:
    names = split_environments(args.env) if args.env is not None else list(config.environments)
    for name in args.add:
        if name not in names:
            names.append(name)
    return names


def _load(args: argparse.Namespace, config: MoldConfig) -> Namespace:
    path = discover(Path.cwd(), args.file or config.moldfile)
    logger.debug("using moldfile %s", path)
    return load_namespace(path, invocation_scope(_environments(args, config)))


def _report(exc: MoldError) -> int:
    print(f"error: {exc}", file=sys.stderr)
    if isinstance(exc, CommandFailedError) and exc.exit_status > 0:
        return exc.exit_status
    if isinstance(exc, CommandCancelledError):
        return 130
    return 1


def main(argv: Optional[List[str]] = None) -> None:
    cli = build_cli_parser()
    args = cli.parse_args(argv)
    config = load_config(project_root=Path.cwd())
    configure_logging(args.log_level or config.log_level)

    try:
        _dispatch(args, config)
    except MoldError as exc:
        logger.debug("command failed", exc_info=True)
        raise SystemExit(_report(exc)) from exc
    except OSError as exc:
        logger.debug("command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


def _dispatch(args: argparse.Namespace, config: MoldConfig) -> None:
    if args.command == "parse":
        document = parse_file(args.path)
        print(json.dumps(asdict(document), indent=2))
        return

    if args.command == "fmt":
        path = args.path or discover(Path.cwd(), args.file or config.moldfile)
        source = read_source(path)
        formatted = format_source(source)
        if args.check:
            if formatted != source:
                print(f"{path} is not formatted", file=sys.stderr)
                raise SystemExit(1)
            return
        if args.write:
            if formatted != source:
                path.write_text(formatted, encoding="utf-8")
                print(f"Formatted {path}")
            return
        sys.stdout.write(formatted)
        return

    if args.command == "list":
        output = format_listing(list_recipes(_load(args, config)))
        if output:
            print(output)
        return

    if args.command == "explain":
        namespace = _load(args, config)
        print(format_explanation(explain_recipe(namespace, args.recipe, _executor(config))))
        return

    if args.command == "run":
        recipes, recipe_args = split_targets(args.targets)
        if not recipes:
            raise SystemExit("No recipe given")
        namespace = _load(args, config)
        executor = _executor(config)
        if args.dry_run:
            for name in recipes:
                result = executor.execute(namespace.find(name), namespace, args=recipe_args, dry_run=True)
                for planned in result.plan.commands:
                    print(f"{result.recipe}: $ {planned.command}")
            return
        deadline = time.monotonic() + args.timeout if args.timeout else None
        cancel = CancelToken()
        # Ctrl-C stops the running command and reports a cancellation
        previous = signal.signal(signal.SIGINT, lambda signum, frame: cancel.cancel())
        try:
            run_recipes(namespace, recipes, recipe_args, executor=executor, cancel=cancel, deadline=deadline)
        finally:
            signal.signal(signal.SIGINT, previous)
        return

    if args.command == "serve":
        try:
            from .server import create_app
        except Exception as exc:  # pragma: no cover - load-time guard
            raise SystemExit(f"Failed to import server: {exc}") from exc
        app = create_app(moldfile=args.file or config.moldfile, project_root=Path.cwd())
        if args.dry_run:
            print(
                json.dumps(
                    {"status": "ready", "host": args.host, "port": args.port},
                    indent=2,
                )
            )
            return
        try:
            import uvicorn
        except ImportError as exc:  # pragma: no cover - runtime check
            raise SystemExit("uvicorn is required to run the server") from exc
        uvicorn.run(app, host=args.host, port=args.port)
        return


def _executor(config: MoldConfig) -> RecipeExecutor:
    return RecipeExecutor(Capabilities(), ProcessRunner(shell=config.shell))


if __name__ == "__main__":  # pragma: no cover
    main()
