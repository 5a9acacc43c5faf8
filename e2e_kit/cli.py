"""
Command-line entry point: ``e2e-kit``.

Subcommands::

    e2e-kit set-config parallel|sequential|headless|headed|env:<name>
    e2e-kit bootstrap
    e2e-kit cleanup
    e2e-kit run [--headed] [--sequential] [-m EXPR] [-k EXPR] [paths...]

``set-config`` edits ``settings.json`` one switch at a time; ``run``
turns the saved switches plus flags into pytest arguments (parallel mode
becomes ``-n auto`` for pytest-xdist) and returns pytest's exit code.

Exit codes:

- ``0`` -- success (for ``run``: every selected test passed)
- ``1`` -- invalid option, failed bootstrap, or failing tests
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from dataclasses import replace

import pytest

from e2e_kit.config import ENVIRONMENTS, get_config, load_settings, save_settings, settings_path
from e2e_kit.errors import BootstrapError
from e2e_kit.session_bootstrap import cleanup_run, ensure_session

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1

SET_CONFIG_USAGE = (
    "Usage: e2e-kit set-config <option>\n"
    "Options:\n"
    "  parallel        - Run tests in parallel\n"
    "  sequential      - Run tests sequentially\n"
    "  headless        - Run tests in headless mode\n"
    "  headed          - Run tests in headed mode\n"
    f"  env:<name>      - Set environment ({', '.join(ENVIRONMENTS)})"
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="e2e-kit", description="Browser end-to-end test framework utilities."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    set_config = subparsers.add_parser("set-config", help="Change one run setting")
    set_config.add_argument("option", nargs="?", help="parallel, sequential, headless, headed or env:<name>")

    subparsers.add_parser("bootstrap", help="Log in once and save the session snapshot")
    subparsers.add_parser("cleanup", help="Clear temp files and archive test results")

    run = subparsers.add_parser("run", help="Run the test suite with pytest")
    run.add_argument("--headed", action="store_true", help="Show the browser window")
    run.add_argument("--sequential", action="store_true", help="Force a single worker")
    run.add_argument(
        "-m", dest="markers", default="e2e", help="Marker expression to select (default: e2e)"
    )
    run.add_argument("-k", dest="keyword", help="Only run tests matching this keyword expression")
    run.add_argument("paths", nargs="*", help="Test files or directories")
    return parser


def set_config(option: str | None) -> int:
    """
    Apply one ``set-config`` option to the saved settings.

    Returns:
        ``EXIT_OK`` when the settings were written, ``EXIT_ERROR`` when the
        option is missing or invalid (nothing is written).
    """
    if not option:
        print(SET_CONFIG_USAGE, file=sys.stderr)
        return EXIT_ERROR

    settings = load_settings()
    if option in ("parallel", "sequential"):
        settings = replace(settings, execution_mode=option)
    elif option in ("headless", "headed"):
        settings = replace(settings, browser_mode=option)
    elif option.startswith("env:"):
        environment = option.split(":", 1)[1]
        if environment not in ENVIRONMENTS:
            print(
                f"Invalid environment: {environment!r}. "
                f"Valid environments: {', '.join(ENVIRONMENTS)}",
                file=sys.stderr,
            )
            return EXIT_ERROR
        settings = replace(settings, environment=environment)
    else:
        print(f"Invalid option: {option}\n{SET_CONFIG_USAGE}", file=sys.stderr)
        return EXIT_ERROR

    path = save_settings(settings)
    print(f"Settings written to {path}: {settings.to_dict()}")
    return EXIT_OK


def build_pytest_args(
    *,
    headed: bool = False,
    sequential: bool = False,
    markers: str | None = None,
    keyword: str | None = None,
    paths: Sequence[str] = (),
) -> list[str]:
    """Translate saved settings plus command-line flags into pytest arguments."""
    settings = load_settings()
    args: list[str] = []

    if sequential or not settings.is_parallel:
        args += ["-n", "0"]
    else:
        args += ["-n", "auto"]
    if headed or not settings.headless:
        args.append("--headed")
    if markers:
        args += ["-m", markers]
    if keyword:
        args += ["-k", keyword]
    args += list(paths)
    return args


def run_bootstrap() -> int:
    try:
        path = ensure_session(get_config())
    except BootstrapError as exc:
        print(f"Bootstrap failed: {exc}", file=sys.stderr)
        return EXIT_ERROR
    print(f"Session snapshot written to {path}")
    return EXIT_OK


def run_cleanup() -> int:
    archived = cleanup_run(get_config())
    if archived is not None:
        print(f"Test results archived to {archived}")
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """
    Entry point for the ``e2e-kit`` console script.

    Returns:
        The process exit code.
    """
    args = build_parser().parse_args(argv)

    if args.command == "set-config":
        return set_config(args.option)
    if args.command == "bootstrap":
        return run_bootstrap()
    if args.command == "cleanup":
        return run_cleanup()

    pytest_args = build_pytest_args(
        headed=args.headed,
        sequential=args.sequential,
        markers=args.markers,
        keyword=args.keyword,
        paths=args.paths,
    )
    logger.info("Running pytest %s (settings: %s)", " ".join(pytest_args), settings_path())
    return int(pytest.main(pytest_args))


if __name__ == "__main__":
    raise SystemExit(main())
