#!/usr/bin/env python3
"""regionviz/main.py - CLI entry-point for the region printer.

Usage examples
--------------
    # Write reg.<function>.dot for every function in the input
    regionviz dot loop.json -o out/

    # Same, block names only, filling only simple regions
    regionviz dot loop.sexp --regions-only --only-simple-regions

    # Print the DOT document of one function to stdout
    regionviz print loop.json --function loop

    # Lay the graph out with Graphviz and open the viewer
    regionviz view loop.json

    # Run one of the named passes
    regionviz run dot-regions-only loop.json

    # List the named passes
    regionviz passes

Exit codes
----------
    0   Success.
    1   Bad input (malformed document, broken region tree, viewer failure).
    2   Infrastructure failure (missing file, bad arguments).

The module doubles as ``python -m regionviz`` via the companion
``regionviz/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from pathlib import Path
from typing import (
    List,
    Optional,
    Sequence,
    TextIO,
)

from . import __version__

_log = logging.getLogger("regionviz")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the root ``regionviz`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("regionviz")
    root.setLevel(level)
    root.handlers[:] = [handler]


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.exists():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _load(args: argparse.Namespace) -> List:
    from .loader import load_file, select_functions

    path = _resolve_path(args.input, "input file")
    infos = load_file(path, args.format)
    return select_functions(infos, args.function)


def _config(args: argparse.Namespace, simple: Optional[bool] = None):
    from .render import RenderConfig

    return RenderConfig(
        only_simple_regions=args.only_simple_regions,
        simple=args.regions_only if simple is None else simple,
        name=args.prefix,
    )


# ===========================================================================
# Sub-commands
# ===========================================================================

def cmd_dot(args: argparse.Namespace) -> int:
    """Write one ``.dot`` file per function (optionally an image too)."""
    from .render import render_image, write_regions

    config = _config(args)
    for info in _load(args):
        path = write_regions(info, config, args.output or ".")
        print(f"Writing '{path}'...", file=sys.stderr)
        if args.render:
            render_image(info, config, args.render, args.output or ".")
    return EXIT_OK


def cmd_print(args: argparse.Namespace) -> int:
    """Print the DOT documents to stdout or ``-o FILE``."""
    from .render import write_region_graph

    config = _config(args)
    out = _open_output(args.output)
    try:
        for info in _load(args):
            write_region_graph(info, out, config, config.title_for(info))
    finally:
        if out is not sys.stdout:
            out.close()
    return EXIT_OK


def cmd_view(args: argparse.Namespace) -> int:
    """Open every selected function in the Graphviz viewer."""
    from .render import view_regions

    config = _config(args)
    for info in _load(args):
        view_regions(info, config)
    return EXIT_OK


def cmd_run(args: argparse.Namespace) -> int:
    """Run one named pass over the input."""
    from .render import get_pass

    try:
        region_pass = get_pass(args.pass_name)
    except KeyError as exc:
        _log.error("%s", exc.args[0])
        return EXIT_INFRA

    for info in _load(args):
        path = region_pass.run(
            info,
            only_simple_regions=args.only_simple_regions,
            directory=args.output or ".",
            prefix=args.prefix,
        )
        if path is not None:
            print(f"Writing '{path}'...", file=sys.stderr)
    return EXIT_OK


def cmd_passes(args: argparse.Namespace) -> int:
    """List the named passes."""
    from .render import PASSES

    for name in sorted(PASSES):
        print(f"  {name:<20} {PASSES[name].description}")
    return EXIT_OK


# ===========================================================================
# Argument parser construction
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""

    parser = argparse.ArgumentParser(
        prog="regionviz",
        description=(
            "Render the region tree of a control flow graph as nested\n"
            "Graphviz clusters."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              regionviz dot   loop.json -o out/
              regionviz print loop.sexp --regions-only
              regionviz run   view-regions loop.json
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # Shared argument groups (reusable) ------------------------------------

    def _add_input_args(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "input",
            metavar="INPUT",
            help="Function and region tree description (.json or .sexp).",
        )
        p.add_argument(
            "--format",
            choices=["json", "sexp"],
            default=None,
            help="Input format (default: from the file extension).",
        )
        p.add_argument(
            "--function",
            action="append",
            metavar="NAME",
            help="Only render this function (repeatable).",
        )

    def _add_style_args(
        p: argparse.ArgumentParser,
        regions_only: bool = True,
        prefix: Optional[str] = "reg",
    ) -> None:
        g = p.add_argument_group("rendering")
        g.add_argument(
            "--only-simple-regions",
            action="store_true",
            help="Fill only simple regions; outline the others.",
        )
        if regions_only:
            g.add_argument(
                "--regions-only",
                action="store_true",
                help="Label blocks by name only (no function bodies).",
            )
        g.add_argument(
            "--prefix",
            default=prefix,
            metavar="NAME",
            help="Output file prefix and graph title (default: %s)." % (prefix or "per pass"),
        )

    # --- dot ---------------------------------------------------------------
    p_dot = subparsers.add_parser(
        "dot",
        help="Write <prefix>.<function>.dot files.",
    )
    _add_input_args(p_dot)
    _add_style_args(p_dot)
    p_dot.add_argument(
        "-o", "--output",
        default=None,
        metavar="DIR",
        help="Output directory (default: current directory).",
    )
    p_dot.add_argument(
        "--render",
        default=None,
        metavar="FMT",
        help="Also lay the graph out with Graphviz into FMT (svg, png, ...).",
    )
    p_dot.set_defaults(func=cmd_dot)

    # --- print -------------------------------------------------------------
    p_print = subparsers.add_parser(
        "print",
        help="Print the DOT document.",
    )
    _add_input_args(p_print)
    _add_style_args(p_print)
    p_print.add_argument(
        "-o", "--output",
        default=None,
        metavar="FILE",
        help='Output file ("-" or omit for stdout).',
    )
    p_print.set_defaults(func=cmd_print)

    # --- view --------------------------------------------------------------
    p_view = subparsers.add_parser(
        "view",
        help="Open the region graph in the system viewer.",
    )
    _add_input_args(p_view)
    _add_style_args(p_view)
    p_view.set_defaults(func=cmd_view)

    # --- run ---------------------------------------------------------------
    p_run = subparsers.add_parser(
        "run",
        help="Run a named pass (see 'regionviz passes').",
    )
    p_run.add_argument(
        "pass_name",
        metavar="PASS",
        help="dot-regions, dot-regions-only, view-regions or view-regions-only.",
    )
    _add_input_args(p_run)
    _add_style_args(p_run, regions_only=False, prefix=None)
    p_run.add_argument(
        "-o", "--output",
        default=None,
        metavar="DIR",
        help="Output directory for the printer passes.",
    )
    p_run.set_defaults(func=cmd_run)

    # --- passes ------------------------------------------------------------
    p_passes = subparsers.add_parser(
        "passes",
        help="List the named passes.",
    )
    p_passes.set_defaults(func=cmd_passes)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the regionviz CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    from .errors import RegionVizError

    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    # No subcommand given → print help.
    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except RegionVizError as exc:
        _log.error("%s", exc)
        return EXIT_ERROR
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
