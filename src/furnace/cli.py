"""Command-line interface for furnace."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from furnace.axes import AXES, PRESETS, PartialAxisSelection
from furnace.errors import FurnaceError
from furnace.pipeline import OUTPUT_FORMATS, render_file, run

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="furnace",
        description="Structural summaries of Cargo projects: crates, modules and declarations.",
    )
    parser.add_argument(
        "project_dir",
        type=Path,
        nargs="?",
        default=Path("."),
        help="Path to the project to summarize (default: current directory)",
    )
    parser.add_argument(
        "--preset",
        default=None,
        help=f"Named output preset ({', '.join(PRESETS)})",
    )
    for axis, enum_type in AXES.items():
        parser.add_argument(
            f"--{axis}",
            default=None,
            help=f"Override the {axis} axis ({', '.join(m.value for m in enum_type)})",
        )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default="text",
        help="Emit rendered text or the serialized graph (default: text)",
    )
    parser.add_argument(
        "--from-json",
        type=Path,
        default=None,
        metavar="FILE",
        help="Render a graph saved with --format json instead of scanning a project",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Write the output to a file instead of stdout",
    )
    parser.add_argument(
        "--name",
        default=None,
        help="Project display name (default: auto-detect from Cargo.toml)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of extraction threads (default: config or CPU count)",
    )
    parser.add_argument(
        "--lint",
        action="store_true",
        help="Append lint findings configured in .furnacerc.toml",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) output",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(message)s")
    if args.verbose:
        logging.getLogger("furnace").setLevel(logging.DEBUG)

    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be at least 1")

    try:
        overrides = PartialAxisSelection.from_mapping(
            {axis: getattr(args, axis) for axis in AXES}
        )
        if args.from_json is not None:
            text = render_file(
                args.from_json,
                preset=args.preset,
                overrides=overrides,
                output_format=args.output_format,
                output=args.output,
            )
        else:
            text = run(
                args.project_dir,
                preset=args.preset,
                overrides=overrides,
                output_format=args.output_format,
                output=args.output,
                name=args.name,
                workers=args.workers,
                lint=args.lint,
            )
    except FurnaceError as e:
        logger.error("Error: %s", e)
        sys.exit(1)

    if args.output is None:
        sys.stdout.write(text)
