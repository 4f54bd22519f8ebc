"""Orchestrator: configure → resolve → build → render."""

from __future__ import annotations

import logging
from pathlib import Path

from furnace import serialize
from furnace.axes import AxisSelection, PartialAxisSelection, resolve
from furnace.builder import GraphBuilder
from furnace.config import FurnaceConfig, load_config
from furnace.errors import ConfigError, IoError
from furnace.lint import lint_graph
from furnace.model import ProjectGraph
from furnace.renderer import render

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("text", "json")


def resolve_selection(
    config: FurnaceConfig,
    preset: str | None = None,
    overrides: PartialAxisSelection | None = None,
) -> AxisSelection:
    """Preset first, then axis values from the config file, then explicit overrides."""
    merged = config.output.overrides()
    if overrides is not None:
        merged = merged.merged(overrides)
    return resolve(preset or config.output.preset, merged)


def run(
    project_dir: Path,
    *,
    preset: str | None = None,
    overrides: PartialAxisSelection | None = None,
    output_format: str = "text",
    output: Path | None = None,
    name: str | None = None,
    workers: int | None = None,
    lint: bool = False,
) -> str:
    """Run the full furnace pipeline and return the emitted text."""
    project_dir = project_dir.resolve()
    _check_format(output_format)
    config = load_config(project_dir)

    # Bad requests fail here, before any traversal
    selection = resolve_selection(config, preset, overrides)
    logger.debug("Project: %s, selection: %s", project_dir, selection)

    builder = GraphBuilder(
        path_filter=config.path_filter(),
        workers=workers or config.workers,
    )
    graph = builder.build(project_dir, name=name)

    text = _emit(graph, selection, output_format, config if lint else None)
    _write(text, output)
    return text


def render_file(
    graph_path: Path,
    *,
    preset: str | None = None,
    overrides: PartialAxisSelection | None = None,
    output_format: str = "text",
    output: Path | None = None,
) -> str:
    """Render a graph previously saved with ``--format json``."""
    _check_format(output_format)
    selection = resolve(preset, overrides)
    try:
        data = graph_path.read_text(encoding="utf-8")
    except OSError as e:
        raise IoError(f"Could not read {graph_path}: {e.strerror or e}") from e

    graph = serialize.loads(data)
    text = _emit(graph, selection, output_format, None)
    _write(text, output)
    return text


def _check_format(output_format: str) -> None:
    if output_format not in OUTPUT_FORMATS:
        raise ConfigError(
            f"Unknown output format '{output_format}' "
            f"(expected one of: {', '.join(OUTPUT_FORMATS)})"
        )


def _emit(
    graph: ProjectGraph,
    selection: AxisSelection,
    output_format: str,
    config: FurnaceConfig | None,
) -> str:
    if output_format == "json":
        text = serialize.dumps(graph)
    else:
        text = render(graph, selection)

    if config is not None:
        findings = lint_graph(graph, config.lints)
        if output_format == "json":
            for finding in findings:
                logger.warning("%s", finding)
        elif findings:
            text += "\nLinting Warnings:\n" + "".join(f"{f}\n" for f in findings)
    return text


def _write(text: str, output: Path | None) -> None:
    if output is None:
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    logger.info("Generated %s", output)
