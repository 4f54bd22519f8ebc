"""Rule checks over a frozen ProjectGraph."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from furnace.config import LintConfig
from furnace.model import Aggregate, Contract, Function, ProjectGraph, Variant

logger = logging.getLogger(__name__)

_TYPE_LABELS = {Aggregate: "Struct", Contract: "Trait", Variant: "Enum"}


@dataclass(frozen=True)
class Finding:
    rule: str
    message: str
    file: str
    line: int

    def __str__(self) -> str:
        return f"Warning: {self.message} ({self.file}:{self.line})"


def lint_graph(graph: ProjectGraph, config: LintConfig) -> list[Finding]:
    """Return findings for every configured rule, in graph order."""
    if not config.enabled:
        return []

    complexity = config.complexity
    naming = config.naming
    discouraged = set(naming.discouraged_names)
    findings: list[Finding] = []

    def add(rule: str, message: str, decl) -> None:
        findings.append(
            Finding(rule, message, decl.location.file, decl.location.start_line)
        )

    for _, _, decl in graph.declarations():
        if isinstance(decl, Function):
            if complexity.max_args is not None and decl.param_count > complexity.max_args:
                add(
                    "complexity.max_args",
                    f"Function '{decl.name}' has {decl.param_count} arguments "
                    f"(max {complexity.max_args} recommended)",
                    decl,
                )
            if (
                complexity.max_function_lines is not None
                and decl.line_count > complexity.max_function_lines
            ):
                add(
                    "complexity.max_function_lines",
                    f"Function '{decl.name}' spans {decl.line_count} lines "
                    f"(max {complexity.max_function_lines} recommended)",
                    decl,
                )
            if naming.enforce_snake_case_functions and not is_snake_case(decl.name):
                add(
                    "naming.enforce_snake_case_functions",
                    f"Function '{decl.name}' should use snake_case",
                    decl,
                )
            for var in decl.variables:
                if naming.enforce_snake_case_variables and not is_snake_case(var.name):
                    add(
                        "naming.enforce_snake_case_variables",
                        f"Variable '{var.name}' in function '{decl.name}' should use snake_case",
                        decl,
                    )
                if var.name in discouraged:
                    add(
                        "naming.discouraged_names",
                        f"Discouraged variable name '{var.name}' in function '{decl.name}'",
                        decl,
                    )

        elif isinstance(decl, Aggregate):
            if (
                complexity.max_fields is not None
                and decl.field_count > complexity.max_fields
            ):
                add(
                    "complexity.max_fields",
                    f"Struct '{decl.name}' has {decl.field_count} fields "
                    f"(max {complexity.max_fields} recommended)",
                    decl,
                )

        if (
            naming.enforce_pascal_case_types
            and type(decl) in _TYPE_LABELS
            and not is_pascal_case(decl.name)
        ):
            add(
                "naming.enforce_pascal_case_types",
                f"{_TYPE_LABELS[type(decl)]} '{decl.name}' should use PascalCase",
                decl,
            )

    logger.debug("Lint: %d findings", len(findings))
    return findings


def is_snake_case(name: str) -> bool:
    """Lowercase letters, digits and underscores; leading underscores allowed."""
    return all(c.islower() or c.isdigit() or c == "_" for c in name.lstrip("_"))


def is_pascal_case(name: str) -> bool:
    return bool(name) and name[0].isupper()
