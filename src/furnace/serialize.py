"""Stable JSON serialization of frozen project graphs."""

from __future__ import annotations

import json

from furnace.errors import ConfigError
from furnace.model import (
    Aggregate,
    AnyDeclaration,
    Contract,
    DeclKind,
    Function,
    Location,
    MethodSignature,
    Namespace,
    ProjectGraph,
    Unit,
    Variable,
    Variant,
)

FORMAT_VERSION = 1


def _declaration_to_dict(decl: AnyDeclaration) -> dict:
    d: dict = {
        "kind": decl.kind.value,
        "name": decl.name,
        "location": {
            "file": decl.location.file,
            "start_line": decl.location.start_line,
            "end_line": decl.location.end_line,
        },
        "visibility": decl.visibility,
    }
    if isinstance(decl, Function):
        d["params"] = list(decl.params)
        d["variables"] = [{"name": v.name, "type": v.type} for v in decl.variables]
    elif isinstance(decl, Aggregate):
        d["fields"] = list(decl.fields)
        d["methods"] = list(decl.methods)
    elif isinstance(decl, Contract):
        d["methods"] = [{"name": m.name, "arity": m.arity} for m in decl.methods]
    elif isinstance(decl, Variant):
        d["variants"] = list(decl.variants)
        d["methods"] = list(decl.methods)
    return d


def _namespace_to_dict(ns: Namespace) -> dict:
    return {
        "name": ns.name,
        "qualified_name": ns.qualified_name,
        "source_file": ns.source_file,
        "digest": ns.digest,
        "parent": ns.parent,
        "children": list(ns.children),
        "declarations": [_declaration_to_dict(d) for d in ns.declarations],
        "unparsed": ns.unparsed,
    }


def to_dict(graph: ProjectGraph) -> dict:
    """Dump every field of *graph* into plain JSON-compatible data."""
    return {
        "format": FORMAT_VERSION,
        "name": graph.name,
        "root": graph.root,
        "empty": graph.empty,
        "units": [
            {
                "name": unit.name,
                "path": unit.path,
                "version": unit.version,
                "dependencies": list(unit.dependencies),
                "roots": list(unit.roots),
                "namespaces": [_namespace_to_dict(ns) for ns in unit.namespaces],
            }
            for unit in graph.units
        ],
    }


def _declaration_from_dict(d: dict) -> AnyDeclaration:
    kind = DeclKind(d["kind"])
    loc = d["location"]
    common = {
        "name": d["name"],
        "location": Location(loc["file"], int(loc["start_line"]), int(loc["end_line"])),
        "visibility": d.get("visibility", "private"),
    }
    if kind is DeclKind.FUNCTION:
        return Function(
            **common,
            params=tuple(d.get("params", [])),
            variables=tuple(
                Variable(v["name"], v.get("type")) for v in d.get("variables", [])
            ),
        )
    if kind is DeclKind.AGGREGATE:
        return Aggregate(
            **common,
            fields=tuple(d.get("fields", [])),
            methods=tuple(d.get("methods", [])),
        )
    if kind is DeclKind.CONTRACT:
        return Contract(
            **common,
            methods=tuple(
                MethodSignature(m["name"], int(m["arity"])) for m in d.get("methods", [])
            ),
        )
    return Variant(
        **common,
        variants=tuple(d.get("variants", [])),
        methods=tuple(d.get("methods", [])),
    )


def _namespace_from_dict(d: dict) -> Namespace:
    return Namespace(
        name=d["name"],
        qualified_name=d["qualified_name"],
        source_file=d.get("source_file"),
        digest=d.get("digest"),
        parent=d.get("parent"),
        children=tuple(d.get("children", [])),
        declarations=tuple(_declaration_from_dict(x) for x in d.get("declarations", [])),
        unparsed=d.get("unparsed"),
    )


def from_dict(data: dict) -> ProjectGraph:
    """Rebuild a frozen graph from :func:`to_dict` output.

    Raises :class:`ConfigError` when *data* is not a serialized graph.
    """
    try:
        if data.get("format") != FORMAT_VERSION:
            raise ValueError(f"unsupported format {data.get('format')!r}")
        return ProjectGraph(
            name=data["name"],
            root=data["root"],
            empty=bool(data.get("empty", False)),
            units=tuple(
                Unit(
                    name=u["name"],
                    path=u["path"],
                    version=u.get("version", "0.0.0"),
                    dependencies=tuple(u.get("dependencies", [])),
                    roots=tuple(u.get("roots", [])),
                    namespaces=tuple(_namespace_from_dict(ns) for ns in u["namespaces"]),
                )
                for u in data["units"]
            ),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid serialized graph: {e}") from e


def dumps(graph: ProjectGraph) -> str:
    return json.dumps(to_dict(graph), indent=2, ensure_ascii=False) + "\n"


def loads(text: str) -> ProjectGraph:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid serialized graph: {e}") from e
    return from_dict(data)
