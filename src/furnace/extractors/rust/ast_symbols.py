"""Extract functions, structs, traits, and enums from Rust source via tree-sitter."""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections import defaultdict
from pathlib import Path

import tree_sitter_rust as tsrust
from tree_sitter import Language, Parser

from furnace.errors import ExtractionError
from furnace.extractors.rust.module_hierarchy import source_file_to_module_path
from furnace.model import (
    Aggregate,
    AnyDeclaration,
    Contract,
    Function,
    Location,
    MethodSignature,
    Variable,
    Variant,
)

logger = logging.getLogger(__name__)


class RustDeclarationExtractor:
    """Turn the text of one ``.rs`` file into a list of declarations.

    One tree-sitter parser is kept per thread; the compiled language is
    shared.  Files the parser flags with a syntax error raise
    :class:`ExtractionError` rather than returning a partial result.
    """

    def __init__(self) -> None:
        self._language = Language(tsrust.language())
        self._local = threading.local()

    def _parser(self) -> Parser:
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = Parser(self._language)
            self._local.parser = parser
        return parser

    def extract(self, text: str, path: str) -> list[AnyDeclaration]:
        tree = self._parser().parse(text.encode("utf-8"))
        root = tree.root_node
        if root.has_error:
            raise ExtractionError(f"syntax error at line {_first_error_line(root)}")

        declarations: list[AnyDeclaration] = []
        impl_methods: dict[str, list[str]] = defaultdict(list)
        _collect_items(root, path, declarations, impl_methods)
        declarations = _attach_impl_methods(declarations, impl_methods)

        logger.debug("Rust AST %s: %d declarations", path, len(declarations))
        return declarations

    def namespace_path(self, source: Path, unit_root: Path) -> tuple[str, ...]:
        return source_file_to_module_path(source, unit_root)


def _collect_items(
    container,
    path: str,
    declarations: list[AnyDeclaration],
    impl_methods: dict[str, list[str]],
) -> None:
    """Collect item declarations from a source file or inline module body."""
    for node in container.named_children:
        if node.type == "function_item":
            declarations.append(_extract_function(node, path))
        elif node.type == "struct_item":
            declarations.append(_extract_struct(node, path))
        elif node.type == "enum_item":
            declarations.append(_extract_enum(node, path))
        elif node.type == "trait_item":
            declarations.append(_extract_trait(node, path))
        elif node.type == "impl_item":
            type_name = _type_name(node.child_by_field_name("type"))
            if type_name:
                impl_methods[type_name].extend(_impl_method_names(node))
        elif node.type == "mod_item":
            # Inline `mod x { ... }`; `mod x;` has no body
            body = node.child_by_field_name("body")
            if body is not None:
                _collect_items(body, path, declarations, impl_methods)


def _attach_impl_methods(
    declarations: list[AnyDeclaration], impl_methods: dict[str, list[str]]
) -> list[AnyDeclaration]:
    """Give structs and enums the methods of impl blocks found in the same file."""
    attached: list[AnyDeclaration] = []
    for decl in declarations:
        methods = impl_methods.get(decl.name)
        if methods and isinstance(decl, (Aggregate, Variant)):
            decl = dataclasses.replace(decl, methods=decl.methods + tuple(methods))
        attached.append(decl)
    return attached


def _extract_function(node, path: str) -> Function:
    return Function(
        name=_text(node.child_by_field_name("name")),
        location=_location(node, path),
        visibility=_visibility(node),
        params=tuple(_parameter_names(node.child_by_field_name("parameters"))),
        variables=tuple(_local_variables(node.child_by_field_name("body"))),
    )


def _extract_struct(node, path: str) -> Aggregate:
    body = node.child_by_field_name("body")
    fields: list[str] = []
    if body is not None and body.type == "field_declaration_list":
        for child in body.named_children:
            if child.type == "field_declaration":
                fields.append(_text(child.child_by_field_name("name")))
    elif body is not None and body.type == "ordered_field_declaration_list":
        # Tuple struct: fields are named by position
        fields = [str(i) for i, _ in enumerate(body.children_by_field_name("type"))]

    return Aggregate(
        name=_text(node.child_by_field_name("name")),
        location=_location(node, path),
        visibility=_visibility(node),
        fields=tuple(fields),
    )


def _extract_enum(node, path: str) -> Variant:
    body = node.child_by_field_name("body")
    variants: list[str] = []
    if body is not None:
        for child in body.named_children:
            if child.type == "enum_variant":
                variants.append(_text(child.child_by_field_name("name")))

    return Variant(
        name=_text(node.child_by_field_name("name")),
        location=_location(node, path),
        visibility=_visibility(node),
        variants=tuple(variants),
    )


def _extract_trait(node, path: str) -> Contract:
    body = node.child_by_field_name("body")
    methods: list[MethodSignature] = []
    if body is not None:
        for child in body.named_children:
            if child.type in ("function_signature_item", "function_item"):
                params = _parameter_names(child.child_by_field_name("parameters"))
                methods.append(
                    MethodSignature(
                        name=_text(child.child_by_field_name("name")),
                        arity=len(params),
                    )
                )

    return Contract(
        name=_text(node.child_by_field_name("name")),
        location=_location(node, path),
        visibility=_visibility(node),
        methods=tuple(methods),
    )


def _impl_method_names(node) -> list[str]:
    body = node.child_by_field_name("body")
    if body is None:
        return []
    return [
        _text(child.child_by_field_name("name"))
        for child in body.named_children
        if child.type == "function_item"
    ]


def _type_name(node) -> str | None:
    """Simple name of an impl target: ``Foo``, ``Foo<T>`` and ``a::Foo`` all give ``Foo``."""
    if node is None:
        return None
    if node.type == "type_identifier":
        return _text(node)
    if node.type == "generic_type":
        return _type_name(node.child_by_field_name("type"))
    if node.type == "scoped_type_identifier":
        return _type_name(node.child_by_field_name("name"))
    return None


def _parameter_names(params_node) -> list[str]:
    """Names of declared parameters; the ``self`` receiver is not counted.

    Destructuring and wildcard parameters still count, under the name ``_``.
    """
    if params_node is None:
        return []
    names: list[str] = []
    for child in params_node.named_children:
        if child.type == "parameter":
            names.append(_binding_name(child.child_by_field_name("pattern")) or "_")
    return names


def _binding_name(pattern) -> str | None:
    """The identifier bound by ``x`` or ``mut x``; ``None`` for any other pattern."""
    if pattern is None:
        return None
    if pattern.type == "identifier":
        return _text(pattern)
    if pattern.type == "mut_pattern":
        inner = [c for c in pattern.named_children if c.type != "mutable_specifier"]
        return _binding_name(inner[0]) if inner else None
    return None


def _local_variables(body) -> list[Variable]:
    """Top-level ``let`` bindings of a function body that bind a plain identifier."""
    if body is None:
        return []
    variables: list[Variable] = []
    for stmt in body.named_children:
        if stmt.type != "let_declaration":
            continue
        name = _binding_name(stmt.child_by_field_name("pattern"))
        if name is None:
            continue
        type_node = stmt.child_by_field_name("type")
        variables.append(
            Variable(
                name=name,
                type=_text(type_node) if type_node is not None else None,
            )
        )
    return variables


def _visibility(node) -> str:
    """Map a ``visibility_modifier`` child to public/restricted/private."""
    for child in node.children:
        if child.type == "visibility_modifier":
            return "public" if _text(child) == "pub" else "restricted"
    return "private"


def _location(node, path: str) -> Location:
    return Location(
        file=path,
        start_line=node.start_point[0] + 1,
        end_line=node.end_point[0] + 1,
    )


def _text(node) -> str:
    return node.text.decode("utf-8")


def _first_error_line(root) -> int:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_error or node.is_missing:
            return node.start_point[0] + 1
        if node.has_error:
            stack.extend(reversed(node.children))
    return root.start_point[0] + 1
