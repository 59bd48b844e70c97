"""Transform Go AST nodes into the application's Declaration models."""

from __future__ import annotations

from typing import List

from go2proto.models import DeclKind, Declaration, Member

from .go_ast import GoFile, GoInterfaceType, GoStructType, GoTypeSpec


def transform_go(ast: GoFile, source_file: str) -> List[Declaration]:
    """Transform a GoFile AST into declarations, in source order."""
    return [_transform_spec(spec, source_file) for spec in ast.type_specs]


def _transform_spec(spec: GoTypeSpec, source_file: str) -> Declaration:
    if isinstance(spec.type, GoStructType):
        members = tuple(
            Member(names=tuple(f.names), type_expr=f.type_expr, tag=f.tag)
            for f in spec.type.fields
        )
        return Declaration(
            name=spec.name,
            kind=DeclKind.STRUCT,
            origin_file=source_file,
            members=members,
        )

    if isinstance(spec.type, GoInterfaceType):
        return Declaration(name=spec.name, kind=DeclKind.INTERFACE, origin_file=source_file)

    # `type A B` and `type A = B` both resolve to B's proto type.
    return Declaration(
        name=spec.name,
        kind=DeclKind.ALIAS,
        origin_file=source_file,
        alias_type=spec.type,
    )
