"""AST node definitions for the type declarations of a Go file.

Type expressions reuse the nodes from go2proto.models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union

from go2proto.models import TypeExpr


@dataclass
class GoFieldDecl:
    """One struct member line: `A, B int `json:"a"``. No names means embedded."""

    names: List[str]
    type_expr: TypeExpr
    tag: Optional[str] = None


@dataclass
class GoStructType:
    fields: List[GoFieldDecl] = field(default_factory=list)


@dataclass
class GoInterfaceType:
    """`interface { ... }`; the method set is not kept."""


@dataclass
class GoTypeSpec:
    """`type Name T` or `type Name = T`."""

    name: str
    type: Union[GoStructType, GoInterfaceType, TypeExpr]


@dataclass
class GoFile:
    """Top-level parsed representation of a Go source file."""

    type_specs: List[GoTypeSpec] = field(default_factory=list)
