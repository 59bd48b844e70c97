from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

_LOWER_UPPER_RE = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_RE = re.compile(r"([A-Z])([A-Z][a-z])")


def to_snake_case(name: str) -> str:
    """Convert a CamelCase or camelCase Go identifier to snake_case.

    HTTPRequest -> http_request, fooBarBaz -> foo_bar_baz.
    """
    name = _LOWER_UPPER_RE.sub(r"\1_\2", name)
    name = _ACRONYM_RE.sub(r"\1_\2", name)
    return name.lower()


def is_exported(name: str) -> bool:
    """Go visibility rule: identifiers starting with an uppercase letter are public."""
    return bool(name) and name[0].isupper()


# -- type expressions --


@dataclass(frozen=True)
class NamedType:
    """A bare identifier: int, string, Order."""

    name: str


@dataclass(frozen=True)
class QualifiedType:
    """A package-qualified identifier: time.Time."""

    package: str
    name: str

    @property
    def dotted(self) -> str:
        return f"{self.package}.{self.name}"


@dataclass(frozen=True)
class PointerType:
    """*T"""

    elem: TypeExpr


@dataclass(frozen=True)
class SliceType:
    """[]T or [N]T"""

    elem: TypeExpr


@dataclass(frozen=True)
class MapType:
    """map[K]V"""

    key: TypeExpr
    value: TypeExpr


@dataclass(frozen=True)
class UnsupportedType:
    """A type shape with no proto counterpart (func, chan, inline struct...)."""

    kind: str


TypeExpr = Union[NamedType, QualifiedType, PointerType, SliceType, MapType, UnsupportedType]


# -- declarations --


class DeclKind(Enum):
    STRUCT = "struct"
    ALIAS = "alias"
    INTERFACE = "interface"


@dataclass(frozen=True)
class Member:
    """One member line of a struct. An empty names tuple marks an embedded type."""

    names: Tuple[str, ...]
    type_expr: TypeExpr
    tag: Optional[str] = None

    @property
    def is_embedded(self) -> bool:
        return not self.names


@dataclass(frozen=True)
class Declaration:
    name: str
    kind: DeclKind
    origin_file: str
    members: Tuple[Member, ...] = ()
    alias_type: Optional[TypeExpr] = None


# -- proto model --


class Cardinality(Enum):
    SINGULAR = "singular"
    OPTIONAL = "optional"
    REPEATED = "repeated"


@dataclass
class ProtoField:
    name: str
    schema_type: str
    cardinality: Cardinality = Cardinality.SINGULAR
    wire_name: str = ""
    message_refs: Tuple[str, ...] = ()

    def __post_init__(self):
        if not self.wire_name:
            self.wire_name = to_snake_case(self.name)


@dataclass
class ProtoMessage:
    name: str
    origin_file: str
    fields: List[ProtoField] = field(default_factory=list)
    resolved: bool = False
    members: Tuple[Member, ...] = field(default=(), repr=False)

    @property
    def exported(self) -> bool:
        return is_exported(self.name)
