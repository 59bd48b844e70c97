"""Map Go type expressions to proto types and cardinality."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from go2proto.errors import AliasCycleError
from go2proto.models import (
    Cardinality,
    MapType,
    NamedType,
    PointerType,
    QualifiedType,
    SliceType,
    TypeExpr,
)

AliasMap = Dict[str, TypeExpr]

ANY_TYPE = "google.protobuf.Any"
DURATION_TYPE = "google.protobuf.Duration"
TIMESTAMP_TYPE = "google.protobuf.Timestamp"

WELL_KNOWN_TYPES = {ANY_TYPE, DURATION_TYPE, TIMESTAMP_TYPE}

# Proto scalar types. A resolved name outside this set and WELL_KNOWN_TYPES
# is a message reference.
PROTO_PRIMITIVES = {
    "bool",
    "int32",
    "int64",
    "uint32",
    "uint64",
    "float",
    "double",
    "string",
    "bytes",
}

# Go type -> canonical proto type
TYPE_SUBSTITUTIONS: Dict[str, str] = {
    "int": "int64",
    "int8": "int32",
    "int16": "int32",
    "rune": "int32",
    "float32": "double",
    "float64": "double",
    "float": "double",
    "uint": "uint32",
    "uint8": "uint32",
    "uint16": "uint32",
    "byte": "uint32",
    "any": ANY_TYPE,
    "error": ANY_TYPE,
    "time.Duration": DURATION_TYPE,
    "time.Time": TIMESTAMP_TYPE,
}


def adapt_type(type_name: str) -> str:
    """Apply the substitution table; unknown names pass through unchanged."""
    return TYPE_SUBSTITUTIONS.get(type_name, type_name)


def is_builtin(type_name: str) -> bool:
    return type_name in PROTO_PRIMITIVES or type_name in WELL_KNOWN_TYPES


def _combine(outer: Cardinality, inner: Cardinality) -> Cardinality:
    if Cardinality.REPEATED in (outer, inner):
        return Cardinality.REPEATED
    if Cardinality.OPTIONAL in (outer, inner):
        return Cardinality.OPTIONAL
    return Cardinality.SINGULAR


def resolve_type(expr: TypeExpr, aliases: AliasMap) -> Tuple[str, Cardinality]:
    """Resolve a type expression to (proto type, cardinality).

    Repeated wins over optional at any depth, and a map field is always
    singular since proto3 has no repeated or optional maps.
    """
    return _resolve(expr, aliases, [])


def _resolve(expr: TypeExpr, aliases: AliasMap, chain: List[str]) -> Tuple[str, Cardinality]:
    if isinstance(expr, PointerType):
        type_name, inner = _resolve(expr.elem, aliases, chain)
        if type_name.startswith("map<"):
            return type_name, Cardinality.SINGULAR
        return type_name, _combine(Cardinality.OPTIONAL, inner)

    if isinstance(expr, SliceType):
        type_name, _ = _resolve(expr.elem, aliases, chain)
        if type_name.startswith("map<"):
            return type_name, Cardinality.SINGULAR
        return type_name, Cardinality.REPEATED

    if isinstance(expr, MapType):
        key_type, _ = _resolve(expr.key, aliases, chain)
        value_type, _ = _resolve(expr.value, aliases, chain)
        return f"map<{key_type}, {value_type}>", Cardinality.SINGULAR

    if isinstance(expr, QualifiedType):
        return adapt_type(expr.dotted), Cardinality.SINGULAR

    if isinstance(expr, NamedType):
        return _resolve_name(expr.name, aliases, chain)

    return ANY_TYPE, Cardinality.SINGULAR


def _resolve_name(name: str, aliases: AliasMap, chain: List[str]) -> Tuple[str, Cardinality]:
    adapted = adapt_type(name)
    if is_builtin(adapted):
        return adapted, Cardinality.SINGULAR

    if name not in aliases:
        # Not an alias, so it names a message.
        return name, Cardinality.SINGULAR

    if name in chain:
        raise AliasCycleError(chain[chain.index(name):] + [name])

    chain.append(name)
    try:
        return _resolve(aliases[name], aliases, chain)
    finally:
        chain.pop()


def root_type_name(expr: TypeExpr, aliases: AliasMap) -> Optional[str]:
    """Name of the struct an embedded member refers to, or None.

    Pointers are unwrapped and alias chains followed; anything that does not
    end at a bare, non-builtin name yields None.
    """
    if isinstance(expr, PointerType):
        return root_type_name(expr.elem, aliases)
    if isinstance(expr, QualifiedType):
        return None
    if not isinstance(expr, NamedType):
        return None

    chain: List[str] = []
    name = expr.name
    while name in aliases:
        if name in chain:
            raise AliasCycleError(chain[chain.index(name):] + [name])
        chain.append(name)
        target = aliases[name]
        while isinstance(target, PointerType):
            target = target.elem
        if not isinstance(target, NamedType):
            return None
        name = target.name

    if is_builtin(adapt_type(name)):
        return None
    return name


def message_refs(expr: TypeExpr, aliases: AliasMap) -> Tuple[str, ...]:
    """Message names a type expression refers to after alias resolution.

    For a map, the key and value are both inspected (keys are scalars in
    valid input, so in practice only the value contributes).
    """
    refs: List[str] = []
    _collect_refs(expr, aliases, refs, [])
    return tuple(dict.fromkeys(refs))


def _collect_refs(expr: TypeExpr, aliases: AliasMap, refs: List[str], chain: List[str]) -> None:
    if isinstance(expr, (PointerType, SliceType)):
        _collect_refs(expr.elem, aliases, refs, chain)
    elif isinstance(expr, MapType):
        _collect_refs(expr.key, aliases, refs, chain)
        _collect_refs(expr.value, aliases, refs, chain)
    elif isinstance(expr, NamedType):
        name = expr.name
        if is_builtin(adapt_type(name)):
            return
        if name not in aliases:
            refs.append(name)
            return
        if name in chain:
            raise AliasCycleError(chain[chain.index(name):] + [name])
        chain.append(name)
        try:
            _collect_refs(aliases[name], aliases, refs, chain)
        finally:
            chain.pop()
