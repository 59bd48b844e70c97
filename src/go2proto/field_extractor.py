"""Turn one struct's member list into an ordered list of ProtoFields."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, List, Optional, Set

from go2proto.errors import UnknownMessageError
from go2proto.models import (
    Member,
    NamedType,
    PointerType,
    ProtoField,
    ProtoMessage,
    QualifiedType,
    TypeExpr,
    is_exported,
    to_snake_case,
)
from go2proto.type_resolver import message_refs, resolve_type, root_type_name

if TYPE_CHECKING:
    from go2proto.registry import MessageRegistry

# Excludes a field from the schema: `json:"-"`
SKIP_TAG = "-"

_TAG_PAIR_RE = re.compile(r'(\w+):"((?:[^"\\]|\\.)*)"')


def get_tag_name(tag: Optional[str], tag_key: Optional[str] = None) -> str:
    """Extract the wire name from a struct tag.

    `json:"name,omitempty"` -> "name". Without a tag_key the first key:"value"
    pair is used. Returns "" when the tag is absent or has no usable value.
    """
    if not tag:
        return ""
    for key, value in _TAG_PAIR_RE.findall(tag):
        if tag_key is not None and key != tag_key:
            continue
        return value.split(",", 1)[0].strip()
    return ""


def extract_fields(message: ProtoMessage, registry: MessageRegistry) -> List[ProtoField]:
    """Build the field list for a message from its raw members.

    Embedded members are replaced by the embedded message's own fields, in
    the embedding member's position. Fields declared directly on the message
    shadow promoted ones with the same name.
    """
    direct_names: Set[str] = {
        name for member in message.members for name in member.names
    }
    seen: Set[str] = set()
    fields: List[ProtoField] = []

    for member in message.members:
        if member.is_embedded:
            for promoted in _promoted_fields(member, message, registry):
                if promoted.name in direct_names or promoted.name in seen:
                    continue
                seen.add(promoted.name)
                fields.append(promoted)
            continue

        for name in member.names:
            field = _make_field(name, member, registry)
            if field is not None:
                seen.add(name)
                fields.append(field)

    return fields


def _promoted_fields(
    member: Member,
    message: ProtoMessage,
    registry: MessageRegistry,
) -> List[ProtoField]:
    expr = member.type_expr
    while isinstance(expr, PointerType):
        expr = expr.elem
    if isinstance(expr, QualifiedType):
        # Types from other packages are never resolved; nothing to promote.
        return []

    embedded_name = root_type_name(expr, registry.aliases)
    if embedded_name is None:
        if isinstance(expr, NamedType):
            # Interfaces, `error` and aliases of scalars carry no struct fields.
            return []
        raise UnknownMessageError(_describe(expr), referenced_from=message.name)
    embedded = registry.resolve(embedded_name, referenced_from=message.name)
    return embedded.fields


def _make_field(name: str, member: Member, registry: MessageRegistry) -> Optional[ProtoField]:
    if not is_exported(name):
        return None

    tag_name = get_tag_name(member.tag, registry.tag_key)
    if tag_name == SKIP_TAG:
        return None

    schema_type, cardinality = resolve_type(member.type_expr, registry.aliases)
    return ProtoField(
        name=name,
        schema_type=schema_type,
        cardinality=cardinality,
        wire_name=tag_name or to_snake_case(name),
        message_refs=message_refs(member.type_expr, registry.aliases),
    )


def _describe(expr: TypeExpr) -> str:
    if isinstance(expr, NamedType):
        return expr.name
    return repr(expr)
