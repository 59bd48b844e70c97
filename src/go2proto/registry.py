"""Message registry: collection of declarations and memoized field resolution."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from go2proto.errors import EmbeddingCycleError, NameCollisionError, UnknownMessageError
from go2proto.field_extractor import extract_fields
from go2proto.models import DeclKind, Declaration, NamedType, ProtoMessage
from go2proto.type_resolver import ANY_TYPE, AliasMap


class MessageRegistry:
    """Single owner of every discovered message and the alias map.

    Messages are registered as empty skeletons and get their fields on first
    resolve(). Resolution pulls in embedded messages on demand, so messages
    may be resolved in any order.
    """

    def __init__(self, aliases: Optional[AliasMap] = None, tag_key: Optional[str] = None):
        self.aliases: AliasMap = dict(aliases or {})
        self.tag_key = tag_key
        self._messages: Dict[str, ProtoMessage] = {}
        self._alias_files: Dict[str, str] = {}
        # Names currently being resolved, outermost first.
        self._resolving: List[str] = []

    # -- registration --

    def register(self, message: ProtoMessage) -> None:
        self._check_collision(message.name, message.origin_file)
        self._messages[message.name] = message

    def register_alias(self, name: str, declaration: Declaration) -> None:
        self._check_collision(name, declaration.origin_file)
        if declaration.kind == DeclKind.INTERFACE:
            self.aliases[name] = NamedType(ANY_TYPE)
        else:
            self.aliases[name] = declaration.alias_type
        self._alias_files[name] = declaration.origin_file

    def _check_collision(self, name: str, origin_file: str) -> None:
        existing = self._messages.get(name)
        if existing is not None:
            raise NameCollisionError(name, existing.origin_file, origin_file)
        if name in self._alias_files:
            raise NameCollisionError(name, self._alias_files[name], origin_file)

    # -- lookup --

    def __contains__(self, name: str) -> bool:
        return name in self._messages

    def __len__(self) -> int:
        return len(self._messages)

    def get(self, name: str) -> Optional[ProtoMessage]:
        return self._messages.get(name)

    def get_all(self) -> List[ProtoMessage]:
        """All messages in registration order."""
        return list(self._messages.values())

    # -- resolution --

    def resolve(self, name: str, referenced_from: str = "") -> ProtoMessage:
        """Return the message with its fields populated.

        Idempotent: an already resolved message is returned as-is.
        """
        message = self._messages.get(name)
        if message is None:
            raise UnknownMessageError(name, referenced_from)
        if message.resolved:
            return message
        if name in self._resolving:
            chain = self._resolving[self._resolving.index(name):] + [name]
            raise EmbeddingCycleError(chain)

        self._resolving.append(name)
        try:
            message.fields = extract_fields(message, self)
        finally:
            self._resolving.pop()
        message.resolved = True
        return message

    def resolve_all(self) -> List[ProtoMessage]:
        """Resolve every message and check that all references can be emitted."""
        for message in self.get_all():
            self.resolve(message.name)
        self.validate_references()
        return self.get_all()

    def validate_references(self) -> None:
        """Every field of an emitted message must reference an emitted message."""
        for message in self.get_all():
            if not message.exported:
                continue
            for field in message.fields:
                for ref in field.message_refs:
                    target = self._messages.get(ref)
                    if target is None or not target.exported:
                        raise UnknownMessageError(ref, f"{message.name}.{field.name}")


def collect(declarations: Iterable[Declaration], tag_key: Optional[str] = None) -> MessageRegistry:
    """Collection phase: register message skeletons and fill the alias map.

    Must finish for every input file before any message is resolved.
    """
    registry = MessageRegistry(tag_key=tag_key)
    for decl in declarations:
        if decl.kind == DeclKind.STRUCT:
            registry.register(
                ProtoMessage(
                    name=decl.name,
                    origin_file=decl.origin_file,
                    members=decl.members,
                )
            )
        else:
            registry.register_alias(decl.name, decl)
    return registry
