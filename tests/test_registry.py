import pytest

from go2proto.errors import AliasCycleError, NameCollisionError, UnknownMessageError
from go2proto.models import DeclKind, Declaration, Member, NamedType, ProtoMessage
from go2proto.registry import MessageRegistry, collect
from go2proto.type_resolver import ANY_TYPE


def _struct(name: str, fields: dict, origin_file: str = "test.go") -> Declaration:
    members = tuple(
        Member(names=(field_name,), type_expr=NamedType(type_name))
        for field_name, type_name in fields.items()
    )
    return Declaration(name=name, kind=DeclKind.STRUCT, origin_file=origin_file, members=members)


def _alias(name: str, target: str, origin_file: str = "test.go") -> Declaration:
    return Declaration(
        name=name,
        kind=DeclKind.ALIAS,
        origin_file=origin_file,
        alias_type=NamedType(target),
    )


class TestCollect:
    def test_structs_become_skeletons(self):
        registry = collect([_struct("A", {"X": "int"}), _struct("B", {"Y": "string"})])
        assert len(registry) == 2
        assert "A" in registry
        a = registry.get("A")
        assert a.resolved is False
        assert a.fields == []
        assert a.origin_file == "test.go"

    def test_get_all_keeps_registration_order(self):
        registry = collect([_struct("Z", {}), _struct("A", {}), _struct("M", {})])
        assert [m.name for m in registry.get_all()] == ["Z", "A", "M"]

    def test_aliases_collected(self):
        registry = collect([_alias("UserID", "int")])
        assert registry.aliases == {"UserID": NamedType("int")}
        assert "UserID" not in registry

    def test_interface_aliases_any(self):
        decl = Declaration(name="Payload", kind=DeclKind.INTERFACE, origin_file="test.go")
        registry = collect([decl])
        assert registry.aliases["Payload"] == NamedType(ANY_TYPE)

    def test_collection_is_order_independent(self):
        decls = [_struct("User", {"Role": "Role"}), _struct("Role", {"Name": "string"})]
        forward = collect(decls).resolve_all()
        backward = collect(list(reversed(decls))).resolve_all()
        assert {m.name: m.fields for m in forward} == {m.name: m.fields for m in backward}


class TestNameCollision:
    def test_struct_collision_across_files(self):
        decls = [
            _struct("User", {}, origin_file="a.go"),
            _struct("User", {}, origin_file="b.go"),
        ]
        with pytest.raises(NameCollisionError) as exc_info:
            collect(decls)
        assert exc_info.value.first_file == "a.go"
        assert exc_info.value.second_file == "b.go"

    def test_alias_collides_with_struct(self):
        decls = [
            _struct("User", {}, origin_file="a.go"),
            _alias("User", "string", origin_file="b.go"),
        ]
        with pytest.raises(NameCollisionError, match="User"):
            collect(decls)

    def test_register_directly(self):
        registry = MessageRegistry()
        registry.register(ProtoMessage(name="A", origin_file="a.go"))
        with pytest.raises(NameCollisionError):
            registry.register(ProtoMessage(name="A", origin_file="b.go"))


class TestResolve:
    def test_resolve_is_idempotent(self):
        registry = collect([_struct("A", {"X": "int"})])
        first = registry.resolve("A")
        fields = first.fields
        second = registry.resolve("A")
        assert second is first
        assert second.fields is fields

    def test_unknown_name(self):
        registry = collect([])
        with pytest.raises(UnknownMessageError, match="Nope"):
            registry.resolve("Nope")

    def test_resolve_all(self):
        registry = collect([_struct("A", {"X": "int"}), _struct("B", {"Y": "A"})])
        messages = registry.resolve_all()
        assert all(m.resolved for m in messages)

    def test_field_referencing_undeclared_type(self):
        registry = collect([_struct("A", {"Other": "Missing"})])
        with pytest.raises(UnknownMessageError) as exc_info:
            registry.resolve_all()
        assert exc_info.value.name == "Missing"
        assert exc_info.value.referenced_from == "A.Other"

    def test_field_referencing_unexported_struct(self):
        registry = collect([_struct("A", {"Inner": "inner"}), _struct("inner", {"X": "int"})])
        with pytest.raises(UnknownMessageError, match="inner"):
            registry.resolve_all()

    def test_alias_cycle_surfaces(self):
        registry = collect([
            _alias("X", "Y"),
            _alias("Y", "X"),
            _struct("A", {"Field": "X"}),
        ])
        with pytest.raises(AliasCycleError):
            registry.resolve_all()
