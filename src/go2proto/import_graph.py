"""File-level dependency graph between generated proto files."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from go2proto.models import ProtoMessage
from go2proto.registry import MessageRegistry


@dataclass
class DependencyGraph:
    """Output files as nodes; an edge X -> Y means file X must import file Y.

    Nodes are keyed by the Go source file name the messages were declared in.
    """

    messages_by_file: Dict[str, List[ProtoMessage]] = field(default_factory=dict)
    edges: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def nodes(self) -> List[str]:
        return sorted(self.messages_by_file)

    def imports_of(self, file_name: str) -> List[str]:
        return self.edges.get(file_name, [])

    def add_edge(self, source: str, target: str) -> None:
        targets = self.edges.setdefault(source, [])
        if target != source and target not in targets:
            targets.append(target)
            targets.sort()


def build_dependency_graph(registry: MessageRegistry) -> DependencyGraph:
    """Group emitted messages by declaring file and compute cross-file imports.

    The registry must already be fully resolved.
    """
    graph = DependencyGraph()
    for message in registry.get_all():
        if not message.exported:
            continue
        graph.messages_by_file.setdefault(message.origin_file, []).append(message)
        graph.edges.setdefault(message.origin_file, [])

    for file_name, messages in graph.messages_by_file.items():
        for message in messages:
            for proto_field in message.fields:
                for ref in proto_field.message_refs:
                    target = registry.get(ref)
                    if target is None or target.origin_file == file_name:
                        continue
                    graph.add_edge(file_name, target.origin_file)

    return graph
