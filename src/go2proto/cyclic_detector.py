"""Detect import cycles between generated files and merge them away.

proto files may not import each other circularly. Files whose messages
reference each other in a cycle are collapsed into one output file, and the
detection is repeated on the reduced graph until it is acyclic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Dict, List, Sequence, Set, Tuple

from go2proto.import_graph import DependencyGraph

MergeMap = Dict[str, str]
RepresentativeChooser = Callable[[Sequence[str]], str]


class _Color(Enum):
    WHITE = auto()  # unvisited
    GRAY = auto()  # on the current DFS path
    BLACK = auto()  # finished


@dataclass
class MergeResult:
    graph: DependencyGraph
    merge_map: MergeMap = field(default_factory=dict)


def find_cycles(graph: DependencyGraph) -> List[List[str]]:
    """Return the cyclic file groups reachable by one DFS pass.

    A back-edge to a gray node closes a cycle made of the path from that node
    to the current one. Groups sharing a file are unioned, so the result is a
    list of disjoint, sorted groups.
    """
    colors: Dict[str, _Color] = {node: _Color.WHITE for node in graph.nodes}
    path: List[str] = []
    groups: List[List[str]] = []

    def visit(node: str) -> None:
        colors[node] = _Color.GRAY
        path.append(node)
        for target in graph.imports_of(node):
            color = colors.get(target, _Color.WHITE)
            if color == _Color.GRAY:
                groups.append(path[path.index(target):])
            elif color == _Color.WHITE:
                visit(target)
        path.pop()
        colors[node] = _Color.BLACK

    for node in graph.nodes:
        if colors[node] == _Color.WHITE:
            visit(node)

    return _union_groups(groups)


def _union_groups(groups: List[List[str]]) -> List[List[str]]:
    merged: List[Set[str]] = []
    for group in groups:
        current = set(group)
        overlapping = [s for s in merged if s & current]
        for s in overlapping:
            current |= s
            merged.remove(s)
        merged.append(current)
    return sorted(sorted(s) for s in merged)


def merge_groups(
    graph: DependencyGraph,
    groups: List[List[str]],
    choose_representative: RepresentativeChooser = min,
) -> Tuple[DependencyGraph, MergeMap]:
    """Collapse each group into its representative file.

    Edges inside a group disappear; edges leaving it are retargeted to the
    representative. Returns the reduced graph and this pass's merge map.
    """
    pass_map: MergeMap = {}
    for group in groups:
        representative = choose_representative(group)
        for file_name in group:
            if file_name != representative:
                pass_map[file_name] = representative

    reduced = DependencyGraph()
    for file_name in graph.nodes:
        target = pass_map.get(file_name, file_name)
        reduced.messages_by_file.setdefault(target, []).extend(
            graph.messages_by_file[file_name]
        )
        reduced.edges.setdefault(target, [])

    for source, targets in graph.edges.items():
        for target in targets:
            reduced.add_edge(pass_map.get(source, source), pass_map.get(target, target))

    return reduced, pass_map


def resolve_cycles(
    graph: DependencyGraph,
    choose_representative: RepresentativeChooser = min,
) -> MergeResult:
    """Merge cyclic file groups until the file graph is acyclic.

    Every pass removes at least one node, so this terminates. The returned
    merge map sends each merged-away file to the file it ended up in.
    """
    merge_map: MergeMap = {}
    while True:
        groups = find_cycles(graph)
        if not groups:
            break
        graph, pass_map = merge_groups(graph, groups, choose_representative)
        for file_name, target in merge_map.items():
            merge_map[file_name] = pass_map.get(target, target)
        merge_map.update(pass_map)

    return MergeResult(graph=graph, merge_map=merge_map)


def apply_merge_map(file_name: str, merge_map: MergeMap) -> str:
    return merge_map.get(file_name, file_name)
