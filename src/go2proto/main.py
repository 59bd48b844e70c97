from __future__ import annotations

import argparse
import glob
import os
import sys
from typing import Dict, List

from go2proto.config import WELL_KNOWN_IMPORT_MODES, GeneratorConfig
from go2proto.cyclic_detector import resolve_cycles
from go2proto.errors import Go2ProtoError, ParseInputError
from go2proto.generator.proto_generator import generate_protos
from go2proto.import_graph import build_dependency_graph
from go2proto.models import Declaration
from go2proto.parser.go_parser import parse_go_file
from go2proto.registry import collect


def _find_files(input_glob: str) -> List[str]:
    """Expand the input glob, skipping Go test files."""
    return sorted(
        p for p in glob.glob(input_glob)
        if not p.endswith("_test.go")
    )


def _check_unique_names(go_files: List[str]) -> None:
    """Output files are named after input base names, so those must not repeat."""
    seen: Dict[str, str] = {}
    for gf in go_files:
        name = os.path.basename(gf)
        if name in seen:
            raise ParseInputError(f"file name {name} is also used by {seen[name]}", gf)
        seen[name] = gf


def generate(declarations: List[Declaration], config: GeneratorConfig) -> List[str]:
    """Resolve declarations and write one proto file per final file group.

    Raises a Go2ProtoError subclass on any fatal condition; in that case no
    file has been written unless the failure was itself a write error.
    """
    registry = collect(declarations, tag_key=config.tag_key)
    registry.resolve_all()
    print(f"  Resolved {len(registry)} message(s)")

    graph = build_dependency_graph(registry)
    result = resolve_cycles(graph)
    for merged, target in sorted(result.merge_map.items()):
        print(f"  Merged {merged} into {target} (circular import)")

    return generate_protos(
        result,
        config.output_dir,
        config.base_dir,
        config.package_name,
        config.well_known_imports,
    )


def run(config: GeneratorConfig) -> List[str]:
    """Main pipeline: parse, resolve, merge cycles, generate."""
    # 1. Find input files
    go_files = _find_files(config.input_glob)
    if not go_files:
        print(f"No .go files found matching {config.input_glob}")
        sys.exit(1)

    print(f"Found {len(go_files)} Go file(s)")

    try:
        # 2. Parse all files before resolving anything
        _check_unique_names(go_files)
        declarations: List[Declaration] = []
        for gf in go_files:
            file_decls = parse_go_file(gf)
            declarations.extend(file_decls)
            print(f"  Parsed {gf}: {len(file_decls)} declaration(s)")

        # 3. Resolve and generate
        generated = generate(declarations, config)
    except Go2ProtoError as e:
        print(f"FATAL: {e}", file=sys.stderr)
        sys.exit(1)

    for f in generated:
        print(f"  Generated: {f}")

    print("Done!")
    return generated


def main():
    parser = argparse.ArgumentParser(
        description="Generate proto3 schema files from Go struct declarations",
    )
    parser.add_argument(
        "-i", "--in",
        dest="input_glob",
        required=True,
        help="Input Go files: a directory or a glob pattern",
    )
    parser.add_argument(
        "-o", "--out",
        dest="output_dir",
        required=True,
        help="Output directory for generated .proto files",
    )
    parser.add_argument(
        "-b", "--base",
        dest="base_dir",
        required=True,
        help="Base directory; names the proto package and the go_package option",
    )
    parser.add_argument(
        "--tag-key",
        default=None,
        help="Struct tag key to take wire names from (default: first tag)",
    )
    parser.add_argument(
        "--well-known-imports",
        choices=WELL_KNOWN_IMPORT_MODES,
        default="always",
        help="Import all well-known types, or only the ones a file uses",
    )

    args = parser.parse_args()
    config = GeneratorConfig(
        input_glob=args.input_glob,
        output_dir=args.output_dir,
        base_dir=args.base_dir,
        tag_key=args.tag_key,
        well_known_imports=args.well_known_imports,
    )

    print(f"base dir: {config.base_dir}")
    print(f"input glob pattern: {config.input_glob}")
    print(f"output directory: {config.output_dir}")
    run(config)


if __name__ == "__main__":
    main()
