from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Sequence

from jinja2 import Environment, FileSystemLoader

from go2proto.cyclic_detector import MergeResult
from go2proto.errors import OutputWriteError
from go2proto.models import Cardinality, ProtoMessage
from go2proto.type_resolver import ANY_TYPE, DURATION_TYPE, TIMESTAMP_TYPE

# Well-known type -> the file that defines it
WELL_KNOWN_IMPORTS: Dict[str, str] = {
    ANY_TYPE: "google/protobuf/any.proto",
    DURATION_TYPE: "google/protobuf/duration.proto",
    TIMESTAMP_TYPE: "google/protobuf/timestamp.proto",
}

_MODIFIERS: Dict[Cardinality, str] = {
    Cardinality.SINGULAR: "",
    Cardinality.OPTIONAL: "optional ",
    Cardinality.REPEATED: "repeated ",
}


def proto_file_name(go_file: str) -> str:
    """order.go -> order.proto"""
    base = os.path.basename(go_file)
    stem, ext = os.path.splitext(base)
    if ext == ".go":
        return f"{stem}.proto"
    return f"{base}.proto"


def _get_template_env() -> Environment:
    template_dir = Path(__file__).parent.parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        keep_trailing_newline=True,
    )


def _used_well_known_imports(messages: Sequence[ProtoMessage]) -> List[str]:
    used = []
    for type_name, import_path in WELL_KNOWN_IMPORTS.items():
        for message in messages:
            if any(type_name in f.schema_type for f in message.fields):
                used.append(import_path)
                break
    return used


def _build_message(message: ProtoMessage) -> Dict:
    fields = []
    for number, proto_field in enumerate(message.fields, start=1):
        fields.append({
            "modifier": _MODIFIERS[proto_field.cardinality],
            "schema_type": proto_field.schema_type,
            "wire_name": proto_field.wire_name,
            "number": number,
        })
    return {"name": message.name, "fields": fields}


def render_proto(
    messages: Sequence[ProtoMessage],
    package_name: str,
    imports: Sequence[str],
    go_package: str,
    well_known_imports: str = "always",
) -> str:
    """Render one proto file. Field numbers restart at 1 in every message."""
    env = _get_template_env()
    template = env.get_template("proto.j2")

    if well_known_imports == "used":
        wk_imports = _used_well_known_imports(messages)
    else:
        wk_imports = list(WELL_KNOWN_IMPORTS.values())

    return template.render(
        package_name=package_name,
        go_package=go_package,
        well_known_imports=wk_imports,
        imports=list(imports),
        messages=[_build_message(m) for m in messages],
    )


def _import_path(go_file: str, package_name: str) -> str:
    name = proto_file_name(go_file)
    if package_name:
        return f"{package_name}/{name}"
    return name


def generate_protos(
    result: MergeResult,
    output_dir: str,
    base_dir: str,
    package_name: str,
    well_known_imports: str = "always",
) -> List[str]:
    """Render every final file group, then write them all to output_dir.

    Nothing is written unless every file renders. Returns the written paths.
    """
    graph = result.graph
    rendered: Dict[str, str] = {}
    for go_file in graph.nodes:
        imports = sorted(_import_path(dep, package_name) for dep in graph.imports_of(go_file))
        file_path = os.path.join(output_dir, proto_file_name(go_file))
        rendered[file_path] = render_proto(
            graph.messages_by_file[go_file],
            package_name,
            imports,
            base_dir,
            well_known_imports,
        )

    generated: List[str] = []
    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as e:
        raise OutputWriteError(output_dir, str(e)) from e
    for file_path, source in rendered.items():
        try:
            Path(file_path).write_text(source)
        except OSError as e:
            raise OutputWriteError(file_path, str(e)) from e
        generated.append(file_path)

    return generated
