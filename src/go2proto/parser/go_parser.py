from __future__ import annotations

import os
from pathlib import Path
from typing import List

from go2proto.errors import ParseInputError
from go2proto.models import Declaration

from .go_ast_parser import GoParser
from .go_tokenizer import GoTokenizeError, tokenize_go
from .go_transform import transform_go


def parse_go_source(text: str, source_file: str) -> List[Declaration]:
    """Parse Go source text and extract its type declarations.

    source_file is recorded as every declaration's origin file.
    """
    try:
        tokens = tokenize_go(text)
    except GoTokenizeError as e:
        raise ParseInputError(str(e), source_file, e.line, e.col) from e

    try:
        ast = GoParser(tokens).parse()
    except ParseInputError as e:
        raise ParseInputError(e.reason, source_file, e.line, e.col) from e

    return transform_go(ast, source_file)


def parse_go_file(file_path: str) -> List[Declaration]:
    """Parse a .go file. Declarations are keyed to the file's base name."""
    file_name = os.path.basename(file_path)
    if not file_name.endswith(".go"):
        raise ParseInputError("not a .go file", file_path)
    try:
        text = Path(file_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ParseInputError(f"cannot read file: {e}", file_path) from e
    return parse_go_source(text, file_name)
