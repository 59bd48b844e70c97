"""Fatal error types raised while turning Go declarations into proto files.

Every error aborts the whole run; nothing is written once one is raised.
"""

from __future__ import annotations

from typing import Sequence


class Go2ProtoError(Exception):
    """Base class for all fatal generation errors."""


class ParseInputError(Go2ProtoError):
    """Raised when a Go source file cannot be read or parsed."""

    def __init__(self, message: str, file_path: str = "", line: int = 0, col: int = 0):
        self.reason = message
        self.file_path = file_path
        self.line = line
        self.col = col
        location = file_path
        if line:
            location = f"{file_path}:{line}:{col}" if file_path else f"Line {line}:{col}"
        super().__init__(f"{location}: {message}" if location else message)


class AliasCycleError(Go2ProtoError):
    """Raised when a type alias chain revisits a name."""

    def __init__(self, chain: Sequence[str]):
        self.chain = list(chain)
        super().__init__(f"Type alias cycle: {' -> '.join(self.chain)}")


class EmbeddingCycleError(Go2ProtoError):
    """Raised when structs embed each other transitively."""

    def __init__(self, chain: Sequence[str]):
        self.chain = list(chain)
        super().__init__(f"Embedded struct cycle: {' -> '.join(self.chain)}")


class UnknownMessageError(Go2ProtoError):
    """Raised when a field or embedding references an undeclared type."""

    def __init__(self, name: str, referenced_from: str = ""):
        self.name = name
        self.referenced_from = referenced_from
        message = f"Unknown message '{name}'"
        if referenced_from:
            message += f" (referenced from '{referenced_from}')"
        super().__init__(message)


class NameCollisionError(Go2ProtoError):
    """Raised when two declarations share one name."""

    def __init__(self, name: str, first_file: str, second_file: str):
        self.name = name
        self.first_file = first_file
        self.second_file = second_file
        super().__init__(
            f"Type '{name}' is declared in both '{first_file}' and '{second_file}'"
        )


class OutputWriteError(Go2ProtoError):
    """Raised when a generated file cannot be written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Failed to write '{path}': {reason}")
