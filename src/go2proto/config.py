from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

WELL_KNOWN_IMPORT_MODES = ("always", "used")


@dataclass
class GeneratorConfig:
    """Settings for one generation run.

    base_dir names the proto package (its last path component) and is written
    verbatim as the go_package option.
    """

    input_glob: str
    output_dir: str
    base_dir: str
    tag_key: Optional[str] = None
    well_known_imports: str = "always"

    def __post_init__(self):
        if self.well_known_imports not in WELL_KNOWN_IMPORT_MODES:
            raise ValueError(
                f"well_known_imports must be one of {WELL_KNOWN_IMPORT_MODES}, "
                f"got {self.well_known_imports!r}"
            )
        if not self.input_glob.endswith(".go"):
            self.input_glob = os.path.join(self.input_glob, "*.go")

    @property
    def package_name(self) -> str:
        return os.path.basename(os.path.normpath(self.base_dir))
