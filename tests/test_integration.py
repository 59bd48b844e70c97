import os
import re
import shutil
import tempfile

import pytest

from go2proto.config import GeneratorConfig
from go2proto.main import run


USER_GO = """\
package models

import "time"

type UserID int

type Base struct {
    ID        UserID
    CreatedAt time.Time `json:"created_at"`
    internal  string
}

type User struct {
    Base
    Name    string   `json:"name,omitempty"`
    Emails  []string `json:"emails"`
    Role    *Role
    Secret  string   `json:"-"`
}
"""

ROLE_GO = """\
package models

type Role struct {
    Name        string
    Permissions map[string]bool
    Timeout     time.Duration
}
"""

C_GO = """\
package models

type C struct {
    Peer *D
}
"""

D_GO = """\
package models

type D struct {
    Peers []C
}
"""


class TestFullPipeline:
    def setup_method(self):
        self.work_dir = tempfile.mkdtemp()
        self.src_dir = os.path.join(self.work_dir, "src")
        self.out_dir = os.path.join(self.work_dir, "out")
        os.makedirs(self.src_dir)

    def teardown_method(self):
        shutil.rmtree(self.work_dir)

    def _write(self, name: str, content: str) -> None:
        with open(os.path.join(self.src_dir, name), "w") as f:
            f.write(content)

    def _run(self, base_dir: str = "github.com/acme/models", input_glob: str = None, **kwargs):
        config = GeneratorConfig(
            input_glob=input_glob or self.src_dir,
            output_dir=self.out_dir,
            base_dir=base_dir,
            **kwargs,
        )
        return run(config)

    def _read(self, name: str) -> str:
        with open(os.path.join(self.out_dir, name)) as f:
            return f.read()

    def _imports(self, content: str) -> list:
        return re.findall(r'^import "([^"]+)";$', content, re.MULTILINE)

    def test_same_file_messages(self):
        self._write("types.go", "package models\n\ntype A struct {\n    X int\n}\n\ntype B struct {\n    Y *A\n}\n")

        generated = self._run()

        assert [os.path.basename(p) for p in generated] == ["types.proto"]
        content = self._read("types.proto")
        assert "message A {\n  int64 x = 1;\n}" in content
        assert "message B {\n  optional A y = 1;\n}" in content
        assert self._imports(content) == [
            "google/protobuf/any.proto",
            "google/protobuf/duration.proto",
            "google/protobuf/timestamp.proto",
        ]

    def test_cyclic_files_merged(self):
        self._write("c.go", C_GO)
        self._write("d.go", D_GO)

        generated = self._run()

        assert [os.path.basename(p) for p in generated] == ["c.proto"]
        assert not os.path.exists(os.path.join(self.out_dir, "d.proto"))
        content = self._read("c.proto")
        assert "message C {\n  optional D peer = 1;\n}" in content
        assert "message D {\n  repeated C peers = 1;\n}" in content
        assert not any(imp.startswith("models/") for imp in self._imports(content))

    def test_cross_file_import(self):
        self._write("user.go", USER_GO)
        self._write("role.go", ROLE_GO)

        self._run()

        user = self._read("user.proto")
        assert "package models;" in user
        assert 'option go_package = "github.com/acme/models";' in user
        assert 'import "models/role.proto";' in user
        assert "message Base {" in user
        assert "message User {" in user

        role = self._read("role.proto")
        assert "models/" not in "".join(self._imports(role))
        assert "  map<string, bool> permissions = 2;" in role
        assert "  google.protobuf.Duration timeout = 3;" in role

    def test_embedding_tags_and_numbering(self):
        self._write("user.go", USER_GO)
        self._write("role.go", ROLE_GO)

        self._run()

        user = self._read("user.proto")
        body = user[user.index("message User {"):]
        body = body[:body.index("}") + 1]
        assert body == (
            "message User {\n"
            "  int64 id = 1;\n"
            "  google.protobuf.Timestamp created_at = 2;\n"
            "  string name = 3;\n"
            "  repeated string emails = 4;\n"
            "  optional Role role = 5;\n"
            "}"
        )

    def test_used_well_known_imports(self):
        self._write("role.go", ROLE_GO)

        self._run(well_known_imports="used")

        assert self._imports(self._read("role.proto")) == ["google/protobuf/duration.proto"]

    def test_test_files_ignored(self):
        self._write("types.go", "package models\n\ntype A struct {\n    X int\n}\n")
        self._write("types_test.go", "package models\n\ntype A struct {\n    Y int\n}\n")

        generated = self._run()

        assert [os.path.basename(p) for p in generated] == ["types.proto"]

    def test_no_input_files(self):
        with pytest.raises(SystemExit) as exc_info:
            self._run()
        assert exc_info.value.code == 1

    def test_unknown_reference_writes_nothing(self):
        self._write("a.go", "package models\n\ntype A struct {\n    X int\n}\n")
        self._write("b.go", "package models\n\ntype B struct {\n    M Missing\n}\n")

        with pytest.raises(SystemExit) as exc_info:
            self._run()

        assert exc_info.value.code == 1
        assert not os.path.exists(self.out_dir)

    def test_name_collision_fails(self, capsys):
        self._write("a.go", "package models\n\ntype A struct {\n    X int\n}\n")
        self._write("b.go", "package models\n\ntype A struct {\n    Y int\n}\n")

        with pytest.raises(SystemExit):
            self._run()

        assert "FATAL" in capsys.readouterr().err

    def test_interface_and_error_embedding(self, capsys):
        self._write("named.go", """\
package models

type Stringer interface {
    String() string
}

type Named struct {
    Stringer
    Name string
}

type MyErr struct {
    error
    Code int
}
""")

        self._run()

        content = self._read("named.proto")
        assert "message Named {\n  string name = 1;\n}" in content
        assert "message MyErr {\n  int64 code = 1;\n}" in content
        assert "Resolved 2 message(s)" in capsys.readouterr().out

    def test_duplicate_file_names_rejected(self, capsys):
        for sub in ("a", "b"):
            os.makedirs(os.path.join(self.src_dir, sub))
            self._write(os.path.join(sub, "types.go"), f"package models\n\ntype T{sub} struct {{\n    X int\n}}\n")

        with pytest.raises(SystemExit) as exc_info:
            self._run(input_glob=os.path.join(self.src_dir, "*", "*.go"))

        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "file name types.go is also used by" in err
        assert not os.path.exists(self.out_dir)

    def test_parse_error_fails(self, capsys):
        self._write("bad.go", "package models\n\ntype A struct {\n    X int = 1\n}\n")

        with pytest.raises(SystemExit):
            self._run()

        err = capsys.readouterr().err
        assert "bad.go:4" in err


class TestGeneratorConfig:
    def test_directory_gets_go_glob(self):
        config = GeneratorConfig(input_glob="pkg/models", output_dir="out", base_dir="x")
        assert config.input_glob == os.path.join("pkg/models", "*.go")

    def test_glob_kept(self):
        config = GeneratorConfig(input_glob="pkg/*.go", output_dir="out", base_dir="x")
        assert config.input_glob == "pkg/*.go"

    def test_package_name_is_base_dir_name(self):
        config = GeneratorConfig(input_glob="pkg", output_dir="out", base_dir="github.com/acme/models/")
        assert config.package_name == "models"

    def test_invalid_import_mode(self):
        with pytest.raises(ValueError):
            GeneratorConfig(input_glob="pkg", output_dir="out", base_dir="x", well_known_imports="some")
