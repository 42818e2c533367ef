"""Unit tests for exploitwatch.sniff — content-based extension detection."""

from pathlib import Path

import pytest

from exploitwatch.sniff import sniff_extension, sniff_file

# ── sniff_extension ──────────────────────────────────────────────────────────


class TestSniffExtension:
    @pytest.mark.parametrize(
        "content, ext",
        [
            ("import requests\n\ndef exploit(target):\n    pass\n", ".py"),
            ("#include <stdio.h>\n\nint main(void) { return 0; }\n", ".c"),
            ("package main\n\nimport \"fmt\"\n", ".go"),
            ("// no package line\nfunc main() {}\n", ".go"),
            ("#!/bin/bash\ncurl http://target/\n", ".sh"),
            ("run it with bash exploit.sh\n", ".sh"),
            ("#!/usr/bin/perl\nuse strict;\n", ".pl"),
            ("Exploit Title: something\nVersion: 1.0\n", ".txt"),
            ("", ".txt"),
        ],
    )
    def test_markers(self, content, ext):
        assert sniff_extension(content) == ext

    def test_bytes_input(self):
        assert sniff_extension(b"#include <stdlib.h>\nint main() {}") == ".c"

    def test_undecodable_bytes(self):
        assert sniff_extension(b"\xff\xfe\x00\x01binary\x00") == ".txt"

    def test_needs_both_python_markers(self):
        assert sniff_extension("import os\n") == ".txt"
        assert sniff_extension("def foo(): pass\n") == ".txt"

    def test_needs_both_c_markers(self):
        assert sniff_extension("#include <stdio.h>\n") == ".txt"

    def test_priority_order(self):
        # Python wins over C when both rule sets match.
        text = "import x\ndef f(): pass\n#include <stdio.h>\nint main() {}\n"
        assert sniff_extension(text) == ".py"
        # C wins over Bash.
        assert sniff_extension("#include <a.h>\nint main() { system(\"bash\"); }") == ".c"

    def test_perl_shebang_mentioning_bash(self):
        # The loose "bash" marker is checked before Perl.
        assert sniff_extension("#!/usr/bin/perl\n# spawns bash\n") == ".sh"


# ── sniff_file ───────────────────────────────────────────────────────────────


class TestSniffFile:
    def test_reads_file(self, tmp_path: Path):
        path = tmp_path / "x.temp"
        path.write_text("package main\n")
        assert sniff_file(path) == ".go"

    def test_missing_file(self, tmp_path: Path):
        assert sniff_file(tmp_path / "missing") == ".txt"
