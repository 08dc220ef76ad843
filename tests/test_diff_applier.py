"""
Tests for the fix diff applier.
"""

from govscan.engine.diff_applier import apply_fix_diff, looks_like_code, strip_code_fence
from govscan.engine.fixer import Fixer

ORIGINAL = "import os\n\ndef load(path):\n    return open(path).read()\n"


def test_insert_only_diff_preserves_order():
    diff = (
        "--- a/app.py\n"
        "+++ b/app.py\n"
        "@@ -1,3 +1,4 @@\n"
        " import os\n"
        "+import logging\n"
        " \n"
        " def load(path):\n"
    )
    result = apply_fix_diff(ORIGINAL, diff)
    lines = result.split("\n")
    assert lines == ["import os", "import logging", "", "def load(path):",
                     "    return open(path).read()", ""]
    assert len(lines) == len(ORIGINAL.split("\n")) + 1


def test_replace_line_diff():
    diff = (
        "@@ -3,2 +3,2 @@\n"
        " def load(path):\n"
        "-    return open(path).read()\n"
        "+    with open(path) as f:\n"
        "+        return f.read()\n"
    )
    result = apply_fix_diff(ORIGINAL, diff)
    assert "open(path).read()" not in result
    assert "    with open(path) as f:\n        return f.read()" in result
    assert result.startswith("import os\n\ndef load(path):\n")


def test_mismatched_deletion_is_skipped_not_fatal():
    diff = "@@ -1,1 +1,1 @@\n-import sys\n+import sys as system\n"
    result = apply_fix_diff(ORIGINAL, diff)
    assert "import os" in result
    assert "import sys as system" in result


def test_fenced_diff_is_unwrapped():
    fenced = "```diff\n@@ -1,1 +1,2 @@\n import os\n+import json\n```"
    result = apply_fix_diff(ORIGINAL, fenced)
    assert result.split("\n")[:2] == ["import os", "import json"]


def test_prose_returns_original():
    prose = (
        "You should refactor this function so that it closes the file handle properly "
        "by using a context manager instead of leaving the descriptor open for the GC."
    )
    assert apply_fix_diff(ORIGINAL, prose) == ORIGINAL


def test_replacement_code_returned_verbatim():
    code = (
        "```python\n"
        "import os\n\n"
        "def load(path):\n"
        "    with open(path) as f:\n"
        "        return f.read()\n"
        "```"
    )
    result = apply_fix_diff(ORIGINAL, code)
    assert result == strip_code_fence(code)
    assert result.startswith("import os")


def test_short_text_returns_original():
    assert apply_fix_diff(ORIGINAL, "x = 1") == ORIGINAL


def test_diff_header_without_hunks_returns_original():
    text = "--- a/app.py\n+++ b/app.py\nno hunks here, only headers and some more words"
    assert apply_fix_diff(ORIGINAL, text) == ORIGINAL


def test_added_lines_without_hunk_header_keep_original():
    text = "import os\n+import sys\n+import json\n+import logging\n def load(path):\n"
    assert apply_fix_diff(ORIGINAL, text) == ORIGINAL


def test_removed_lines_without_hunk_header_keep_original():
    text = "def load(path):\n-    a = 1\n-    b = 2\n-    c = 3\n    return open(path).read()\n"
    assert apply_fix_diff(ORIGINAL, text) == ORIGINAL


def test_code_heuristic_counts_special_characters():
    dense = "result = compute(a, b) if (x < y) else {k: v for k, v in items()}; d = {'a': [1], 'b': (2)}; z = [1, 2]"
    assert looks_like_code(dense)


def test_fixer_apply_reports_change():
    content, applied = Fixer.apply(ORIGINAL, "plain words that describe a fix but nothing to apply here at all really")
    assert content == ORIGINAL
    assert applied is False
