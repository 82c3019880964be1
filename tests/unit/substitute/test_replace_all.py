"""Tests for directive substitution over whole markdown documents.

Errors stay scoped to the directive that caused them, and text outside
directive spans survives byte for byte.
"""

from __future__ import annotations

import threading
import unittest

from mdbook_git.errors import InvalidRevision, PathNotFoundAtRevision
from mdbook_git.fetch import ContentFetcher
from mdbook_git.render import ERROR_MARKER
from mdbook_git.substitute import GitPreprocessor, replace_all

TEN_LINES = [f"line {index}" for index in range(1, 11)]


class MemoryStore:
    def __init__(self) -> None:
        self.blobs = {
            ("c1", "src/lib.rs"): TEN_LINES,
            ("c2", "src/lib.rs"): [*TEN_LINES[:4], "line five", *TEN_LINES[5:]],
        }
        self.reads = 0
        self._lock = threading.Lock()

    def read_lines(self, revision: str, path: str) -> list[str]:
        with self._lock:
            self.reads += 1
        if revision not in {"c1", "c2"}:
            raise InvalidRevision(f"unknown revision {revision!r}")
        if (revision, path) not in self.blobs:
            raise PathNotFoundAtRevision(revision, path)
        return self.blobs[(revision, path)]


class ReplaceAllTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MemoryStore()
        self.fetcher = ContentFetcher(self.store)

    def test_text_without_directives_is_unchanged(self) -> None:
        text = "# Title\n\n```rust\n{{ #include src/lib.rs }}\n```\n\ttrailing  \n"
        self.assertEqual(replace_all(text, self.fetcher), text)

    def test_show_replaces_only_the_directive_span(self) -> None:
        text = "before\n```rust\n{{ #git show c1:src/lib.rs }}\n```\nafter"
        expected = "before\n```rust\n" + "\n".join(TEN_LINES) + "\n```\nafter"
        self.assertEqual(replace_all(text, self.fetcher), expected)

    def test_show_with_open_range_hides_the_head(self) -> None:
        rendered = replace_all("{{ #git show c1:src/lib.rs:2:4 }}", self.fetcher).split("\n")
        self.assertEqual(rendered[1:4], ["line 2", "line 3", "line 4"])
        self.assertEqual(rendered[0], "# line 1")
        self.assertEqual(rendered[9], "# line 10")

    def test_diff_with_hidden_deletions(self) -> None:
        rendered = replace_all("{{ #git diff c1 c2 src/lib.rs -h -U1 }}", self.fetcher)
        self.assertEqual(rendered, " line 4\n+line five\n line 6")

    def test_failures_stay_scoped_to_one_directive(self) -> None:
        text = (
            "A {{ #git show nope:src/lib.rs:1 }}\n"
            "B {{ #git show c1:src/lib.rs:1 }}\n"
            "C {{ #git show c1:missing.rs }}\n"
            "D {{ #git blame c1 }}"
        )
        with self.assertLogs("mdbook_git.substitute", level="WARNING") as logs:
            lines = replace_all(text, self.fetcher).split("\n")

        self.assertTrue(lines[0].startswith(f"A {ERROR_MARKER}"))
        self.assertIn("nope", lines[0])
        self.assertEqual(lines[1], "B line 1")
        self.assertEqual(lines[2], "# line 2")
        self.assertEqual(lines[10], "# line 10")
        self.assertTrue(lines[11].startswith(f"C {ERROR_MARKER}"))
        self.assertTrue(lines[-1].startswith(f"D {ERROR_MARKER}"))
        self.assertEqual(len(logs.output), 3)

    def test_repeated_blob_is_fetched_once_per_pass(self) -> None:
        replace_all("{{ #git show c1:src/lib.rs }} {{ #git show c1:src/lib.rs:3 }}", self.fetcher)
        self.assertEqual(self.store.reads, 1)


class GitPreprocessorTests(unittest.TestCase):
    def test_without_store_directives_pass_through(self) -> None:
        text = "x {{ #git show c1:src/lib.rs }} y"
        self.assertEqual(GitPreprocessor(None).process(text), text)

    def test_configured_context_lines_apply_to_diffs_without_flag(self) -> None:
        preprocessor = GitPreprocessor(MemoryStore(), context_lines=0)
        rendered = preprocessor.process("{{ #git diff c1 c2 src/lib.rs -h }}")
        self.assertEqual(rendered, "+line five")

    def test_chapters_share_one_cache(self) -> None:
        store = MemoryStore()
        preprocessor = GitPreprocessor(store)
        chapters = {
            "intro.md": "{{ #git show c1:src/lib.rs:1 }}",
            "later.md": "{{ #git show c1:src/lib.rs:2 }}",
        }

        processed = preprocessor.process_chapters(chapters)

        self.assertEqual(list(processed), ["intro.md", "later.md"])
        self.assertTrue(processed["intro.md"].startswith("line 1\n# line 2"))
        self.assertTrue(processed["later.md"].startswith("# line 1\nline 2"))
        self.assertEqual(store.reads, 1)

    def test_parallel_chapters_match_sequential_output(self) -> None:
        chapters = {f"ch{index}.md": f"{{{{ #git show c1:src/lib.rs:{index} }}}}" for index in range(1, 9)}
        sequential = GitPreprocessor(MemoryStore()).process_chapters(chapters)
        parallel = GitPreprocessor(MemoryStore(), max_workers=4).process_chapters(chapters)
        self.assertEqual(parallel, sequential)


if __name__ == "__main__":
    unittest.main()
