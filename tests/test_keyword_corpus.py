import json
import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.keywords import KeywordSelection, LocalKeywordCorpus, dedupe_keywords, get_default_keyword_corpus  # noqa: E402


class LocalKeywordCorpusTests(unittest.TestCase):
    def test_default_categories_in_display_order(self):
        categories = get_default_keyword_corpus().categories()
        self.assertEqual(list(categories), ["technical", "soft", "industry"])
        self.assertEqual(categories["technical"][:3], ("JavaScript", "Python", "React"))
        self.assertIn("Leadership", categories["soft"])
        self.assertIn("Compliance", categories["industry"])

    def test_candidates_append_selected_without_duplicates(self):
        corpus = get_default_keyword_corpus()
        candidates = corpus.candidates(["Figma", "python", "figma"])
        self.assertEqual(candidates[-1], "Figma")
        self.assertEqual(sum(1 for term in candidates if term.lower() == "python"), 1)
        self.assertEqual(len(candidates), 24 + 15 + 14 + 1)

    def test_custom_corpus_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "keywords.json"
            path.write_text(json.dumps({"extra": ["Rust"], "technical": ["Go", " "]}), encoding="utf-8")
            corpus = LocalKeywordCorpus(path)
        self.assertEqual(corpus.categories(), {"technical": ("Go",), "extra": ("Rust",)})
        self.assertEqual(corpus.candidates(), ["Go", "Rust"])

    def test_rejects_non_mapping_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "keywords.json"
            path.write_text("[]", encoding="utf-8")
            with self.assertRaises(RuntimeError):
                LocalKeywordCorpus(path)


class KeywordSelectionTests(unittest.TestCase):
    def test_dedupe_keeps_first_spelling(self):
        self.assertEqual(dedupe_keywords(["SQL", " sql ", "", "Go"]), ["SQL", "Go"])

    def test_toggle_adds_then_removes(self):
        selection = KeywordSelection(["Python"])
        self.assertTrue(selection.toggle("Figma"))
        self.assertIn("Figma", selection)
        self.assertEqual(selection.as_tuple(), ("Python", "Figma"))
        self.assertFalse(selection.toggle("Figma"))
        self.assertNotIn("Figma", selection)
        self.assertEqual(len(selection), 1)

    def test_toggle_ignores_blank_keyword(self):
        selection = KeywordSelection()
        self.assertFalse(selection.toggle("  "))
        self.assertEqual(list(selection), [])

    def test_replace(self):
        selection = KeywordSelection(["Python"])
        selection.replace(["Go", "go", "Rust"])
        self.assertEqual(selection.as_tuple(), ("Go", "Rust"))


if __name__ == "__main__":
    unittest.main()
