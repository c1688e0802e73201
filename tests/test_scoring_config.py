import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config import get_scoring_value, reset_scoring_config_cache  # noqa: E402


class ScoringConfigTests(unittest.TestCase):
    def setUp(self):
        reset_scoring_config_cache()

    def tearDown(self):
        reset_scoring_config_cache()

    def test_default_values(self):
        self.assertEqual(get_scoring_value("ats.keyword_target"), 20)
        self.assertEqual(get_scoring_value("ats.bonus.points"), 5)
        self.assertEqual(get_scoring_value("ats.max_missing_keywords"), 10)
        self.assertEqual(get_scoring_value("ats.messages.skills"), "Include more relevant skills")

    def test_missing_path_returns_default(self):
        self.assertEqual(get_scoring_value("ats.nope.deeper", 7), 7)
        self.assertEqual(get_scoring_value("ats.keyword_target.child", "x"), "x")
        self.assertIsNone(get_scoring_value(""))

    def test_path_override_from_environment(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "scoring.yaml"
            path.write_text("ats:\n  keyword_target: 40\n", encoding="utf-8")
            with patch.dict(os.environ, {"SCORING_CONFIG_PATH": str(path)}):
                self.assertEqual(get_scoring_value("ats.keyword_target"), 40)

    def test_invalid_file_raises(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "scoring.yaml"
            path.write_text("- just\n- a list\n", encoding="utf-8")
            with patch.dict(os.environ, {"SCORING_CONFIG_PATH": str(path)}):
                with self.assertRaises(RuntimeError):
                    get_scoring_value("ats.keyword_target")
            with patch.dict(os.environ, {"SCORING_CONFIG_PATH": str(Path(tmp) / "absent.yaml")}):
                with self.assertRaises(RuntimeError):
                    get_scoring_value("ats.keyword_target")


if __name__ == "__main__":
    unittest.main()
