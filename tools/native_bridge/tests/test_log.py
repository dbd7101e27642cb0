from __future__ import annotations

import logging
import sys
import unittest
from pathlib import Path

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from native_bridge.log import TRACE, parse_level  # noqa: E402


class LogLevelTests(unittest.TestCase):
    def test_parse_level(self) -> None:
        self.assertEqual(parse_level("trace"), TRACE)
        self.assertEqual(parse_level("WARNING"), logging.WARNING)
        self.assertEqual(parse_level("debug"), logging.DEBUG)
        self.assertEqual(logging.getLevelName(TRACE), "TRACE")
        with self.assertRaisesRegex(ValueError, "unknown log level 'loud'"):
            parse_level("loud")


if __name__ == "__main__":
    unittest.main()
