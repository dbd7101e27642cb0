from __future__ import annotations

import json
import sys
import tempfile
import unittest
from pathlib import Path

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from native_bridge.errors import NativeBridgeError, SchemaError  # noqa: E402
from native_bridge.schema import FieldDecl, Schema, load_schema, schema_from_payload  # noqa: E402


class SchemaModelTests(unittest.TestCase):
    def test_from_dict_normalizes_attributes(self) -> None:
        schema = Schema.from_dict(
            {
                "name": "Api",
                "native": "logger",
                "fields": [
                    {"name": "f", "type": "void (*)(void)"},
                    {"name": "g", "type": "int &", "native": ["logger", 'symbol = "G"']},
                ],
            }
        )
        self.assertEqual(schema.attributes, ("logger",))
        self.assertIsNone(schema.library)
        self.assertEqual(
            schema.fields,
            (
                FieldDecl("f", "void (*)(void)"),
                FieldDecl("g", "int &", ("logger", 'symbol = "G"')),
            ),
        )

    def test_as_dict_round_trips(self) -> None:
        payload = {
            "name": "Api",
            "library": "libapi.so",
            "native": ["logger"],
            "fields": [{"name": "f", "type": "void (*)(void)", "native": ["symbol = \"F\""]}],
        }
        self.assertEqual(Schema.from_dict(payload).as_dict(), payload)


class SchemaValidationTests(unittest.TestCase):
    def test_structural_errors_become_diagnostics(self) -> None:
        with self.assertRaises(SchemaError) as ctx:
            schema_from_payload({"name": "", "fields": [{"name": "f"}, {"name": "g", "type": "int &", "native": 3}], "extra": 1})
        paths = [item.path for item in ctx.exception.diagnostics]
        self.assertEqual(paths, sorted(paths))
        self.assertIn("$", paths)
        self.assertIn("$.name", paths)
        self.assertIn("$.fields[0]", paths)
        self.assertIn("$.fields[1].native", paths)

    def test_load_schema(self) -> None:
        with tempfile.TemporaryDirectory(prefix="native-bridge-schema-") as temp:
            path = Path(temp) / "api.json"
            path.write_text(json.dumps({"name": "Api", "fields": []}), encoding="utf-8")
            self.assertEqual(load_schema(path), Schema(name="Api", fields=()))

            bad = Path(temp) / "bad.json"
            bad.write_text("[1, 2]", encoding="utf-8")
            with self.assertRaisesRegex(NativeBridgeError, "must be an object"):
                load_schema(bad)

            with self.assertRaisesRegex(NativeBridgeError, "Unable to read JSON file"):
                load_schema(Path(temp) / "missing.json")


if __name__ == "__main__":
    unittest.main()
