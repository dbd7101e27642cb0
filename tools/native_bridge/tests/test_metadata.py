from __future__ import annotations

import sys
import unittest
from pathlib import Path

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from native_bridge.case import RULE_NAMES, CaseRule  # noqa: E402
from native_bridge.errors import Diagnostics  # noqa: E402
from native_bridge.metadata import (  # noqa: E402
    FieldMetadata,
    ImplicitMetadata,
    StructMetadata,
    SymbolSpec,
    resolve_field_metadata,
    resolve_struct_metadata,
)


def struct_meta(*attributes: str) -> tuple[StructMetadata, Diagnostics]:
    cx = Diagnostics()
    return resolve_struct_metadata(cx, attributes, "Api.native"), cx


def field_meta(*attributes: str) -> tuple[FieldMetadata, Diagnostics]:
    cx = Diagnostics()
    return resolve_field_metadata(cx, attributes, "Api.puts.native"), cx


class StructMetadataTests(unittest.TestCase):
    def test_recognized_struct_options(self) -> None:
        meta, cx = struct_meta(
            'implicit(rename = "PascalCase", debug)',
            'symbol(prefix = "il2cpp_", suffix = "")',
            "logger",
        )
        self.assertFalse(cx)
        self.assertIs(meta.implicit.rename, CaseRule.PASCAL_CASE)
        self.assertTrue(meta.implicit.debug)
        self.assertEqual(meta.symbol.prefix, "il2cpp_")
        self.assertIsNone(meta.symbol.suffix)
        self.assertTrue(meta.logger)

    def test_defaults_and_later_attributes_win(self) -> None:
        meta, cx = struct_meta()
        self.assertFalse(cx)
        self.assertEqual(meta, StructMetadata())
        self.assertFalse(meta.logger)

        meta, cx = struct_meta("logger", "logger = false")
        self.assertFalse(cx)
        self.assertFalse(meta.logger)

    def test_errors_are_accumulated_in_one_pass(self) -> None:
        meta, cx = struct_meta('implicit(rename = "kebab-case"), colour = 1', 'symbol(prefix = b"x"), logger = "yes"')
        paths = [item.path for item in cx.items]
        self.assertEqual(
            paths,
            [
                "Api.native.implicit.rename",
                "Api.native.colour",
                "Api.native.symbol.prefix",
                "Api.native.logger",
            ],
        )
        rename_error = cx.items[0]
        self.assertEqual(rename_error.value, "kebab-case")
        self.assertEqual(rename_error.expected, RULE_NAMES)
        self.assertIn("unknown attribute `colour`", cx.items[1].message)
        self.assertIn("expected prefix attribute to be a string", cx.items[2].message)
        self.assertIn("expected logger attribute to be a bool", cx.items[3].message)
        self.assertIs(meta.implicit.rename, CaseRule.NONE)

    def test_nested_unknown_keys_and_wrong_forms(self) -> None:
        _, cx = struct_meta('implicit(renam = "x")', 'implicit = "PascalCase"', "symbol = \"x\"", 'symbol(infix = "_")')
        messages = [item.message for item in cx.items]
        self.assertEqual(len(messages), 4)
        self.assertIn("unknown attribute `renam`", messages[0])
        self.assertEqual(cx.items[0].path, "Api.native.implicit.renam")
        self.assertIn("expected `implicit(...)`", messages[1])
        self.assertIn("expected `symbol(...)`", messages[2])
        self.assertIn("unknown attribute `infix`", messages[3])

    def test_suffix_on_plain_string_option_is_rejected(self) -> None:
        meta, cx = struct_meta('symbol(prefix = "il2cpp_"d)')
        self.assertEqual(len(cx), 1)
        self.assertIn("unexpected suffix `d` on string literal", cx.items[0].message)
        self.assertEqual(meta.symbol.prefix, "il2cpp_")

    def test_syntax_error_does_not_hide_other_attributes(self) -> None:
        meta, cx = struct_meta("implicit(", "colour")
        self.assertEqual(len(cx), 2)
        self.assertEqual(cx.items[0].path, "Api.native[0]")
        self.assertIn("malformed attribute", cx.items[0].message)
        self.assertEqual(cx.items[1].path, "Api.native.colour")


class FieldMetadataTests(unittest.TestCase):
    def test_symbol_forms(self) -> None:
        meta, cx = field_meta('symbol = "puts"')
        self.assertFalse(cx)
        self.assertEqual(meta.symbols, (SymbolSpec("puts"),))

        meta, cx = field_meta('symbol = ["a", b"b"debug, "c"d]')
        self.assertFalse(cx)
        self.assertEqual(meta.symbols, (SymbolSpec("a"), SymbolSpec(b"b", True), SymbolSpec("c", True)))
        self.assertEqual([spec.exact for spec in meta.symbols], [False, True, False])

    def test_bad_symbol_elements(self) -> None:
        meta, cx = field_meta('symbol = ["a"dbg, 1, "", b"x\\x00", "ok"]', "symbol = true")
        self.assertEqual(
            [item.path for item in cx.items],
            [
                "Api.puts.native.symbol[0]",
                "Api.puts.native.symbol[1]",
                "Api.puts.native.symbol[2]",
                "Api.puts.native.symbol[3]",
                "Api.puts.native.symbol",
            ],
        )
        self.assertIn("unexpected suffix `dbg`", cx.items[0].message)
        self.assertEqual(cx.items[0].expected, ("d", "debug"))
        self.assertIn("found invalid element", cx.items[1].message)
        self.assertIn("must not be empty", cx.items[2].message)
        self.assertIn("must not contain NUL", cx.items[3].message)
        self.assertIn("string or array of strings", cx.items[4].message)
        self.assertEqual(meta.symbols, ())

    def test_field_rejects_struct_only_forms(self) -> None:
        _, cx = field_meta('symbol(prefix = "x")', "prefix = 1")
        self.assertEqual(len(cx), 2)
        self.assertIn('expected `symbol = "..."`', cx.items[0].message)
        self.assertIn("unknown attribute `prefix`", cx.items[1].message)

    def test_logger_is_tri_state(self) -> None:
        self.assertIsNone(field_meta()[0].logger)
        self.assertTrue(field_meta("logger")[0].logger)
        self.assertFalse(field_meta("logger = false")[0].logger)


class PrecedenceTests(unittest.TestCase):
    def test_rename_falls_back_to_struct(self) -> None:
        parent = StructMetadata(implicit=ImplicitMetadata(rename=CaseRule.PASCAL_CASE))
        self.assertIs(FieldMetadata().effective_rename(parent), CaseRule.PASCAL_CASE)
        field = FieldMetadata(implicit=ImplicitMetadata(rename=CaseRule.CAMEL_CASE))
        self.assertIs(field.effective_rename(parent), CaseRule.CAMEL_CASE)
        explicit_snake = FieldMetadata(implicit=ImplicitMetadata(rename=CaseRule.SNAKE_CASE))
        self.assertIs(explicit_snake.effective_rename(parent), CaseRule.SNAKE_CASE)

    def test_debug_and_logger_fall_back_explicitly(self) -> None:
        plain = StructMetadata()
        debug_struct = StructMetadata(implicit=ImplicitMetadata(debug=True), logger=True)

        self.assertFalse(FieldMetadata().effective_debug(plain))
        self.assertTrue(FieldMetadata().effective_debug(debug_struct))
        self.assertFalse(FieldMetadata(implicit=ImplicitMetadata(debug=False)).effective_debug(debug_struct))

        self.assertFalse(FieldMetadata().effective_logger(plain))
        self.assertTrue(FieldMetadata().effective_logger(debug_struct))
        self.assertFalse(FieldMetadata(logger=False).effective_logger(debug_struct))
        self.assertTrue(FieldMetadata(logger=True).effective_logger(plain))


if __name__ == "__main__":
    unittest.main()
