from __future__ import annotations

import argparse
import ctypes.util
import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from native_bridge import cli  # noqa: E402

LIBC = ctypes.util.find_library("c") if sys.platform != "win32" else None

VALID_SCHEMA = {
    "name": "LibC",
    "native": ["logger"],
    "fields": [
        {"name": "strlen", "type": "size_t (*)(const char *s)"},
        {"name": "frobnicate", "type": "optional<int (*)(int)>", "native": 'symbol = "native_bridge_frobnicate"'},
    ],
}

BROKEN_SCHEMA = {
    "name": "Broken",
    "fields": [
        {"name": "strlen", "type": "size_t"},
        {"name": "open", "type": "int (*)(const char *)", "native": 'implicit(rename = "kebab")'},
    ],
}


def run(func, **kwargs) -> tuple[int, str]:
    buffer = io.StringIO()
    with redirect_stdout(buffer):
        code = func(argparse.Namespace(**kwargs))
    return code, buffer.getvalue()


class CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._temp = tempfile.TemporaryDirectory(prefix="native-bridge-cli-")
        self.root = Path(self._temp.name)
        self.valid = self.write_schema("valid.json", VALID_SCHEMA)
        self.broken = self.write_schema("broken.json", BROKEN_SCHEMA)

    def tearDown(self) -> None:
        self._temp.cleanup()

    def write_schema(self, name: str, payload: dict) -> Path:
        path = self.root / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path


class CheckCommandTests(CliTestCase):
    def test_check_ok(self) -> None:
        code, output = run(cli.command_check, schema=str(self.valid))
        self.assertEqual(code, 0)
        self.assertIn("[LibC] check: ok (2 field(s))", output)

    def test_check_reports_every_error(self) -> None:
        code, output = run(cli.command_check, schema=str(self.broken))
        self.assertEqual(code, 1)
        self.assertIn("error: Broken.open.native.implicit.rename:", output)
        self.assertIn("error: Broken.strlen.type:", output)
        self.assertIn('  expected one of: lowercase, UPPERCASE, PascalCase', output)
        self.assertIn("[Broken] check: 2 error(s)", output)


class PlanCommandTests(CliTestCase):
    def test_plan_to_stdout_and_file(self) -> None:
        code, output = run(cli.command_plan, schema=str(self.valid), output=None)
        self.assertEqual(code, 0)
        payload = json.loads(output)
        self.assertEqual([field["name"] for field in payload["fields"]], ["strlen", "frobnicate"])

        target = self.root / "out" / "plan.json"
        code, output = run(cli.command_plan, schema=str(self.valid), output=str(target))
        self.assertEqual(code, 0)
        self.assertIn("[LibC] plan: wrote", output)
        self.assertEqual(json.loads(target.read_text(encoding="utf-8")), payload)


class CodegenCommandTests(CliTestCase):
    def test_codegen_then_check(self) -> None:
        target = self.root / "libc_api.py"
        code, output = run(cli.command_codegen, schema=str(self.valid), output=str(target), check=False, dry_run=False)
        self.assertEqual(code, 0)
        self.assertIn("[LibC] codegen: libc_api.py ok", output)
        self.assertIn("class LibC(BoundApi):", target.read_text(encoding="utf-8"))

        code, _ = run(cli.command_codegen, schema=str(self.valid), output=str(target), check=True, dry_run=False)
        self.assertEqual(code, 0)

        target.write_text("# stale\n", encoding="utf-8")
        code, output = run(cli.command_codegen, schema=str(self.valid), output=str(target), check=True, dry_run=False)
        self.assertEqual(code, 1)
        self.assertIn("codegen: libc_api.py drift", output)


class MainTests(CliTestCase):
    def run_main(self, *argv: str) -> tuple[int, str, str]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            code = cli.main(list(argv))
        return code, stdout.getvalue(), stderr.getvalue()

    def test_schema_errors_exit_with_one(self) -> None:
        code, _, stderr = self.run_main("plan", "--schema", str(self.broken))
        self.assertEqual(code, 1)
        self.assertIn("native_bridge error: 2 schema error(s):", stderr)

    def test_structural_errors_exit_with_one(self) -> None:
        path = self.write_schema("shape.json", {"name": "Api"})
        code, _, stderr = self.run_main("check", "--schema", str(path))
        self.assertEqual(code, 1)
        self.assertIn("'fields' is a required property", stderr)

    def test_other_errors_exit_with_two(self) -> None:
        code, _, stderr = self.run_main("check", "--schema", str(self.root / "missing.json"))
        self.assertEqual(code, 2)
        self.assertIn("Unable to read JSON file", stderr)

        code, _, stderr = self.run_main("probe", "--schema", str(self.valid))
        self.assertEqual(code, 2)
        self.assertIn("No library to probe", stderr)

    @unittest.skipUnless(LIBC, "C runtime library not found")
    def test_probe_libc(self) -> None:
        code, stdout, _ = self.run_main("--log-level", "TRACE", "probe", "--schema", str(self.valid), "--library", LIBC)
        self.assertEqual(code, 0)
        self.assertIn("  strlen: 0x", stdout)
        self.assertIn("  frobnicate: absent (optional)", stdout)
        self.assertIn(f"[LibC] probe: {LIBC} ok", stdout)

    @unittest.skipUnless(LIBC, "C runtime library not found")
    def test_probe_reports_missing_required_symbols(self) -> None:
        path = self.write_schema(
            "missing_symbol.json",
            {"name": "LibC", "fields": [{"name": "native_bridge_nothing", "type": "void (*)(void)"}]},
        )
        code, stdout, _ = self.run_main("probe", "--schema", str(path), "--library", LIBC)
        self.assertEqual(code, 1)
        self.assertIn("  native_bridge_nothing: FAILED (Unable to resolve field 'native_bridge_nothing'", stdout)
        self.assertIn("probe: " + LIBC + " incomplete", stdout)


if __name__ == "__main__":
    unittest.main()
