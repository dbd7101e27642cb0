from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .codegen import render_api_module
from .common import write_if_changed, write_text
from .descriptor import collect_diagnostics, derive_descriptor
from .errors import NativeBridgeError, ResolutionExhausted, SchemaError
from .library import open_library
from .log import LOG_LEVELS, configure_logging
from .resolve import resolve_field
from .schema import load_schema


def command_check(args: argparse.Namespace) -> int:
    schema = load_schema(Path(args.schema).resolve())
    diagnostics = collect_diagnostics(schema)
    for item in diagnostics:
        print(f"error: {item}")
        if item.expected:
            print(f"  expected one of: {', '.join(item.expected)}")
    if diagnostics:
        print(f"[{schema.name}] check: {len(diagnostics)} error(s)")
        return 1
    print(f"[{schema.name}] check: ok ({len(schema.fields)} field(s))")
    return 0


def command_plan(args: argparse.Namespace) -> int:
    schema = load_schema(Path(args.schema).resolve())
    descriptor = derive_descriptor(schema)
    payload = descriptor.to_json()
    if args.output:
        write_text(Path(args.output).resolve(), payload)
        print(f"[{schema.name}] plan: wrote {args.output}")
    else:
        sys.stdout.write(payload)
    return 0


def command_codegen(args: argparse.Namespace) -> int:
    schema = load_schema(Path(args.schema).resolve())
    content = render_api_module(schema)
    output = Path(args.output).resolve()
    exit_code = write_if_changed(output, content, check=bool(args.check), dry_run=bool(args.dry_run))
    status = "drift" if exit_code else "ok"
    print(f"[{schema.name}] codegen: {output.name} {status}")
    return exit_code


def command_probe(args: argparse.Namespace) -> int:
    schema = load_schema(Path(args.schema).resolve())
    descriptor = derive_descriptor(schema)
    library_name = args.library or descriptor.library
    if not library_name:
        raise NativeBridgeError("No library to probe: pass --library or set 'library' in the schema.")

    exit_code = 0
    with open_library(library_name) as library:
        for binding in descriptor.fields:
            try:
                address = resolve_field(library, binding)
            except ResolutionExhausted as exc:
                print(f"  {binding.name}: FAILED ({exc})")
                exit_code = 1
                continue
            if address is None:
                print(f"  {binding.name}: absent (optional)")
            else:
                print(f"  {binding.name}: {address:#x}")
    print(f"[{descriptor.name}] probe: {library_name} {'ok' if exit_code == 0 else 'incomplete'}")
    return exit_code


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="native-bridge",
        description="Derive native symbol resolution plans and accessor wrappers from binding schemas.",
    )
    parser.add_argument("--log-level", default="WARNING", choices=LOG_LEVELS, help="Logging level (default: WARNING).")

    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Validate a binding schema and report every problem.")
    check.add_argument("--schema", required=True, help="Path to binding schema JSON.")
    check.set_defaults(func=command_check)

    plan = sub.add_parser("plan", help="Print the binding descriptor (resolution plans and contracts) as JSON.")
    plan.add_argument("--schema", required=True, help="Path to binding schema JSON.")
    plan.add_argument("--output", help="Write descriptor JSON to path instead of stdout.")
    plan.set_defaults(func=command_plan)

    codegen = sub.add_parser("codegen", help="Render a Python module with a static accessor class.")
    codegen.add_argument("--schema", required=True, help="Path to binding schema JSON.")
    codegen.add_argument("--output", required=True, help="Path of the generated Python module.")
    codegen.add_argument("--check", action="store_true", help="Fail with a diff when the output is out of date.")
    codegen.add_argument("--dry-run", action="store_true", help="Render without writing.")
    codegen.set_defaults(func=command_codegen)

    probe = sub.add_parser("probe", help="Open the library and resolve every field of the schema.")
    probe.add_argument("--schema", required=True, help="Path to binding schema JSON.")
    probe.add_argument("--library", help="Library name or path (default: schema 'library').")
    probe.set_defaults(func=command_probe)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        return int(args.func(args))
    except SchemaError as exc:
        print(f"native_bridge error: {exc}", file=sys.stderr)
        return 1
    except NativeBridgeError as exc:
        print(f"native_bridge error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
