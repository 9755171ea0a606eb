from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError as SchemaValidationError

from app.rfidpos.core.config import settings
from app.rfidpos.core.error_catalog import AppError
from app.rfidpos.db.session import build_session_factory
from app.rfidpos.schemas.exports import ExportDocument
from app.rfidpos.services.terminal import Terminal


def _open_terminal(database_url: str | None) -> Terminal:
    terminal = Terminal(build_session_factory(database_url or settings.DATABASE_URL))
    terminal.inventory.load()
    terminal.activity.load()
    return terminal


def run_export(output: Path | None, *, database_url: str | None = None) -> int:
    document = _open_terminal(database_url).export_document()
    payload = document.model_dump_json(by_alias=True, exclude_none=True, indent=2)
    if output is None:
        print(payload)
    else:
        output.write_text(payload, encoding="utf-8")
        print(f"Exported {len(document.products)} products and {len(document.transactions)} transactions to {output}")
    return 0


def run_import(source: Path, *, database_url: str | None = None) -> int:
    try:
        document = ExportDocument.model_validate_json(source.read_text(encoding="utf-8"))
    except (OSError, SchemaValidationError) as exc:
        print(f"Import failed: {exc}", file=sys.stderr)
        return 2
    try:
        summary = _open_terminal(database_url).import_document(document, source.name)
    except AppError as exc:
        print(f"Import failed: {exc.error.code} {json.dumps(exc.details, default=str)}", file=sys.stderr)
        return 1
    print(json.dumps(summary.model_dump(), indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="RFIDPOS data export/import")
    parser.add_argument("--database-url", default=None)
    subparsers = parser.add_subparsers(dest="command", required=True)
    export_parser = subparsers.add_parser("export", help="Write the export document")
    export_parser.add_argument("--output", type=Path, default=None)
    import_parser = subparsers.add_parser("import", help="Replace stored data from an export document")
    import_parser.add_argument("input", type=Path)
    args = parser.parse_args(argv)
    if args.command == "export":
        return run_export(args.output, database_url=args.database_url)
    return run_import(args.input, database_url=args.database_url)


if __name__ == "__main__":
    raise SystemExit(main())
