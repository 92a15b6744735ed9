"""Validate a CSV file offline and print the import result as JSON.

Runs the same reconciliation as POST /api/v1/import/{kind} without
contacting the scheduling API. Also writes templates.

Run:
    python scripts/validate_csv.py attendees path/to/attendees.csv
    python scripts/validate_csv.py meetings --template > meetings_template.csv
"""
import argparse
import asyncio
import logging
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.core.exceptions import ImportExportError
from app.core.logging import setup_logging
from app.rules.import_schemas import import_kinds
from app.services.exporter import generate_template
from app.services.import_reconciler import process_file

logger = logging.getLogger("validate_csv")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("kind", choices=import_kinds())
    parser.add_argument("path", nargs="?", help="CSV file to validate")
    parser.add_argument("--template", action="store_true", help="print the CSV template and exit")
    parser.add_argument("--include-accepted", action="store_true", help="include normalized accepted rows")
    return parser


async def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.template:
        sys.stdout.write(generate_template(args.kind))
        return 0
    if not args.path:
        logger.error("A CSV path is required unless --template is given")
        return 2

    try:
        result = await process_file(args.path, args.kind, filename=os.path.basename(args.path))
    except ImportExportError as exc:
        logger.error("%s: %s", exc.error_code.value, exc.message)
        return 1

    exclude = None if args.include_accepted else {"accepted"}
    print(result.model_dump_json(indent=2, exclude=exclude))
    return 0 if result.errors == 0 else 3


if __name__ == "__main__":
    setup_logging()
    sys.exit(asyncio.run(main()))
