"""
Timesheet Query command line.

WHAT:
    - check: compile a query file and print the normalized query (or the
      positioned error)
    - run: execute a query file against entries loaded from JSON and
      print the ProcessedData as JSON, or the SHOW table with --table

USAGE:
    python -m timesheet_query check report.tsq
    python -m timesheet_query run report.tsq --entries entries.json
    python -m timesheet_query run report.tsq --entries entries.json --table

    entries.json holds a list of objects:
        [{"date": "2024-01-02", "hours": 8, "rate": 75, "project": "ACME-42"}]

Settings come from TIMESHEET_* environment variables (and a local .env).
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from timesheet_query.datasource.memory import InMemoryDataSource
from timesheet_query.dsl.columns import build_table
from timesheet_query.dsl.errors import QueryError
from timesheet_query.service import compile_query, run_query
from timesheet_query.settings import Settings

logger = logging.getLogger(__name__)


def _check(args) -> int:
    text = Path(args.query_file).read_text(encoding="utf-8")
    try:
        query = compile_query(text)
    except QueryError as e:
        print(e.user_message(), file=sys.stderr)
        return 1
    print(json.dumps(query.to_dict(), indent=2))
    return 0


def _run(args) -> int:
    text = Path(args.query_file).read_text(encoding="utf-8")
    records = json.loads(Path(args.entries).read_text(encoding="utf-8"))
    source = InMemoryDataSource.from_records(records)
    logger.info(f"Loaded {len(records)} entries from {args.entries}")
    settings = Settings.from_env()

    try:
        data = asyncio.run(run_query(text, source, settings))
    except QueryError as e:
        print(e.user_message(), file=sys.stderr)
        return 1

    if args.table:
        columns = compile_query(text).show
        table = build_table(data.entries, columns, settings)
        print("\t".join(table.headers))
        for row in table.rows:
            print("\t".join(row))
    else:
        print(data.model_dump_json(indent=2))
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="timesheet_query", description="Compile and run timesheet queries")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log pipeline detail to stderr")
    subparsers = parser.add_subparsers(dest="command", help="Command")

    check_parser = subparsers.add_parser("check", help="Validate a query file")
    check_parser.add_argument("query_file", help="Path to the query text")

    run_parser = subparsers.add_parser("run", help="Execute a query file")
    run_parser.add_argument("query_file", help="Path to the query text")
    run_parser.add_argument("--entries", required=True, help="JSON file with a list of time entries")
    run_parser.add_argument("--table", action="store_true", help="Print the SHOW table instead of JSON")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.command == "check":
        return _check(args)
    if args.command == "run":
        return _run(args)
    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
