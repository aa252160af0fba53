"""Command line shell over a CSV record collection."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from csvstore.common.config import DEFAULT_PROFILE, load_runtime_config
from csvstore.common.errors import CSVStoreError, ErrorCode, SchemaError
from csvstore.common.models import Record, Schema
from csvstore.core.codec.values import decode_value
from csvstore.core.collection import CSVCollection, default_sort_key
from csvstore.storage.json_store import records_from_json


def open_collection(args: argparse.Namespace, *, headers: Optional[List[str]] = None, delete_previous: bool = False) -> CSVCollection:
    runtime = load_runtime_config(
        profile=args.profile,
        config_path=Path(args.config) if args.config else None,
    )
    return CSVCollection(
        args.path,
        headers,
        delimiter=args.delimiter,
        delete_previous=delete_previous,
        config=runtime,
        operation_log=Path(args.operation_log) if args.operation_log else None,
    )


def print_records(records: List[Record]) -> None:
    for record in records:
        print(json.dumps(record, ensure_ascii=False))


def command_init(args: argparse.Namespace) -> None:
    collection = open_collection(args, headers=args.headers, delete_previous=args.delete_previous)
    print(f"[init] {collection.path} headers={collection.headers}")


def command_read(args: argparse.Namespace) -> None:
    collection = open_collection(args)
    records = collection.read()
    if args.limit is not None:
        records = records[: args.limit]
    print_records(records)


def command_append(args: argparse.Namespace) -> None:
    collection = open_collection(args)
    records: List[Record] = []
    for payload in args.records:
        text = payload.strip()
        records.extend(records_from_json(text if text.startswith("[") else f"[{text}]"))
    written = collection.write(records)
    print(f"[append] wrote {written} record(s) to {collection.path}")


def command_delete(args: argparse.Namespace) -> None:
    collection = open_collection(args)
    if args.where:
        field, _, raw = args.where.partition("=")
        if not field or field not in collection.headers:
            raise SchemaError(f"Unknown field in --where: '{field}'", context={"field": field})
        expected = decode_value(raw)

        def predicate(record: Record) -> bool:
            return record.get(field) == expected

        target = predicate
    elif args.index is not None:
        target = args.index
    else:
        raise SystemExit("delete requires --index or --where")

    if args.all:
        removed = collection.delete_all([target] if isinstance(target, int) else target)
    else:
        removed = 0 if collection.delete(target) is None else 1
    print(f"[delete] removed {removed} record(s) from {collection.path}")


def command_sort(args: argparse.Namespace) -> None:
    collection = open_collection(args)
    spec = collection.schema.get(args.by)
    if spec is None:
        raise CSVStoreError(ErrorCode.SCHEMA_ERROR, f"Unknown sort field '{args.by}'")
    records = collection.sort(default_sort_key(Schema(fields=(spec,))), reverse=args.desc, write=args.write)
    if args.write:
        print(f"[sort] rewrote {len(records)} record(s) in {collection.path} by '{args.by}'")
    else:
        print_records(records)


def command_clear(args: argparse.Namespace) -> None:
    collection = open_collection(args)
    collection.clear()
    print(f"[clear] {collection.path} truncated to header line")


def command_count(args: argparse.Namespace) -> None:
    print(open_collection(args).count())


def command_to_json(args: argparse.Namespace) -> None:
    collection = open_collection(args)
    collection.to_json(Path(args.output), indent=args.indent)
    print(f"[to-json] wrote {args.output}")


def command_from_json(args: argparse.Namespace) -> None:
    runtime = load_runtime_config(
        profile=args.profile,
        config_path=Path(args.config) if args.config else None,
    )
    collection = CSVCollection.from_json(
        Path(args.input),
        args.path,
        delimiter=args.delimiter,
        config=runtime,
        operation_log=Path(args.operation_log) if args.operation_log else None,
    )
    print(f"[from-json] created {collection.path} headers={collection.headers}")


def command_to_parquet(args: argparse.Namespace) -> None:
    collection = open_collection(args)
    rows = collection.to_parquet(Path(args.output))
    print(f"[to-parquet] wrote {rows} row(s) to {args.output}")


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--profile", default=DEFAULT_PROFILE, help="Configuration profile name")
    common.add_argument("--config", help="Path to configuration JSON (defaults to config/defaults.json)")
    common.add_argument("--delimiter", help="Override the configured field delimiter")
    common.add_argument(
        "--operation-log",
        help="Optional JSONL file receiving one line per collection operation",
    )
    common.add_argument("--verbose", action="store_true", help="Enable debug logging")

    parser = argparse.ArgumentParser(description="Typed record store over a delimited text file")
    subparsers = parser.add_subparsers(dest="command")

    init = subparsers.add_parser("init", parents=[common], help="Create a collection file")
    init.add_argument("path", help="CSV file to create or open")
    init.add_argument(
        "--headers",
        nargs="+",
        default=[],
        help="Header specs such as name n:age b:isAlive?",
    )
    init.add_argument(
        "--delete-previous",
        action="store_true",
        help="Remove an existing file before creating the collection",
    )
    init.set_defaults(func=command_init)

    read = subparsers.add_parser("read", parents=[common], help="Print records as JSON lines")
    read.add_argument("path")
    read.add_argument("--limit", type=int, help="Print at most this many records")
    read.set_defaults(func=command_read)

    append = subparsers.add_parser("append", parents=[common], help="Append JSON records")
    append.add_argument("path")
    append.add_argument("records", nargs="+", help="JSON object(s) or array(s) of objects")
    append.set_defaults(func=command_append)

    delete = subparsers.add_parser("delete", parents=[common], help="Delete records")
    delete.add_argument("path")
    delete.add_argument("--index", type=int, help="Zero-based record index")
    delete.add_argument("--where", help="FIELD=VALUE equality match, VALUE decoded like a cell")
    delete.add_argument("--all", action="store_true", help="Delete every match instead of the first")
    delete.set_defaults(func=command_delete)

    sort = subparsers.add_parser("sort", parents=[common], help="Sort records by a field")
    sort.add_argument("path")
    sort.add_argument("--by", required=True, help="Field to sort on")
    sort.add_argument("--desc", action="store_true", help="Sort descending")
    sort.add_argument("--write", action="store_true", help="Rewrite the file in sorted order")
    sort.set_defaults(func=command_sort)

    clear = subparsers.add_parser("clear", parents=[common], help="Truncate to the header line")
    clear.add_argument("path")
    clear.set_defaults(func=command_clear)

    count = subparsers.add_parser("count", parents=[common], help="Print the number of records")
    count.add_argument("path")
    count.set_defaults(func=command_count)

    to_json = subparsers.add_parser("to-json", parents=[common], help="Export records to a JSON array")
    to_json.add_argument("path")
    to_json.add_argument("output")
    to_json.add_argument("--indent", type=int, help="JSON indentation (defaults to profile setting)")
    to_json.set_defaults(func=command_to_json)

    from_json = subparsers.add_parser("from-json", parents=[common], help="Create a collection from JSON")
    from_json.add_argument("input", help="JSON file holding an array of objects")
    from_json.add_argument("path", help="CSV file to (re)create")
    from_json.set_defaults(func=command_from_json)

    to_parquet = subparsers.add_parser("to-parquet", parents=[common], help="Export records to Parquet")
    to_parquet.add_argument("path")
    to_parquet.add_argument("output")
    to_parquet.set_defaults(func=command_to_parquet)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 0
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    try:
        args.func(args)
    except (CSVStoreError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
