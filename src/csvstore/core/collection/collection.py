"""File-backed record collection built on the row codec."""
from __future__ import annotations

import logging
from contextlib import closing
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Tuple, TypeVar, Union

from csvstore.common.config import default_runtime_config, error_mode_from_policy
from csvstore.common.errors import CSVStoreError, ErrorCode, SchemaError
from csvstore.common.models import Record, RuntimeConfig, Schema, Value
from csvstore.common.progress import OperationLogger
from csvstore.core.codec.rows import decode_row, encode_row
from csvstore.core.collection.buffer import RecordInput, WriteBuffer, as_record_list
from csvstore.core.headers.schema_parser import infer_schema, parse_schema
from csvstore.storage.file_store import append_text, iter_lines, read_first_line, write_text_atomic
from csvstore.storage.json_store import load_records_json, records_from_json, records_to_json, save_records_json
from csvstore.storage.parquet_store import save_records_parquet

logger = logging.getLogger(__name__)

Predicate = Callable[[Record], bool]
T = TypeVar("T")


def default_sort_key(schema: Schema) -> Callable[[Record], Tuple[Tuple[int, Any], ...]]:
    """Order by every field in schema order: nulls, then numbers, then strings."""

    names = schema.names()

    def norm(value: Value) -> Tuple[int, Any]:
        if value is None:
            return (0, 0)
        if isinstance(value, (bool, int, float)):
            return (1, value)
        return (2, str(value))

    return lambda record: tuple(norm(record.get(name)) for name in names)


class CSVCollection:
    """A delimited text file treated as an append-friendly list of records.

    The first line holds the canonical header names; every following line is
    one record. Reads are sequential scans; delete, sort-with-write and clear
    rewrite the whole file.
    """

    def __init__(
        self,
        path: Union[str, Path],
        headers: Optional[Sequence[str]] = None,
        *,
        delimiter: Optional[str] = None,
        delete_previous: bool = False,
        config: Optional[RuntimeConfig] = None,
        operation_log: Optional[Path] = None,
    ) -> None:
        self.config = config or default_runtime_config()
        self.path = Path(path)
        self.delimiter = delimiter if delimiter is not None else self.config.global_settings.delimiter
        _validate_delimiter(self.delimiter)
        self.encoding = self.config.global_settings.encoding
        self.errors = error_mode_from_policy(self.config.global_settings.error_policy)
        self._schema = parse_schema(headers or [])
        self._buffer = WriteBuffer()
        self._oplog = OperationLogger(operation_log)
        self._init(delete_previous)

    def _init(self, delete_previous: bool) -> None:
        if delete_previous and self.path.exists():
            logger.debug("removing previous file %s", self.path)
            self.path.unlink()

        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write_header_only()
            logger.debug("created %s with headers %s", self.path, self._schema.names())
            return

        first_line = read_first_line(self.path, encoding=self.encoding, errors=self.errors)
        if first_line is None:
            self._write_header_only()
            return
        if not self._schema:
            self._schema = infer_schema(first_line, self.delimiter)
            logger.debug("inferred headers %s from %s", self._schema.names(), self.path)
        elif first_line.strip() != self._schema.header_line(self.delimiter):
            logger.warning(
                "header line %r in %s differs from supplied headers %s; using supplied headers",
                first_line,
                self.path,
                self._schema.names(),
            )

    # ------------------------------------------------------------------
    # Introspection

    @property
    def schema(self) -> Schema:
        return self._schema

    @property
    def headers(self) -> List[str]:
        return self._schema.names()

    @property
    def pending(self) -> int:
        """Number of records staged with :meth:`store`."""

        return len(self._buffer)

    def __repr__(self) -> str:
        return f"CSVCollection(path={str(self.path)!r}, headers={self.headers!r}, delimiter={self.delimiter!r})"

    # ------------------------------------------------------------------
    # Reading

    def iter_records(self) -> Iterator[Record]:
        """Lazily decode records, skipping the header line and blank lines."""

        lines = iter_lines(
            self.path,
            encoding=self.encoding,
            errors=self.errors,
            chunk_size=self.config.profile.read_chunk_size,
        )
        for index, line in enumerate(lines):
            if index == 0 or not line.strip():
                continue
            yield decode_row(line, self._schema, self.delimiter)

    def read(self) -> List[Record]:
        with self._oplog.track(self.path, "read") as rows:
            records = list(self.iter_records())
            rows.append(len(records))
        logger.debug("read %d record(s) from %s", len(records), self.path)
        return records

    def count(self) -> int:
        return sum(1 for _ in self.iter_records())

    def find(self, predicate: Predicate) -> Optional[Record]:
        with closing(self.iter_records()) as records:
            for record in records:
                if predicate(record):
                    return record
        return None

    def filter(self, predicate: Predicate) -> List[Record]:
        return [record for record in self.read() if predicate(record)]

    def map(self, fn: Callable[[Record], T]) -> List[T]:
        return [fn(record) for record in self.read()]

    # ------------------------------------------------------------------
    # Writing

    def write(self, records: RecordInput) -> int:
        """Append one record or an iterable of records; returns rows written."""

        batch = as_record_list(records)
        if not batch:
            return 0
        if not self._schema:
            raise SchemaError(
                f"Collection {self.path} has no headers; records cannot be written",
                context={"path": str(self.path)},
            )
        # Whole batch is encoded before the file is opened.
        text = "".join(encode_row(record, self._schema, self.delimiter) for record in batch)
        with self._oplog.track(self.path, "write") as rows:
            append_text(
                self.path,
                text,
                encoding=self.encoding,
                errors=self.errors,
                fsync=self.config.profile.fsync,
            )
            rows.append(len(batch))
        logger.debug("appended %d record(s) to %s", len(batch), self.path)
        return len(batch)

    def store(self, records: RecordInput) -> int:
        """Stage records in memory; they reach the file on :meth:`flush`."""

        return self._buffer.add(records)

    def flush(self) -> int:
        staged = self._buffer.snapshot()
        written = self.write(staged)
        self._buffer.discard(len(staged))
        return written

    def clear(self) -> None:
        """Truncate the file to its header line."""

        with self._oplog.track(self.path, "clear"):
            self._rewrite([])

    def sort(
        self,
        key: Optional[Callable[[Record], Any]] = None,
        *,
        reverse: bool = False,
        write: bool = False,
    ) -> List[Record]:
        """Return records sorted by ``key``; with ``write`` the file is rewritten in that order."""

        records = self.read()
        records.sort(key=key or default_sort_key(self._schema), reverse=reverse)
        if write:
            with self._oplog.track(self.path, "sort") as rows:
                self._rewrite(records)
                rows.append(len(records))
        return records

    def delete(self, index_or_predicate: Union[int, Predicate]) -> Optional[Record]:
        """Remove the record at an index or the first one matching a predicate."""

        records = self.read()
        if callable(index_or_predicate):
            index = next((i for i, record in enumerate(records) if index_or_predicate(record)), -1)
        else:
            index = int(index_or_predicate)
        if index < 0 or index >= len(records):
            return None
        removed = records.pop(index)
        with self._oplog.track(self.path, "delete") as rows:
            self._rewrite(records)
            rows.append(1)
        return removed

    def delete_all(self, indexes_or_predicate: Union[Iterable[int], Predicate, None] = None) -> int:
        """Remove every record at the given indexes or matching a predicate.

        ``None`` removes all records. Returns the number of records removed.
        """

        records = self.read()
        if indexes_or_predicate is None:
            doomed = set(range(len(records)))
        elif callable(indexes_or_predicate):
            doomed = {i for i, record in enumerate(records) if indexes_or_predicate(record)}
        else:
            doomed = {int(i) for i in indexes_or_predicate if 0 <= int(i) < len(records)}
        if not doomed:
            return 0
        kept = [record for i, record in enumerate(records) if i not in doomed]
        with self._oplog.track(self.path, "delete_all") as rows:
            self._rewrite(kept)
            rows.append(len(doomed))
        return len(doomed)

    # ------------------------------------------------------------------
    # Conversion

    def to_json(self, output: Optional[Union[str, Path]] = None, *, indent: Optional[int] = None) -> str:
        """Return the collection as a JSON array; write it to ``output`` when given."""

        indent = indent if indent is not None else self.config.profile.json_indent
        records = self.read()
        if output is None:
            return records_to_json(records, indent=indent)
        with self._oplog.track(self.path, "to_json") as rows:
            payload = save_records_json(records, Path(output), indent=indent, fsync=self.config.profile.fsync)
            rows.append(len(records))
        return payload

    def to_parquet(self, output: Union[str, Path]) -> int:
        records = self.read()
        with self._oplog.track(self.path, "to_parquet") as rows:
            written = save_records_parquet(records, self._schema, Path(output))
            rows.append(written)
        return written

    @classmethod
    def from_json(
        cls,
        source: Union[str, Path],
        output: Union[str, Path],
        *,
        delimiter: Optional[str] = None,
        config: Optional[RuntimeConfig] = None,
        operation_log: Optional[Path] = None,
    ) -> "CSVCollection":
        """Create a fresh collection at ``output`` from JSON text or a JSON file.

        Headers are the keys of the first object.
        """

        records = _load_json_source(source)
        headers = list(records[0].keys()) if records else []
        collection = cls(
            output,
            headers,
            delimiter=delimiter,
            delete_previous=True,
            config=config,
            operation_log=operation_log,
        )
        known = set(headers)
        for index, record in enumerate(records):
            extra = set(record) - known
            if extra:
                logger.warning("item %d has fields %s not in headers; they are dropped", index, sorted(extra))
        collection.write(records)
        return collection

    # ------------------------------------------------------------------
    # Internal helpers

    def _write_header_only(self) -> None:
        self._rewrite([])

    def _rewrite(self, records: Sequence[Record]) -> None:
        lines = [self._schema.header_line(self.delimiter)]
        lines.extend(encode_row(record, self._schema, self.delimiter) for record in records)
        write_text_atomic(
            self.path,
            lines,
            encoding=self.encoding,
            errors=self.errors,
            fsync=self.config.profile.fsync,
            atomic=self.config.profile.atomic_rewrite,
        )


def _validate_delimiter(delimiter: str) -> None:
    if not delimiter or '"' in delimiter or "\n" in delimiter or "\r" in delimiter:
        raise CSVStoreError(
            ErrorCode.CONFIG_ERROR,
            f"Invalid delimiter {delimiter!r}: must be non-empty without quotes or line breaks",
        )


def _load_json_source(source: Union[str, Path]) -> List[Record]:
    if isinstance(source, Path):
        return load_records_json(source)
    if source.lstrip().startswith(("[", "{")):
        return records_from_json(source)
    return load_records_json(Path(source))
