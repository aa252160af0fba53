"""In-memory staging area for deferred writes."""
from __future__ import annotations

from typing import Iterable, List, Mapping, Union

from csvstore.common.models import Record, Value

RecordInput = Union[Mapping[str, Value], Iterable[Mapping[str, Value]]]


def as_record_list(records: RecordInput) -> List[Record]:
    """Accept a single record or an iterable of records."""

    if isinstance(records, Mapping):
        return [dict(records)]
    return [dict(record) for record in records]


class WriteBuffer:
    """Records staged by ``store`` until the owning collection flushes them."""

    def __init__(self) -> None:
        self._records: List[Record] = []

    def __len__(self) -> int:
        return len(self._records)

    def add(self, records: RecordInput) -> int:
        staged = as_record_list(records)
        self._records.extend(staged)
        return len(staged)

    def snapshot(self) -> List[Record]:
        return list(self._records)

    def discard(self, count: int) -> None:
        """Drop the first ``count`` records once they have been written."""

        del self._records[:count]
