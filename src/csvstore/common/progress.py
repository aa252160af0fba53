"""Structured operation logging utilities."""
from __future__ import annotations

import json
import time
from contextlib import contextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Iterator, List, Optional

from csvstore.common.models import OperationEvent


class OperationLogger:
    """Writes one JSONL line per collection operation for later inspection."""

    def __init__(self, path: Optional[Path]) -> None:
        self.path = Path(path) if path else None
        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, event: OperationEvent) -> None:
        if not self.path:
            return
        payload = asdict(event)
        payload["path"] = str(event.path)
        payload["timestamp"] = time.time()
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload))
            handle.write("\n")

    @contextmanager
    def track(self, path: Path, operation: str) -> Iterator[List[int]]:
        """Time a block; callers append row counts to the yielded list."""

        rows: List[int] = []
        start = time.perf_counter()
        yield rows
        self.emit(
            OperationEvent(
                path=path,
                operation=operation,
                rows=sum(rows),
                duration_seconds=time.perf_counter() - start,
            )
        )
