"""Data models shared across the codec, collection, and storage layers."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

Value = Union[str, int, float, bool, None]
Record = Dict[str, Value]


class FieldType(str, Enum):
    """Declared column type taken from the header prefix."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DYNAMIC = "dynamic"


TYPE_PREFIXES: Dict[str, FieldType] = {
    "s:": FieldType.STRING,
    "n:": FieldType.NUMBER,
    "b:": FieldType.BOOLEAN,
}


@dataclass(frozen=True, slots=True)
class HeaderSpec:
    """One parsed header token, e.g. ``n:age?`` -> ``age`` (number, optional).

    The declared type is advisory: decoding always applies the generic
    inference rules, so a caller may only rely on it for its own checks.
    """

    name: str
    declared_type: FieldType = FieldType.DYNAMIC
    optional: bool = False
    raw: str = ""


@dataclass(frozen=True, slots=True)
class Schema:
    """Ordered column descriptors; position on disk equals position here."""

    fields: Tuple[HeaderSpec, ...] = ()

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[HeaderSpec]:
        return iter(self.fields)

    def __bool__(self) -> bool:
        return bool(self.fields)

    def names(self) -> List[str]:
        return [spec.name for spec in self.fields]

    def get(self, name: str) -> Optional[HeaderSpec]:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    def required_names(self) -> List[str]:
        return [spec.name for spec in self.fields if not spec.optional]

    def header_line(self, delimiter: str) -> str:
        """Canonical (unprefixed) header text stored as the first line."""

        return delimiter.join(self.names())


@dataclass(slots=True)
class GlobalSettings:
    """Global knobs that apply across profiles."""

    encoding: str = "utf-8"
    delimiter: str = ","
    error_policy: str = "fail-fast"  # fail-fast | replace


@dataclass(slots=True)
class ProfileSettings:
    """Profile-specific I/O behaviour."""

    description: str = "Built-in defaults"
    read_chunk_size: int = 65_536
    atomic_rewrite: bool = True
    fsync: bool = False
    json_indent: Optional[int] = None


@dataclass(slots=True)
class RuntimeConfig:
    """Resolved configuration for a collection."""

    global_settings: GlobalSettings = field(default_factory=GlobalSettings)
    profile: ProfileSettings = field(default_factory=ProfileSettings)


@dataclass(slots=True)
class OperationEvent:
    """Single collection operation reported to the operation log."""

    path: Path
    operation: str
    rows: int
    duration_seconds: float
