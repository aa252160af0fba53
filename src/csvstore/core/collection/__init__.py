"""File-backed record collections."""

from .buffer import WriteBuffer
from .collection import CSVCollection, default_sort_key

__all__ = ["CSVCollection", "WriteBuffer", "default_sort_key"]
