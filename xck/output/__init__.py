"""Flattening of extraction results and CSV output."""

from .field_names import FieldNameGenerator
from .group_state import GreedyGroupState, GroupState, GroupStateChain
from .manager import OutputManager
from .records import OutputRecordIterator, iter_records
from .writer import CsvWriter

__all__ = [
    "CsvWriter",
    "FieldNameGenerator",
    "GreedyGroupState",
    "GroupState",
    "GroupStateChain",
    "OutputManager",
    "OutputRecordIterator",
    "iter_records",
]
