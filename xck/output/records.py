"""Flattening of extraction results into output rows."""

from __future__ import annotations

import logging
from typing import Iterator

from ..exceptions import InternalInvariantError
from ..extraction.results import ContainerResult, PivotResult, Result, ValueResult
from .group_state import GroupStateChain

logger = logging.getLogger(__name__)

Row = list[str | None]


class OutputRecordIterator:
    """Iterates the rows produced by one occurrence of a top-level container.

    Args:
        children: Child results of the occurrence, in mapping order
    """

    def __init__(self, children: list[Result]) -> None:
        self.children = children
        self.chain = GroupStateChain()
        groups: set[int] = set()
        for child in children:
            self._register(child, groups)
        for group in sorted(groups):
            state = self.chain.get_or_create(group)
            for child in children:
                state.add_member(child.height(group))
        logger.debug("Record groups: %s (%d row(s))", self.chain.states(), self.chain.total_rows())

    def _register(self, result: Result, groups: set[int]) -> None:
        mapping = result.mapping
        if mapping.is_greedy:
            self.chain.add_greedy()
        else:
            groups.add(mapping.group_number)
        match result:
            case ContainerResult():
                for occurrence in result.occurrences:
                    for child in occurrence:
                        self._register(child, groups)
            case PivotResult():
                for column in result.columns.values():
                    self._register(column, groups)

    def __iter__(self) -> Iterator[Row]:
        if not self.chain.has_next():
            return
        while True:
            indexes = self.chain.indexes()
            row: Row = []
            for child in self.children:
                self._emit(child, indexes, row)
            yield row
            if not self.chain.increment():
                break

    def _emit(self, result: Result, indexes: dict[int, int], row: Row) -> None:
        mapping = result.mapping
        match result:
            case ValueResult():
                if mapping.is_greedy:
                    width = mapping.field_count_for_single_record()
                    row.extend(result.values[:width])
                    row.extend([None] * (width - len(result.values)))
                else:
                    row.append(result.value_at(self.chain.index_for(mapping.group_number, indexes)))
            case PivotResult():
                for key, key_mapping in mapping.key_mappings.items():
                    column = result.columns.get(key)
                    if column is None:
                        row.extend([None] * key_mapping.column_count())
                    else:
                        self._emit(column, indexes, row)
            case ContainerResult():
                if mapping.is_greedy:
                    for occurrence in result.occurrences:
                        for child in occurrence:
                            self._emit(child, indexes, row)
                    missing = mapping.field_count_for_single_record() - len(result.occurrences)
                    row.extend([None] * (max(0, missing) * mapping.occurrence_column_count()))
                else:
                    located = result.locate(self.chain.index_for(mapping.group_number, indexes))
                    if located is None:
                        row.extend([None] * mapping.occurrence_column_count())
                    else:
                        position, local_index = located
                        local = dict(indexes)
                        local[mapping.group_number] = local_index
                        for child in result.occurrences[position]:
                            self._emit(child, local, row)
            case _:
                raise InternalInvariantError(f"Unknown result type {type(result).__name__}")


def iter_records(result: ContainerResult) -> Iterator[Row]:
    """Rows for a top-level container result, one block per occurrence in document order."""
    for occurrence in result.occurrences:
        yield from OutputRecordIterator(occurrence)
