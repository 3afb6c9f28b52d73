"""Extraction result tree.

One tree is produced per document. It mirrors the mapping tree: a
container result holds one list of child results per mapping-root match
("occurrence"), a value result holds the strings found for one evaluation
and a pivot result holds one value result per discovered key.

``height(group)`` is the number of rows the lazy group ``group`` needs to
enumerate everything below a result. Lazy containers consume the index of
their own group to pick an occurrence, so their height in that group is the
sum of their occurrences' heights.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from ..exceptions import InternalInvariantError
from ..mapping.models import ContainerMapping, MappingNode, MultiValueBehaviour, PivotMapping, ValueMapping


def _lazy_in(mapping: MappingNode, group: int) -> bool:
    return mapping.behaviour is MultiValueBehaviour.LAZY and mapping.group_number == group


@dataclass
class ValueResult:
    mapping: ValueMapping
    values: list[str] = field(default_factory=list)

    def value_at(self, index: int) -> str | None:
        if 0 <= index < len(self.values):
            return self.values[index]
        return None

    def height(self, group: int) -> int:
        if not _lazy_in(self.mapping, group):
            return 0
        return max(len(self.values), self.mapping.min_value_count)

    def to_dict(self) -> list[str]:
        return list(self.values)


@dataclass
class PivotResult:
    mapping: PivotMapping
    columns: dict[str, ValueResult] = field(default_factory=dict)

    def column(self, key: str) -> ValueResult | None:
        """Get or create the result for ``key``; None when the key is empty."""
        key_mapping = self.mapping.key_mapping(key)
        if key_mapping is None:
            return None
        result = self.columns.get(key_mapping.name)
        if result is None:
            result = self.columns[key_mapping.name] = ValueResult(key_mapping)
        return result

    def height(self, group: int) -> int:
        if not _lazy_in(self.mapping, group):
            return 0
        return max([self.mapping.min_value_count] + [len(r.values) for r in self.columns.values()])

    def to_dict(self) -> dict[str, list[str]]:
        return {key: result.to_dict() for key, result in self.columns.items()}


@dataclass
class ContainerResult:
    mapping: ContainerMapping
    occurrences: list[list[Result]] = field(default_factory=list)

    def occurrence_height(self, occurrence: list[Result], group: int) -> int:
        return max([0] + [child.height(group) for child in occurrence])

    def height(self, group: int) -> int:
        if _lazy_in(self.mapping, group):
            total = sum(max(1, self.occurrence_height(o, group)) for o in self.occurrences)
            return total + max(0, self.mapping.min_value_count - len(self.occurrences))
        return max([0] + [self.occurrence_height(o, group) for o in self.occurrences])

    def locate(self, index: int) -> tuple[int, int] | None:
        """Map an index of this container's own group to (occurrence, local index).

        Returns None for indexes that fall into padding.
        """
        if self.mapping.behaviour is not MultiValueBehaviour.LAZY:
            raise InternalInvariantError(f"locate() called on greedy container {self.mapping.name}")
        group = self.mapping.group_number
        for position, occurrence in enumerate(self.occurrences):
            size = max(1, self.occurrence_height(occurrence, group))
            if index < size:
                return position, index
            index -= size
        return None

    def to_dict(self) -> list[list[Any]]:
        return [[child.to_dict() for child in occurrence] for occurrence in self.occurrences]

    @classmethod
    def from_dict(cls, mapping: ContainerMapping, data: list[list[Any]]) -> ContainerResult:
        """Rebuild a result tree serialized with ``to_dict`` against its mapping."""
        result = cls(mapping)
        for occurrence in data:
            if len(occurrence) != len(mapping.children):
                raise InternalInvariantError(
                    f"Stored occurrence of {mapping.name} has {len(occurrence)} children, "
                    f"mapping has {len(mapping.children)}"
                )
            result.occurrences.append(
                [_result_from_dict(child, item) for child, item in zip(mapping.children, occurrence)]
            )
        return result


Result = Union[ValueResult, ContainerResult, PivotResult]


def _result_from_dict(mapping: MappingNode, data: Any) -> Result:
    match mapping:
        case ContainerMapping():
            return ContainerResult.from_dict(mapping, data)
        case PivotMapping():
            pivot = PivotResult(mapping)
            for key, values in data.items():
                column = pivot.column(key)
                if column is not None:
                    column.values.extend(values)
            return pivot
        case ValueMapping():
            return ValueResult(mapping, list(data))
    raise InternalInvariantError(f"Unknown mapping type {type(mapping).__name__}")
