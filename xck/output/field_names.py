"""Column headers derived from the mapping model."""

from __future__ import annotations

from ..exceptions import InternalInvariantError
from ..mapping.models import ContainerMapping, MappingNode, PivotMapping, ValueMapping
from ..mapping.name_format import AncestorContext


class FieldNameGenerator:
    """Generates the header of one top-level container.

    Greedy mappings expand once per column they occupy, lazy mappings once.
    Pivot columns are only known after documents have been extracted.
    """

    def __init__(self, container: ContainerMapping) -> None:
        self.container = container

    def field_names(self) -> list[str]:
        context = AncestorContext()
        names: list[str] = []
        with context.frame(self.container.name, 0):
            for child in self.container.children:
                names.extend(self._names(child, context))
        return names

    def _names(self, mapping: MappingNode, context: AncestorContext) -> list[str]:
        match mapping:
            case ContainerMapping():
                names = []
                for iteration in range(mapping.field_count_for_single_record()):
                    with context.frame(mapping.name, iteration):
                        for child in mapping.children:
                            names.extend(self._names(child, context))
                return names
            case PivotMapping():
                names = []
                with context.frame(mapping.name, 0):
                    for key_mapping in mapping.key_mappings.values():
                        names.extend(self._names(key_mapping, context))
                return names
            case ValueMapping():
                return [
                    mapping.name_format.format(mapping.name, iteration, context)
                    for iteration in range(mapping.field_count_for_single_record())
                ]
        raise InternalInvariantError(f"Unknown mapping type {type(mapping).__name__}")
