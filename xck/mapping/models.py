"""Runtime mapping model: value, container and pivot mappings rooted in a configuration."""

from __future__ import annotations

import logging
import math
import weakref
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterator

from lxml import etree

from ..exceptions import ConfigurationError, ExtractionError
from .name_format import NameFormat

logger = logging.getLogger(__name__)


class MultiValueBehaviour(str, Enum):
    """How a mapping that yields several values is laid out in the output."""
    GREEDY = "greedy"
    LAZY = "lazy"

    @classmethod
    def parse(cls, value: str) -> MultiValueBehaviour:
        """Parse a configured behaviour; ``inline`` is an alias for greedy."""
        match value.strip().lower():
            case "greedy" | "inline":
                return cls.GREEDY
            case "lazy":
                return cls.LAZY
        raise ConfigurationError(f"Unknown multi-value behaviour: {value}")


def is_element(item: Any) -> bool:
    """True for element nodes; comments and processing instructions are excluded."""
    return isinstance(item, etree._Element) and isinstance(item.tag, str)


def string_value(item: Any) -> str:
    """XPath string-value of an evaluation result item."""
    if isinstance(item, etree._Element):
        return "".join(item.itertext()) if isinstance(item.tag, str) else (item.text or "")
    if isinstance(item, bool):
        return "true" if item else "false"
    if isinstance(item, float):
        if math.isnan(item):
            return "NaN"
        if math.isinf(item):
            return "Infinity" if item > 0 else "-Infinity"
        if item.is_integer():
            return str(int(item))
    return str(item)


class XPathValue:
    """A compiled XPath expression that keeps its source text for messages."""

    def __init__(self, source: str, namespaces: dict[str, str] | None = None) -> None:
        self.source = source
        try:
            self._compiled = etree.XPath(source, namespaces=namespaces or None)
        except etree.XPathError as e:
            raise ConfigurationError(f"Invalid XPath '{source}': {e}")

    def evaluate(self, context: Any) -> list[Any]:
        """Evaluate against ``context`` and always return a list of result items.

        Raises:
            ExtractionError: If evaluation fails for this context
        """
        try:
            result = self._compiled(context)
        except etree.XPathError as e:
            raise ExtractionError(f"Evaluating XPath '{self.source}' failed: {e}")
        if isinstance(result, list):
            return result
        return [result]

    def __repr__(self) -> str:
        return f"XPathValue({self.source!r})"


@dataclass(eq=False, kw_only=True)
class MappingNode(ABC):
    """Common state of every mapping kind."""

    name: str
    behaviour: MultiValueBehaviour = MultiValueBehaviour.LAZY
    group_number: int = 0
    min_value_count: int = 0
    max_value_count: int = 0
    name_format: NameFormat = field(default_factory=lambda: NameFormat.resolve("NoCounts"))
    highest_found_value_count: int = field(default=0, init=False)
    _parent_ref: Any = field(default=None, init=False, repr=False)

    @property
    def parent(self) -> ContainerMapping | PivotMapping | None:
        return self._parent_ref() if self._parent_ref is not None else None

    @parent.setter
    def parent(self, value: ContainerMapping | PivotMapping | None) -> None:
        self._parent_ref = weakref.ref(value) if value is not None else None

    @property
    def is_greedy(self) -> bool:
        return self.behaviour is MultiValueBehaviour.GREEDY

    def record_value_count(self, count: int) -> None:
        """Raise the running maximum of values found in one evaluation."""
        if count > self.highest_found_value_count:
            logger.debug("%s: highest value count %d -> %d", self.name, self.highest_found_value_count, count)
            self.highest_found_value_count = count

    def field_count_for_single_record(self) -> int:
        """Number of times this node repeats within a single output row."""
        if not self.is_greedy:
            return 1
        return max(self.min_value_count, self.highest_found_value_count)

    def has_fixed_output_cardinality(self) -> bool:
        return self.behaviour is MultiValueBehaviour.LAZY or (
            self.min_value_count == self.max_value_count > 0
        )

    @abstractmethod
    def column_count(self) -> int:
        """Columns this node contributes to the header."""

    def walk(self) -> Iterator[MappingNode]:
        yield self


@dataclass(eq=False, kw_only=True)
class ValueMapping(MappingNode):
    """Leaf mapping: one XPath yielding zero or more string values."""

    xpath: XPathValue
    trim_whitespace: bool = True

    def column_count(self) -> int:
        return self.field_count_for_single_record()


@dataclass(eq=False, kw_only=True)
class ContainerMapping(MappingNode):
    """Ordered group of child mappings evaluated under each mapping-root match."""

    children: list[MappingNode] = field(default_factory=list)
    mapping_root: XPathValue | None = None

    def add(self, child: MappingNode) -> MappingNode:
        child.parent = self
        self.children.append(child)
        return child

    def find(self, name: str) -> MappingNode | None:
        for node in self.walk():
            if node is not self and node.name == name:
                return node
        return None

    def walk(self) -> Iterator[MappingNode]:
        yield self
        for child in self.children:
            yield from child.walk()

    def has_fixed_output_cardinality(self) -> bool:
        if not super().has_fixed_output_cardinality():
            return False
        return all(child.has_fixed_output_cardinality() for child in self.children)

    def occurrence_column_count(self) -> int:
        """Columns produced by one occurrence of this container."""
        return sum(child.column_count() for child in self.children)

    def column_count(self) -> int:
        return self.field_count_for_single_record() * self.occurrence_column_count()


@dataclass(eq=False, kw_only=True)
class PivotMapping(MappingNode):
    """Mapping whose columns are named by keys discovered in the documents.

    Each distinct trimmed key becomes a synthetic value mapping that shares
    the pivot's behaviour, group, value counts and name format.
    """

    key_xpath: XPathValue
    value_xpath: XPathValue
    kv_pair_root: XPathValue | None = None
    trim_whitespace: bool = True
    key_mappings: dict[str, ValueMapping] = field(default_factory=dict, init=False)

    def key_mapping(self, key: str | None) -> ValueMapping | None:
        """Get or create the synthetic column for ``key``; empty keys give None."""
        if key is None:
            return None
        key = key.strip()
        if not key:
            return None
        mapping = self.key_mappings.get(key)
        if mapping is None:
            mapping = ValueMapping(
                name=key,
                behaviour=self.behaviour,
                group_number=self.group_number,
                min_value_count=self.min_value_count,
                max_value_count=self.max_value_count,
                name_format=self.name_format,
                xpath=self.value_xpath,
                trim_whitespace=self.trim_whitespace,
            )
            mapping.parent = self
            self.key_mappings[key] = mapping
            logger.debug("%s: discovered pivot column '%s'", self.name, key)
        return mapping

    def walk(self) -> Iterator[MappingNode]:
        yield self
        yield from self.key_mappings.values()

    def has_fixed_output_cardinality(self) -> bool:
        return False

    def column_count(self) -> int:
        return sum(mapping.column_count() for mapping in self.key_mappings.values())


class MappingConfiguration:
    """Ordered set of uniquely named top-level containers plus namespaces and input filters."""

    def __init__(self) -> None:
        self.containers: dict[str, ContainerMapping] = {}
        self.namespaces: dict[str, str] = {}
        self.filters: list[Any] = []

    def add_container(self, container: ContainerMapping) -> ContainerMapping:
        if container.name in self.containers:
            raise ConfigurationError(f"Duplicate container name: {container.name}")
        self.containers[container.name] = container
        return container

    def add_namespace(self, prefix: str, uri: str) -> None:
        if not prefix:
            raise ConfigurationError(f"Namespace prefix for '{uri}' must not be empty")
        existing = self.namespaces.get(prefix)
        if existing is not None and existing != uri:
            raise ConfigurationError(
                f"Namespace prefix '{prefix}' already bound to '{existing}', cannot remap to '{uri}'"
            )
        self.namespaces[prefix] = uri

    def get_container(self, name: str) -> ContainerMapping:
        try:
            return self.containers[name]
        except KeyError:
            raise ConfigurationError(f"No container named '{name}'")

    def find_mapping(self, name: str) -> MappingNode | None:
        """Find a mapping by name anywhere in the configuration."""
        for container in self.containers.values():
            if container.name == name:
                return container
            found = container.find(name)
            if found is not None:
                return found
        return None

    def __iter__(self) -> Iterator[ContainerMapping]:
        return iter(self.containers.values())

    def __len__(self) -> int:
        return len(self.containers)

    def has_fixed_output_cardinality(self) -> bool:
        return all(container.has_fixed_output_cardinality() for container in self)

    def include_file(self, path: Path) -> bool:
        """Check the file-level filters; every filter must accept the file."""
        return all(f.include_file(path) for f in self.filters)

    def include_document(self, document: Any) -> bool:
        """Check the document-level filters; every filter must accept the document."""
        return all(f.include_document(document) for f in self.filters)

    def log(self) -> None:
        """Dump the mapping tree at debug level."""
        if not logger.isEnabledFor(logging.DEBUG):
            return
        for prefix, uri in self.namespaces.items():
            logger.debug("namespace %s=%s", prefix, uri)
        for container in self:
            self._log_node(container, 0)

    def _log_node(self, node: MappingNode, depth: int) -> None:
        indent = "  " * depth
        detail = f"{type(node).__name__} {node.name} {node.behaviour.value} group={node.group_number}"
        detail += f" min={node.min_value_count} max={node.max_value_count} format={node.name_format.label}"
        logger.debug("%s%s", indent, detail)
        if isinstance(node, ContainerMapping):
            for child in node.children:
                self._log_node(child, depth + 1)
