"""Evaluates the mapping model against one parsed XML document."""

from __future__ import annotations

import logging
from typing import Any

from lxml import etree

from ..exceptions import ExtractionError, InternalInvariantError
from ..mapping.models import (
    ContainerMapping,
    MappingConfiguration,
    MappingNode,
    PivotMapping,
    ValueMapping,
    is_element,
    string_value,
)
from .results import ContainerResult, PivotResult, Result, ValueResult

logger = logging.getLogger(__name__)


class DocumentExtractor:
    """Builds extraction result trees and updates highest found value counts.

    Args:
        configuration: Built mapping configuration
        document_name: Name used in log and error messages
    """

    def __init__(self, configuration: MappingConfiguration, document_name: str | None = None) -> None:
        self.configuration = configuration
        self.document_name = document_name

    def extract(self, document: Any) -> dict[str, ContainerResult]:
        """Evaluate every top-level container against ``document``.

        Args:
            document: An lxml element or element tree

        Returns:
            Container results keyed by container name, in configuration order

        Raises:
            ExtractionError: If any XPath fails to evaluate against this document
        """
        context = document.getroot() if isinstance(document, etree._ElementTree) else document
        results: dict[str, ContainerResult] = {}
        saved = self._save_state()
        try:
            for container in self.configuration:
                results[container.name] = self.evaluate_container(container, context)
        except ExtractionError as e:
            self._restore_state(*saved)
            if e.document is None and self.document_name:
                raise ExtractionError(str(e), self.document_name) from e
            raise
        return results

    def _save_state(self) -> tuple[dict[MappingNode, int], dict[PivotMapping, dict[str, ValueMapping]]]:
        counts = {node: node.highest_found_value_count for container in self.configuration for node in container.walk()}
        keys = {node: dict(node.key_mappings) for node in counts if isinstance(node, PivotMapping)}
        return counts, keys

    @staticmethod
    def _restore_state(
        counts: dict[MappingNode, int], keys: dict[PivotMapping, dict[str, ValueMapping]]
    ) -> None:
        """Undo counter and pivot key changes made by a document that failed part way."""
        for node, count in counts.items():
            node.highest_found_value_count = count
        for pivot, key_mappings in keys.items():
            pivot.key_mappings = key_mappings

    def evaluate(self, mapping: MappingNode, context: Any) -> Result:
        match mapping:
            case ContainerMapping():
                return self.evaluate_container(mapping, context)
            case PivotMapping():
                return self.evaluate_pivot(mapping, context)
            case ValueMapping():
                return self.evaluate_value(mapping, context)
        raise InternalInvariantError(f"Unknown mapping type {type(mapping).__name__}")

    def evaluate_container(self, mapping: ContainerMapping, context: Any) -> ContainerResult:
        result = ContainerResult(mapping)
        if mapping.mapping_root is None:
            roots = [context]
        else:
            roots = mapping.mapping_root.evaluate(context)
        for root in roots:
            if not is_element(root):
                logger.warning(
                    "%s: mapping root %s matched a non-element (%r), skipping",
                    mapping.name, mapping.mapping_root.source if mapping.mapping_root else ".", root,
                )
                continue
            if mapping.max_value_count and len(result.occurrences) == mapping.max_value_count:
                logger.info("%s: more than %d occurrences found, discarding the rest", mapping.name, mapping.max_value_count)
                break
            result.occurrences.append([self.evaluate(child, root) for child in mapping.children])
        mapping.record_value_count(len(result.occurrences))
        return result

    def evaluate_value(self, mapping: ValueMapping, context: Any) -> ValueResult:
        result = ValueResult(mapping)
        self._collect(mapping, mapping.xpath.evaluate(context), result)
        return result

    def _collect(self, mapping: ValueMapping, items: list[Any], result: ValueResult) -> None:
        for position, item in enumerate(items):
            if mapping.max_value_count and len(result.values) == mapping.max_value_count:
                logger.info(
                    "%s: discarding %d value(s) beyond the maximum of %d",
                    mapping.name, len(items) - position, mapping.max_value_count,
                )
                break
            value = string_value(item)
            if mapping.trim_whitespace:
                value = value.strip()
            result.values.append(value)
        mapping.record_value_count(len(result.values))

    def evaluate_pivot(self, mapping: PivotMapping, context: Any) -> PivotResult:
        result = PivotResult(mapping)
        if mapping.kv_pair_root is not None:
            pairs = []
            for node in mapping.kv_pair_root.evaluate(context):
                keys = mapping.key_xpath.evaluate(node)
                if not keys:
                    logger.warning("%s: key XPath %s found nothing", mapping.name, mapping.key_xpath.source)
                    continue
                pairs.append((string_value(keys[0]), node))
        else:
            pairs = [(string_value(key), self._key_node(key)) for key in mapping.key_xpath.evaluate(context)]

        for key, node in pairs:
            column = result.column(key)
            if column is None:
                logger.debug("%s: skipping empty pivot key", mapping.name)
                continue
            values = mapping.value_xpath.evaluate(node) if node is not None else []
            self._collect(column.mapping, values, column)
        mapping.record_value_count(len(result.columns))
        return result

    @staticmethod
    def _key_node(key: Any) -> Any:
        """The node a pivot value XPath is evaluated against for a key result."""
        if isinstance(key, etree._Element):
            return key
        getparent = getattr(key, "getparent", None)
        if getparent is None:
            return None
        owner = getparent()
        # a tail string hangs off the preceding sibling
        if getattr(key, "is_tail", False) and owner is not None:
            owner = owner.getparent()
        return owner
