"""Input filters deciding which files and documents are converted."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from ..exceptions import ConfigurationError
from .models import XPathValue

logger = logging.getLogger(__name__)


class FilterContainer:
    """Holds nested filters; a file or document passes only if every nested filter accepts it."""

    def __init__(self) -> None:
        self.nested: list[FilterContainer] = []

    def add_nested(self, nested: FilterContainer) -> FilterContainer:
        self.nested.append(nested)
        return nested

    def include_file(self, path: Path) -> bool:
        return all(f.include_file(path) for f in self.nested)

    def include_document(self, document: Any) -> bool:
        return all(f.include_document(document) for f in self.nested)


class FileNameFilter(FilterContainer):
    """Accepts files whose absolute path contains a match of a regular expression."""

    def __init__(self, pattern: str) -> None:
        super().__init__()
        try:
            self.pattern = re.compile(pattern)
        except re.error as e:
            raise ConfigurationError(f"Invalid file name filter '{pattern}': {e}")

    def include_file(self, path: Path) -> bool:
        absolute = str(Path(path).absolute())
        if not self.pattern.search(absolute):
            logger.debug("%s excluded by file name filter %s", absolute, self.pattern.pattern)
            return False
        return super().include_file(path)

    def __repr__(self) -> str:
        return f"FileNameFilter({self.pattern.pattern!r})"


class XPathFilter(FilterContainer):
    """Accepts documents for which an XPath yields a non-empty result."""

    def __init__(self, xpath: XPathValue) -> None:
        super().__init__()
        self.xpath = xpath

    def include_document(self, document: Any) -> bool:
        results = self.xpath.evaluate(document)
        if not results or results[0] is False:
            logger.debug("Document excluded by XPath filter %s", self.xpath.source)
            return False
        return super().include_document(document)

    def __repr__(self) -> str:
        return f"XPathFilter({self.xpath.source!r})"
