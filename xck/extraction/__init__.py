"""Extraction engine and result tree."""

from .extractor import DocumentExtractor
from .results import ContainerResult, PivotResult, ValueResult

__all__ = ["ContainerResult", "DocumentExtractor", "PivotResult", "ValueResult"]
