"""Mapping model for XML-to-CSV conversion."""

from .filters import FileNameFilter, FilterContainer, XPathFilter
from .models import (
    ContainerMapping,
    MappingConfiguration,
    MappingNode,
    MultiValueBehaviour,
    PivotMapping,
    ValueMapping,
    XPathValue,
)
from .name_format import AncestorContext, NameFormat

__all__ = [
    "AncestorContext",
    "ContainerMapping",
    "FileNameFilter",
    "FilterContainer",
    "MappingConfiguration",
    "MappingNode",
    "MultiValueBehaviour",
    "NameFormat",
    "PivotMapping",
    "ValueMapping",
    "XPathFilter",
    "XPathValue",
]
