"""Configuration management for xck."""

from .manager import ConfigManager, build_configuration
from .models import ContainerSpec, FilterSpec, MappingFileConfig, PivotSpec, ValueSpec

__all__ = [
    "ConfigManager",
    "ContainerSpec",
    "FilterSpec",
    "MappingFileConfig",
    "PivotSpec",
    "ValueSpec",
    "build_configuration",
]
