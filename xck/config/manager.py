"""Configuration manager for loading mapping files and building the mapping model."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..exceptions import ConfigurationError
from ..mapping.filters import FileNameFilter, FilterContainer, XPathFilter
from ..mapping.models import (
    ContainerMapping,
    MappingConfiguration,
    MappingNode,
    MultiValueBehaviour,
    PivotMapping,
    ValueMapping,
    XPathValue,
)
from ..mapping.name_format import NameFormat
from .models import ContainerSpec, FilterSpec, MappingFileConfig, MappingSpec, PivotSpec, ValueSpec

logger = logging.getLogger(__name__)


class ConfigManager:
    """Loads and validates a mapping file."""

    def __init__(self, config_path: str | Path) -> None:
        """Initialize configuration manager.

        Args:
            config_path: Path to the YAML mapping file
        """
        self.config_path = Path(config_path)
        self._config: MappingFileConfig | None = None

    def load_config(self) -> MappingFileConfig:
        """Load and validate the mapping file.

        Returns:
            Validated mapping file configuration

        Raises:
            ConfigurationError: If the file is missing, is not valid YAML or
                does not match the schema
        """
        if not self.config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}")

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"{self.config_path} does not contain a mapping configuration")

        try:
            self._config = MappingFileConfig(**config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration {self.config_path}: {e}")
        return self._config

    @property
    def config(self) -> MappingFileConfig:
        """Get the loaded configuration (loads if not already loaded)."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def build_configuration(self, trim_whitespace: bool | None = None) -> MappingConfiguration:
        """Build the runtime mapping model from the loaded file.

        Args:
            trim_whitespace: Overrides the file's whitespace trimming when set
        """
        return build_configuration(self.config, trim_whitespace=trim_whitespace)


def build_configuration(file_config: MappingFileConfig, trim_whitespace: bool | None = None) -> MappingConfiguration:
    """Build a :class:`MappingConfiguration` from a validated mapping file.

    Behaviours, name formats and group numbers are resolved here so the
    runtime model never sees an unset value.

    Raises:
        ConfigurationError: On invalid XPaths, names, namespaces or name formats
    """
    return _Builder(file_config, trim_whitespace).build()


class _Builder:
    def __init__(self, file_config: MappingFileConfig, trim_whitespace: bool | None) -> None:
        self.file_config = file_config
        self.trim_override = trim_whitespace
        self.configuration = MappingConfiguration()
        explicit = list(_explicit_groups(file_config.containers))
        self._next_group = max(explicit) + 1 if explicit else 0
        self._formats: dict[str, NameFormat] = {}

    def build(self) -> MappingConfiguration:
        for prefix, uri in self.file_config.namespaces.items():
            self.configuration.add_namespace(prefix, uri)
        for spec in self.file_config.filters:
            self.configuration.filters.append(self._filter(spec))

        default_behaviour = MultiValueBehaviour.parse(self.file_config.behaviour)
        default_format = self._name_format(self.file_config.name_format)
        for spec in self.file_config.containers:
            if spec.name is None and spec.mapping_root is None:
                raise ConfigurationError("Top-level containers need a name or a mapping_root")
            container = self._container(spec, default_behaviour, default_format)
            self.configuration.add_container(container)

        self.configuration.log()
        return self.configuration

    def _xpath(self, source: str) -> XPathValue:
        return XPathValue(source, self.configuration.namespaces)

    def _name_format(self, value: str) -> NameFormat:
        if value not in self._formats:
            self._formats[value] = NameFormat.resolve(value)
        return self._formats[value]

    def _allocate_group(self) -> int:
        group = self._next_group
        self._next_group += 1
        return group

    def _common(
        self,
        spec: MappingSpec,
        behaviour: MultiValueBehaviour,
        name_format: NameFormat,
        group: int,
        default_name: str,
    ) -> dict:
        return dict(
            name=spec.name or default_name.replace("/", "_"),
            behaviour=MultiValueBehaviour.parse(spec.behaviour) if spec.behaviour else behaviour,
            group_number=spec.group if spec.group is not None else group,
            min_value_count=spec.min_values,
            max_value_count=spec.max_values,
            name_format=self._name_format(spec.name_format) if spec.name_format else name_format,
        )

    def _container(
        self,
        spec: ContainerSpec,
        behaviour: MultiValueBehaviour,
        name_format: NameFormat,
    ) -> ContainerMapping:
        own_group = self._allocate_group()
        common = self._common(spec, behaviour, name_format, own_group, spec.mapping_root or "")
        container = ContainerMapping(
            mapping_root=self._xpath(spec.mapping_root) if spec.mapping_root else None,
            **common,
        )
        if not container.name:
            raise ConfigurationError("Nested containers need a name or a mapping_root")
        for child_spec in spec.mappings:
            container.add(self._mapping(child_spec, container))
        return container

    def _mapping(self, spec: MappingSpec, parent: ContainerMapping) -> MappingNode:
        behaviour = parent.behaviour
        name_format = parent.name_format
        match spec:
            case ContainerSpec():
                return self._container(spec, behaviour, name_format)
            case PivotSpec():
                common = self._common(spec, behaviour, name_format, parent.group_number, spec.key_xpath)
                return PivotMapping(
                    key_xpath=self._xpath(spec.key_xpath),
                    value_xpath=self._xpath(spec.value_xpath),
                    kv_pair_root=self._xpath(spec.kv_pair_root) if spec.kv_pair_root else None,
                    trim_whitespace=self._trim(spec.trim_whitespace),
                    **common,
                )
            case ValueSpec():
                common = self._common(spec, behaviour, name_format, parent.group_number, spec.xpath)
                return ValueMapping(
                    xpath=self._xpath(spec.xpath),
                    trim_whitespace=self._trim(spec.trim_whitespace),
                    **common,
                )
        raise ConfigurationError(f"Unsupported mapping definition: {spec!r}")

    def _trim(self, value: bool | None) -> bool:
        if self.trim_override is not None:
            return self.trim_override
        return self.file_config.trim_whitespace if value is None else value

    def _filter(self, spec: FilterSpec) -> FilterContainer:
        if spec.file_name is not None:
            result: FilterContainer = FileNameFilter(spec.file_name)
        else:
            result = XPathFilter(self._xpath(spec.xpath))
        for nested in spec.filters:
            result.add_nested(self._filter(nested))
        return result


def _explicit_groups(specs: list[MappingSpec]):
    for spec in specs:
        if spec.group is not None:
            yield spec.group
        if isinstance(spec, ContainerSpec):
            yield from _explicit_groups(spec.mappings)
