"""Pydantic models for mapping file validation."""

from __future__ import annotations

from typing import List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

Behaviour = Literal["lazy", "greedy", "inline"]


class MappingSpecBase(BaseModel):
    """Fields shared by every mapping kind; unset values are inherited when the model is built."""
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, description="Column or container name")
    group: int | None = Field(None, description="Group number for lazy lockstep iteration")
    behaviour: Behaviour | None = Field(None, description="Multi-value behaviour")
    name_format: str | None = Field(None, description="Predefined name format or custom template")
    min_values: int = Field(0, ge=0, description="Minimum values per evaluation")
    max_values: int = Field(0, ge=0, description="Maximum values per evaluation, 0 for unbounded")

    @model_validator(mode="after")
    def check_value_counts(self) -> MappingSpecBase:
        if self.max_values and self.max_values < self.min_values:
            raise ValueError(
                f"max_values ({self.max_values}) must be 0 or at least min_values ({self.min_values})"
            )
        return self


class ValueSpec(MappingSpecBase):
    xpath: str = Field(..., description="XPath yielding the column values")
    trim_whitespace: bool | None = None


class PivotSpec(MappingSpecBase):
    key_xpath: str = Field(..., description="XPath yielding column names")
    value_xpath: str = Field(..., description="XPath yielding values, relative to the key node")
    kv_pair_root: str | None = Field(None, description="XPath selecting key/value pair nodes")
    trim_whitespace: bool | None = None


class ContainerSpec(MappingSpecBase):
    mapping_root: str | None = Field(None, description="XPath selecting the context of each occurrence")
    mappings: List[MappingSpec] = Field(..., description="Child mappings, in column order")


MappingSpec = Union[ValueSpec, ContainerSpec, PivotSpec]
ContainerSpec.model_rebuild()


class FilterSpec(BaseModel):
    """Input filter; nested filters must all accept a file for it to be converted."""
    model_config = ConfigDict(extra="forbid")

    file_name: str | None = Field(None, description="Regex searched in the input file path")
    xpath: str | None = Field(None, description="XPath that must yield a non-empty result")
    filters: List[FilterSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_kind(self) -> FilterSpec:
        if (self.file_name is None) == (self.xpath is None):
            raise ValueError("a filter needs exactly one of file_name or xpath")
        return self


class MappingFileConfig(BaseModel):
    """A complete mapping file."""

    name: str | None = Field(None, description="Configuration label")
    behaviour: Behaviour = Field("lazy", description="Default multi-value behaviour")
    name_format: str = Field("NoCounts", description="Default name format")
    trim_whitespace: bool = Field(True, description="Trim extracted values")
    namespaces: dict[str, str] = Field(default_factory=dict, description="Prefix to URI map")
    filters: List[FilterSpec] = Field(default_factory=list)
    containers: List[ContainerSpec] = Field(..., min_length=1, description="Top-level containers")
