"""Shared fixtures for the xck test suite."""

import copy
from pathlib import Path

import pytest
import yaml
from lxml import etree

from xck.config.manager import build_configuration
from xck.config.models import MappingFileConfig
from xck.extraction.extractor import DocumentExtractor
from xck.output.records import iter_records


FAMILIES_XML = """
<families>
  <family name="Smith">
    <member><name>Fred</name><age>40</age><address>1 High St</address></member>
    <member><name>Wilma</name><age>38</age><address>1 High St</address></member>
  </family>
  <family name="Jones">
    <member><name>Tom</name><age>12</age><address>2 Low Rd</address></member>
    <member><name>Ann</name><age>9</age><address>2 Low Rd</address></member>
  </family>
</families>
"""

FAMILY_MEMBERS = {
    "containers": [
        {
            "name": "FamilyMembers",
            "mapping_root": "/families/family/member",
            "group": 2,
            "mappings": [
                {"name": "Name", "xpath": "name"},
                {"name": "Age", "xpath": "age"},
                {"name": "Address", "xpath": "address"},
            ],
        }
    ]
}


def parse(text: str):
    return etree.ElementTree(etree.fromstring(text.strip()))


@pytest.fixture
def build():
    """Build a mapping configuration from a plain dict."""
    def _build(data: dict, **kwargs):
        return build_configuration(MappingFileConfig(**data), **kwargs)
    return _build


@pytest.fixture
def rows():
    """Extract documents and flatten one container; all documents are extracted before flattening."""
    def _rows(configuration, *documents: str, container: str | None = None):
        name = container or next(iter(configuration.containers))
        extracted = [DocumentExtractor(configuration).extract(parse(d))[name] for d in documents]
        result = []
        for container_result in extracted:
            result.extend(iter_records(container_result))
        return result
    return _rows


@pytest.fixture
def families_xml() -> str:
    return FAMILIES_XML


@pytest.fixture
def family_members_config() -> dict:
    return copy.deepcopy(FAMILY_MEMBERS)


@pytest.fixture
def write_config(tmp_path: Path):
    """Write a dict as a YAML mapping file and return its path."""
    def _write(data: dict, name: str = "mapping.yml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path
    return _write
