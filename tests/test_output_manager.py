from pathlib import Path

import pytest

from xck.exceptions import InternalInvariantError
from xck.extraction.extractor import DocumentExtractor
from xck.output.intermediate import IntermediateStore
from xck.output.manager import OutputManager
from xck.output.writer import CsvWriter, output_file_name

from .conftest import parse

GREEDY_AGES = {
    "containers": [{
        "name": "People",
        "mapping_root": "/people/person",
        "mappings": [{"name": "Name", "xpath": "name"}, {"name": "Age", "xpath": "age", "behaviour": "greedy"}],
    }]
}


def lines(path: Path) -> list[str]:
    return path.read_text(encoding="utf-8").splitlines()


def test_output_file_name_replaces_unsafe_characters():
    assert output_file_name("Family Members/2") == "Family_Members_2.csv"


def test_fixed_cardinality_writes_header_on_open(build, family_members_config, families_xml, tmp_path):
    configuration = build(family_members_config)
    manager = OutputManager(configuration, tmp_path)
    manager.open()
    path = tmp_path / "FamilyMembers.csv"
    assert lines(path) == ["Name,Age,Address"]

    manager.write(DocumentExtractor(configuration).extract(parse(families_xml)))
    assert manager.close() == {"FamilyMembers": 4}
    assert lines(path) == [
        "Name,Age,Address",
        "Fred,40,1 High St",
        "Wilma,38,1 High St",
        "Tom,12,2 Low Rd",
        "Ann,9,2 Low Rd",
    ]


def test_unbounded_greedy_output_is_deferred_until_close(build, tmp_path):
    configuration = build(GREEDY_AGES)
    extractor = DocumentExtractor(configuration)
    with OutputManager(configuration, tmp_path) as manager:
        assert manager.deferred == [configuration.get_container("People")]
        manager.write(extractor.extract(parse("<people><person><name>Ann</name><age>1</age></person></people>")))
        manager.write(extractor.extract(parse(
            "<people><person><name>Bob</name><age>1</age><age>2</age><age>3</age></person></people>"
        )))
        assert not (tmp_path / "People.csv").exists()

    assert lines(tmp_path / "People.csv") == [
        "Name,Age,Age,Age",
        "Ann,1,,",
        "Bob,1,2,3",
    ]
    assert manager.rows_written == {"People": 2}


def test_append_mode_keeps_existing_rows(build, family_members_config, families_xml, tmp_path):
    configuration = build(family_members_config)
    for _ in range(2):
        with OutputManager(configuration, tmp_path, append=True) as manager:
            manager.write(DocumentExtractor(configuration).extract(parse(families_xml)))

    content = lines(tmp_path / "FamilyMembers.csv")
    assert content.count("Name,Age,Address") == 1
    assert len(content) == 9


def test_intermediate_store_cleans_up(build, tmp_path):
    configuration = build(GREEDY_AGES)
    store = IntermediateStore(keep=False)
    with OutputManager(configuration, tmp_path / "out", store=store) as manager:
        manager.write(DocumentExtractor(configuration).extract(parse("<people/>")))
        directory = store.directory
        assert store.count(configuration.get_container("People")) == 1
        assert directory.exists()
    assert not directory.exists()
    assert lines(tmp_path / "out" / "People.csv") == ["Name"]


def test_writer_rejects_rows_of_wrong_width(tmp_path):
    writer = CsvWriter(tmp_path / "x.csv", ["A", "B"])
    writer.open()
    with pytest.raises(InternalInvariantError):
        writer.write_rows([["1"]])


def test_values_needing_quotes_are_quoted(tmp_path):
    writer = CsvWriter(tmp_path / "x.csv", ["A", "B"])
    writer.open()
    writer.write_rows([["a,b", 'say "hi"']])
    assert lines(tmp_path / "x.csv") == ["A,B", '"a,b","say ""hi"""']
