from xck.extraction.extractor import DocumentExtractor
from xck.output.field_names import FieldNameGenerator

from .conftest import parse


def names(configuration, container=None):
    name = container or next(iter(configuration.containers))
    return FieldNameGenerator(configuration.get_container(name)).field_names()


def test_lazy_mappings_expand_once(build, family_members_config):
    assert names(build(family_members_config)) == ["Name", "Age", "Address"]


def test_greedy_mapping_expands_per_column(build):
    configuration = build({
        "name_format": "WithCount",
        "containers": [{
            "name": "C",
            "mapping_root": "/r",
            "mappings": [
                {"name": "A", "xpath": "a", "behaviour": "greedy", "min_values": 3},
                {"name": "B", "xpath": "b"},
            ],
        }],
    })
    assert names(configuration) == ["A_1", "A_2", "A_3", "B_1"]


def test_parent_count_follows_greedy_container_iterations(build):
    configuration = build({
        "containers": [{
            "name": "Family",
            "mapping_root": "/family",
            "mappings": [{
                "name": "Person",
                "mapping_root": "person",
                "behaviour": "greedy",
                "min_values": 3,
                "max_values": 3,
                "mappings": [{"name": "Age", "xpath": "age", "behaviour": "lazy", "name_format": "%1$s_%4$d"}],
            }],
        }],
    })
    assert names(configuration) == ["Age_1", "Age_2", "Age_3"]
    assert configuration.has_fixed_output_cardinality()


def test_top_level_container_is_the_first_ancestor(build):
    configuration = build({
        "name_format": "%3$s.%1$s",
        "containers": [{"name": "Top", "mapping_root": "/r", "mappings": [{"name": "A", "xpath": "a"}]}],
    })
    assert names(configuration) == ["Top.A"]


def test_pivot_columns_appear_once_discovered(build):
    configuration = build({
        "containers": [{
            "name": "C",
            "mapping_root": "/r",
            "mappings": [
                {"name": "Id", "xpath": "@id"},
                {"name": "F", "key_xpath": "f/@k", "value_xpath": "@v", "name_format": "%3$s_%1$s"},
            ],
        }],
    })
    assert names(configuration) == ["Id"]

    DocumentExtractor(configuration).extract(parse('<r id="1"><f k="b" v="1"/><f k="a" v="2"/></r>'))
    assert names(configuration) == ["Id", "F_b", "F_a"]


def test_greedy_width_grows_with_highest_found_count(build):
    configuration = build({
        "containers": [{"name": "C", "mapping_root": "/r", "mappings": [{"name": "A", "xpath": "a", "behaviour": "greedy"}]}],
    })
    assert names(configuration) == []
    DocumentExtractor(configuration).extract(parse("<r><a/><a/></r>"))
    assert names(configuration) == ["A", "A"]
