import pytest

from xck.config.manager import ConfigManager
from xck.exceptions import ConfigurationError
from xck.mapping.filters import FileNameFilter, XPathFilter
from xck.mapping.models import ContainerMapping, MultiValueBehaviour, PivotMapping, ValueMapping


def test_load_and_build_from_yaml(write_config, family_members_config):
    manager = ConfigManager(write_config(family_members_config))
    assert manager.config.containers[0].name == "FamilyMembers"

    configuration = manager.build_configuration()
    container = configuration.get_container("FamilyMembers")
    assert [child.name for child in container.children] == ["Name", "Age", "Address"]
    assert container.group_number == 2
    assert all(child.group_number == 2 for child in container.children)
    assert all(child.behaviour is MultiValueBehaviour.LAZY for child in container.children)
    assert configuration.has_fixed_output_cardinality()


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        ConfigManager(tmp_path / "nope.yml").load_config()


def test_invalid_yaml(tmp_path):
    path = tmp_path / "bad.yml"
    path.write_text("containers: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        ConfigManager(path).load_config()


def test_schema_violations_are_configuration_errors(write_config):
    data = {"containers": [{"name": "C", "mappings": [{"name": "A", "xpath": "a", "colour": "red"}]}]}
    with pytest.raises(ConfigurationError):
        ConfigManager(write_config(data)).load_config()


def test_max_values_below_min_values_rejected(write_config):
    data = {"containers": [{"name": "C", "mappings": [{"name": "A", "xpath": "a", "min_values": 3, "max_values": 2}]}]}
    with pytest.raises(ConfigurationError):
        ConfigManager(write_config(data)).load_config()


def test_mapping_kinds_are_inferred(build):
    configuration = build({
        "containers": [{
            "name": "C",
            "mappings": [
                {"name": "V", "xpath": "v"},
                {"name": "N", "mapping_root": "n", "mappings": [{"xpath": "x"}]},
                {"name": "P", "key_xpath": "@k", "value_xpath": "@v"},
            ],
        }]
    })
    kinds = [type(child) for child in configuration.get_container("C").children]
    assert kinds == [ValueMapping, ContainerMapping, PivotMapping]


def test_min_and_max_apply_to_the_owning_node(build):
    configuration = build({
        "containers": [{
            "name": "C",
            "mappings": [{
                "name": "Items",
                "mapping_root": "item",
                "min_values": 1,
                "max_values": 4,
                "mappings": [{"name": "Tag", "xpath": "tag", "min_values": 2, "max_values": 5}],
            }],
        }]
    })
    items = configuration.find_mapping("Items")
    tag = configuration.find_mapping("Tag")
    assert (items.min_value_count, items.max_value_count) == (1, 4)
    assert (tag.min_value_count, tag.max_value_count) == (2, 5)


def test_behaviour_inherited_from_nearest_declaring_ancestor(build):
    configuration = build({
        "behaviour": "greedy",
        "containers": [{
            "name": "C",
            "mappings": [
                {"name": "A", "xpath": "a"},
                {"name": "N", "behaviour": "lazy", "mapping_root": "n", "mappings": [{"name": "B", "xpath": "b"}]},
                {"name": "I", "xpath": "i", "behaviour": "inline"},
            ],
        }]
    })
    behaviour = {name: configuration.find_mapping(name).behaviour for name in ("A", "B", "I")}
    assert behaviour == {
        "A": MultiValueBehaviour.GREEDY,
        "B": MultiValueBehaviour.LAZY,
        "I": MultiValueBehaviour.GREEDY,
    }


def test_nested_containers_get_fresh_groups(build):
    configuration = build({
        "containers": [
            {"name": "C", "mappings": [
                {"name": "A", "xpath": "a"},
                {"name": "N", "mapping_root": "n", "mappings": [{"name": "B", "xpath": "b"}]},
            ]},
            {"name": "D", "group": 3, "mappings": [{"name": "E", "xpath": "e"}]},
        ]
    })
    group = {name: configuration.find_mapping(name).group_number for name in ("C", "A", "N", "B", "D", "E")}
    assert group["A"] == group["C"]
    assert group["B"] == group["N"]
    assert group["N"] != group["C"]
    assert group["D"] == group["E"] == 3
    assert 3 not in (group["C"], group["N"])


def test_names_default_to_xpath(build):
    configuration = build({"containers": [{"mapping_root": "/a/b", "mappings": [{"xpath": "c/d"}]}]})
    container = configuration.get_container("_a_b")
    assert container.children[0].name == "c_d"


def test_name_format_inheritance(build):
    configuration = build({
        "name_format": "WithCount",
        "containers": [{
            "name": "C",
            "name_format": "WithParentCount",
            "mappings": [{"name": "A", "xpath": "a"}, {"name": "B", "xpath": "b", "name_format": "x_%1$s"}],
        }]
    })
    assert configuration.find_mapping("A").name_format.label == "WithParentCount"
    assert configuration.find_mapping("B").name_format.template == "x_%1$s"


@pytest.mark.parametrize(
    "data",
    [
        {"containers": [{"name": "C", "mappings": [{"xpath": "a["}]}]},
        {"containers": [{"name": "C", "mappings": []}, {"name": "C", "mappings": []}]},
        {"name_format": "Unknown", "containers": [{"name": "C", "mappings": []}]},
        {"namespaces": {"": "urn:a"}, "containers": [{"name": "C", "mappings": []}]},
        {"filters": [{"file_name": "("}], "containers": [{"name": "C", "mappings": []}]},
    ],
)
def test_invalid_configurations(build, data):
    with pytest.raises(ConfigurationError):
        build(data)


def test_filters_are_built(build, tmp_path):
    configuration = build({
        "filters": [{"file_name": r"family.*\.xml$", "filters": [{"xpath": "/families"}]}],
        "containers": [{"name": "C", "mappings": []}],
    })
    [top] = configuration.filters
    assert isinstance(top, FileNameFilter)
    assert isinstance(top.nested[0], XPathFilter)
    assert configuration.include_file(tmp_path / "family1.xml")
    assert not configuration.include_file(tmp_path / "other.xml")


def test_preserve_whitespace_overrides_mapping_settings(build):
    data = {"containers": [{"name": "C", "mappings": [{"name": "A", "xpath": "a", "trim_whitespace": True}]}]}
    assert build(data).find_mapping("A").trim_whitespace is True
    assert build(data, trim_whitespace=False).find_mapping("A").trim_whitespace is False
