"""Unit tests for connectors.py - Connector definitions and parsing."""

import pytest

from connectors import (
    Connector,
    ConnectorParseError,
    connector_name,
    parse_configmap,
    parse_connector,
)


class TestConnector:
    """Tests for the Connector dataclass."""

    def test_defaults_to_empty_config(self):
        assert Connector("foo").config == {}

    def test_from_config_uses_name_field(self):
        connector = Connector.from_config({"name": "foo", "topics": "orders"})
        assert connector.name == "foo"
        assert connector.config == {"name": "foo", "topics": "orders"}

    def test_from_config_copies_mapping(self):
        config = {"name": "foo"}
        connector = Connector.from_config(config)
        config["extra"] = "1"
        assert "extra" not in connector.config

    def test_to_dict(self, sample_connector):
        data = sample_connector.to_dict()
        assert data["name"] == "orders-sink"
        assert data["config"]["topics"] == "orders"

    def test_equality(self):
        assert Connector("a", {"k": "v"}) == Connector("a", {"k": "v"})
        assert Connector("a", {"k": "v"}) != Connector("a", {"k": "w"})


class TestConnectorName:
    """Tests for connector_name."""

    def test_returns_name(self):
        assert connector_name({"name": "foo"}) == "foo"

    def test_missing_name_raises(self):
        with pytest.raises(ValueError, match="must contain a 'name' field"):
            connector_name({"topics": "orders"})

    def test_empty_name_raises(self):
        with pytest.raises(ValueError):
            connector_name({"name": ""})


class TestParseConnector:
    """Tests for parse_connector."""

    def test_parse_json_string(self):
        connector = parse_connector(
            '{"name": "foo", "config": {"connector.class": "Foo"}}'
        )
        assert connector == Connector("foo", {"connector.class": "Foo"})

    def test_parse_bytes(self):
        connector = parse_connector(b'{"name": "foo", "config": {}}')
        assert connector.name == "foo"

    def test_parse_dict(self):
        connector = parse_connector({"name": "foo", "config": {"a": "b"}})
        assert connector.config == {"a": "b"}

    def test_scalars_are_stringified(self):
        connector = parse_connector(
            {
                "name": "foo",
                "config": {"tasks.max": 3, "enabled": True, "ratio": 0.5, "off": False},
            }
        )
        assert connector.config == {
            "tasks.max": "3",
            "enabled": "true",
            "ratio": "0.5",
            "off": "false",
        }

    def test_invalid_json_raises(self):
        with pytest.raises(ConnectorParseError, match="Invalid connector definition"):
            parse_connector("{not json")

    def test_missing_name_raises(self):
        with pytest.raises(ConnectorParseError):
            parse_connector({"config": {}})

    def test_empty_name_raises(self):
        with pytest.raises(ConnectorParseError):
            parse_connector({"name": "", "config": {}})

    def test_missing_config_raises(self):
        with pytest.raises(ConnectorParseError):
            parse_connector({"name": "foo"})

    def test_nested_config_raises(self):
        with pytest.raises(ConnectorParseError):
            parse_connector({"name": "foo", "config": {"nested": {"a": "b"}}})


class TestParseConfigMap:
    """Tests for parse_configmap."""

    def test_one_connector_per_entry(self, sample_configmap):
        connectors = parse_configmap(sample_configmap)
        assert [c.name for c in connectors] == ["orders-sink", "orders-source"]
        assert connectors[0].config["tasks.max"] == "1"

    def test_no_data(self):
        assert parse_configmap({"metadata": {"name": "empty"}}) == []

    def test_null_data(self):
        assert parse_configmap({"metadata": {"name": "empty"}, "data": None}) == []

    def test_bad_entry_names_configmap_and_key(self, sample_configmap):
        sample_configmap["data"]["broken.json"] = "{oops"
        with pytest.raises(ConnectorParseError) as exc_info:
            parse_configmap(sample_configmap)
        assert "orders-connectors" in exc_info.value.message
        assert "broken.json" in exc_info.value.message
