"""Tests for serialization protocol and helpers."""

from dataclasses import dataclass

import pytest

from udfknobs_common.exceptions import SerializationError
from udfknobs_common.serialization import (
    Serializable,
    deserialize,
    deserialize_list,
    serialize,
    serialize_list,
)


@dataclass
class Package:
    """Test serializable class."""
    name: str
    checksum: str

    def to_dict(self) -> dict:
        return {"name": self.name, "checksum": self.checksum}

    @classmethod
    def from_dict(cls, data: dict) -> "Package":
        return cls(name=data["name"], checksum=data["checksum"])


class BrokenToDict:
    """to_dict returns the wrong type."""

    def to_dict(self):
        return ["not", "a", "dict"]


class Plain:
    pass


class TestSerializableProtocol:
    """Test runtime protocol checks."""

    def test_isinstance_check(self):
        """Test objects with both methods satisfy the protocol."""
        assert isinstance(Package("a", "b"), Serializable)
        assert not isinstance(Plain(), Serializable)


class TestSerialize:
    """Test serialize()."""

    def test_serialize(self):
        """Test serializing an object."""
        assert serialize(Package("sum.jar", "abc")) == {"name": "sum.jar", "checksum": "abc"}

    def test_missing_to_dict(self):
        """Test object without to_dict."""
        with pytest.raises(SerializationError) as exc_info:
            serialize(Plain())
        assert exc_info.value.context["type"] == "Plain"

    def test_non_dict_result(self):
        """Test to_dict returning a non-dict."""
        with pytest.raises(SerializationError, match="must return a dict"):
            serialize(BrokenToDict())

    def test_serialize_list(self):
        """Test serializing a list."""
        data = serialize_list([Package("a", "1"), Package("b", "2")])
        assert [d["name"] for d in data] == ["a", "b"]


class TestDeserialize:
    """Test deserialize()."""

    def test_deserialize(self):
        """Test deserializing a dict."""
        package = deserialize(Package, {"name": "sum.jar", "checksum": "abc"})
        assert package == Package("sum.jar", "abc")

    def test_missing_from_dict(self):
        """Test class without from_dict."""
        with pytest.raises(SerializationError, match="not deserializable"):
            deserialize(Plain, {})

    def test_non_dict_data(self):
        """Test non-dict input."""
        with pytest.raises(SerializationError, match="must be a dict"):
            deserialize(Package, ["name"])

    def test_from_dict_failure_is_wrapped(self):
        """Test that errors inside from_dict become SerializationError."""
        with pytest.raises(SerializationError) as exc_info:
            deserialize(Package, {"name": "only-name"})
        assert isinstance(exc_info.value.__cause__, KeyError)

    def test_deserialize_list(self):
        """Test deserializing a list."""
        packages = deserialize_list(Package, [{"name": "a", "checksum": "1"}])
        assert packages == [Package("a", "1")]

    def test_deserialize_list_rejects_non_list(self):
        """Test deserialize_list with a non-list."""
        with pytest.raises(SerializationError, match="must be a list"):
            deserialize_list(Package, None)
