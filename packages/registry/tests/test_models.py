"""Tests for registry data models."""

import hashlib

import pytest

from udfknobs_common.exceptions import SerializationError, ValidationError
from udfknobs_registry import (
    ArtifactWriteError,
    ChecksumConflictError,
    DuplicateNameError,
    FunctionMetadata,
    FunctionNotFoundError,
    FunctionType,
    Status,
    StatusCode,
    compute_checksum,
)


class TestFunctionMetadata:
    """Test FunctionMetadata."""

    def test_defaults(self):
        """Test default optional fields."""
        metadata = FunctionMetadata("sum", "sum.jar", "abc")
        assert metadata.class_name == ""
        assert metadata.function_type is FunctionType.UDTF
        assert metadata.attributes == {}

    def test_function_type_from_string(self):
        """Test that a string function type is coerced to the enum."""
        metadata = FunctionMetadata("sum", "sum.jar", "abc", function_type="udaf")
        assert metadata.function_type is FunctionType.UDAF

    def test_unknown_function_type(self):
        """Test rejecting an unknown function type."""
        with pytest.raises(ValidationError, match="Unknown function type"):
            FunctionMetadata("sum", "sum.jar", "abc", function_type="window")

    @pytest.mark.parametrize("field", ["name", "package_name", "package_checksum"])
    def test_required_fields_non_empty(self, field):
        """Test that identity fields must be non-empty."""
        values = {"name": "sum", "package_name": "sum.jar", "package_checksum": "abc"}
        values[field] = ""
        with pytest.raises(ValidationError) as exc_info:
            FunctionMetadata(**values)
        assert exc_info.value.context["field"] == field

    def test_name_is_case_sensitive(self):
        """Test names compare by exact string equality."""
        assert FunctionMetadata("Sum", "sum.jar", "abc") != FunctionMetadata("sum", "sum.jar", "abc")

    def test_to_dict_from_dict(self):
        """Test dictionary conversion keeps every field."""
        metadata = FunctionMetadata(
            "sum", "sum.jar", "abc", "org.example.Sum", FunctionType.SCALAR, {"k": [1, 2]}
        )
        data = metadata.to_dict()

        assert data["function_type"] == "scalar"
        assert FunctionMetadata.from_dict(data) == metadata

    def test_from_dict_missing_field(self):
        """Test a record without a required key."""
        with pytest.raises(SerializationError, match="package_checksum"):
            FunctionMetadata.from_dict({"name": "sum", "package_name": "sum.jar"})

    @pytest.mark.parametrize(
        "attributes, path",
        [
            ({"opts": {2: "a", 10: "b"}}, "attributes.opts key 2"),
            ({"shape": (1, 2)}, "attributes.shape"),
            ({"blob": b"\x00"}, "attributes.blob"),
            ({"tags": ["a", {"x"}]}, "attributes.tags[1]"),
            ({"ratio": float("nan")}, "attributes.ratio"),
        ],
    )
    def test_attributes_must_be_json_values(self, attributes, path):
        """Test attributes that would change through a snapshot are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            FunctionMetadata("sum", "sum.jar", "abc", attributes=attributes)
        assert exc_info.value.context["path"] == path

    def test_attributes_must_be_dict(self):
        """Test a non-dict attributes payload is rejected."""
        with pytest.raises(ValidationError, match="must be a dict"):
            FunctionMetadata("sum", "sum.jar", "abc", attributes=[("k", "v")])

    def test_nested_json_attributes_accepted(self):
        """Test nested JSON-native attributes are kept as given."""
        attributes = {"opts": {"limit": 3, "on": True}, "tags": ["a", None], "w": 0.5}
        metadata = FunctionMetadata("sum", "sum.jar", "abc", attributes=attributes)
        assert metadata.attributes == attributes

    def test_is_immutable(self):
        """Test that metadata cannot be mutated in place."""
        metadata = FunctionMetadata("sum", "sum.jar", "abc")
        with pytest.raises(AttributeError):
            metadata.name = "other"


class TestStatus:
    """Test Status values."""

    def test_ok(self):
        """Test a success status."""
        status = Status.ok("done")
        assert status.success
        assert bool(status)
        assert status.code is StatusCode.SUCCESS

    def test_failure(self):
        """Test a failure status is falsy."""
        status = Status.failure(StatusCode.NOT_FOUND, "missing")
        assert not status.success
        assert not status

    @pytest.mark.parametrize(
        "error, code",
        [
            (DuplicateNameError("sum"), StatusCode.DUPLICATE_NAME),
            (ChecksumConflictError("avg", "sum.jar", "xyz", "abc"), StatusCode.CHECKSUM_CONFLICT),
            (ArtifactWriteError("disk full"), StatusCode.ARTIFACT_WRITE_ERROR),
            (FunctionNotFoundError("sum"), StatusCode.NOT_FOUND),
            (RuntimeError("boom"), StatusCode.EXECUTE_ERROR),
        ],
    )
    def test_from_error(self, error, code):
        """Test mapping exceptions to codes."""
        status = Status.from_error(error)
        assert status.code is code
        assert status.error is error
        assert status.message == str(error)


class TestErrorMessages:
    """Test that failure messages name the offending function/package."""

    def test_duplicate_name_message(self):
        """Test DuplicateNameError names the function."""
        error = DuplicateNameError("sum")
        assert "[sum]" in str(error)
        assert error.context == {"name": "sum"}

    def test_checksum_conflict_message(self):
        """Test ChecksumConflictError names function, package and checksum."""
        error = ChecksumConflictError("avg2", "sum.jar", "xyz", "abc")
        assert "[avg2]" in str(error)
        assert "[sum.jar]" in str(error)
        assert "[xyz]" in str(error)
        assert error.context["existing_checksum"] == "abc"


class TestComputeChecksum:
    """Test compute_checksum."""

    def test_md5_default(self):
        """Test MD5 is the default algorithm."""
        assert compute_checksum(b"jar") == hashlib.md5(b"jar").hexdigest()

    def test_other_algorithm(self):
        """Test choosing another algorithm."""
        assert compute_checksum(b"jar", "sha256") == hashlib.sha256(b"jar").hexdigest()

    def test_unknown_algorithm(self):
        """Test an unknown algorithm."""
        with pytest.raises(ValidationError, match="Unsupported checksum algorithm"):
            compute_checksum(b"jar", "not-a-hash")
