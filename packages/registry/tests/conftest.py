"""Pytest configuration and fixtures for registry package tests."""

import pytest

from udfknobs_registry import (
    CreateFunctionRequest,
    FunctionMetadata,
    FunctionRegistry,
    MemoryArtifactStore,
)


@pytest.fixture
def store():
    """In-memory artifact store."""
    return MemoryArtifactStore()


@pytest.fixture
def registry(store):
    """Empty registry over the in-memory store."""
    return FunctionRegistry(store)


@pytest.fixture
def make_request():
    """Factory for registration requests."""

    def _make(name, package_name="sum.jar", checksum="abc", package_bytes=None, **kwargs):
        metadata = FunctionMetadata(
            name=name,
            package_name=package_name,
            package_checksum=checksum,
            class_name=kwargs.pop("class_name", f"org.example.{name.capitalize()}"),
            **kwargs,
        )
        return CreateFunctionRequest(metadata, package_bytes)

    return _make


@pytest.fixture
def populated_registry(registry, make_request):
    """Registry holding two functions on one package and one on another."""
    assert registry.create_function(make_request("sum", package_bytes=b"sum-jar"))
    assert registry.create_function(make_request("avg"))
    assert registry.create_function(
        make_request(
            "split",
            package_name="strings.jar",
            checksum="def",
            package_bytes=b"strings-jar",
            attributes={"delimiter": ",", "limit": 3, "ratio": 0.5, "tags": ["a"]},
        )
    )
    return registry
